"""Exit codes for the tagcut CLI and the release handler process.

The handler exits non-zero for any error response; the caller maps the
response error code onto one of these values for its own exit status.
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Process exit codes.

    - 0: Success
    - 1: User error (bad flags, invalid config, version violation)
    - 2: Environment error (dirty tree, missing binary, missing token)
    - 3: Release error (a release step failed; rollback attempted)
    - 4: Network error (push or platform API failure)
    - 5: I/O error (config could not be read or written)
    - 6: Transport error (handler produced no valid response)
    """

    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    RELEASE_ERROR = 3
    NETWORK_ERROR = 4
    IO_ERROR = 5
    TRANSPORT_ERROR = 6

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK
