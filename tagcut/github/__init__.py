"""GitHub platform access (releases API over an injectable HTTP client)."""

from tagcut.github.http import (
    HttpClient,
    HttpError,
    HttpResponse,
    MockHttpClient,
    RealHttpClient,
)
from tagcut.github.releases import (
    TOKEN_ENV_VAR,
    PlatformError,
    PlatformReleases,
    get_token,
)

__all__ = [
    "HttpClient",
    "HttpError",
    "HttpResponse",
    "MockHttpClient",
    "PlatformError",
    "PlatformReleases",
    "RealHttpClient",
    "TOKEN_ENV_VAR",
    "get_token",
]
