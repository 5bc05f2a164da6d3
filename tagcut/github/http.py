"""HTTP client abstraction for the platform API.

This module provides:
- HttpClient: Protocol for HTTP operations (injectable for tests)
- RealHttpClient: Real implementation using urllib
- MockHttpClient: Mock implementation for testing

Any HTTP status comes back as ``Ok(HttpResponse)``; callers decide which
statuses are acceptable. ``Err(HttpError)`` means no response was received.
"""

from __future__ import annotations

import json
import ssl
import urllib.error
import urllib.request
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from tagcut import __version__
from tagcut.core.result import Err, Ok, Result
from tagcut.core.structured import StrDict, as_str_dict

__all__ = [
    "HttpClient",
    "HttpError",
    "HttpResponse",
    "MockHttpClient",
    "RealHttpClient",
]


@dataclass(frozen=True, slots=True)
class HttpError:
    """Transport failure (DNS, TLS, connection reset...).

    Attributes:
        url: The URL that failed
        message: Human-readable error message
    """

    url: str
    message: str

    def __str__(self) -> str:
        return f"{self.message} ({self.url})"


@dataclass(frozen=True, slots=True)
class HttpResponse:
    status: int
    body: bytes = b""

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    def json_object(self) -> StrDict | None:
        """Body parsed as a JSON object, or None."""
        try:
            return as_str_dict(json.loads(self.body.decode("utf-8")))
        except (json.JSONDecodeError, UnicodeDecodeError):
            return None


@runtime_checkable
class HttpClient(Protocol):
    """Protocol for HTTP operations."""

    def request(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str] | None = None,
    ) -> Result[HttpResponse, HttpError]: ...


class RealHttpClient:
    """HTTP client using urllib with system certificates.

    No timeout by default: platform calls block until they complete.
    """

    def __init__(
        self,
        timeout: float | None = None,
        user_agent: str = f"tagcut/{__version__}",
    ) -> None:
        self.timeout = timeout
        self.user_agent = user_agent
        self._ssl_context = ssl.create_default_context()

    def request(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str] | None = None,
    ) -> Result[HttpResponse, HttpError]:
        all_headers = {"User-Agent": self.user_agent, **(headers or {})}
        req = urllib.request.Request(url, headers=all_headers, method=method)
        try:
            with urllib.request.urlopen(
                req,
                timeout=self.timeout,
                context=self._ssl_context,
            ) as response:
                return Ok(HttpResponse(status=response.status, body=response.read()))
        except urllib.error.HTTPError as e:
            body = e.read() if e.fp is not None else b""
            return Ok(HttpResponse(status=e.code, body=body))
        except urllib.error.URLError as e:
            return Err(HttpError(url=url, message=str(e.reason)))
        except TimeoutError:
            return Err(HttpError(url=url, message="Request timed out"))
        except (ValueError, OSError) as e:
            return Err(HttpError(url=url, message=str(e)))


class MockHttpClient:
    """Mock HTTP client for testing.

    Responses are keyed by ``(method, url)``; unknown requests get a 404.

    Usage:
        client = MockHttpClient()
        client.set_response("GET", url, HttpResponse(200, b'{"id": 7}'))
        client.request("GET", url)
    """

    def __init__(self) -> None:
        self._responses: dict[tuple[str, str], HttpResponse | HttpError] = {}
        self.calls: list[tuple[str, str]] = []

    def set_response(self, method: str, url: str, response: HttpResponse | HttpError) -> None:
        self._responses[(method, url)] = response

    def set_json(self, method: str, url: str, status: int, payload: object) -> None:
        self.set_response(method, url, HttpResponse(status, json.dumps(payload).encode("utf-8")))

    def request(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str] | None = None,
    ) -> Result[HttpResponse, HttpError]:
        self.calls.append((method, url))
        response = self._responses.get((method, url), HttpResponse(status=404))
        if isinstance(response, HttpError):
            return Err(response)
        return Ok(response)
