"""HTTP client abstraction for repository APIs.

This module provides:
- HttpClient: Protocol for the calls the staging repository needs
- RealHttpClient: urllib implementation with basic auth and timeouts
- MockHttpClient: in-memory implementation for tests
"""

from __future__ import annotations

import base64
import json
import ssl
import urllib.error
import urllib.request
from dataclasses import dataclass
from typing import Any, Protocol, cast, runtime_checkable

from sdkrel.core.result import Err, Ok, Result
from sdkrel.core.structured import as_str_dict

__all__ = [
    "HttpClient",
    "RealHttpClient",
    "MockHttpClient",
    "HttpError",
]


@dataclass(frozen=True, slots=True)
class HttpError:
    """HTTP error details.

    Attributes:
        url: The URL that failed
        status: HTTP status code (0 for network errors and timeouts)
        message: Human-readable error message
    """

    url: str
    status: int
    message: str

    def __str__(self) -> str:
        if self.status:
            return f"HTTP {self.status}: {self.message} ({self.url})"
        return f"{self.message} ({self.url})"


@runtime_checkable
class HttpClient(Protocol):
    """Protocol for HTTP operations against a repository manager."""

    def get_json(self, url: str) -> Result[dict[str, Any], HttpError]:
        """GET ``url`` and parse a JSON object."""
        ...

    def post_json(self, url: str, payload: dict[str, Any]) -> Result[dict[str, Any], HttpError]:
        """POST a JSON object; an empty response body yields ``{}``."""
        ...

    def put_bytes(self, url: str, data: bytes, content_type: str) -> Result[None, HttpError]:
        """Upload raw bytes."""
        ...

    def delete(self, url: str) -> Result[None, HttpError]:
        """Delete the resource at ``url``."""
        ...


class RealHttpClient:
    """HTTP client using urllib with system certificates."""

    def __init__(
        self,
        *,
        timeout: float = 60.0,
        username: str | None = None,
        password: str | None = None,
        user_agent: str = "sdkrel/0.1.0",
    ) -> None:
        self.timeout = timeout
        self.user_agent = user_agent
        self._auth: str | None = None
        if username is not None:
            token = f"{username}:{password or ''}".encode("utf-8")
            self._auth = "Basic " + base64.b64encode(token).decode("ascii")
        self._ssl_context = ssl.create_default_context()

    def _request(
        self,
        method: str,
        url: str,
        *,
        data: bytes | None = None,
        content_type: str | None = None,
    ) -> Result[bytes, HttpError]:
        headers = {"User-Agent": self.user_agent, "Accept": "application/json"}
        if self._auth is not None:
            headers["Authorization"] = self._auth
        if content_type is not None:
            headers["Content-Type"] = content_type

        try:
            req = urllib.request.Request(url, data=data, headers=headers, method=method)
            with urllib.request.urlopen(
                req,
                timeout=self.timeout,
                context=self._ssl_context,
            ) as response:
                return Ok(response.read())
        except urllib.error.HTTPError as e:
            return Err(HttpError(url=url, status=e.code, message=str(e.reason)))
        except urllib.error.URLError as e:
            return Err(HttpError(url=url, status=0, message=str(e.reason)))
        except TimeoutError:
            return Err(HttpError(url=url, status=0, message="Request timed out"))
        except ValueError as e:
            return Err(HttpError(url=url, status=0, message=str(e)))
        except OSError as e:
            return Err(HttpError(url=url, status=0, message=str(e)))

    def _decode_json(self, url: str, body: bytes) -> Result[dict[str, Any], HttpError]:
        if not body.strip():
            return Ok({})
        try:
            data = as_str_dict(json.loads(body.decode("utf-8")))
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            return Err(HttpError(url=url, status=0, message=f"JSON parse error: {e}"))
        if data is None:
            return Err(HttpError(url=url, status=0, message="Expected JSON object"))
        return Ok(cast(dict[str, Any], data))

    def get_json(self, url: str) -> Result[dict[str, Any], HttpError]:
        result = self._request("GET", url)
        if isinstance(result, Err):
            return result
        return self._decode_json(url, result.value)

    def post_json(self, url: str, payload: dict[str, Any]) -> Result[dict[str, Any], HttpError]:
        body = json.dumps(payload).encode("utf-8")
        result = self._request("POST", url, data=body, content_type="application/json")
        if isinstance(result, Err):
            return result
        return self._decode_json(url, result.value)

    def put_bytes(self, url: str, data: bytes, content_type: str) -> Result[None, HttpError]:
        result = self._request("PUT", url, data=data, content_type=content_type)
        if isinstance(result, Err):
            return result
        return Ok(None)

    def delete(self, url: str) -> Result[None, HttpError]:
        result = self._request("DELETE", url)
        if isinstance(result, Err):
            return result
        return Ok(None)


class MockHttpClient:
    """Mock HTTP client for testing.

    JSON responses are registered per (method, url); queued responses are
    returned in order and the last one repeats. Errors are registered
    per (method, url prefix) and win over responses. Unregistered PUT/DELETE
    calls succeed; unregistered GET/POST calls return 404.

    Usage:
        client = MockHttpClient()
        client.set_json("POST", url, {"data": {"stagedRepositoryId": "x-1"}})
        client.fail("PUT", base + "staging/deployByRepositoryId/x-1/com/acme/server", 500)
    """

    def __init__(self) -> None:
        self._json: dict[tuple[str, str], list[dict[str, Any]]] = {}
        self._errors: list[tuple[str, str, HttpError]] = []
        self.calls: list[tuple[str, str]] = []
        self.uploads: dict[str, bytes] = {}
        self.posted: list[tuple[str, dict[str, Any]]] = []

    def set_json(self, method: str, url: str, response: dict[str, Any]) -> None:
        self._json[(method, url)] = [response]

    def queue_json(self, method: str, url: str, *responses: dict[str, Any]) -> None:
        self._json.setdefault((method, url), []).extend(responses)

    def fail(self, method: str, url_prefix: str, status: int = 500, message: str = "mock") -> None:
        error = HttpError(url=url_prefix, status=status, message=message)
        self._errors.append((method, url_prefix, error))

    def _error_for(self, method: str, url: str) -> HttpError | None:
        for m, prefix, error in self._errors:
            if m == method and url.startswith(prefix):
                return HttpError(url=url, status=error.status, message=error.message)
        return None

    def _json_for(self, method: str, url: str) -> Result[dict[str, Any], HttpError]:
        self.calls.append((method, url))
        error = self._error_for(method, url)
        if error is not None:
            return Err(error)
        if (method, url) not in self._json:
            return Err(HttpError(url=url, status=404, message="Not found (mock)"))
        queued = self._json[(method, url)]
        return Ok(queued.pop(0) if len(queued) > 1 else queued[0])

    def get_json(self, url: str) -> Result[dict[str, Any], HttpError]:
        return self._json_for("GET", url)

    def post_json(self, url: str, payload: dict[str, Any]) -> Result[dict[str, Any], HttpError]:
        self.posted.append((url, payload))
        return self._json_for("POST", url)

    def put_bytes(self, url: str, data: bytes, content_type: str) -> Result[None, HttpError]:
        self.calls.append(("PUT", url))
        error = self._error_for("PUT", url)
        if error is not None:
            return Err(error)
        self.uploads[url] = data
        return Ok(None)

    def delete(self, url: str) -> Result[None, HttpError]:
        self.calls.append(("DELETE", url))
        error = self._error_for("DELETE", url)
        if error is not None:
            return Err(error)
        self.uploads.pop(url, None)
        return Ok(None)
