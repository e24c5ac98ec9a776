from __future__ import annotations

from sdkrel.core.result import Err, Ok
from sdkrel.platform.http import HttpClient, HttpError, MockHttpClient, RealHttpClient


def test_http_error_str() -> None:
    error = HttpError("https://x/y", 401, "Unauthorized")
    assert str(error) == "HTTP 401: Unauthorized (https://x/y)"
    assert str(HttpError("https://x/y", 0, "timed out")) == "timed out (https://x/y)"


def test_clients_satisfy_protocol() -> None:
    assert isinstance(MockHttpClient(), HttpClient)
    assert isinstance(RealHttpClient(username="u", password="p"), HttpClient)


def test_mock_unregistered_get_is_404() -> None:
    result = MockHttpClient().get_json("https://x/a")

    assert isinstance(result, Err)
    assert result.error.status == 404


def test_mock_queued_responses_repeat_last() -> None:
    http = MockHttpClient()
    http.queue_json("GET", "https://x/a", {"n": 1}, {"n": 2})

    assert [http.get_json("https://x/a") for _ in range(3)] == [
        Ok({"n": 1}),
        Ok({"n": 2}),
        Ok({"n": 2}),
    ]


def test_mock_records_uploads_and_failures() -> None:
    http = MockHttpClient()
    http.fail("PUT", "https://x/bad/", 503, "Service Unavailable")

    assert http.put_bytes("https://x/ok/a.jar", b"a", "application/java-archive") == Ok(None)
    failed = http.put_bytes("https://x/bad/b.jar", b"b", "application/java-archive")

    assert http.uploads == {"https://x/ok/a.jar": b"a"}
    assert isinstance(failed, Err)
    assert failed.error.url == "https://x/bad/b.jar"
    assert failed.error.status == 503
    assert http.delete("https://x/ok/a.jar") == Ok(None)
    assert http.uploads == {}
