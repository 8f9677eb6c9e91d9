"""Tests for the network transport. No real sockets are opened."""
import io
import json
import urllib.error

from runtrace.telemetry import share


class FakeResponse(io.BytesIO):
    def __init__(self, status=200, body=b""):
        super().__init__(body)
        self.status = status

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()


def test_post_telemetry_sends_json_with_credentials(monkeypatch):
    seen = {}

    def fake_urlopen(req, timeout):
        seen["req"] = req
        seen["timeout"] = timeout
        return FakeResponse(status=204)

    monkeypatch.setattr(share.urllib.request, "urlopen", fake_urlopen)
    assert share.post_telemetry("https://example.test/t", {"TelemetryId": 5}, "gina", "tok") is True

    req = seen["req"]
    assert req.get_method() == "POST"
    assert json.loads(req.data) == {"TelemetryId": 5}
    assert req.get_header("X-username") == "gina"
    assert req.get_header("X-token") == "tok"
    assert seen["timeout"] == share.TIMEOUT_SECONDS


def test_post_telemetry_never_raises(monkeypatch):
    def refuse(req, timeout):
        raise urllib.error.URLError("connection refused")

    monkeypatch.setattr(share.urllib.request, "urlopen", refuse)
    assert share.post_telemetry("https://example.test/t", {}, "", "") is False


def test_post_telemetry_non_2xx_is_failure(monkeypatch):
    monkeypatch.setattr(share.urllib.request, "urlopen", lambda req, timeout: FakeResponse(status=302))
    assert share.post_telemetry("https://example.test/t", {}, "", "") is False


def test_login_client_matches_echoed_username(monkeypatch):
    body = json.dumps({"username": "hank", "avatar_url": ""}).encode()
    monkeypatch.setattr(share.urllib.request, "urlopen", lambda req, timeout: FakeResponse(body=body))
    client = share.LoginClient()
    assert client.verify("https://example.test/profile", "hank", "tok") is True
    assert client.verify("https://example.test/profile", "someone_else", "tok") is False


def test_login_client_bad_body_is_invalid(monkeypatch):
    monkeypatch.setattr(share.urllib.request, "urlopen", lambda req, timeout: FakeResponse(body=b"<html>"))
    assert share.LoginClient().verify("https://example.test/profile", "hank", "tok") is False


def test_login_client_http_error_is_invalid(monkeypatch):
    def unauthorized(req, timeout):
        raise urllib.error.HTTPError(req.full_url, 401, "Unauthorized", {}, None)

    monkeypatch.setattr(share.urllib.request, "urlopen", unauthorized)
    assert share.LoginClient().verify("https://example.test/profile", "hank", "tok") is False
