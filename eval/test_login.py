"""Tests for the non-blocking login verifier."""
import threading

from runtrace.config import Settings
from runtrace.telemetry.login import LoginVerifier
from runtrace.telemetry.share import LoginClient


# ── Helpers ──────────────────────────────────────────────────────────


class FakeClient:
    def __init__(self, result=True, error=None):
        self.result = result
        self.error = error
        self.calls = []

    def verify(self, url, username, token):
        self.calls.append((url, username, token))
        if self.error is not None:
            raise self.error
        return self.result


def _settings(tmp_path, **overrides):
    values = {"config_dir": str(tmp_path), "verify_endpoint_url": "https://example.test/profile"}
    values.update(overrides)
    return Settings(**values)


def _verify(verifier, username="dave", token="tok"):
    """Run one verification; returns (result, callback results)."""
    results = []
    done = threading.Event()

    def on_complete(valid):
        results.append(valid)
        done.set()

    future = verifier.verify_login(username, token, on_complete)
    value = future.result(timeout=10)
    assert done.wait(timeout=10)
    verifier.shutdown()
    return value, results


# ── Tests ────────────────────────────────────────────────────────────


def test_unavailable_resolves_false_without_network(tmp_path):
    client = FakeClient()
    verifier = LoginVerifier(_settings(tmp_path, web_service=False), client=client)

    value, callbacks = _verify(verifier)

    assert value is False
    assert callbacks == [False]
    assert client.calls == [], "no remote contact when the web service is off"


def test_web_service_off_creates_no_client(tmp_path):
    verifier = LoginVerifier(_settings(tmp_path, web_service=False))
    assert verifier.client is None
    assert not verifier.available
    verifier.shutdown()


def test_default_client_when_web_service_on(tmp_path):
    verifier = LoginVerifier(_settings(tmp_path))
    assert isinstance(verifier.client, LoginClient)
    verifier.shutdown()


def test_delegates_to_client_with_configured_endpoint(tmp_path):
    client = FakeClient(result=True)
    verifier = LoginVerifier(_settings(tmp_path), client=client)

    value, callbacks = _verify(verifier, "erin", "secret")

    assert value is True
    assert callbacks == [True]
    assert client.calls == [("https://example.test/profile", "erin", "secret")]


def test_rejected_credentials(tmp_path):
    verifier = LoginVerifier(_settings(tmp_path), client=FakeClient(result=False))
    value, callbacks = _verify(verifier)
    assert value is False
    assert callbacks == [False]


def test_client_error_still_resolves_and_calls_back_once(tmp_path):
    verifier = LoginVerifier(_settings(tmp_path), client=FakeClient(error=ConnectionError("down")))
    value, callbacks = _verify(verifier)
    assert value is False
    assert callbacks == [False]


def test_callback_is_optional(tmp_path):
    verifier = LoginVerifier(_settings(tmp_path, web_service=False))
    assert verifier.verify_login("u", "t").result(timeout=10) is False
    verifier.shutdown()
