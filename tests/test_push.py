import pytest
import requests

import config
from utils import push
from utils.push import PushTransportError, build_push_message, count_outcomes, send_message


class FakeResponse:
    def __init__(self, status_code, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload or {}
        self.text = text

    def json(self):
        return self._payload


@pytest.fixture
def fcm_mode(monkeypatch):
    monkeypatch.setattr(config, "PUSH_MODE", "fcm")
    monkeypatch.setattr(config, "FCM_PROJECT_ID", "aqua-demo")
    monkeypatch.setattr(config, "FCM_SERVICE_ACCOUNT_JSON", '{"type": "service_account"}')
    monkeypatch.setattr(push, "fcm_access_token", lambda sa: "access-token")


def test_build_push_message():
    message = build_push_message("tok", "Title", "Body", 1234)

    assert message["token"] == "tok"
    assert message["data"] == {"click_action": "/", "timestamp": "1234"}
    assert message["webpush"]["fcm_options"] == {"link": "/"}
    assert message["android"]["notification"]["sound"] == "default"
    assert "android" not in build_push_message("tok", "Title", "Body", 1234, high_priority=False)


def test_stub_mode_returns_synthetic_id(monkeypatch):
    monkeypatch.setattr(config, "PUSH_MODE", "stub")
    assert send_message({"token": "tok"}).startswith("stub/")


def test_unknown_mode(monkeypatch):
    monkeypatch.setattr(config, "PUSH_MODE", "carrier-pigeon")
    with pytest.raises(PushTransportError):
        send_message({"token": "tok"})


def test_fcm_not_configured(monkeypatch):
    monkeypatch.setattr(config, "PUSH_MODE", "fcm")
    monkeypatch.setattr(config, "FCM_PROJECT_ID", "")
    with pytest.raises(PushTransportError, match="FCM not configured"):
        send_message({"token": "tok"})


def test_fcm_success(fcm_mode, monkeypatch):
    calls = []

    def fake_post(url, headers, json, timeout):
        calls.append((url, headers, json))
        return FakeResponse(200, {"name": "projects/aqua-demo/messages/42"})

    monkeypatch.setattr(push.requests, "post", fake_post)

    assert send_message({"token": "tok"}) == "projects/aqua-demo/messages/42"
    url, headers, body = calls[0]
    assert url.endswith("/projects/aqua-demo/messages:send")
    assert headers["Authorization"] == "Bearer access-token"
    assert body == {"message": {"token": "tok"}}


def test_fcm_error_response(fcm_mode, monkeypatch):
    monkeypatch.setattr(push.requests, "post", lambda *a, **kw: FakeResponse(404, text="UNREGISTERED"))
    with pytest.raises(PushTransportError, match="UNREGISTERED"):
        send_message({"token": "tok"})


def test_fcm_network_error(fcm_mode, monkeypatch):
    def boom(*args, **kwargs):
        raise requests.ConnectionError("connection reset")

    monkeypatch.setattr(push.requests, "post", boom)
    with pytest.raises(PushTransportError, match="connection reset"):
        send_message({"token": "tok"})


def test_count_outcomes():
    assert count_outcomes(["a", PushTransportError("x"), "b"]) == (2, 1)
