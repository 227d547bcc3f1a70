from datetime import datetime

import httpx
import pytest

import config
from main import app as api_app
from models import ScheduledNotification, now_ms
from utils.push import PushTransportError


@pytest.fixture
async def http(queue_db):
    transport = httpx.ASGITransport(app=api_app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


def iso_to_ms(value):
    return int(datetime.fromisoformat(value.replace("Z", "+00:00")).timestamp() * 1000)


async def test_schedule_notification(http):
    before = now_ms()
    r = await http.post("/scheduleNotification", json={"token": "tok-1", "message": "Drink!", "delayMinutes": 90})
    after = now_ms()

    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert body["message"] == "Notification scheduled successfully"
    assert body["scheduledTime"].endswith("Z")
    scheduled = iso_to_ms(body["scheduledTime"])
    assert before + 90 * 60_000 <= scheduled <= after + 90 * 60_000

    docs = await ScheduledNotification.find_all().to_list()
    assert len(docs) == 1
    assert docs[0].sent is False
    assert docs[0].title == config.DEFAULT_TITLE


async def test_schedule_defaults_to_one_hour(http):
    before = now_ms()
    r = await http.post("/scheduleNotification", json={"token": "tok-1", "message": "Drink!", "title": "Hi"})

    assert r.status_code == 200
    assert iso_to_ms(r.json()["scheduledTime"]) >= before + 60 * 60_000
    doc = await ScheduledNotification.find_one(ScheduledNotification.token == "tok-1")
    assert doc.title == "Hi"


@pytest.mark.parametrize("body", [{"message": "Drink!"}, {"token": "tok-1"}, {"token": "", "message": "Drink!"}])
async def test_schedule_missing_fields(http, body):
    r = await http.post("/scheduleNotification", json=body)

    assert r.status_code == 400
    assert r.json() == {"success": False, "error": "Missing required fields: token and message"}
    assert await ScheduledNotification.find_all().count() == 0


async def test_schedule_malformed_body(http):
    r = await http.post("/scheduleNotification", json={"token": "t", "message": "m", "delayMinutes": "soon"})
    assert r.status_code == 400


async def test_schedule_delay_beyond_limit_is_rejected(http):
    r = await http.post("/scheduleNotification", json={"token": "t", "message": "m", "delayMinutes": 1e11})

    assert r.status_code == 400
    assert r.json()["success"] is False
    assert await ScheduledNotification.find_all().count() == 0


async def test_schedule_delay_at_limit(http):
    r = await http.post(
        "/scheduleNotification",
        json={"token": "t", "message": "m", "delayMinutes": config.MAX_DELAY_MINUTES},
    )

    assert r.status_code == 200
    assert r.json()["scheduledTime"].endswith("Z")


async def test_wrong_method(http):
    assert (await http.get("/scheduleNotification")).status_code == 405
    assert (await http.get("/sendNotification")).status_code == 405


async def test_cors_preflight(http):
    r = await http.options(
        "/scheduleNotification",
        headers={
            "Origin": "https://aqua-buddy.example",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "Content-Type",
        },
    )
    assert r.status_code == 200
    assert r.headers["access-control-allow-origin"] == "*"


async def test_send_notification(http, monkeypatch):
    sent = []

    def fake_send(message):
        sent.append(message)
        return "projects/demo/messages/1"

    monkeypatch.setattr("api.notifications.notifications.send_message", fake_send)

    r = await http.post("/sendNotification", json={"token": "tok-1", "message": "Drink!"})

    assert r.status_code == 200
    assert r.json() == {"success": True, "messageId": "projects/demo/messages/1"}
    assert sent[0]["notification"]["title"] == config.DEFAULT_TITLE
    assert "android" not in sent[0]


async def test_send_notification_transport_error(http, monkeypatch):
    def failing_send(message):
        raise PushTransportError("invalid registration")

    monkeypatch.setattr("api.notifications.notifications.send_message", failing_send)

    r = await http.post("/sendNotification", json={"token": "tok-1", "message": "Drink!"})

    assert r.status_code == 500
    assert r.json() == {"success": False, "error": "invalid registration"}


async def test_send_notification_missing_fields(http):
    r = await http.post("/sendNotification", json={"title": "x"})
    assert r.status_code == 400


async def test_queue_run_endpoint(http):
    await ScheduledNotification(token="tok-1", title="t", message="m", scheduled_time=now_ms() - 1000).insert()

    r = await http.post("/push/queue/run")

    assert r.status_code == 200
    assert r.json() == {"selected": 1, "sent": 1, "failed": 0, "error": None}


async def test_queue_endpoints_honor_internal_token(http, monkeypatch):
    monkeypatch.setattr(config, "PUSH_INTERNAL_TOKEN", "secret")

    assert (await http.post("/push/queue/cleanup")).status_code == 403
    r = await http.post("/push/queue/cleanup", headers={"X-Internal-Token": "secret"})
    assert r.status_code == 200
    assert r.json() == {"deleted": 0, "error": None}


async def test_healthcheck(http):
    r = await http.get("/healthcheck")
    assert r.json() == {"status": "ok"}
