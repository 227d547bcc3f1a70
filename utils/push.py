from __future__ import annotations

import json
import os
import uuid
from typing import Any, Dict, List, Optional

import requests

import config


class PushTransportError(Exception):
    pass


def build_push_message(token: str, title: str, body: str, timestamp_ms: int, high_priority: bool = True) -> Dict[str, Any]:
    message: Dict[str, Any] = {
        "token": token,
        "notification": {"title": title, "body": body},
        "data": {
            "click_action": config.CLICK_LINK,
            "timestamp": str(timestamp_ms),
        },
        "webpush": {
            "fcm_options": {"link": config.CLICK_LINK},
            "notification": {
                "icon": config.NOTIFICATION_ICON,
                "badge": config.NOTIFICATION_ICON,
                "vibrate": list(config.VIBRATE_PATTERN),
                "requireInteraction": False,
            },
        },
    }
    if high_priority:
        message["android"] = {
            "priority": "high",
            "notification": {"sound": "default", "click_action": config.CLICK_LINK},
        }
    return message


def load_fcm_service_account() -> Optional[dict]:
    raw = config.FCM_SERVICE_ACCOUNT_JSON
    path = config.FCM_SERVICE_ACCOUNT_PATH
    if raw:
        try:
            return json.loads(raw)
        except ValueError:
            return None
    if path and os.path.exists(path):
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    return None


def fcm_access_token(sa: dict) -> str:
    from google.oauth2 import service_account
    from google.auth.transport.requests import Request

    scopes = ["https://www.googleapis.com/auth/firebase.messaging"]
    creds = service_account.Credentials.from_service_account_info(sa, scopes=scopes)
    creds.refresh(Request())
    return creds.token


def send_fcm(message: Dict[str, Any]) -> str:
    sa = load_fcm_service_account()
    project_id = config.FCM_PROJECT_ID
    if not sa or not project_id:
        raise PushTransportError("FCM not configured")

    try:
        at = fcm_access_token(sa)
    except Exception as e:
        raise PushTransportError(f"FCM auth failed: {e}") from e

    url = f"https://fcm.googleapis.com/v1/projects/{project_id}/messages:send"
    try:
        r = requests.post(
            url,
            headers={"Authorization": f"Bearer {at}"},
            json={"message": message},
            timeout=config.PUSH_TIMEOUT_SECONDS,
        )
    except requests.RequestException as e:
        raise PushTransportError(str(e)) from e

    if 200 <= r.status_code < 300:
        return r.json().get("name", "")
    raise PushTransportError((r.text or f"FCM error status={r.status_code}")[:1000])


def send_message(message: Dict[str, Any]) -> str:
    """Deliver one push message and return the transport's message id.

    Raises PushTransportError when delivery fails. In stub mode nothing leaves
    the process and a synthetic id is returned.
    """
    mode = config.PUSH_MODE
    if mode == "stub":
        return f"stub/{uuid.uuid4().hex}"
    if mode == "fcm":
        return send_fcm(message)
    raise PushTransportError(f"Unknown push mode: {mode}")


def count_outcomes(results: List[Any]) -> tuple[int, int]:
    failed = sum(1 for r in results if isinstance(r, BaseException))
    return len(results) - failed, failed
