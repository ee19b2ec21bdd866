import logging

from fastapi.testclient import TestClient

from webhook_notifier.config import Settings
from webhook_notifier.handler import WebhookLogHandler
from webhook_notifier.main import create_app


class FakeClient:
    def __init__(self):
        self.calls = []
        self.closed = False

    @property
    def pending(self):
        return 0

    def post_message_async(self, text, proxy_address=None, attachments=None):
        self.calls.append((text, proxy_address, attachments))

    def close(self, timeout=5.0):
        self.closed = True


def make_settings(**overrides):
    values = {"SLACK_WEBHOOK_URL": "https://hooks.example.com/x", "SLACK_PROXY_ADDRESS": "http://proxy:3128"}
    values.update(overrides)
    return Settings(**values)


def test_notify_accepts_and_forwards():
    client = FakeClient()
    with TestClient(create_app(make_settings(), client)) as http:
        response = http.post(
            "/notify",
            json={
                "text": "Build failed",
                "attachments": [
                    {"title": "Error", "color": "danger"},
                    {"views": {"html": {"inline": "<i>x</i>", "width": 10, "height": 20}}},
                ],
            },
        )
        assert response.status_code == 202
        assert response.json() == {"status": "accepted"}
        assert any(isinstance(h, WebhookLogHandler) for h in logging.getLogger().handlers)

    text, proxy, attachments = client.calls[0]
    assert text == "Build failed"
    assert proxy == "http://proxy:3128"
    assert attachments[0].title == "Error" and attachments[0].view is None
    assert attachments[1].view.html.height == 20
    assert client.closed
    assert not any(isinstance(h, WebhookLogHandler) for h in logging.getLogger().handlers)


def test_healthz_reports_pending():
    with TestClient(create_app(make_settings(), FakeClient())) as http:
        assert http.get("/healthz").json() == {"status": "ok", "pending": 0}


def test_disabled_notifications_rejected():
    client = FakeClient()
    with TestClient(create_app(make_settings(NOTIFY_ENABLED=False), client)) as http:
        assert http.post("/notify", json={"text": "hi"}).status_code == 503
    assert client.calls == []


def test_invalid_body_rejected():
    with TestClient(create_app(make_settings(), FakeClient())) as http:
        assert http.post("/notify", json={"attachments": []}).status_code == 422
