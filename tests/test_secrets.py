from types import SimpleNamespace

import pytest

from webhook_notifier import secrets
from webhook_notifier.config import Settings


class FakeSecretClient:
    requested = []

    def access_secret_version(self, request):
        self.requested.append(request["name"])
        return SimpleNamespace(payload=SimpleNamespace(data=b"https://hooks.example.com/secret\n"))


@pytest.fixture
def fake_secret_manager(monkeypatch):
    FakeSecretClient.requested = []
    monkeypatch.setattr(secrets.secretmanager, "SecretManagerServiceClient", FakeSecretClient)
    return FakeSecretClient


def test_literal_url_wins(fake_secret_manager):
    settings = Settings(SLACK_WEBHOOK_URL="https://hooks.example.com/direct", SLACK_WEBHOOK_SECRET_NAME="hook")
    assert secrets.resolve_webhook_url(settings) == "https://hooks.example.com/direct"
    assert fake_secret_manager.requested == []


def test_reads_secret_by_short_name(fake_secret_manager):
    settings = Settings(SLACK_WEBHOOK_SECRET_NAME="hook", GCP_PROJECT="proj")
    assert secrets.resolve_webhook_url(settings) == "https://hooks.example.com/secret"
    assert fake_secret_manager.requested == ["projects/proj/secrets/hook/versions/latest"]


def test_reads_secret_by_resource_name(fake_secret_manager):
    settings = Settings(SLACK_WEBHOOK_SECRET_NAME="projects/p/secrets/hook/versions/3")
    secrets.resolve_webhook_url(settings)
    assert fake_secret_manager.requested == ["projects/p/secrets/hook/versions/3"]


def test_missing_url_raises(monkeypatch):
    monkeypatch.delenv("SLACK_WEBHOOK_URL", raising=False)
    monkeypatch.delenv("SLACK_WEBHOOK_SECRET_NAME", raising=False)
    with pytest.raises(RuntimeError):
        secrets.resolve_webhook_url(Settings())
