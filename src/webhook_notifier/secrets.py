from __future__ import annotations

import logging

from google.cloud import secretmanager

from .config import Settings


logger = logging.getLogger(__name__)


def _secret_version_name(secret_name: str, project_id: str | None) -> str:
    if "/" in secret_name:
        return secret_name if "/versions/" in secret_name else f"{secret_name}/versions/latest"
    if not project_id:
        raise ValueError("project_id is required when secret_name is not a resource name")
    return f"projects/{project_id}/secrets/{secret_name}/versions/latest"


def resolve_webhook_url(settings: Settings) -> str:
    """Return the webhook URL, reading it from Secret Manager when not set directly."""
    if settings.webhook_url:
        return settings.webhook_url
    if not settings.webhook_secret_name:
        raise RuntimeError(
            "Webhook URL is not set. Provide SLACK_WEBHOOK_URL or SLACK_WEBHOOK_SECRET_NAME."
        )
    name = _secret_version_name(settings.webhook_secret_name, settings.secret_project_id or settings.gcp_project)
    logger.info("Reading webhook URL from Secret Manager")
    client = secretmanager.SecretManagerServiceClient()
    response = client.access_secret_version(request={"name": name})
    return response.payload.data.decode("utf-8").strip()
