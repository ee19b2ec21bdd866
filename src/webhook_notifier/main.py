from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from .client import WebhookClient
from .config import Settings, get_settings
from .handler import WebhookLogHandler
from .logging_utils import configure_logging
from .models import Attachment, Html, View
from .secrets import resolve_webhook_url


logger = logging.getLogger(__name__)


class HtmlBody(BaseModel):
    inline: str
    width: int
    height: int


class ViewBody(BaseModel):
    html: HtmlBody


class AttachmentBody(BaseModel):
    title: Optional[str] = None
    color: Optional[str] = None
    views: Optional[ViewBody] = None

    def to_attachment(self) -> Attachment:
        view = None
        if self.views is not None:
            view = View(html=Html(**self.views.html.model_dump()))
        return Attachment(title=self.title, color=self.color, view=view)


class NotifyRequest(BaseModel):
    text: str
    attachments: List[AttachmentBody] = []


def create_app(settings: Optional[Settings] = None, client: Optional[WebhookClient] = None) -> FastAPI:
    """Build the relay service. Run with ``uvicorn webhook_notifier.main:create_app --factory``."""
    settings = settings or get_settings()
    configure_logging(settings.log_level)
    if client is None:
        client = WebhookClient(resolve_webhook_url(settings), timeout_seconds=settings.http_timeout_seconds)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        log_handler = None
        if settings.notify_enabled:
            log_handler = WebhookLogHandler(
                client, level=settings.notify_level, proxy_address=settings.proxy_address
            )
            logging.getLogger().addHandler(log_handler)
        try:
            yield
        finally:
            if log_handler is not None:
                logging.getLogger().removeHandler(log_handler)
            await asyncio.to_thread(client.close)

    app = FastAPI(title="Webhook Notifier", version="1.0.0", lifespan=lifespan)

    @app.get("/healthz")
    def healthz():
        return {"status": "ok", "pending": client.pending}

    @app.post("/notify", status_code=202)
    def notify(request: NotifyRequest):
        if not settings.notify_enabled:
            raise HTTPException(status_code=503, detail="Notifications are disabled")
        client.post_message_async(
            request.text,
            settings.proxy_address,
            [a.to_attachment() for a in request.attachments],
        )
        logger.debug("Accepted notification with %s attachments", len(request.attachments))
        return {"status": "accepted"}

    return app
