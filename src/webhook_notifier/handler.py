from __future__ import annotations

import html
import logging
import traceback
from typing import Optional

from .client import DELIVERY_THREAD_NAME, WebhookClient
from .models import DANGER, GOOD, WARNING, Attachment, Html, View


# Records from these loggers are produced by a delivery itself.
SKIPPED_LOGGERS = ("webhook_notifier", "httpx", "httpcore")


def level_color(levelno: int) -> str:
    if levelno >= logging.ERROR:
        return DANGER
    if levelno >= logging.WARNING:
        return WARNING
    return GOOD


class WebhookLogHandler(logging.Handler):
    """Forwards log records to a webhook as a message with one attachment.

    Records from this package, from httpx/httpcore, and anything logged on
    the delivery thread are dropped, so that a delivery and its own log
    output cannot trigger another delivery.
    """

    def __init__(
        self,
        client: WebhookClient,
        level: int | str = logging.ERROR,
        proxy_address: Optional[str] = None,
        view_width: int = 600,
        view_height: int = 400,
    ):
        super().__init__(level)
        self.client = client
        self.proxy_address = proxy_address
        self.view_width = view_width
        self.view_height = view_height

    def filter(self, record: logging.LogRecord) -> bool:
        if record.threadName == DELIVERY_THREAD_NAME:
            return False
        if any(record.name == name or record.name.startswith(name + ".") for name in SKIPPED_LOGGERS):
            return False
        return super().filter(record)

    def build_attachment(self, record: logging.LogRecord) -> Attachment:
        view = None
        if record.exc_info and record.exc_info[0] is not None:
            trace = "".join(traceback.format_exception(*record.exc_info))
            view = View(
                html=Html(
                    inline=f"<pre>{html.escape(trace)}</pre>",
                    width=self.view_width,
                    height=self.view_height,
                )
            )
        return Attachment(
            title=f"{record.levelname} {record.name}",
            color=level_color(record.levelno),
            view=view,
        )

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self.client.post_message_async(
                record.getMessage(),
                self.proxy_address,
                [self.build_attachment(record)],
            )
        except Exception:
            self.handleError(record)
