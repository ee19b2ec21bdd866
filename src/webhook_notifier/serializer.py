from __future__ import annotations

import json
import logging

from .errors import SerializationError
from .models import Attachment, Html, Payload, View


logger = logging.getLogger(__name__)


def _check(value, expected: type, name: str, optional: bool = False) -> None:
    if value is None and optional:
        return
    # bool is an int subclass but never a valid dimension
    if not isinstance(value, expected) or (expected is int and isinstance(value, bool)):
        raise SerializationError(f"{name} must be {expected.__name__}, got {type(value).__name__}")


def _validate(payload: Payload) -> None:
    if not isinstance(payload, Payload):
        raise SerializationError(f"Expected Payload, got {type(payload).__name__}")
    _check(payload.text, str, "text")
    for index, attachment in enumerate(payload.attachments):
        prefix = f"attachments[{index}]"
        _check(attachment, Attachment, prefix)
        _check(attachment.title, str, f"{prefix}.title", optional=True)
        _check(attachment.color, str, f"{prefix}.color", optional=True)
        if attachment.view is None:
            continue
        _check(attachment.view, View, f"{prefix}.views")
        html = attachment.view.html
        _check(html, Html, f"{prefix}.views.html")
        _check(html.inline, str, f"{prefix}.views.html.inline")
        _check(html.width, int, f"{prefix}.views.html.width")
        _check(html.height, int, f"{prefix}.views.html.height")


def serialize(payload: Payload) -> bytes:
    _validate(payload)
    try:
        data = json.dumps(payload.to_dict(), separators=(",", ":"), ensure_ascii=False).encode("utf-8")
    except (TypeError, ValueError) as exc:
        # UnicodeEncodeError (lone surrogates) is a ValueError
        raise SerializationError(str(exc)) from exc
    logger.debug("Serialized payload with %s attachments (%s bytes)", len(payload.attachments), len(data))
    return data


def deserialize(data: bytes) -> Payload:
    try:
        return Payload.from_dict(json.loads(data))
    except (KeyError, TypeError, ValueError) as exc:
        raise SerializationError(f"Malformed payload: {exc}") from exc
