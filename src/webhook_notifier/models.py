from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Sequence, Tuple


GOOD = "good"
WARNING = "warning"
DANGER = "danger"


@dataclass(frozen=True)
class Html:
    inline: str
    width: int
    height: int

    def to_dict(self) -> dict:
        return {"inline": self.inline, "width": self.width, "height": self.height}

    @classmethod
    def from_dict(cls, data: dict) -> "Html":
        return cls(inline=data["inline"], width=data["width"], height=data["height"])


@dataclass(frozen=True)
class View:
    html: Html

    def to_dict(self) -> dict:
        return {"html": self.html.to_dict()}

    @classmethod
    def from_dict(cls, data: dict) -> "View":
        return cls(html=Html.from_dict(data["html"]))


@dataclass(frozen=True)
class Attachment:
    """A rich-content block rendered under the message text.

    ``color`` is one of ``good``, ``warning``, ``danger`` or a hex colour code.
    """

    title: Optional[str] = None
    color: Optional[str] = None
    view: Optional[View] = None

    def to_dict(self) -> dict:
        payload: Dict[str, Any] = {}
        if self.title is not None:
            payload["title"] = self.title
        if self.color is not None:
            payload["color"] = self.color
        if self.view is not None:
            payload["views"] = self.view.to_dict()
        return payload

    @classmethod
    def from_dict(cls, data: dict) -> "Attachment":
        views = data.get("views")
        return cls(
            title=data.get("title"),
            color=data.get("color"),
            view=View.from_dict(views) if views is not None else None,
        )


@dataclass(frozen=True)
class Payload:
    text: str
    attachments: Tuple[Attachment, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        attachments: Optional[Sequence[Attachment]] = self.attachments
        object.__setattr__(self, "attachments", tuple(attachments or ()))

    def to_dict(self) -> dict:
        payload: Dict[str, Any] = {"text": self.text}
        if self.attachments:
            payload["attachments"] = [a.to_dict() for a in self.attachments]
        return payload

    @classmethod
    def from_dict(cls, data: dict) -> "Payload":
        return cls(
            text=data["text"],
            attachments=tuple(Attachment.from_dict(a) for a in data.get("attachments") or ()),
        )
