# domain/models.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Literal, Union

Outcome = Literal["delivered", "ignored", "failed", "skipped"]


# ───────── árbol MIME ─────────
@dataclass(frozen=True)
class MimeLeaf:
    content_type: str
    payload: bytes
    charset: str | None = None


@dataclass(frozen=True)
class MimeMultipart:
    content_type: str
    parts: tuple["MimeNode", ...] = ()


MimeNode = Union[MimeLeaf, MimeMultipart]


@dataclass
class MailItem:
    seq: int
    subject: str
    from_addr: str
    root: MimeNode


# ───────── notificación ─────────
@dataclass(frozen=True)
class Notification:
    title: str
    author: str
    description: str
    color: int
    timestamp: str
    footer: str

    def to_payload(self) -> dict[str, Any]:
        return {
            "embeds": [
                {
                    "title": self.title,
                    "author": {"name": self.author},
                    "description": self.description,
                    "color": self.color,
                    "timestamp": self.timestamp,
                    "footer": {"text": self.footer},
                }
            ]
        }


@dataclass(frozen=True)
class DeliveryResult:
    ok: bool
    status_code: int | None = None
    reason: str = ""
