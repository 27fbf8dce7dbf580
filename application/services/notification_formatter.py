# application/services/notification_formatter.py
from __future__ import annotations
from datetime import datetime, timezone

from domain.models import Notification

MAX_DESCRIPTION = 1500  # el embed admite más, pero dejamos margen
TRUNCATION_MARKER = "..."
DEFAULT_SUBJECT = "No Subject"
DEFAULT_SENDER = "Unknown Sender"
EMBED_COLOR = 0x5865F2  # Blurple
FOOTER_TEXT = "📰 Newsletter"


def truncate(body: str, limit: int = MAX_DESCRIPTION) -> str:
    # se corta por caracteres (code points), nunca a mitad de uno
    if len(body) <= limit:
        return body
    return body[:limit] + TRUNCATION_MARKER


def format_notification(
    subject: str | None,
    from_addr: str | None,
    body: str,
    now: datetime | None = None,
) -> Notification:
    ts = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    return Notification(
        title=subject or DEFAULT_SUBJECT,
        author=from_addr or DEFAULT_SENDER,
        description=truncate(body),
        color=EMBED_COLOR,
        timestamp=ts.isoformat(),
        footer=FOOTER_TEXT,
    )
