from __future__ import annotations

from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from config.settings import Settings
from domain.errors import FetchError, ProtocolError
from domain.models import DeliveryResult


def make_settings(**overrides) -> Settings:
    values = dict(
        imap_server="imap.example.test",
        imap_port=993,
        imap_username="user@example.test",
        imap_password="secret",
        discord_webhook_url="https://discord.example.test/api/webhooks/1/token",
    )
    values.update(overrides)
    return Settings(**values)


def plain_message(
    body: str = "Hello there",
    *,
    subject: str | None = "Hi",
    sender: str | None = "a@b.com",
) -> bytes:
    msg = MIMEText(body, "plain", "utf-8")
    if subject is not None:
        msg["Subject"] = subject
    if sender is not None:
        msg["From"] = sender
    return msg.as_bytes()


def html_message(html: str, *, subject: str = "Html only", sender: str = "news@example.test") -> bytes:
    msg = MIMEText(html, "html", "utf-8")
    msg["Subject"] = subject
    msg["From"] = sender
    return msg.as_bytes()


def alternative_message(
    text: str,
    html: str,
    *,
    subject: str = "Both parts",
    sender: str = "news@example.test",
) -> bytes:
    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = sender
    msg.attach(MIMEText(html, "html", "utf-8"))
    msg.attach(MIMEText(text, "plain", "utf-8"))
    return msg.as_bytes()


class FakeInbox:
    """Buzón en memoria con la misma interfaz que IMAPInbox."""

    def __init__(
        self,
        messages: dict[int, bytes],
        *,
        fail_fetch_on: int | None = None,
        stale: set[int] | None = None,
        flagged: set[int] | None = None,
    ) -> None:
        self.messages = dict(messages)
        self.fail_fetch_on = fail_fetch_on
        self.stale = stale or set()
        self.selected: list[str] = []
        self.fetched: list[int] = []
        # \Deleted persiste en el servidor entre sesiones
        self.flagged: set[int] = set(flagged or ())
        self.expunges = 0
        self.logged_out = False

    def __enter__(self) -> "FakeInbox":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.logout()

    def select_folder(self, folder: str) -> None:
        self.selected.append(folder)

    def list_all_messages(self) -> list[int]:
        return sorted(self.messages)

    def fetch_raw(self, seq: int) -> bytes:
        self.fetched.append(seq)
        if seq == self.fail_fetch_on:
            raise ProtocolError(f"FETCH {seq} falló: connection reset")
        if seq in self.stale:
            raise FetchError(f"Sin contenido para el mensaje {seq}")
        return self.messages[seq]

    def mark_deleted(self, seq: int) -> None:
        self.flagged.add(seq)

    def expunge(self) -> None:
        self.expunges += 1
        for seq in self.flagged:
            self.messages.pop(seq, None)
        self.flagged.clear()

    def logout(self) -> None:
        self.logged_out = True


class FakeWebhook:
    def __init__(self, results: list[DeliveryResult] | None = None) -> None:
        self.results = list(results or [])
        self.payloads: list[dict] = []
        self.closed = False

    def deliver(self, payload: dict) -> DeliveryResult:
        self.payloads.append(payload)
        if self.results:
            return self.results.pop(0)
        return DeliveryResult(ok=True, status_code=204)

    def close(self) -> None:
        self.closed = True
