# infrastructure/email/imap_client.py
from __future__ import annotations
import logging
from imapclient import IMAPClient, DELETED
from imapclient.exceptions import IMAPClientError, LoginError

from domain.errors import AuthError, FetchError, MailboxConnectionError, ProtocolError

logger = logging.getLogger(__name__)

# errores de librería/red que invalidan la sesión
SESSION_ERRORS = (IMAPClientError, OSError)


class IMAPInbox:
    """
    Una sesión IMAP autenticada. Trabaja con números de secuencia (no UID):
    solo valen dentro de la selección actual, no se guardan entre ciclos.
    Cualquier ProtocolError deja la sesión inservible: hay que reconectar.
    """

    def __init__(self, host: str, port: int, user: str, password: str, ssl: bool = True, timeout: int | None = 60) -> None:
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.ssl = ssl
        self.timeout = timeout
        self.client: IMAPClient | None = None

    @classmethod
    def connect(cls, host: str, port: int, user: str, password: str, **kwargs) -> "IMAPInbox":
        inbox = cls(host, port, user, password, **kwargs)
        inbox.open()
        return inbox

    def open(self) -> None:
        try:
            self.client = IMAPClient(self.host, port=self.port, ssl=self.ssl, use_uid=False, timeout=self.timeout)
        except SESSION_ERRORS as exc:
            raise MailboxConnectionError(f"No se pudo conectar a {self.host}:{self.port}: {exc}") from exc
        try:
            self.client.login(self.user, self.password)
        except LoginError as exc:
            self.logout()
            raise AuthError(f"Login rechazado para {self.user}: {exc}") from exc
        except SESSION_ERRORS as exc:
            self.logout()
            raise MailboxConnectionError(f"Fallo durante el login: {exc}") from exc

    def __enter__(self) -> "IMAPInbox":
        if self.client is None:
            self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.logout()

    def logout(self) -> None:
        client, self.client = self.client, None
        if client is None:
            return
        try:
            client.logout()
        except Exception:
            logger.exception("Error cerrando IMAP")

    def _require_client(self) -> IMAPClient:
        if self.client is None:
            raise ProtocolError("Sesión IMAP cerrada")
        return self.client

    # ───────── operaciones ─────────
    def select_folder(self, folder: str) -> None:
        client = self._require_client()
        try:
            client.select_folder(folder, readonly=False)
        except SESSION_ERRORS as exc:
            raise ProtocolError(f"No se pudo seleccionar '{folder}': {exc}") from exc

    def list_all_messages(self) -> list[int]:
        client = self._require_client()
        try:
            seqs = client.search(["ALL"])
        except SESSION_ERRORS as exc:
            raise ProtocolError(f"SEARCH ALL falló: {exc}") from exc
        return sorted(seqs)

    def fetch_raw(self, seq: int) -> bytes:
        client = self._require_client()
        try:
            resp = client.fetch([seq], ["RFC822"])
        except SESSION_ERRORS as exc:
            raise ProtocolError(f"FETCH {seq} falló: {exc}") from exc
        data = resp.get(seq) or {}
        raw = data.get(b"RFC822")
        if raw is None:
            # número de secuencia obsoleto (otro cliente expurgó)
            raise FetchError(f"Sin contenido para el mensaje {seq}")
        return raw

    def mark_deleted(self, seq: int) -> None:
        client = self._require_client()
        try:
            client.add_flags([seq], [DELETED])
        except SESSION_ERRORS as exc:
            raise ProtocolError(f"STORE +FLAGS \\Deleted {seq} falló: {exc}") from exc

    def expunge(self) -> None:
        client = self._require_client()
        try:
            client.expunge()
        except SESSION_ERRORS as exc:
            raise ProtocolError(f"EXPUNGE falló: {exc}") from exc
