# interface_adapters/controllers/polling_controller.py
from __future__ import annotations
import enum
import logging
import time
from dataclasses import dataclass
from typing import Callable

from config.settings import Settings
from application.use_cases.process_mail_usecase import ProcessMailUseCase, build_mail_item
from domain.errors import FetchError, MailboxConnectionError, ParseError, ProtocolError
from infrastructure.email.imap_client import IMAPInbox, SESSION_ERRORS
from infrastructure.webhook.webhook_client import WebhookClient

logger = logging.getLogger(__name__)


class Phase(enum.Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    ACTIVE = "active"


@dataclass(frozen=True)
class MonitorState:
    phase: Phase
    inbox: IMAPInbox | None = None
    # sesión recién abierta: purgar lo que quedó marcado \Deleted en una sesión abortada
    fresh: bool = False


class PollingController:
    """
    Bucle de monitorización como máquina de estados:
        DISCONNECTED → (espera reconnect_delay) → CONNECTING → ACTIVE → ...
    Cada transición devuelve el siguiente estado con la sesión que posee.

    Un mensaje sigue en el buzón hasta que se borra tras entregarse (o por
    ignorado), así que "no borrado" = se reintenta en el siguiente ciclo.
    Nunca marcar como borrado antes de confirmar el envío.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        connect: Callable[[], IMAPInbox] | None = None,
        webhook: WebhookClient | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.settings = settings
        self.connect = connect or self._default_connect
        self.webhook = webhook or WebhookClient(settings.discord_webhook_url, timeout=settings.webhook_timeout)
        self.sleep = sleep
        self.uc = ProcessMailUseCase(
            ignored_senders=settings.ignored_senders,
            ignored_subjects=settings.ignored_subjects,
            deliver=self.webhook.deliver,
        )

    def _default_connect(self) -> IMAPInbox:
        st = self.settings
        return IMAPInbox.connect(
            st.imap_server, st.imap_port, st.imap_username, st.imap_password, timeout=st.imap_timeout
        )

    # ───────────────────────── máquina de estados ─────────────────────────
    def initial_state(self) -> MonitorState:
        # el primer intento de conexión no espera
        return MonitorState(Phase.CONNECTING)

    def step(self, state: MonitorState) -> MonitorState:
        st = self.settings
        if state.phase is Phase.DISCONNECTED:
            logger.info("Reintentando en %s segundos...", st.reconnect_delay)
            self.sleep(st.reconnect_delay)
            return MonitorState(Phase.CONNECTING)

        if state.phase is Phase.CONNECTING:
            logger.info("Conectando a IMAP %s:%s...", st.imap_server, st.imap_port)
            try:
                inbox = self.connect()
            except MailboxConnectionError as exc:
                logger.error("No se pudo conectar: %s", exc)
                return MonitorState(Phase.DISCONNECTED)
            except Exception:
                logger.exception("Error inesperado conectando")
                return MonitorState(Phase.DISCONNECTED)
            logger.info("Sesión iniciada como %s", st.imap_username)
            return MonitorState(Phase.ACTIVE, inbox, fresh=True)

        inbox = state.inbox
        assert inbox is not None
        try:
            self.run_cycle(inbox, purge=state.fresh)
        except (ProtocolError, MailboxConnectionError, *SESSION_ERRORS) as exc:
            logger.error("Conexión perdida o error de protocolo: %s", exc)
            inbox.logout()
            return MonitorState(Phase.DISCONNECTED)
        except Exception:
            logger.exception("Error inesperado en ciclo de polling")
            inbox.logout()
            return MonitorState(Phase.DISCONNECTED)
        self.sleep(st.poll_interval)
        return MonitorState(Phase.ACTIVE, inbox)

    def run_forever(self) -> None:
        logger.info("Config: %s", self.settings.masked())
        state = self.initial_state()
        while True:
            state = self.step(state)

    def run_once(self) -> dict[str, int]:
        with self.connect() as inbox:
            return self.run_cycle(inbox, purge=True)

    def close(self) -> None:
        self.webhook.close()

    # ───────────────────────── ciclo ─────────────────────────
    def run_cycle(self, inbox: IMAPInbox, purge: bool = False) -> dict[str, int]:
        """
        Un ciclo completo: select, SEARCH ALL, procesar cada mensaje y EXPUNGE.
        Los errores de sesión se propagan; los de un mensaje se registran y se sigue.

        Si un ciclo se aborta tras marcar mensajes pero antes del EXPUNGE, el flag
        \\Deleted queda en el servidor. Con purge=True (primer ciclo de cada sesión)
        se expurgan antes de listar, para no volver a enviarlos.
        """
        stats = {"listed": 0, "delivered": 0, "ignored": 0, "failed": 0, "skipped": 0}
        inbox.select_folder(self.settings.imap_folder)
        if purge:
            inbox.expunge()
        seqs = inbox.list_all_messages()
        if not seqs:
            logger.debug("Sin correos nuevos.")
            return stats

        stats["listed"] = len(seqs)
        logger.info("Encontrados %d correos", len(seqs))
        for seq in seqs:
            outcome = self._process_seq(inbox, seq)
            stats[outcome] += 1

        # borrado definitivo de lo marcado en esta sesión
        inbox.expunge()
        logger.info(
            "Ciclo completado: enviados=%s ignorados=%s fallidos=%s saltados=%s",
            stats["delivered"], stats["ignored"], stats["failed"], stats["skipped"],
        )
        return stats

    def _process_seq(self, inbox: IMAPInbox, seq: int) -> str:
        try:
            raw = inbox.fetch_raw(seq)
        except FetchError as exc:
            logger.error("Mensaje #%s saltado: %s", seq, exc)
            return "skipped"

        try:
            mail = build_mail_item(seq, raw)
        except ParseError as exc:
            logger.error("Mensaje #%s saltado: %s", seq, exc)
            return "skipped"

        try:
            outcome = self.uc.process_mail(mail)
        except Exception:
            logger.exception("Error procesando mensaje #%s", seq)
            return "skipped"

        if outcome == "delivered":
            logger.info("Borrando correo #%s...", seq)
            inbox.mark_deleted(seq)
        elif outcome == "ignored" and self.settings.delete_ignored:
            inbox.mark_deleted(seq)
        return outcome
