# application/use_cases/process_mail_usecase.py
from __future__ import annotations
import logging
from typing import Any, Callable, Dict

from application.services.body_extractor import extract, parse_message
from application.services.ignore_filter import should_ignore
from application.services.notification_formatter import (
    DEFAULT_SENDER,
    DEFAULT_SUBJECT,
    format_notification,
)
from domain.models import DeliveryResult, MailItem, Outcome

logger = logging.getLogger(__name__)

BODY_FALLBACK = "Cannot parse body"

Deliver = Callable[[Dict[str, Any]], DeliveryResult]


def build_mail_item(seq: int, raw: bytes) -> MailItem:
    """Parsea el RFC822; lanza ParseError si no es legible."""
    subject, from_addr, root = parse_message(raw)
    return MailItem(
        seq=seq,
        subject=subject or DEFAULT_SUBJECT,
        from_addr=from_addr or DEFAULT_SENDER,
        root=root,
    )


class ProcessMailUseCase:
    def __init__(
        self,
        *,
        ignored_senders: tuple[str, ...] | list[str],
        ignored_subjects: tuple[str, ...] | list[str],
        deliver: Deliver,
    ) -> None:
        self.ignored_senders = ignored_senders
        self.ignored_subjects = ignored_subjects
        self.deliver = deliver

    def process_mail(self, mail: MailItem) -> Outcome:
        """
        Devuelve:
          "ignored"   → coincide con las listas de ignorados (no se envía)
          "delivered" → el webhook aceptó la notificación
          "failed"    → fallo de envío; el mensaje se queda para el siguiente ciclo
        No toca el buzón: borrar o no es decisión del controlador según el resultado.
        """
        if should_ignore(mail.from_addr, mail.subject, self.ignored_senders, self.ignored_subjects):
            logger.info("Ignorado correo de: %s, asunto: %s", mail.from_addr, mail.subject)
            return "ignored"

        try:
            body = extract(mail.root)
        except Exception:
            logger.exception("No se pudo extraer el cuerpo de #%s", mail.seq)
            body = None
        if not body:
            body = BODY_FALLBACK

        logger.info("Procesando correo: %s", mail.subject)
        notification = format_notification(mail.subject, mail.from_addr, body)
        result = self.deliver(notification.to_payload())
        if result.ok:
            logger.info("Enviado al webhook (#%s)", mail.seq)
            return "delivered"

        logger.error("No enviado (#%s): %s", mail.seq, result.reason or "motivo desconocido")
        return "failed"
