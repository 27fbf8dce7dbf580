# application/services/body_extractor.py
from __future__ import annotations
import email.message
import logging
import re

import html2text
import pyzmail

from domain.errors import ParseError
from domain.models import MimeLeaf, MimeMultipart, MimeNode

logger = logging.getLogger(__name__)

HTML_WIDTH = 80

_RE_NEWLINES = re.compile(r"\n{3,}")
_RE_TRAILING_SPACES = re.compile(r"[ \t]+$", re.MULTILINE)


def clean_body(text: str) -> str:
    # máximo una línea en blanco seguida, sin espacios al final de línea
    text = _RE_NEWLINES.sub("\n\n", text)
    text = _RE_TRAILING_SPACES.sub("", text)
    return text.strip()


# ───────── parseo RFC822 → árbol ─────────
def parse_message(raw: bytes) -> tuple[str | None, str | None, MimeNode]:
    """
    Devuelve (subject, from, árbol MIME). Subject/From son None si la cabecera
    no existe; el valor viene ya decodificado (RFC 2047).
    """
    try:
        msg = pyzmail.PyzMessage.factory(raw)
        subject = msg.get_subject(None) if msg.get("Subject") is not None else None
        from_addr = msg.get_decoded_header("From", None) if msg.get("From") is not None else None
    except Exception as exc:
        raise ParseError(f"Mensaje RFC822 ilegible: {exc}") from exc

    try:
        root = _to_node(msg)
    except Exception:
        # cabeceras válidas pero cuerpo roto: se envía igualmente con el texto por defecto
        logger.exception("No se pudo recorrer el cuerpo MIME; se usa un árbol vacío")
        root = MimeMultipart(content_type="multipart/mixed")
    return subject, from_addr, root


def _to_node(part: email.message.Message) -> MimeNode:
    ctype = part.get_content_type()
    if part.is_multipart():
        children = part.get_payload() or []
        return MimeMultipart(content_type=ctype, parts=tuple(_to_node(c) for c in children))
    payload = part.get_payload(decode=True)
    if not isinstance(payload, bytes):
        payload = b""
    return MimeLeaf(content_type=ctype, payload=payload, charset=part.get_content_charset())


def decode_payload(leaf: MimeLeaf) -> str:
    charset = leaf.charset or "utf-8"
    try:
        return leaf.payload.decode(charset, errors="replace")
    except LookupError:
        logger.warning("Charset desconocido '%s'; se usa utf-8", charset)
        return leaf.payload.decode("utf-8", errors="replace")


def html_to_text(html: str) -> str:
    h = html2text.HTML2Text()
    h.body_width = HTML_WIDTH
    return h.handle(html)


# ───────── extracción ─────────
def extract(node: MimeNode) -> str | None:
    """
    Texto legible del mensaje:
      1) text/plain directo
      2) hijos del multipart, en orden, primer resultado no vacío
      3) text/html convertido a texto a 80 columnas
    Se busca primero un text/plain en todo el árbol; el HTML solo si no hay ninguno.
    Devuelve None si nada encaja (el llamante pone el texto por defecto).
    """
    body = _search(node, allow_html=False)
    if body:
        return body
    return _search(node, allow_html=True)


def _search(node: MimeNode, allow_html: bool) -> str | None:
    if isinstance(node, MimeLeaf) and node.content_type == "text/plain":
        return clean_body(decode_payload(node))

    if isinstance(node, MimeMultipart):
        for child in node.parts:
            body = _search(child, allow_html)
            if body:
                return body

    if allow_html and isinstance(node, MimeLeaf) and node.content_type == "text/html":
        try:
            return clean_body(html_to_text(decode_payload(node)))
        except Exception:
            logger.exception("Fallo convirtiendo HTML a texto")
            return None

    return None
