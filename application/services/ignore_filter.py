# application/services/ignore_filter.py
from __future__ import annotations
from typing import Iterable


def should_ignore(
    from_header: str,
    subject_header: str,
    ignored_senders: Iterable[str] | None,
    ignored_subjects: Iterable[str] | None,
) -> bool:
    """
    True si algún patrón está contenido en el remitente o en el asunto.
    Contención literal y sensible a mayúsculas (sin regex ni lower()).
    """
    if ignored_senders and any(p in from_header for p in ignored_senders):
        return True
    if ignored_subjects and any(p in subject_header for p in ignored_subjects):
        return True
    return False
