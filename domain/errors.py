# domain/errors.py
from __future__ import annotations


class RelayError(Exception):
    """Base de todos los errores propios del relay."""


class ConfigError(RelayError):
    """Configuración ausente o inválida. Fatal en el arranque."""


# ───────── nivel sesión (fuerzan reconexión) ─────────
class MailboxConnectionError(RelayError):
    """Fallo de red/TLS al conectar con el servidor IMAP."""


class AuthError(MailboxConnectionError):
    """El servidor rechazó las credenciales."""


class ProtocolError(RelayError):
    """Fallo de una operación IMAP; la sesión queda invalidada."""


# ───────── nivel mensaje (se salta el mensaje) ─────────
class FetchError(RelayError):
    """El servidor no devolvió contenido para el identificador pedido."""


class ParseError(RelayError):
    """No se pudo interpretar el mensaje RFC822."""

