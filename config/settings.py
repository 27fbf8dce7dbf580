# config/settings.py
from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping
import os
import tomllib
from dotenv import load_dotenv

from domain.errors import ConfigError

load_dotenv()

DEFAULT_CONFIG_PATH = "config.toml"

REQUIRED_KEYS = (
    "imap_server",
    "imap_port",
    "imap_username",
    "imap_password",
    "discord_webhook_url",
)
LIST_KEYS = ("ignored_senders", "ignored_subjects")
INT_KEYS = ("imap_port", "poll_interval", "reconnect_delay", "webhook_timeout", "imap_timeout")
BOOL_KEYS = ("delete_ignored",)
OPTIONAL_KEYS = ("imap_folder", "log_level") + LIST_KEYS + INT_KEYS[1:] + BOOL_KEYS


def _split_list(raw: Any, key: str) -> tuple[str, ...]:
    # en env llegan separados por comas; en TOML como array.
    # Un patrón vacío coincidiría con todo: se rechaza en vez de descartarlo.
    if raw is None:
        return ()
    if isinstance(raw, str):
        items = [s.strip() for s in raw.split(",")]
    elif isinstance(raw, (list, tuple)):
        if not all(isinstance(s, str) for s in raw):
            raise ConfigError(f"'{key}' debe ser una lista de textos")
        items = list(raw)
    else:
        raise ConfigError(f"'{key}' debe ser una lista de textos")
    if any(s == "" for s in items):
        raise ConfigError(f"'{key}' contiene un patrón vacío, que ignoraría todos los correos")
    return tuple(items)


def _to_int(raw: Any, key: str) -> int:
    if isinstance(raw, bool):
        raise ConfigError(f"'{key}' debe ser un entero")
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise ConfigError(f"'{key}' debe ser un entero, recibido {raw!r}") from None


def _to_bool(raw: Any, key: str) -> bool:
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, str) and raw.strip().lower() in ("true", "1", "yes", "false", "0", "no"):
        return raw.strip().lower() in ("true", "1", "yes")
    raise ConfigError(f"'{key}' debe ser true/false, recibido {raw!r}")


@dataclass(frozen=True)
class Settings:
    imap_server: str
    imap_port: int
    imap_username: str
    imap_password: str
    discord_webhook_url: str
    ignored_senders: tuple[str, ...] = ()
    ignored_subjects: tuple[str, ...] = ()

    imap_folder: str = "INBOX"
    imap_timeout: int = 60
    poll_interval: int = 5
    reconnect_delay: int = 10
    webhook_timeout: int = 30
    # ignorado ⇒ borrado; con False solo se salta (y se vuelve a ver cada ciclo)
    delete_ignored: bool = True
    log_level: str = "INFO"

    # ───────── carga ─────────
    @classmethod
    def load(cls, path: str | Path | None = None, environ: Mapping[str, str] | None = None) -> "Settings":
        """
        Lee el TOML (si existe) y aplica encima las variables de entorno en
        mayúsculas (IMAP_SERVER, DISCORD_WEBHOOK_URL, ...).
        Lanza ConfigError si falta algún campo obligatorio o hay valores inválidos.
        """
        env = os.environ if environ is None else environ
        cfg_path = Path(path or env.get("NEWSLETTER_CONFIG") or DEFAULT_CONFIG_PATH)

        raw: dict[str, Any] = {}
        if cfg_path.is_file():
            try:
                with cfg_path.open("rb") as fh:
                    raw = tomllib.load(fh)
            except (OSError, tomllib.TOMLDecodeError) as exc:
                raise ConfigError(f"No se pudo leer {cfg_path}: {exc}") from exc
        elif path is not None:
            raise ConfigError(f"No existe el fichero de configuración {cfg_path}")

        for key in REQUIRED_KEYS + OPTIONAL_KEYS:
            value = env.get(key.upper())
            if value is not None and value != "":
                raw[key] = value

        return cls.from_mapping(raw)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "Settings":
        missing = [k for k in REQUIRED_KEYS if raw.get(k) in (None, "")]
        if missing:
            raise ConfigError(f"Faltan campos obligatorios: {', '.join(missing)}")

        values: dict[str, Any] = {}
        for key in REQUIRED_KEYS + OPTIONAL_KEYS:
            if key not in raw:
                continue
            value = raw[key]
            if key in LIST_KEYS:
                values[key] = _split_list(value, key)
            elif key in INT_KEYS:
                values[key] = _to_int(value, key)
            elif key in BOOL_KEYS:
                values[key] = _to_bool(value, key)
            else:
                values[key] = str(value)

        if not 0 < values["imap_port"] < 65536:
            raise ConfigError(f"imap_port fuera de rango: {values['imap_port']}")
        if not values["discord_webhook_url"].startswith(("http://", "https://")):
            raise ConfigError("discord_webhook_url debe ser una URL http(s)")
        return cls(**values)

    # ───────── helpers ─────────
    def masked(self) -> dict[str, Any]:
        """Vista para logs sin la contraseña ni el token del webhook."""
        return {
            "imap": f"{self.imap_username}@{self.imap_server}:{self.imap_port}",
            "folder": self.imap_folder,
            "webhook": self.discord_webhook_url.split("/api/webhooks/")[0],
            "ignored_senders": len(self.ignored_senders),
            "ignored_subjects": len(self.ignored_subjects),
        }
