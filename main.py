# main.py
# Punto de entrada: loop de polling IMAP -> notificación al webhook -> borrado
from __future__ import annotations
import argparse
import logging
import sys
from config.settings import Settings
from domain.errors import ConfigError
from interface_adapters.controllers.polling_controller import PollingController

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Reenvía correos de un buzón IMAP a un webhook de Discord.")
    parser.add_argument("--config", help="Ruta al config.toml (por defecto ./config.toml)")
    parser.add_argument("--once", action="store_true", help="Ejecuta un único ciclo y termina")
    return parser


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(message)s",
    )


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        settings = Settings.load(args.config)
    except ConfigError as exc:
        configure_logging("INFO")
        logger.error("Configuración inválida: %s", exc)
        return 2

    configure_logging(settings.log_level)
    controller = PollingController(settings=settings)

    logger.info("=== Newsletter relay ===")
    logger.info("IMAP host=%s inbox=%s", settings.imap_server, settings.imap_folder)
    try:
        if args.once:
            stats = controller.run_once()
            logger.info("Resultado: %s", stats)
            return 0
        controller.run_forever()
    except KeyboardInterrupt:
        logger.info("Parado por el usuario")
    except Exception:
        logger.exception("Error fatal")
        return 1
    finally:
        controller.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
