# infrastructure/webhook/webhook_client.py
from __future__ import annotations
import logging
from typing import Any, Dict

import requests

from domain.models import DeliveryResult

logger = logging.getLogger(__name__)


class WebhookClient:
    def __init__(self, url: str, timeout: int = 30, session: requests.Session | None = None) -> None:
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()

    def deliver(self, payload: Dict[str, Any]) -> DeliveryResult:
        """
        POST JSON al webhook. Cualquier 2xx es éxito.
        Errores de red y códigos no-2xx se devuelven como fallo, no se lanzan.
        """
        try:
            r = self.session.post(self.url, json=payload, timeout=self.timeout)
        except requests.RequestException as exc:
            logger.error("Fallo enviando al webhook: %s", exc)
            return DeliveryResult(ok=False, reason=str(exc))

        if 200 <= r.status_code < 300:
            return DeliveryResult(ok=True, status_code=r.status_code)

        body = (r.text or "").strip()[:200]
        logger.error("Webhook respondió %s: %s", r.status_code, body or "<vacío>")
        return DeliveryResult(ok=False, status_code=r.status_code, reason=f"HTTP {r.status_code}: {body}")

    def close(self) -> None:
        self.session.close()
