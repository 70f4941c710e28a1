"""Cliente HTTP para publicar notificaciones en ntfy."""

from __future__ import annotations

import logging
from typing import Optional

import requests

from common.errors import NotificationError

from .credentials import TokenCredentialEnvProvider
from .models import Notification

logger = logging.getLogger(__name__)


class HTTPNotifier:
    """Publica notificaciones como JSON en el endpoint raíz de ntfy.

    Un fallo se propaga como NotificationError; el motor de alertas lo
    registra y sigue con la siguiente regla.
    """

    def __init__(
        self,
        endpoint: str,
        session: Optional[requests.Session] = None,
        credentials: Optional[TokenCredentialEnvProvider] = None,
        timeout: float = 5.0,
    ):
        self.endpoint = endpoint
        self._session = session or requests.Session()
        self._credentials = credentials
        self._timeout = timeout

    def set_credential_provider(self, provider: TokenCredentialEnvProvider) -> None:
        self._credentials = provider

    def send(self, notification: Notification) -> None:
        headers = {"Content-Type": "application/json"}
        if self._credentials is not None:
            headers["Authorization"] = f"Bearer {self._credentials.retrieve()}"

        logger.info("[NTFY] Sending notification topic=%s", notification.topic)
        try:
            response = self._session.post(
                self.endpoint,
                json=notification.to_payload(),
                headers=headers,
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            raise NotificationError(f"failed to send notification: {e}") from e

        if response.status_code != 200:
            raise NotificationError(
                f"failed to send notification, status code: {response.status_code}"
            )

        logger.info("[NTFY] Notification sent topic=%s", notification.topic)
