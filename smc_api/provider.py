"""Cliente REST de la API de Smart Citizen."""

from __future__ import annotations

import logging
from typing import Any, Optional

import requests
from pydantic import ValidationError

from common.config import SmartCitizenConfig
from common.errors import AuthenticationError, ProviderError
from smc_metrics.registry import MetricRegistry

from .credentials import UserCredential
from .models import DeviceDetail, User
from .transport import REQUEST_DURATION_BUCKETS, InstrumentedAdapter

logger = logging.getLogger(__name__)


class SmartCitizenProvider:
    """Sesión autenticada contra la API v0.

    Uso:
        provider = SmartCitizenProvider(config, registry)
        provider.authenticate(credential)
        user = provider.get_me()
        device = provider.get_device(user.devices[0].id)

    Todas las peticiones pasan por InstrumentedAdapter, que registra
    `api_request_duration_seconds` en el registry compartido.
    """

    def __init__(
        self,
        config: SmartCitizenConfig,
        registry: MetricRegistry,
        session: Optional[requests.Session] = None,
    ):
        self.config = config
        self._access_token: Optional[str] = None
        self._session = session or requests.Session()

        histogram = registry.get_or_create_histogram_vec(
            "api_request_duration_seconds",
            "Duration of HTTP requests to SmartCitizen API",
            REQUEST_DURATION_BUCKETS,
            ("endpoint", "status", "method"),
        )
        adapter = InstrumentedAdapter(histogram)
        self._session.mount("https://", adapter)
        self._session.mount("http://", adapter)

    # ------------------------------------------------------------------
    # Sesión
    # ------------------------------------------------------------------

    @property
    def has_session(self) -> bool:
        return self._access_token is not None

    def authenticate(self, credential: UserCredential) -> None:
        if credential.token:
            logger.info("[SMC] Using provided token for authentication")
            self._access_token = credential.token
            try:
                self.get_me()
            except ProviderError as e:
                self._access_token = None
                raise AuthenticationError(f"provided token is invalid: {e}") from e
            return

        logger.info("[SMC] Authenticating user username=%s", credential.username)
        response = self._request(
            "POST",
            self._url("sessions"),
            data={"username": credential.username, "password": credential.password},
        )
        if response.status_code != 200:
            raise AuthenticationError(
                f"authentication failed with status code: {response.status_code}"
            )

        token = self._json(response).get("access_token")
        if not token:
            raise AuthenticationError("authentication response has no access_token")
        self._access_token = token
        logger.info("[SMC] User authenticated successfully")

    # ------------------------------------------------------------------
    # Endpoints
    # ------------------------------------------------------------------

    def ping(self) -> None:
        response = self._request("GET", self._url())
        if response.status_code != 200:
            raise ProviderError(f"ping failed with status code: {response.status_code}")
        logger.info("[SMC] Ping successful")

    def get_me(self) -> User:
        response = self._authorized_get(self._url("me"))
        if response.status_code != 200:
            raise ProviderError(f"failed to get user info with status code: {response.status_code}")
        return self._parse(User, response)

    def get_device(self, device_id: int) -> DeviceDetail:
        response = self._authorized_get(self._url("devices", str(device_id)))
        if response.status_code != 200:
            raise ProviderError(
                f"failed to get device {device_id} with status code: {response.status_code}"
            )
        return self._parse(DeviceDetail, response)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _url(self, *parts: str) -> str:
        return "/".join([self.config.endpoint.rstrip("/"), self.config.api_version, *parts])

    def _authorized_get(self, url: str) -> requests.Response:
        if not self.has_session:
            raise AuthenticationError("no active session, please authenticate first")
        return self._request(
            "GET", url, headers={"Authorization": f"Bearer {self._access_token}"}
        )

    def _request(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        try:
            return self._session.request(
                method, url, timeout=self.config.request_timeout_seconds, **kwargs
            )
        except requests.RequestException as e:
            raise ProviderError(f"{method} {url} failed: {e}") from e

    @staticmethod
    def _json(response: requests.Response) -> dict:
        try:
            return response.json()
        except ValueError as e:
            raise ProviderError(f"invalid JSON response: {e}") from e

    def _parse(self, model: type, response: requests.Response):
        try:
            return model.model_validate(self._json(response))
        except ValidationError as e:
            raise ProviderError(f"unexpected {model.__name__} payload: {e}") from e
