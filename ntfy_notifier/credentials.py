from __future__ import annotations

import os

from common.errors import ConfigurationError


class TokenCredentialEnvProvider:
    """Lee el token de ntfy de una variable de entorno en cada envío."""

    def __init__(self, env_var: str):
        self.env_var = env_var

    def retrieve(self) -> str:
        token = os.getenv(self.env_var, "")
        if not token:
            raise ConfigurationError(f"environment variable {self.env_var} must be set")
        return token
