from __future__ import annotations

import os
from dataclasses import dataclass, field

from common.config import DEFAULT_PASSWORD_ENV, DEFAULT_TOKEN_ENV, DEFAULT_USERNAME_ENV
from common.errors import ConfigurationError


@dataclass(frozen=True)
class UserCredential:
    username: str = ""
    password: str = field(default="", repr=False)
    token: str = field(default="", repr=False)


class UserCredentialEnvProvider:
    """Credenciales de Smart Citizen desde variables de entorno.

    Basta con el token; sin token hacen falta usuario y contraseña.
    """

    def __init__(
        self,
        username_env: str = DEFAULT_USERNAME_ENV,
        password_env: str = DEFAULT_PASSWORD_ENV,
        token_env: str = DEFAULT_TOKEN_ENV,
    ):
        self.username_env = username_env
        self.password_env = password_env
        self.token_env = token_env

    def retrieve(self) -> UserCredential:
        username = os.getenv(self.username_env, "")
        password = os.getenv(self.password_env, "")
        token = os.getenv(self.token_env, "")

        if token:
            return UserCredential(username=username, password=password, token=token)

        if not username:
            raise ConfigurationError(
                f"environment variable {self.username_env} must be set "
                f"(or {self.token_env})"
            )
        if not password:
            raise ConfigurationError(
                f"either environment variable {self.password_env} "
                f"or {self.token_env} must be set"
            )
        return UserCredential(username=username, password=password)
