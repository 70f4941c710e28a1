"""Composition root: construye el grafo de objetos una sola vez por proceso."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import requests

from common.config import AppConfig
from jobs.alert_rules import register_default_rules
from ntfy_notifier import HTTPNotifier, TokenCredentialEnvProvider
from smc_alerting import AlertingEngine
from smc_api.credentials import UserCredentialEnvProvider
from smc_api.exporter import APIExporter
from smc_api.provider import SmartCitizenProvider
from smc_metrics import MetricRegistry, SensorMetricMapping, default_sensor_mapping

logger = logging.getLogger(__name__)


@dataclass
class Runtime:
    config: AppConfig
    registry: MetricRegistry
    mapping: SensorMetricMapping
    provider: SmartCitizenProvider
    notifier: HTTPNotifier
    engine: AlertingEngine
    exporter: APIExporter


def build_runtime(config: AppConfig, session: Optional[requests.Session] = None) -> Runtime:
    """Crea registry, provider, notifier, motor de alertas y exporter.

    No hace llamadas de red; ver connect().
    """
    registry = MetricRegistry(config.namespace)

    mapping = default_sensor_mapping()
    mapping.update_from_dict(config.sensor_mapping)

    provider = SmartCitizenProvider(config.smartcitizen, registry, session=session)

    notifier = HTTPNotifier(config.ntfy.endpoint)
    if config.ntfy.token_env:
        notifier.set_credential_provider(TokenCredentialEnvProvider(config.ntfy.token_env))

    engine = AlertingEngine()
    register_default_rules(engine, notifier, config.ntfy.topic, config.battery_sensor_name)

    exporter = APIExporter(provider, registry, mapping, alert_engine=engine)

    logger.info(
        "[BOOT] Runtime built namespace=%s sensor_mappings=%d rules=%d",
        config.namespace, len(mapping), len(engine.rules()),
    )
    return Runtime(
        config=config,
        registry=registry,
        mapping=mapping,
        provider=provider,
        notifier=notifier,
        engine=engine,
        exporter=exporter,
    )


def connect(runtime: Runtime) -> None:
    """Lee credenciales, autentica y hace ping.

    Raises:
        ConfigurationError: credenciales ausentes
        ProviderError: la API no responde o rechaza las credenciales
    """
    smc = runtime.config.smartcitizen
    credential = UserCredentialEnvProvider(
        smc.username_env, smc.password_env, smc.token_env
    ).retrieve()

    runtime.provider.authenticate(credential)
    runtime.provider.ping()
