"""Job de alertas de una sola pasada: fetch, evaluar reglas, salir."""

from __future__ import annotations

import logging

from common.errors import ProviderError
from exporter_api.bootstrap import Runtime
from smc_api.snapshots import device_to_metrics

logger = logging.getLogger(__name__)


def run_alert_job(runtime: Runtime) -> int:
    """Evalúa las reglas contra el estado actual de todos los devices.

    Returns:
        número de reglas disparadas
    Raises:
        ProviderError: si falla el fetch (el job no reintenta)
    """
    user = runtime.provider.get_me()
    logger.info("Authenticated user user_id=%s username=%s", user.id, user.username)

    fired = 0
    for device in user.devices:
        try:
            detail = runtime.provider.get_device(device.id)
        except ProviderError:
            logger.error("Failed to fetch device device_id=%s", device.id)
            raise

        logger.info(
            "Fetched device detail device_id=%s name=%s state=%s sensors=%d",
            detail.id, detail.name, detail.state, len(detail.sensors),
        )
        fired += len(runtime.engine.evaluate_all(device_to_metrics(detail)))

    logger.info("Alert job finished fired=%d", fired)
    return fired
