"""Volcado de una sola pasada: usuario autenticado y detalle de sus devices en JSON."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

from exporter_api.bootstrap import Runtime

logger = logging.getLogger(__name__)


def run_download_job(runtime: Runtime, output: Optional[str] = None) -> int:
    """Escribe la colección en `output` (o stdout si es None o "-").

    Returns:
        número de devices descargados
    Raises:
        ProviderError: si falla el fetch
    """
    data = runtime.exporter.fetch_api_data()
    payload = data.model_dump_json(indent=2)

    if output and output != "-":
        Path(output).write_text(payload + "\n", encoding="utf-8")
        logger.info("Downloaded devices=%d output=%s", len(data.devices), output)
    else:
        sys.stdout.write(payload + "\n")
    return len(data.devices)
