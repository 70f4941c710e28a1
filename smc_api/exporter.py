"""Exporter: consulta la API periódicamente y actualiza métricas y alertas.

Cada ciclo:
- Fetch del usuario autenticado y del detalle de cada device (secuencial)
- Conversión de devices y sensores a métricas Prometheus
- Evaluación de reglas de alerta (si hay motor configurado)

Un error de fetch aborta el ciclo (las métricas quedan como estaban);
un error de conversión solo afecta al device o sensor que lo produjo.
"""

from __future__ import annotations

import logging
import threading
from typing import Optional, Protocol

from common.errors import ConversionError, ProviderError
from smc_alerting.engine import AlertingEngine
from smc_metrics.converter import CombinedConverter
from smc_metrics.registry import MetricRegistry
from smc_metrics.sensor_mapping import SensorMetricMapping

from .converters import (
    DeviceInfoConverter,
    DeviceSensorConverter,
    DeviceSensorInfoConverter,
    DeviceStateConverter,
)
from .models import DeviceDetail, User, UserDeviceCollection
from .snapshots import device_to_metrics

logger = logging.getLogger(__name__)


class Provider(Protocol):
    def get_me(self) -> User: ...

    def get_device(self, device_id: int) -> DeviceDetail: ...


def build_converter(mapping: SensorMetricMapping) -> CombinedConverter:
    converter = CombinedConverter()
    converter.add(
        DeviceInfoConverter("device_info"),
        DeviceStateConverter("device_state"),
        DeviceSensorConverter("sensor", mapping),
        DeviceSensorInfoConverter("sensor_info"),
    )
    return converter


class APIExporter:
    """Loop de polling en un thread daemon con parada cooperativa."""

    DEFAULT_INTERVAL = 15.0  # segundos

    def __init__(
        self,
        provider: Provider,
        registry: MetricRegistry,
        mapping: SensorMetricMapping,
        alert_engine: Optional[AlertingEngine] = None,
        converter: Optional[CombinedConverter] = None,
    ):
        self._provider = provider
        self._registry = registry
        self._converter = converter or build_converter(mapping)
        self._alert_engine = alert_engine

        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

        self._requests_total = registry.get_or_create_counter(
            "api_requests_total", "Total API requests"
        )
        self._requests_success = registry.get_or_create_counter(
            "api_requests_success_total", "Total successful API requests"
        )
        self._api_errors = registry.get_or_create_counter_vec(
            "api_errors_total", "Total API errors", ["type"]
        )
        self._data_errors = registry.get_or_create_counter_vec(
            "data_errors_total", "Total data processing errors", ["type"]
        )

    # ------------------------------------------------------------------
    # Ciclo de vida
    # ------------------------------------------------------------------

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self, interval: float = DEFAULT_INTERVAL) -> None:
        if self.running:
            if self._stop_event.is_set():
                raise RuntimeError("previous exporter thread has not stopped yet")
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self.run, args=(interval,), name="smc-exporter", daemon=True
        )
        self._thread.start()
        logger.info("APIExporter started interval=%.1fs", interval)

    def stop(self, timeout: float = 5.0) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            if self._thread.is_alive():
                # Una llamada HTTP en curso; el thread sale al terminarla.
                logger.warning("APIExporter thread still running after %.1fs", timeout)
                return
            self._thread = None
        logger.info("APIExporter stopped")

    def run(self, interval: float) -> None:
        """Un ciclo inmediato y después uno por intervalo hasta stop()."""
        while not self._stop_event.is_set():
            try:
                self.update_metrics()
            except Exception:
                logger.exception("Unexpected error in metrics update cycle")
            if self._stop_event.wait(interval):
                break
            logger.debug("Metrics updated, next update in %.1fs", interval)

    # ------------------------------------------------------------------
    # Ciclo
    # ------------------------------------------------------------------

    def update_metrics(self) -> bool:
        """Ejecuta un ciclo completo. Devuelve False si falló el fetch."""
        logger.info("Updating metrics from SmartCitizen API")
        self._requests_total.inc()

        try:
            data = self.fetch_api_data()
        except ProviderError as e:
            logger.error("Error fetching data: %s", e)
            self._api_errors.labels(type="fetch_error").inc()
            return False

        self._requests_success.inc()
        self.process_api_data(data)
        return True

    def fetch_api_data(self) -> UserDeviceCollection:
        user = self._provider.get_me()
        devices = []

        for device in user.devices:
            if self._stop_event.is_set():
                break
            logger.info(
                "User device device_id=%s name=%s state=%s", device.id, device.name, device.state
            )
            detail = self._provider.get_device(device.id)
            logger.info(
                "Fetched device detail device_id=%s sensors=%d", detail.id, len(detail.sensors)
            )
            devices.append(detail)

        return UserDeviceCollection(user=user, devices=devices)

    def process_api_data(self, data: UserDeviceCollection) -> None:
        for device in data.devices:
            self.convert_device(device)
            self.evaluate_device(device)

    def convert_device(self, device: DeviceDetail) -> int:
        """Convierte el device y sus sensores. Devuelve el número de errores."""
        errors = 0
        if not self._convert_one(device, f"device_id={device.id}"):
            errors += 1

        for sensor in device.sensors_with_device():
            if not self._convert_one(sensor, f"device_id={device.id} sensor_id={sensor.id}"):
                errors += 1
        return errors

    def evaluate_device(self, device: DeviceDetail) -> None:
        if self._alert_engine is None:
            return
        self._alert_engine.evaluate_all(device_to_metrics(device))

    def _convert_one(self, record, context: str) -> bool:
        try:
            self._converter.convert(self._registry, record)
        except ConversionError as e:
            logger.error("Error converting record to metrics %s error=%s", context, e)
            self._data_errors.labels(type="mapping_error").inc()
            return False
        except Exception:
            logger.exception("Unexpected error converting record to metrics %s", context)
            self._data_errors.labels(type="mapping_error").inc()
            return False
        return True
