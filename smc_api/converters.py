"""Converters de registros Smart Citizen a métricas Prometheus."""

from __future__ import annotations

from typing import Any, Hashable

from common.errors import ConversionError
from smc_metrics.registry import MetricRegistry
from smc_metrics.sensor_mapping import GENERIC_SENSOR_METRIC, SensorMetricMapping

from .models import DeviceDetail, DeviceSensor, RecordKind

DEVICE_INFO_LABELS = ("uuid", "name", "description")
DEVICE_STATE_LABELS = ("uuid", "name")
SENSOR_VALUE_LABELS = ("device_uuid", "id", "uuid", "name")
SENSOR_INFO_LABELS = ("id", "uuid", "name", "unit", "description")


def _expect(value: Any, model: type) -> Any:
    if not isinstance(value, model):
        raise ConversionError(
            f"invalid data type for converter: expected {model.__name__}, "
            f"got {type(value).__name__}"
        )
    return value


class DeviceInfoConverter:
    name = "device_info"

    def __init__(self, metric_name: str = "device_info"):
        self.metric_name = metric_name

    def match(self, kind: Hashable) -> bool:
        return kind == RecordKind.DEVICE_DETAIL

    def convert(self, registry: MetricRegistry, value: Any) -> None:
        device: DeviceDetail = _expect(value, DeviceDetail)
        gauge = registry.get_or_create_gauge_vec(
            self.metric_name,
            "Static information about Smart Citizen devices",
            DEVICE_INFO_LABELS,
        )
        gauge.labels(
            uuid=device.uuid,
            name=device.name,
            description=device.description or "",
        ).set(1)


class DeviceStateConverter:
    name = "device_state"

    def __init__(self, metric_name: str = "device_state"):
        self.metric_name = metric_name

    def match(self, kind: Hashable) -> bool:
        return kind == RecordKind.DEVICE_DETAIL

    def convert(self, registry: MetricRegistry, value: Any) -> None:
        device: DeviceDetail = _expect(value, DeviceDetail)
        gauge = registry.get_or_create_gauge_vec(
            self.metric_name,
            "Device state (1 online, 0.5 sleeping, 0 offline, -1 unknown)",
            DEVICE_STATE_LABELS,
        )
        gauge.labels(uuid=device.uuid, name=device.name).set(device.state_value)


class DeviceSensorConverter:
    """Valor actual del sensor, con nombre de métrica normalizado por el mapping.

    Sensores sin entrada en el mapping van a `<prefix>_value`.
    """

    name = "device_sensor"

    def __init__(self, prefix: str, mapping: SensorMetricMapping):
        self.prefix = prefix
        self.mapping = mapping

    def match(self, kind: Hashable) -> bool:
        return kind == RecordKind.DEVICE_SENSOR

    def metric_name_for(self, sensor_name: str) -> str:
        item, found = self.mapping.get(sensor_name)
        fragment = item.metric_name() if found else GENERIC_SENSOR_METRIC
        return f"{self.prefix}_{fragment}"

    def convert(self, registry: MetricRegistry, value: Any) -> None:
        sensor: DeviceSensor = _expect(value, DeviceSensor)
        if sensor.value is None:
            raise ConversionError(f"sensor {sensor.id} ({sensor.name}) has no value")

        gauge = registry.get_or_create_gauge_vec(
            self.metric_name_for(sensor.name),
            "Current sensor value",
            SENSOR_VALUE_LABELS,
        )
        gauge.labels(
            device_uuid=sensor.device_uuid,
            id=str(sensor.id),
            uuid=sensor.uuid,
            name=sensor.name,
        ).set(sensor.value)


class DeviceSensorInfoConverter:
    name = "sensor_info"

    def __init__(self, metric_name: str = "sensor_info"):
        self.metric_name = metric_name

    def match(self, kind: Hashable) -> bool:
        return kind == RecordKind.DEVICE_SENSOR

    def convert(self, registry: MetricRegistry, value: Any) -> None:
        sensor: DeviceSensor = _expect(value, DeviceSensor)
        gauge = registry.get_or_create_gauge_vec(
            self.metric_name,
            "Static information about Smart Citizen device sensors",
            SENSOR_INFO_LABELS,
        )
        gauge.labels(
            id=str(sensor.id),
            uuid=sensor.uuid,
            name=sensor.name,
            unit=sensor.unit or "",
            description=sensor.description or "",
        ).set(1)
