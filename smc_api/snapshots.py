"""Aplana un DeviceDetail en métricas para el motor de alertas."""

from __future__ import annotations

from typing import List

from smc_alerting.rule import Metric

from .models import DeviceDetail, DeviceSensor, parse_time_to_unix

DEVICE_STATE_METRIC_NAME = "Device State"


def sensor_to_metric(sensor: DeviceSensor) -> Metric:
    return Metric(
        name=sensor.name,
        description=sensor.description or "",
        value=float(sensor.value),
        unit=sensor.unit or "",
        timestamp=sensor.to_unix(),
    )


def device_state_to_metric(device: DeviceDetail) -> Metric:
    return Metric(
        name=DEVICE_STATE_METRIC_NAME,
        description=f"Device state: {device.state}",
        value=device.state_value,
        unit="state",
        timestamp=parse_time_to_unix(device.updated_at),
    )


def device_to_metrics(device: DeviceDetail) -> List[Metric]:
    """Una métrica por sensor con valor, más el estado del device al final."""
    metrics = [sensor_to_metric(s) for s in device.sensors if s.value is not None]
    metrics.append(device_state_to_metric(device))
    return metrics
