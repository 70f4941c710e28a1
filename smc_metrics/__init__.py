"""Prometheus metric registry and converter framework."""

from .converter import CombinedConverter, Converter, Convertible
from .registry import CollectorKind, MetricKindMismatch, MetricRegistry
from .sensor_mapping import (
    GENERIC_SENSOR_METRIC,
    MetricMappingItem,
    SensorMetricMapping,
    default_sensor_mapping,
)

__all__ = [
    "CombinedConverter",
    "Converter",
    "Convertible",
    "CollectorKind",
    "MetricKindMismatch",
    "MetricRegistry",
    "GENERIC_SENSOR_METRIC",
    "MetricMappingItem",
    "SensorMetricMapping",
    "default_sensor_mapping",
]
