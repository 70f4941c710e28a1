"""Modelo de reglas de alerta y builders de condiciones."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable

if TYPE_CHECKING:
    from .actions import RuleAction

DEFAULT_FLOAT_TOLERANCE = 0.0001


@dataclass(frozen=True)
class Metric:
    """Snapshot numérico de un sensor (o del estado del device) en un ciclo."""

    name: str
    value: float
    description: str = ""
    unit: str = ""
    timestamp: int = 0


RuleCondition = Callable[[Metric], bool]


@dataclass(frozen=True)
class AlertRule:
    id: str
    name: str
    metric_name: str
    condition: RuleCondition
    action: "RuleAction"
    enabled: bool = True


def float_equals(a: float, b: float, tolerance: float = DEFAULT_FLOAT_TOLERANCE) -> bool:
    return abs(a - b) <= tolerance


def threshold_above(threshold: float) -> RuleCondition:
    def condition(metric: Metric) -> bool:
        return metric.value > threshold
    return condition


def threshold_below(threshold: float) -> RuleCondition:
    def condition(metric: Metric) -> bool:
        return metric.value < threshold
    return condition


def threshold_between(min_value: float, max_value: float) -> RuleCondition:
    """Inclusivo en ambos extremos."""
    def condition(metric: Metric) -> bool:
        return min_value <= metric.value <= max_value
    return condition


def threshold_equals(target: float, tolerance: float = DEFAULT_FLOAT_TOLERANCE) -> RuleCondition:
    """Igualdad con tolerancia absoluta.

    Los valores llegan de la API como JSON, así que 1.0 puede llegar como
    0.99999999; la comparación exacta no sirve.
    """
    def condition(metric: Metric) -> bool:
        return float_equals(metric.value, target, tolerance)
    return condition
