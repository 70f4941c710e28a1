"""Reglas de alerta sobre métricas de sensores."""

from .actions import RuleAction, log_action, multi_action, no_op_action, notify_action
from .engine import AlertingEngine
from .rule import (
    DEFAULT_FLOAT_TOLERANCE,
    AlertRule,
    Metric,
    RuleCondition,
    float_equals,
    threshold_above,
    threshold_below,
    threshold_between,
    threshold_equals,
)

__all__ = [
    "AlertingEngine",
    "AlertRule",
    "Metric",
    "RuleAction",
    "RuleCondition",
    "DEFAULT_FLOAT_TOLERANCE",
    "float_equals",
    "threshold_above",
    "threshold_below",
    "threshold_between",
    "threshold_equals",
    "log_action",
    "multi_action",
    "no_op_action",
    "notify_action",
]
