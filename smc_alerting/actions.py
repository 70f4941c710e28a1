"""Builders de acciones para reglas de alerta.

Una acción es un callable `(metric, rule) -> None` que lanza una excepción
si falla. El motor registra el fallo sin propagarlo.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable, Protocol

from ntfy_notifier.models import Notification

if TYPE_CHECKING:
    from .rule import AlertRule, Metric

RuleAction = Callable[["Metric", "AlertRule"], None]


class Notifier(Protocol):
    def send(self, notification: Notification) -> None: ...


def log_action(logger: logging.Logger) -> RuleAction:
    def action(metric: "Metric", rule: "AlertRule") -> None:
        logger.info(
            "Alert triggered rule_id=%s rule_name=%s metric=%s value=%s unit=%s",
            rule.id, rule.name, metric.name, metric.value, metric.unit,
        )
    return action


def no_op_action() -> RuleAction:
    def action(metric: "Metric", rule: "AlertRule") -> None:
        return None
    return action


def multi_action(*actions: RuleAction) -> RuleAction:
    """Ejecuta las acciones en orden; la primera excepción corta la cadena."""
    def action(metric: "Metric", rule: "AlertRule") -> None:
        for inner in actions:
            inner(metric, rule)
    return action


def notify_action(notifier: Notifier, topic: str, message: str) -> RuleAction:
    def action(metric: "Metric", rule: "AlertRule") -> None:
        notifier.send(
            Notification(
                topic=topic,
                title=f"Alert: {rule.name}",
                message=message,
            )
        )
    return action
