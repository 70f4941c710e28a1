"""Motor de reglas de alerta.

Las reglas no tienen estado: una regla se dispara en cada ciclo en el que
su condición se cumple, no solo en la transición.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional

from common.rwlock import ReadWriteLock

from .rule import AlertRule, Metric

logger = logging.getLogger(__name__)


class AlertingEngine:
    """Conjunto de reglas indexado por id.

    Uso:
        engine = AlertingEngine()
        engine.add_rule(AlertRule(...))
        engine.evaluate(Metric(name="Battery SCK", value=12.3))

    Un fallo en la condición o la acción de una regla se registra en el log y
    no afecta a las demás reglas ni a las siguientes métricas.
    """

    def __init__(self, log: Optional[logging.Logger] = None):
        self._rules: Dict[str, AlertRule] = {}
        self._lock = ReadWriteLock()
        self._logger = log or logger

    def add_rule(self, rule: AlertRule) -> None:
        """Inserta o reemplaza por id."""
        with self._lock.write_locked():
            self._rules[rule.id] = rule

    def remove_rule(self, rule_id: str) -> None:
        with self._lock.write_locked():
            self._rules.pop(rule_id, None)

    def rules(self) -> List[AlertRule]:
        with self._lock.read_locked():
            return list(self._rules.values())

    def evaluate(self, metric: Metric) -> List[str]:
        """Evalúa la métrica contra todas las reglas.

        Returns:
            ids de las reglas cuya acción se ejecutó sin error
        """
        # Snapshot: condiciones y acciones corren sin el lock tomado.
        rules = self.rules()
        fired: List[str] = []

        for rule in rules:
            if rule.metric_name != metric.name:
                continue

            if not rule.enabled:
                self._logger.debug("Skipping disabled rule rule_id=%s", rule.id)
                continue

            try:
                matched = rule.condition(metric)
            except Exception:
                self._logger.exception(
                    "Rule condition failed rule_id=%s rule_name=%s metric=%s",
                    rule.id, rule.name, metric.name,
                )
                continue

            if not matched:
                self._logger.debug(
                    "Rule condition not met rule_id=%s value=%s", rule.id, metric.value
                )
                continue

            self._logger.info(
                "Rule condition met, executing action rule_id=%s rule_name=%s value=%s",
                rule.id, rule.name, metric.value,
            )
            try:
                rule.action(metric, rule)
            except Exception:
                self._logger.exception(
                    "Failed to execute rule action rule_id=%s rule_name=%s",
                    rule.id, rule.name,
                )
                continue

            fired.append(rule.id)

        return fired

    def evaluate_all(self, metrics: Iterable[Metric]) -> List[str]:
        fired: List[str] = []
        for metric in metrics:
            fired.extend(self.evaluate(metric))
        return fired
