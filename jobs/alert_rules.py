"""Reglas de alerta por defecto: batería y estado del device."""

from __future__ import annotations

import logging

from smc_alerting import (
    AlertingEngine,
    AlertRule,
    Metric,
    log_action,
    multi_action,
    notify_action,
    threshold_equals,
)
from smc_alerting.actions import Notifier
from smc_api.models import DEVICE_STATE_OFFLINE, DEVICE_STATE_ONLINE
from smc_api.snapshots import DEVICE_STATE_METRIC_NAME

logger = logging.getLogger(__name__)

BATTERY_LOW_THRESHOLD = 15.0
BATTERY_CRITICAL_THRESHOLD = 10.0


def register_default_rules(
    engine: AlertingEngine,
    notifier: Notifier,
    topic: str,
    battery_sensor_name: str,
) -> None:
    engine.add_rule(AlertRule(
        id="battery_ok",
        name="Battery Level OK",
        metric_name=battery_sensor_name,
        condition=lambda m: m.value >= BATTERY_LOW_THRESHOLD,
        action=log_action(logger),
    ))

    engine.add_rule(AlertRule(
        id="battery_low",
        name="Battery Level Low",
        metric_name=battery_sensor_name,
        condition=_battery_low,
        action=multi_action(
            log_action(logger),
            notify_action(notifier, topic, "Battery level is low"),
        ),
    ))

    engine.add_rule(AlertRule(
        id="battery_critical_low",
        name="Battery Level Critically Low",
        metric_name=battery_sensor_name,
        condition=lambda m: m.value < BATTERY_CRITICAL_THRESHOLD,
        action=multi_action(
            log_action(logger),
            notify_action(notifier, topic, "Battery level is critically low"),
        ),
    ))

    engine.add_rule(AlertRule(
        id="device_online",
        name="Device Online",
        metric_name=DEVICE_STATE_METRIC_NAME,
        condition=threshold_equals(DEVICE_STATE_ONLINE),
        action=log_action(logger),
    ))

    engine.add_rule(AlertRule(
        id="device_offline",
        name="Device Offline",
        metric_name=DEVICE_STATE_METRIC_NAME,
        condition=threshold_equals(DEVICE_STATE_OFFLINE),
        action=multi_action(
            log_action(logger),
            notify_action(notifier, topic, "Device is offline"),
        ),
    ))


def _battery_low(metric: Metric) -> bool:
    return BATTERY_CRITICAL_THRESHOLD <= metric.value < BATTERY_LOW_THRESHOLD
