"""Sensor display name -> canonical metric name.

Different kit firmwares report the same physical quantity under different
display names ("Sensirion SHT31 - Temperature", "SHT31 - Temperature", ...).
The mapping folds them into one metric name so dashboards and alerts do not
depend on the firmware version.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Mapping, Optional, Tuple

from common.errors import ConfigurationError
from common.rwlock import ReadWriteLock

logger = logging.getLogger(__name__)

GENERIC_SENSOR_METRIC = "value"


@dataclass(frozen=True)
class MetricMappingItem:
    metric: str
    category: str

    def metric_name(self) -> str:
        return f"{self.category}_{self.metric}"


class SensorMetricMapping:
    """Thread-safe lookup table, written at startup and read on every cycle."""

    def __init__(self) -> None:
        self._items: Dict[str, MetricMappingItem] = {}
        self._lock = ReadWriteLock()

    def add(self, sensor_name: str, item: MetricMappingItem) -> None:
        with self._lock.write_locked():
            self._items[sensor_name] = item

    def get(self, sensor_name: str) -> Tuple[Optional[MetricMappingItem], bool]:
        with self._lock.read_locked():
            item = self._items.get(sensor_name)
        return item, item is not None

    def __len__(self) -> int:
        with self._lock.read_locked():
            return len(self._items)

    def update_from_dict(self, raw: Mapping[str, Mapping[str, str]]) -> None:
        """Add entries shaped like {"Sensor name": {"metric": ..., "category": ...}}."""
        for sensor_name, entry in raw.items():
            try:
                item = MetricMappingItem(metric=entry["metric"], category=entry["category"])
            except (KeyError, TypeError) as e:
                raise ConfigurationError(
                    f"invalid sensor mapping entry for '{sensor_name}': {entry!r}"
                ) from e
            self.add(sensor_name, item)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Mapping[str, str]]) -> "SensorMetricMapping":
        mapping = cls()
        mapping.update_from_dict(raw)
        return mapping


# Names as reported by the Smart Citizen API for SCK 2.x / 2.1 / 2.3 kits.
DEFAULT_SENSOR_METRICS: Dict[str, Dict[str, str]] = {
    "Battery SCK": {"metric": "battery_percent", "category": "power"},
    "Battery SCK 1.1": {"metric": "battery_percent", "category": "power"},
    "Sensirion SHT31 - Temperature": {"metric": "temperature_celsius", "category": "environment"},
    "SHT31 - Temperature": {"metric": "temperature_celsius", "category": "environment"},
    "Sensirion SHT35 - Temperature": {"metric": "temperature_celsius", "category": "environment"},
    "Sensirion SHT31 - Humidity": {"metric": "humidity_percent", "category": "environment"},
    "SHT31 - Humidity": {"metric": "humidity_percent", "category": "environment"},
    "Sensirion SHT35 - Humidity": {"metric": "humidity_percent", "category": "environment"},
    "MPL3115A2 - Barometric Pressure": {"metric": "pressure_kpa", "category": "environment"},
    "NXP MPL3115A2 - Barometric Pressure": {"metric": "pressure_kpa", "category": "environment"},
    "BH1730FVC - Light": {"metric": "light_lux", "category": "environment"},
    "ROHM BH1730FVC": {"metric": "light_lux", "category": "environment"},
    "ICS43432 - Noise": {"metric": "noise_dba", "category": "environment"},
    "TDK ICS43432 - Noise": {"metric": "noise_dba", "category": "environment"},
    "Plantower PMS5003 - PM1.0": {"metric": "pm1", "category": "air_quality"},
    "PMS5003 - PM1.0": {"metric": "pm1", "category": "air_quality"},
    "Plantower PMS5003 - PM2.5": {"metric": "pm25", "category": "air_quality"},
    "PMS5003 - PM2.5": {"metric": "pm25", "category": "air_quality"},
    "Plantower PMS5003 - PM10": {"metric": "pm10", "category": "air_quality"},
    "PMS5003 - PM10": {"metric": "pm10", "category": "air_quality"},
    "AMS CCS811 - eCO2": {"metric": "eco2_ppm", "category": "air_quality"},
    "CCS811 - eCO2": {"metric": "eco2_ppm", "category": "air_quality"},
    "AMS CCS811 - TVOC": {"metric": "tvoc_ppb", "category": "air_quality"},
    "CCS811 - TVOC": {"metric": "tvoc_ppb", "category": "air_quality"},
}


def default_sensor_mapping() -> SensorMetricMapping:
    return SensorMetricMapping.from_dict(DEFAULT_SENSOR_METRICS)
