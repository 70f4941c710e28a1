"""Tests de converters y del despacho por RecordKind."""

from unittest.mock import MagicMock

import pytest

from common.errors import ConversionError
from smc_api.converters import DeviceSensorConverter, DeviceStateConverter
from smc_api.exporter import build_converter
from smc_api.models import DeviceDetail, DeviceSensor, RecordKind, device_state_value
from smc_metrics import CombinedConverter, MetricMappingItem, MetricRegistry, SensorMetricMapping
from smc_metrics.sensor_mapping import default_sensor_mapping


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def registry() -> MetricRegistry:
    return MetricRegistry("smartcitizen")


@pytest.fixture
def battery_sensor() -> DeviceSensor:
    return DeviceSensor(
        id=10,
        uuid="s-10",
        name="Battery SCK",
        description="Custom Circuit",
        unit="%",
        value=12.3,
        updated_at="2024-05-01T10:00:00Z",
        device_uuid="d-1",
    )


@pytest.fixture
def device(battery_sensor) -> DeviceDetail:
    return DeviceDetail.model_validate({
        "id": 1,
        "uuid": "d-1",
        "name": "Balcony",
        "description": "Kit on the balcony",
        "state": "has_published",
        "data": {"sensors": [battery_sensor.model_dump()]},
    })


def _fake_converter(name, kind, calls):
    conv = MagicMock()
    conv.name = name
    conv.match.side_effect = lambda k: k == kind
    conv.convert.side_effect = lambda registry, value: calls.append(name)
    return conv


BATTERY_LABELS = {"device_uuid": "d-1", "id": "10", "uuid": "s-10", "name": "Battery SCK"}


# =============================================================================
# DESPACHO
# =============================================================================

class TestCombinedConverterDispatch:
    """Solo se invocan los converters que aceptan el kind, en orden."""

    def test_matching_subset_in_registration_order(self, registry, battery_sensor):
        calls = []
        combined = CombinedConverter()
        combined.add(
            _fake_converter("a", RecordKind.DEVICE_SENSOR, calls),
            _fake_converter("b", RecordKind.DEVICE_DETAIL, calls),
            _fake_converter("c", RecordKind.DEVICE_SENSOR, calls),
        )

        combined.convert(registry, battery_sensor)

        assert calls == ["a", "c"]

    def test_unmatched_kind_is_noop(self, registry, battery_sensor):
        calls = []
        combined = CombinedConverter()
        combined.add(_fake_converter("a", RecordKind.DEVICE_DETAIL, calls))

        combined.convert(registry, battery_sensor)

        assert calls == []

    def test_first_error_stops_remaining(self, registry, battery_sensor):
        calls = []
        failing = _fake_converter("a", RecordKind.DEVICE_SENSOR, calls)
        failing.convert.side_effect = ConversionError("boom")
        combined = CombinedConverter()
        combined.add(failing, _fake_converter("b", RecordKind.DEVICE_SENSOR, calls))

        with pytest.raises(ConversionError):
            combined.convert(registry, battery_sensor)
        assert calls == []


# =============================================================================
# CONVERTERS SMART CITIZEN
# =============================================================================

class TestSensorConverter:
    """Valores de sensores -> gauges normalizados."""

    def test_last_write_wins(self, registry, battery_sensor):
        converter = build_converter(default_sensor_mapping())

        converter.convert(registry, battery_sensor)
        converter.convert(registry, battery_sensor.model_copy(update={"value": 48.0}))

        value = registry.collector_registry.get_sample_value(
            "smartcitizen_sensor_power_battery_percent", BATTERY_LABELS
        )
        assert value == 48.0

    def test_unmapped_sensor_uses_generic_metric(self, registry):
        converter = DeviceSensorConverter("sensor", SensorMetricMapping())
        sensor = DeviceSensor(id=3, uuid="s-3", name="Mystery", value=7.0, device_uuid="d-1")

        converter.convert(registry, sensor)

        assert registry.collector_registry.get_sample_value(
            "smartcitizen_sensor_value",
            {"device_uuid": "d-1", "id": "3", "uuid": "s-3", "name": "Mystery"},
        ) == 7.0

    def test_firmware_variants_share_metric_name(self):
        converter = DeviceSensorConverter("sensor", default_sensor_mapping())
        assert (
            converter.metric_name_for("Sensirion SHT31 - Temperature")
            == converter.metric_name_for("SHT31 - Temperature")
            == "sensor_environment_temperature_celsius"
        )

    def test_sensor_without_value_raises(self, registry):
        converter = DeviceSensorConverter("sensor", SensorMetricMapping())
        with pytest.raises(ConversionError):
            converter.convert(registry, DeviceSensor(id=1, name="Noise", value=None))

    def test_wrong_record_type_raises(self, registry, device):
        converter = DeviceSensorConverter("sensor", SensorMetricMapping())
        with pytest.raises(ConversionError):
            converter.convert(registry, device)

    def test_device_converters(self, registry, device):
        build_converter(default_sensor_mapping()).convert(registry, device)

        samples = registry.collector_registry
        assert samples.get_sample_value(
            "smartcitizen_device_state", {"uuid": "d-1", "name": "Balcony"}
        ) == 1.0
        assert samples.get_sample_value(
            "smartcitizen_device_info",
            {"uuid": "d-1", "name": "Balcony", "description": "Kit on the balcony"},
        ) == 1.0


# =============================================================================
# MAPPING Y ESTADO
# =============================================================================

class TestSensorMapping:

    def test_get_missing(self):
        item, found = SensorMetricMapping().get("nope")
        assert item is None and found is False

    def test_add_and_get(self):
        mapping = SensorMetricMapping()
        mapping.add("CO2", MetricMappingItem(metric="co2_ppm", category="air_quality"))
        item, found = mapping.get("CO2")
        assert found
        assert item.metric_name() == "air_quality_co2_ppm"


class TestDeviceState:

    @pytest.mark.parametrize("state,expected", [
        ("online", 1.0),
        ("has_published", 1.0),
        ("offline", 0.0),
        ("sleeping", 0.5),
        ("never_published", -1.0),
        ("", -1.0),
    ])
    def test_state_values(self, state, expected):
        assert device_state_value(state) == expected

    def test_state_converter_unknown(self, registry):
        device = DeviceDetail(id=2, uuid="d-2", name="Roof", state="weird")
        DeviceStateConverter().convert(registry, device)
        assert registry.collector_registry.get_sample_value(
            "smartcitizen_device_state", {"uuid": "d-2", "name": "Roof"}
        ) == -1.0
