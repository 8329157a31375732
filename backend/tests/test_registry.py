"""Unit tests for the Component Registry."""

import pytest

from circuitsim.circuit.registry import (
    ComponentCategory,
    ComponentKind,
    PinRole,
    catalog,
    lookup,
)
from circuitsim.errors import UnknownKindError


class TestLookup:
    def test_lookup_by_wire_string(self):
        spec = lookup("led")
        assert spec.kind == ComponentKind.LED
        assert spec.category == ComponentCategory.OUTPUT

    def test_lookup_by_enum(self):
        assert lookup(ComponentKind.ESP32).kind == ComponentKind.ESP32

    def test_unknown_kind(self):
        with pytest.raises(UnknownKindError) as exc:
            lookup("flux-capacitor")
        assert exc.value.code == "UnknownKind"

    def test_catalog_covers_every_kind(self):
        kinds = [spec.kind for spec in catalog()]
        assert kinds == list(ComponentKind)
        assert len(kinds) == 17


class TestBoards:
    def test_uno_pin_table(self):
        spec = lookup("arduino-uno")
        assert spec.digital_pin_count == 14
        assert spec.pin("5V").role == PinRole.POWER
        assert spec.pin("GND").role == PinRole.GROUND
        assert spec.pin("D3").role == PinRole.PWM
        assert spec.pin("D4").role == PinRole.DIGITAL
        assert spec.pin("D13").driver is True
        assert spec.pin("A5").role == PinRole.ANALOG
        assert spec.pin("A5").driver is False
        assert spec.pin("D14") is None

    def test_esp_boards_run_at_3v3(self):
        for kind in ("esp32", "esp8266"):
            spec = lookup(kind)
            assert spec.defaults["operating_voltage"] == 3.3
            assert spec.pin("3V3").role == PinRole.POWER

    def test_boards_are_power_capable(self):
        assert lookup("arduino-uno").is_power_capable
        assert lookup("voltage-source").is_power_capable
        assert not lookup("led").is_power_capable


class TestDefaults:
    def test_default_properties_are_fresh_copies(self):
        spec = lookup("resistor")
        props = spec.default_properties()
        props["resistance"] = 1.0
        assert spec.default_properties()["resistance"] == 1000.0

    def test_sensor_defaults_include_bounds(self):
        props = lookup("temperature-sensor").default_properties()
        assert props["min_value"] == -40.0
        assert props["max_value"] == 125.0
        assert props["value"] == 25.0

    def test_button_drives_its_signal_pin(self):
        spec = lookup("push-button")
        assert spec.category == ComponentCategory.INPUT
        assert spec.pin("signal").driver is True

    def test_to_dict_uses_wire_names(self):
        data = lookup("led").to_dict()
        assert data["kind"] == "led"
        assert data["category"] == "output"
        assert {"name": "anode", "role": "signal", "driver": False} in data["pins"]


class TestExtendedLibrary:
    def test_rgb_led_channels(self):
        spec = lookup("rgb-led")
        assert spec.category == ComponentCategory.OUTPUT
        assert [p.name for p in spec.pins] == ["red", "green", "blue", "cathode"]
        assert spec.pin("cathode").role == PinRole.GROUND

    def test_servo_motor(self):
        spec = lookup("servo-motor")
        assert spec.category == ComponentCategory.OUTPUT
        assert spec.defaults["current_draw_ma"] == 500.0
        assert spec.defaults["angle"] == 90.0

    def test_digital_sensors(self):
        sonar = lookup("ultrasonic-sensor")
        assert sonar.pin("TRIG").role == PinRole.DIGITAL
        assert sonar.pin("ECHO").role == PinRole.DIGITAL
        assert (sonar.sensor.min_value, sonar.sensor.max_value) == (2.0, 400.0)
        assert sonar.sensor.unit == "cm"

        pir = lookup("motion-sensor")
        assert pir.pin("OUT").role == PinRole.DIGITAL
        assert pir.pin("OUT").driver is False
        assert (pir.sensor.min_value, pir.sensor.max_value) == (0.0, 1.0)
