"""Component Registry — static catalog of every component kind.

Each kind maps to a ComponentSpec describing its pins (name, electrical
role, whether it can drive a digital level), default properties and, for
sensor-like inputs, the default reading and its bounds.

The catalog is a closed enumeration: adding a kind means adding a
ComponentKind member AND an entry in _CATALOG, which the import-time
completeness check below enforces.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping

from circuitsim.errors import UnknownKindError


class ComponentKind(str, Enum):
    ARDUINO_UNO = "arduino-uno"
    ESP32 = "esp32"
    ESP8266 = "esp8266"
    LED = "led"
    RGB_LED = "rgb-led"
    BUZZER = "buzzer"
    DC_MOTOR = "dc-motor"
    SERVO_MOTOR = "servo-motor"
    PUSH_BUTTON = "push-button"
    TEMPERATURE_SENSOR = "temperature-sensor"
    PHOTORESISTOR = "photoresistor"
    POTENTIOMETER = "potentiometer"
    ULTRASONIC_SENSOR = "ultrasonic-sensor"
    MOTION_SENSOR = "motion-sensor"
    RESISTOR = "resistor"
    CAPACITOR = "capacitor"
    VOLTAGE_SOURCE = "voltage-source"


class ComponentCategory(str, Enum):
    MICROCONTROLLER = "microcontroller"
    OUTPUT = "output"
    INPUT = "input"
    SENSOR = "sensor"
    PASSIVE = "passive"
    SOURCE = "source"


class PinRole(str, Enum):
    POWER = "power"
    GROUND = "ground"
    DIGITAL = "digital"
    ANALOG = "analog"
    PWM = "pwm"
    SIGNAL = "signal"


@dataclass(frozen=True)
class PinSpec:
    name: str
    role: PinRole
    driver: bool = False


@dataclass(frozen=True)
class SensorSpec:
    default: float
    min_value: float
    max_value: float
    unit: str = ""


@dataclass(frozen=True)
class ComponentSpec:
    kind: ComponentKind
    category: ComponentCategory
    pins: tuple[PinSpec, ...]
    defaults: Mapping[str, object] = field(default_factory=dict)
    sensor: SensorSpec | None = None
    digital_pin_count: int = 0

    def pin(self, name: str) -> PinSpec | None:
        for p in self.pins:
            if p.name == name:
                return p
        return None

    def default_properties(self) -> dict:
        """Fresh mutable copy of the defaults, including sensor bounds."""
        props = dict(self.defaults)
        if self.sensor is not None:
            props.setdefault("value", self.sensor.default)
            props.setdefault("min_value", self.sensor.min_value)
            props.setdefault("max_value", self.sensor.max_value)
            props.setdefault("unit", self.sensor.unit)
        return props

    @property
    def is_power_capable(self) -> bool:
        return self.category in (
            ComponentCategory.MICROCONTROLLER,
            ComponentCategory.SOURCE,
        )

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "category": self.category.value,
            "pins": [
                {"name": p.name, "role": p.role.value, "driver": p.driver}
                for p in self.pins
            ],
            "defaults": self.default_properties(),
            "digital_pin_count": self.digital_pin_count,
        }


# ─── Pin layout helpers ───


def _board_pins(
    supply: str,
    digital: int,
    pwm: frozenset[int],
    analog: int,
) -> tuple[PinSpec, ...]:
    pins = [PinSpec(supply, PinRole.POWER), PinSpec("GND", PinRole.GROUND)]
    for n in range(digital):
        role = PinRole.PWM if n in pwm else PinRole.DIGITAL
        pins.append(PinSpec(f"D{n}", role, driver=True))
    pins.extend(PinSpec(f"A{n}", PinRole.ANALOG) for n in range(analog))
    return tuple(pins)


def _two_terminal(
    first: str = "P1",
    second: str = "P2",
    second_role: PinRole = PinRole.SIGNAL,
) -> tuple[PinSpec, ...]:
    return (PinSpec(first, PinRole.SIGNAL), PinSpec(second, second_role))


def _sensor_pins(*outputs: str, role: PinRole = PinRole.ANALOG) -> tuple[PinSpec, ...]:
    return (
        PinSpec("VCC", PinRole.POWER),
        PinSpec("GND", PinRole.GROUND),
        *(PinSpec(name, role) for name in outputs),
    )


# ═══════════════════════════════════════════════════════════
# Catalog
# ═══════════════════════════════════════════════════════════

_CATALOG: dict[ComponentKind, ComponentSpec] = {
    # Microcontrollers
    ComponentKind.ARDUINO_UNO: ComponentSpec(
        kind=ComponentKind.ARDUINO_UNO,
        category=ComponentCategory.MICROCONTROLLER,
        pins=_board_pins("5V", 14, frozenset({3, 5, 6, 9, 10, 11}), 6),
        defaults=MappingProxyType(
            {
                "operating_voltage": 5.0,
                "current_draw_ma": 50.0,
                "memory_total": 2048,
                "clock_mhz": 16,
            }
        ),
        digital_pin_count=14,
    ),
    ComponentKind.ESP32: ComponentSpec(
        kind=ComponentKind.ESP32,
        category=ComponentCategory.MICROCONTROLLER,
        pins=_board_pins("3V3", 16, frozenset(range(16)), 6),
        defaults=MappingProxyType(
            {
                "operating_voltage": 3.3,
                "current_draw_ma": 80.0,
                "memory_total": 4096,
                "clock_mhz": 240,
            }
        ),
        digital_pin_count=16,
    ),
    ComponentKind.ESP8266: ComponentSpec(
        kind=ComponentKind.ESP8266,
        category=ComponentCategory.MICROCONTROLLER,
        pins=_board_pins(
            "3V3", 17, frozenset({0, 2, 4, 5, 12, 13, 14, 15, 16}), 1
        ),
        defaults=MappingProxyType(
            {
                "operating_voltage": 3.3,
                "current_draw_ma": 80.0,
                "memory_total": 4096,
                "clock_mhz": 80,
            }
        ),
        digital_pin_count=17,
    ),
    # Outputs
    ComponentKind.LED: ComponentSpec(
        kind=ComponentKind.LED,
        category=ComponentCategory.OUTPUT,
        pins=_two_terminal("anode", "cathode", PinRole.GROUND),
        defaults=MappingProxyType(
            {"forward_voltage": 2.0, "current_draw_ma": 20.0, "color": "green"}
        ),
    ),
    ComponentKind.RGB_LED: ComponentSpec(
        kind=ComponentKind.RGB_LED,
        category=ComponentCategory.OUTPUT,
        pins=(
            PinSpec("red", PinRole.SIGNAL),
            PinSpec("green", PinRole.SIGNAL),
            PinSpec("blue", PinRole.SIGNAL),
            PinSpec("cathode", PinRole.GROUND),
        ),
        defaults=MappingProxyType(
            {"forward_voltage": 2.0, "current_draw_ma": 60.0}
        ),
    ),
    ComponentKind.BUZZER: ComponentSpec(
        kind=ComponentKind.BUZZER,
        category=ComponentCategory.OUTPUT,
        pins=_two_terminal("positive", "negative", PinRole.GROUND),
        defaults=MappingProxyType(
            {"operating_voltage": 5.0, "current_draw_ma": 30.0, "tone_hz": 1000}
        ),
    ),
    ComponentKind.DC_MOTOR: ComponentSpec(
        kind=ComponentKind.DC_MOTOR,
        category=ComponentCategory.OUTPUT,
        pins=_two_terminal("positive", "negative", PinRole.GROUND),
        defaults=MappingProxyType(
            {"operating_voltage": 5.0, "current_draw_ma": 200.0, "rpm": 6000}
        ),
    ),
    ComponentKind.SERVO_MOTOR: ComponentSpec(
        kind=ComponentKind.SERVO_MOTOR,
        category=ComponentCategory.OUTPUT,
        pins=(
            PinSpec("signal", PinRole.SIGNAL),
            PinSpec("VCC", PinRole.POWER),
            PinSpec("GND", PinRole.GROUND),
        ),
        defaults=MappingProxyType(
            {
                "operating_voltage": 5.0,
                "current_draw_ma": 500.0,  # stall current
                "angle": 90.0,
                "pwm_hz": 490,
            }
        ),
    ),
    # Inputs
    ComponentKind.PUSH_BUTTON: ComponentSpec(
        kind=ComponentKind.PUSH_BUTTON,
        category=ComponentCategory.INPUT,
        pins=(
            PinSpec("signal", PinRole.DIGITAL, driver=True),
            PinSpec("VCC", PinRole.POWER),
            PinSpec("GND", PinRole.GROUND),
        ),
        defaults=MappingProxyType({"operating_voltage": 5.0}),
    ),
    # Sensors
    ComponentKind.TEMPERATURE_SENSOR: ComponentSpec(
        kind=ComponentKind.TEMPERATURE_SENSOR,
        category=ComponentCategory.SENSOR,
        pins=_sensor_pins("OUT"),
        defaults=MappingProxyType(
            {"operating_voltage": 5.0, "current_draw_ma": 1.0}
        ),
        sensor=SensorSpec(default=25.0, min_value=-40.0, max_value=125.0, unit="°C"),
    ),
    ComponentKind.PHOTORESISTOR: ComponentSpec(
        kind=ComponentKind.PHOTORESISTOR,
        category=ComponentCategory.SENSOR,
        pins=_sensor_pins("OUT"),
        defaults=MappingProxyType(
            {"operating_voltage": 5.0, "current_draw_ma": 0.5}
        ),
        sensor=SensorSpec(default=512.0, min_value=0.0, max_value=1023.0),
    ),
    ComponentKind.POTENTIOMETER: ComponentSpec(
        kind=ComponentKind.POTENTIOMETER,
        category=ComponentCategory.SENSOR,
        pins=_sensor_pins("WIPER"),
        defaults=MappingProxyType(
            {
                "operating_voltage": 5.0,
                "current_draw_ma": 0.1,
                "resistance": 10000.0,
            }
        ),
        sensor=SensorSpec(default=512.0, min_value=0.0, max_value=1023.0),
    ),
    ComponentKind.ULTRASONIC_SENSOR: ComponentSpec(
        kind=ComponentKind.ULTRASONIC_SENSOR,
        category=ComponentCategory.SENSOR,
        pins=_sensor_pins("TRIG", "ECHO", role=PinRole.DIGITAL),
        defaults=MappingProxyType(
            {"operating_voltage": 5.0, "current_draw_ma": 15.0}
        ),
        sensor=SensorSpec(default=100.0, min_value=2.0, max_value=400.0, unit="cm"),
    ),
    ComponentKind.MOTION_SENSOR: ComponentSpec(
        kind=ComponentKind.MOTION_SENSOR,
        category=ComponentCategory.SENSOR,
        pins=_sensor_pins("OUT", role=PinRole.DIGITAL),
        defaults=MappingProxyType(
            {"operating_voltage": 5.0, "current_draw_ma": 50.0}
        ),
        # 1 while motion is detected
        sensor=SensorSpec(default=0.0, min_value=0.0, max_value=1.0),
    ),
    # Passive / analog elements
    ComponentKind.RESISTOR: ComponentSpec(
        kind=ComponentKind.RESISTOR,
        category=ComponentCategory.PASSIVE,
        pins=_two_terminal(),
        defaults=MappingProxyType({"resistance": 1000.0, "power_rating": 0.25}),
    ),
    ComponentKind.CAPACITOR: ComponentSpec(
        kind=ComponentKind.CAPACITOR,
        category=ComponentCategory.PASSIVE,
        pins=_two_terminal(),
        defaults=MappingProxyType({"capacitance": 1e-6, "voltage_rating": 16.0}),
    ),
    ComponentKind.VOLTAGE_SOURCE: ComponentSpec(
        kind=ComponentKind.VOLTAGE_SOURCE,
        category=ComponentCategory.SOURCE,
        pins=(
            PinSpec("positive", PinRole.POWER),
            PinSpec("negative", PinRole.GROUND),
        ),
        defaults=MappingProxyType({"voltage": 5.0}),
    ),
}

_missing = set(ComponentKind) - set(_CATALOG)
if _missing:
    raise RuntimeError(f"Registry incomplete, no spec for: {sorted(_missing)}")


def lookup(kind: ComponentKind | str) -> ComponentSpec:
    """Return the spec for ``kind`` (enum member or its wire string)."""
    try:
        key = ComponentKind(kind)
    except ValueError:
        raise UnknownKindError(f"Unknown component kind '{kind}'") from None
    return _CATALOG[key]


def catalog() -> list[ComponentSpec]:
    """Every registered spec, in enum declaration order."""
    return [_CATALOG[k] for k in ComponentKind]
