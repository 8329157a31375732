"""Simulation Engine — steps one circuit snapshot through simulated time.

Lifecycle: idle → running ⇄ paused → stopped (terminal).

Every step makes a single pass over the components in insertion order:

  * digital propagation for outputs (LED, RGB LED, buzzer, motor, servo):
    active iff a wire into them is driven by a peer driver pin;
  * per-pin state for microcontroller boards;
  * the RC transient for every voltage source / resistor / capacitor
    network found at start;
  * sensor read-through, with an ADC code for sensors wired to a board;
  * a power-budget health check.

The pass builds fresh output maps and only commits them once it has
finished, so a step that runs out of budget leaves no partial state.
"""

from __future__ import annotations

import copy
import logging
import math
import time
from dataclasses import dataclass
from typing import Callable

from circuitsim.analysis.engine import analyze
from circuitsim.circuit.graph import CircuitGraph, Component
from circuitsim.circuit.registry import ComponentCategory, ComponentKind, catalog
from circuitsim.errors import (
    InvalidGraphError,
    InvalidSensorOverrideError,
    InvalidSensorValueError,
    InvalidStateTransitionError,
    InvalidTimeStepError,
    NotRunningError,
    StepTimeoutError,
    UnknownComponentError,
)
from circuitsim.schemas.analysis import (
    AnalysisReport,
    Issue,
    IssueCode,
    IssuePriority,
    IssueSeverity,
)
from circuitsim.schemas.simulation import (
    LogEntry,
    SensorReading,
    SimulationConfig,
    SimulationStateDelta,
    SimulationStatus,
)
from circuitsim.simulation.logbuffer import LogRing
from circuitsim.simulation.transient import RCNetwork, find_rc_networks, rc_charge

logger = logging.getLogger(__name__)

LED_FULL_SCALE = 255
LED_ON_COLOR = "#00ff00"
LED_OFF_COLOR = "#333333"
RGB_CHANNELS = ("red", "green", "blue")
SERVO_MAX_ANGLE = 180.0
ADC_MAX = 1023
MEMORY_BASE_KB = 512
MEMORY_PER_PIN_KB = 64
POWER_OVERLOAD_MA = 500.0
POWER_ADVISORY_MA = 300.0


@dataclass
class SensorState:
    value: float
    min_value: float
    max_value: float
    unit: str = ""

    def clamp(self, value: float) -> float:
        return max(self.min_value, min(self.max_value, value))


def _float_prop(component: Component, key: str, default: float = 0.0) -> float:
    try:
        value = float(component.properties.get(key, default))
    except (TypeError, ValueError):
        return default
    return value if math.isfinite(value) else default


def _pin_number(pin: str) -> int | None:
    if pin.startswith("D") and pin[1:].isdigit():
        return int(pin[1:])
    return None


# ─── Actuator renderers (one per OUTPUT kind) ───
#
# Each receives the component and the set of its own pins that a peer drives.


def _render_led(component: Component, driven: frozenset[str]) -> dict:
    active = bool(driven)
    brightness = LED_FULL_SCALE if active else 0
    return {
        "type": component.kind.value,
        "active": active,
        "brightness": brightness,
        "color": LED_ON_COLOR if brightness > 0 else LED_OFF_COLOR,
    }


def _render_rgb_led(component: Component, driven: frozenset[str]) -> dict:
    channels = {c: LED_FULL_SCALE if c in driven else 0 for c in RGB_CHANNELS}
    active = any(channels.values())
    return {
        "type": component.kind.value,
        "active": active,
        **channels,
        "color": (
            "#{red:02x}{green:02x}{blue:02x}".format(**channels)
            if active
            else LED_OFF_COLOR
        ),
    }


def _render_buzzer(component: Component, driven: frozenset[str]) -> dict:
    active = bool(driven)
    return {
        "type": component.kind.value,
        "active": active,
        "frequency": _float_prop(component, "tone_hz", 1000.0) if active else 0.0,
    }


def _render_motor(component: Component, driven: frozenset[str]) -> dict:
    active = bool(driven)
    return {
        "type": component.kind.value,
        "active": active,
        "rpm": _float_prop(component, "rpm") if active else 0.0,
    }


def _render_servo(component: Component, driven: frozenset[str]) -> dict:
    active = "signal" in driven
    angle = _float_prop(component, "angle", SERVO_MAX_ANGLE / 2)
    return {
        "type": component.kind.value,
        "active": active,
        "angle": max(0.0, min(SERVO_MAX_ANGLE, angle)),
        "frequency": _float_prop(component, "pwm_hz", 490.0) if active else 0.0,
    }


_ACTUATORS: dict[ComponentKind, Callable[[Component, frozenset[str]], dict]] = {
    ComponentKind.LED: _render_led,
    ComponentKind.RGB_LED: _render_rgb_led,
    ComponentKind.BUZZER: _render_buzzer,
    ComponentKind.DC_MOTOR: _render_motor,
    ComponentKind.SERVO_MOTOR: _render_servo,
}

_output_kinds = {s.kind for s in catalog() if s.category == ComponentCategory.OUTPUT}
if _output_kinds != set(_ACTUATORS):
    raise RuntimeError(
        f"Actuator renderers out of sync with registry: "
        f"{sorted(k.value for k in _output_kinds ^ set(_ACTUATORS))}"
    )


class SimulationEngine:
    def __init__(
        self,
        config: SimulationConfig | None = None,
        log_capacity: int = 50,
        power_overload_ma: float = POWER_OVERLOAD_MA,
        power_advisory_ma: float = POWER_ADVISORY_MA,
    ):
        self.config = config or SimulationConfig()
        self.power_overload_ma = power_overload_ma
        self.power_advisory_ma = power_advisory_ma
        self.status = SimulationStatus.IDLE
        self.elapsed_ms = 0.0
        self.step_count = 0
        self.analysis: AnalysisReport | None = None
        self.outputs: dict[str, dict] = {}
        self.sensors: dict[str, SensorState] = {}
        self.log = LogRing(log_capacity)
        self._graph: CircuitGraph | None = None
        self._rc_networks: list[RCNetwork] = []
        self._adc_linked: set[str] = set()

    @property
    def graph(self) -> CircuitGraph | None:
        return self._graph

    # ─── Lifecycle ───

    def start(
        self,
        graph: CircuitGraph,
        sensor_overrides: dict[str, float] | None = None,
    ) -> AnalysisReport:
        """Bind a snapshot of ``graph`` and begin running."""
        if self.status != SimulationStatus.IDLE:
            raise InvalidStateTransitionError(
                f"Cannot start a simulation that is {self.status.value}"
            )
        if not isinstance(graph, CircuitGraph):
            raise InvalidGraphError("start() requires a CircuitGraph")

        snapshot = graph.copy()
        sensors = self._init_sensors(snapshot)
        overrides = {**self.config.sensor_overrides, **(sensor_overrides or {})}
        for component_id, value in overrides.items():
            state = sensors.get(component_id)
            if state is None:
                raise InvalidSensorOverrideError(
                    f"Sensor override for '{component_id}': not a sensor in this graph"
                )
            state.value = state.clamp(self._check_value(component_id, value))

        self._graph = snapshot
        self.sensors = sensors
        self._rc_networks = find_rc_networks(snapshot)
        self._adc_linked = {
            s for s in sensors
            if any(
                snapshot.component(n.component_id).category
                == ComponentCategory.MICROCONTROLLER
                for n in snapshot.neighbors(s)
            )
        }
        self.analysis = analyze(snapshot)
        self.status = SimulationStatus.RUNNING
        logger.info(
            "Simulation started — components=%d connections=%d rc_networks=%d",
            len(snapshot),
            len(snapshot.connections),
            len(self._rc_networks),
        )
        return self.analysis

    def pause(self) -> None:
        if self.status != SimulationStatus.RUNNING:
            raise InvalidStateTransitionError(
                f"Cannot pause a simulation that is {self.status.value}"
            )
        self.status = SimulationStatus.PAUSED

    def resume(self) -> None:
        if self.status != SimulationStatus.PAUSED:
            raise InvalidStateTransitionError(
                f"Cannot resume a simulation that is {self.status.value}"
            )
        self.status = SimulationStatus.RUNNING

    def stop(self) -> None:
        if self.status == SimulationStatus.STOPPED:
            raise InvalidStateTransitionError("Simulation already stopped")
        self.status = SimulationStatus.STOPPED
        self._graph = None
        self._rc_networks = []
        logger.info(
            "Simulation stopped after %d step(s), %.1f ms simulated",
            self.step_count,
            self.elapsed_ms,
        )

    # ─── Sensors ───

    @staticmethod
    def _init_sensors(graph: CircuitGraph) -> dict[str, SensorState]:
        sensors: dict[str, SensorState] = {}
        for comp in graph:
            spec = comp.spec.sensor
            if spec is None:
                continue
            lo = _float_prop(comp, "min_value", spec.min_value)
            hi = _float_prop(comp, "max_value", spec.max_value)
            if lo > hi:
                lo, hi = hi, lo
            state = SensorState(
                value=spec.default,
                min_value=lo,
                max_value=hi,
                unit=str(comp.properties.get("unit", spec.unit)),
            )
            state.value = state.clamp(_float_prop(comp, "value", spec.default))
            sensors[comp.id] = state
        return sensors

    @staticmethod
    def _check_value(component_id: str, value: float) -> float:
        try:
            value = float(value)
        except (TypeError, ValueError):
            raise InvalidSensorValueError(
                f"Sensor '{component_id}': value {value!r} is not a number"
            ) from None
        if math.isnan(value):
            raise InvalidSensorValueError(f"Sensor '{component_id}': value is NaN")
        return value

    def update_sensors(self, updates: dict[str, float]) -> dict[str, float]:
        """Store several readings, clamped into each sensor's bounds.

        All-or-nothing: every id and value is checked before any write.
        """
        if self.status not in (SimulationStatus.RUNNING, SimulationStatus.PAUSED):
            raise NotRunningError(
                f"Cannot update sensors on a simulation that is {self.status.value}"
            )
        unknown = [cid for cid in updates if cid not in self.sensors]
        if unknown:
            raise UnknownComponentError(
                f"Not sensors in the bound graph: {', '.join(unknown)}"
            )
        checked = {cid: self._check_value(cid, v) for cid, v in updates.items()}

        stored: dict[str, float] = {}
        for cid, value in checked.items():
            state = self.sensors[cid]
            state.value = state.clamp(value)
            stored[cid] = state.value
        return stored

    def update_sensor(self, component_id: str, value: float) -> float:
        """Store one reading, clamped into the sensor's bounds."""
        return self.update_sensors({component_id: value})[component_id]

    def sensor_readings(self) -> dict[str, SensorReading]:
        readings: dict[str, SensorReading] = {}
        for component_id, s in self.sensors.items():
            adc = None
            if component_id in self._adc_linked:
                span = s.max_value - s.min_value
                adc = round((s.value - s.min_value) / span * ADC_MAX) if span > 0 else 0
            readings[component_id] = SensorReading(
                value=s.value,
                min_value=s.min_value,
                max_value=s.max_value,
                unit=s.unit,
                adc_value=adc,
            )
        return readings

    # ─── Stepping ───

    def _driven_pins(self, component: Component) -> frozenset[str]:
        """Pins of ``component`` whose wire is driven by a peer."""
        graph = self._graph
        driven: set[str] = set()
        for conn in graph.connections_of(component.id):
            driver = graph.driver_of(conn)
            if driver is None or driver.component_id == component.id:
                continue
            driven.update(
                end.pin for end in (conn.source, conn.target)
                if end.component_id == component.id
            )
        return frozenset(driven)

    def _board_output(self, board: Component) -> dict:
        graph = self._graph
        pins = {
            str(n): {"mode": "INPUT", "value": 0, "connected": False}
            for n in range(board.spec.digital_pin_count)
        }
        for conn in graph.connections_of(board.id):
            driver = graph.driver_of(conn)
            for end in (conn.source, conn.target):
                if end.component_id != board.id:
                    continue
                n = _pin_number(end.pin)
                if n is None or str(n) not in pins:
                    continue
                if driver == end:
                    pins[str(n)] = {"mode": "OUTPUT", "value": 1, "connected": True}
                else:
                    pins[str(n)] = {
                        "mode": "INPUT",
                        "value": 1 if driver is not None else 0,
                        "connected": True,
                    }

        connected = sum(1 for p in pins.values() if p["connected"])
        total = int(_float_prop(board, "memory_total", 2048))
        return {
            "type": "microcontroller",
            "kind": board.kind.value,
            "status": "running",
            "pins": pins,
            "memory": {
                "used": min(total, MEMORY_BASE_KB + MEMORY_PER_PIN_KB * connected),
                "total": total,
            },
        }

    def _component_output(self, component: Component) -> dict:
        category = component.category
        if category == ComponentCategory.MICROCONTROLLER:
            return self._board_output(component)
        if category == ComponentCategory.OUTPUT:
            return _ACTUATORS[component.kind](component, self._driven_pins(component))
        if category == ComponentCategory.SENSOR:
            return {"type": component.kind.value, "status": "reading"}
        if category in (
            ComponentCategory.INPUT,
            ComponentCategory.PASSIVE,
            ComponentCategory.SOURCE,
        ):
            return {"type": component.kind.value, "status": "idle"}
        raise AssertionError(f"Unhandled component category {category}")

    def _apply_rc(self, outputs: dict[str, dict], t_seconds: float) -> None:
        graph = self._graph
        for net in self._rc_networks:
            source = graph.component(net.source_id)
            resistor = graph.component(net.resistor_id)
            capacitor = graph.component(net.capacitor_id)
            state = rc_charge(
                _float_prop(source, "voltage"),
                _float_prop(resistor, "resistance"),
                _float_prop(capacitor, "capacitance"),
                t_seconds,
            )
            outputs[source.id].update(
                status="active",
                voltage=state.source_voltage,
                current=state.current,
                power=state.power,
            )
            outputs[resistor.id].update(
                status="active",
                voltage=state.resistor_voltage,
                current=state.current,
                temperature=state.temperature,
            )
            outputs[capacitor.id].update(
                status="active",
                voltage=state.capacitor_voltage,
                time_constant=state.time_constant,
            )

    def _power_draw(self, outputs: dict[str, dict]) -> float:
        total = 0.0
        for comp in self._graph:
            if comp.category == ComponentCategory.MICROCONTROLLER or (
                comp.category == ComponentCategory.OUTPUT
                and outputs[comp.id].get("active")
            ):
                total += _float_prop(comp, "current_draw_ma")
        return total

    def _power_issues(self, total_ma: float) -> list[Issue]:
        issues: list[Issue] = []
        if total_ma > self.power_overload_ma:
            issues.append(
                Issue(
                    severity=IssueSeverity.ERROR,
                    code=IssueCode.POWER_OVERLOAD,
                    message=(
                        f"Total current draw ({total_ma:g}mA) exceeds safe "
                        f"limit of {self.power_overload_ma:g}mA"
                    ),
                    suggestion="Power high-draw loads from a separate supply",
                )
            )
        if total_ma > self.power_advisory_ma:
            issues.append(
                Issue(
                    severity=IssueSeverity.RECOMMENDATION,
                    code=IssueCode.REDUCE_POWER,
                    message=(
                        "Consider sleep modes or power management to reduce "
                        "consumption"
                    ),
                    priority=IssuePriority.HIGH,
                )
            )
        return issues

    def step(self, dt_ms: float, deadline: float | None = None) -> SimulationStateDelta:
        """Advance simulated time by ``dt_ms`` (scaled by config speed).

        ``deadline`` is a ``time.monotonic()`` instant; if it passes before
        the pass completes, StepTimeoutError is raised and nothing changes.
        """
        if self.status != SimulationStatus.RUNNING:
            raise NotRunningError(f"Cannot step a simulation that is {self.status.value}")
        try:
            dt_ms = float(dt_ms)
        except (TypeError, ValueError):
            raise InvalidTimeStepError(f"Time step {dt_ms!r} is not a number") from None
        if not math.isfinite(dt_ms) or dt_ms < 0:
            raise InvalidTimeStepError(f"Time step must be finite and >= 0, got {dt_ms}")

        def check_budget() -> None:
            if deadline is not None and time.monotonic() > deadline:
                raise StepTimeoutError(
                    f"Step {self.step_count + 1} exceeded its wall-clock budget"
                )

        elapsed_ms = self.elapsed_ms + dt_ms * self.config.speed
        if not math.isfinite(elapsed_ms):
            raise InvalidTimeStepError(
                f"Time step {dt_ms} overflows the simulation clock"
            )
        outputs: dict[str, dict] = {}
        for comp in self._graph:
            check_budget()
            outputs[comp.id] = self._component_output(comp)
        check_budget()
        self._apply_rc(outputs, elapsed_ms / 1000.0)
        power_ma = self._power_draw(outputs)
        runtime = self._power_issues(power_ma)
        check_budget()

        # commit
        self.elapsed_ms = elapsed_ms
        self.step_count += 1
        self.outputs = outputs
        overloaded = any(i.code == IssueCode.POWER_OVERLOAD for i in runtime)
        self.log.append(
            LogEntry(
                step=self.step_count,
                time_ms=elapsed_ms,
                level="warning" if overloaded else "info",
                message=f"Simulation step {self.step_count} completed",
            )
        )
        logger.debug("Step %d at %.3f ms", self.step_count, elapsed_ms)

        issues = [*self.analysis.issues, *runtime]
        return SimulationStateDelta(
            time=elapsed_ms / 1000.0,
            time_ms=elapsed_ms,
            sensor_values=self.sensor_readings(),
            output_values=copy.deepcopy(outputs),
            power_consumption_ma=power_ma,
            errors=[i for i in issues if i.severity == IssueSeverity.ERROR],
            warnings=[i for i in issues if i.severity == IssueSeverity.WARNING],
            recommendations=[
                i for i in issues if i.severity == IssueSeverity.RECOMMENDATION
            ],
            log_tail=self.log.entries(),
        )
