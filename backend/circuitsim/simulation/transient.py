"""
Analytical RC transient model.

No matrix solve — a voltage source charging a capacitor through a resistor
has the closed form

    Vc(t) = V · (1 − e^(−t/RC))
    Vr(t) = V − Vc(t)
    I(t)  = Vr(t) / R
    P(t)  = V · I(t)

The temperature proxy is a linear function of delivered power. ``t`` is
always the session's cumulative simulated time in seconds.
"""

from __future__ import annotations

import math
from collections import deque
from dataclasses import dataclass

from circuitsim.circuit.graph import CircuitGraph
from circuitsim.circuit.registry import ComponentKind

BASELINE_TEMPERATURE_C = 25.0
TEMPERATURE_COEFFICIENT = 10.0  # °C per W


@dataclass(frozen=True)
class RCNetwork:
    source_id: str
    resistor_id: str
    capacitor_id: str


@dataclass(frozen=True)
class RCState:
    source_voltage: float
    capacitor_voltage: float
    resistor_voltage: float
    current: float
    power: float
    temperature: float
    time_constant: float


def _finite(value, default: float = 0.0) -> float:
    try:
        value = float(value)
    except (TypeError, ValueError):
        return default
    return value if math.isfinite(value) else default


def rc_charge(
    source_voltage: float,
    resistance: float,
    capacitance: float,
    t: float,
) -> RCState:
    """Evaluate the charging transient at time ``t`` (seconds).

    A non-positive or non-finite R or C has no meaningful time constant;
    the network is then treated as charged instantly (Vc = V, no current)
    instead of letting NaN/Infinity leak into the reported state.
    """
    v = _finite(source_voltage)
    r = _finite(resistance)
    c = _finite(capacitance)
    # t = +inf means long after charging; NaN or negative t means t = 0
    t = math.inf if t == math.inf else max(0.0, _finite(t))
    tau = r * c

    if r <= 0 or c <= 0 or not math.isfinite(tau) or tau <= 0:
        vc, vr, current, tau = v, 0.0, 0.0, 0.0
    else:
        vc = v * (1.0 - math.exp(-t / tau))
        vr = v - vc
        current = vr / r

    power = v * current
    return RCState(
        source_voltage=v,
        capacitor_voltage=vc,
        resistor_voltage=vr,
        current=current,
        power=power,
        temperature=BASELINE_TEMPERATURE_C + TEMPERATURE_COEFFICIENT * power,
        time_constant=tau,
    )


def find_rc_networks(graph: CircuitGraph) -> list[RCNetwork]:
    """Pair each voltage source with the first resistor and capacitor
    reachable from it.

    Sources are visited in insertion order; a resistor or capacitor is
    claimed by at most one source. The walk is breadth-first over a
    visited set, so loops in the wiring are harmless.
    """
    position = {c.id: i for i, c in enumerate(graph)}
    claimed: set[str] = set()
    networks: list[RCNetwork] = []

    for source in graph:
        if source.kind != ComponentKind.VOLTAGE_SOURCE:
            continue

        seen = {source.id}
        queue = deque([source.id])
        while queue:
            current = queue.popleft()
            for peer in graph.neighbors(current):
                if peer.component_id not in seen:
                    seen.add(peer.component_id)
                    queue.append(peer.component_id)

        reachable = sorted(seen - claimed, key=position.__getitem__)
        resistor = next(
            (cid for cid in reachable
             if graph.component(cid).kind == ComponentKind.RESISTOR),
            None,
        )
        capacitor = next(
            (cid for cid in reachable
             if graph.component(cid).kind == ComponentKind.CAPACITOR),
            None,
        )
        if resistor is None or capacitor is None:
            continue

        claimed.update((resistor, capacitor))
        networks.append(RCNetwork(source.id, resistor, capacitor))

    return networks
