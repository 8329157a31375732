"""Structural Analyzer — Deterministic Rule-Based Circuit Checker.

Pure Python. No side effects on the graph. Fully unit-testable.

Inspects a circuit graph and reports:
  1. Missing power source (error)
  2. Missing ground reference (warning)
  3. Unconnected components (warning)
  4. Supply-level mismatch across a wire (warning)
  5. Oversized circuits (recommendation)
  6. Follow-up recommendations for the above

Input:  CircuitGraph
Output: AnalysisReport — issues ordered errors → warnings →
        recommendations, each in component insertion order, plus a score.
"""

from __future__ import annotations

from typing import Callable

from circuitsim.circuit.graph import CircuitGraph, Component
from circuitsim.circuit.registry import ComponentCategory, PinRole
from circuitsim.errors import InvalidGraphError
from circuitsim.schemas.analysis import (
    AnalysisReport,
    Issue,
    IssueCode,
    IssuePriority,
    IssueSeverity,
)

LARGE_CIRCUIT_THRESHOLD = 10
VOLTAGE_TOLERANCE_V = 0.5
ERROR_PENALTY = 20
WARNING_PENALTY = 5

_SEVERITY_RANK = {
    IssueSeverity.ERROR: 0,
    IssueSeverity.WARNING: 1,
    IssueSeverity.RECOMMENDATION: 2,
}


# ─── Internal Helpers ───


def _supply_voltage(component: Component) -> float | None:
    """Operating level of a consumer, or output level of a source."""
    props = component.properties
    key = "voltage" if component.category == ComponentCategory.SOURCE else "operating_voltage"
    value = props.get(key)
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _has_board(graph: CircuitGraph) -> bool:
    return any(c.category == ComponentCategory.MICROCONTROLLER for c in graph)


# ═══════════════════════════════════════════════════════════
# Check 1: Power Source
# ═══════════════════════════════════════════════════════════


def check_power_source(graph: CircuitGraph) -> list[Issue]:
    """A circuit needs a voltage source or a board to be simulated."""
    if any(c.spec.is_power_capable for c in graph):
        return []
    return [
        Issue(
            severity=IssueSeverity.ERROR,
            code=IssueCode.NO_POWER_SOURCE,
            message="No power source found in circuit",
            suggestion="Add a voltage source or a microcontroller board",
        )
    ]


# ═══════════════════════════════════════════════════════════
# Check 2: Ground Reference
# ═══════════════════════════════════════════════════════════


def check_ground(graph: CircuitGraph) -> list[Issue]:
    """Some ground pin must be wired, unless a board supplies the
    reference implicitly."""
    if _has_board(graph):
        return []

    for conn in graph.connections:
        if (
            graph.pin_role(conn.source) == PinRole.GROUND
            or graph.pin_role(conn.target) == PinRole.GROUND
        ):
            return []

    return [
        Issue(
            severity=IssueSeverity.WARNING,
            code=IssueCode.NO_GROUND_CONNECTION,
            message="No ground connection detected",
            suggestion="Wire at least one GND / negative pin into the circuit",
        )
    ]


# ═══════════════════════════════════════════════════════════
# Check 3: Isolated Components
# ═══════════════════════════════════════════════════════════


def check_isolation(graph: CircuitGraph) -> list[Issue]:
    return [
        Issue(
            severity=IssueSeverity.WARNING,
            code=IssueCode.UNCONNECTED,
            message=f"{c.name} is not connected to any other component",
            component_id=c.id,
        )
        for c in graph
        if graph.degree(c.id) == 0
    ]


# ═══════════════════════════════════════════════════════════
# Check 4: Supply-Level Compatibility
# ═══════════════════════════════════════════════════════════


def check_voltage_compatibility(graph: CircuitGraph) -> list[Issue]:
    """Flag wires joining parts whose supply levels differ by more
    than the tolerance."""
    issues: list[Issue] = []
    for conn in graph.connections:
        a = graph.component(conn.source.component_id)
        b = graph.component(conn.target.component_id)
        if a.id == b.id:
            continue
        va, vb = _supply_voltage(a), _supply_voltage(b)
        if va is None or vb is None:
            continue
        if abs(va - vb) > VOLTAGE_TOLERANCE_V:
            issues.append(
                Issue(
                    severity=IssueSeverity.WARNING,
                    code=IssueCode.VOLTAGE_MISMATCH,
                    message=(
                        f"Voltage mismatch between {a.name} ({va}V) "
                        f"and {b.name} ({vb}V)"
                    ),
                    component_id=a.id,
                    suggestion="Add a level shifter or regulator between them",
                )
            )
    return issues


# ═══════════════════════════════════════════════════════════
# Check 5: Circuit Size
# ═══════════════════════════════════════════════════════════


def check_scale(graph: CircuitGraph) -> list[Issue]:
    if len(graph) <= LARGE_CIRCUIT_THRESHOLD:
        return []
    return [
        Issue(
            severity=IssueSeverity.RECOMMENDATION,
            code=IssueCode.LARGE_CIRCUIT,
            message=(
                f"Circuit has {len(graph)} components; consider breaking "
                f"it into smaller modules"
            ),
            priority=IssuePriority.LOW,
        )
    ]


# ═══════════════════════════════════════════════════════════
# Check 6: Follow-Up Recommendations
# ═══════════════════════════════════════════════════════════


def check_follow_ups(graph: CircuitGraph) -> list[Issue]:
    issues: list[Issue] = []

    unconnected = check_isolation(graph)
    if unconnected:
        issues.append(
            Issue(
                severity=IssueSeverity.RECOMMENDATION,
                code=IssueCode.CONNECT_COMPONENTS,
                message=(
                    f"Connect {len(unconnected)} unconnected component(s) "
                    f"to complete the circuit"
                ),
                priority=IssuePriority.MEDIUM,
            )
        )

    if check_voltage_compatibility(graph):
        issues.append(
            Issue(
                severity=IssueSeverity.RECOMMENDATION,
                code=IssueCode.ADD_LEVEL_SHIFTER,
                message=(
                    "Add voltage level shifters or regulators for "
                    "incompatible components"
                ),
                priority=IssuePriority.HIGH,
            )
        )

    return issues


# ═══════════════════════════════════════════════════════════
# Main Analyzer
# ═══════════════════════════════════════════════════════════

Check = Callable[[CircuitGraph], list[Issue]]

# Run in this order by analyze() unless a subset is given
ALL_CHECKS: list[Check] = [
    check_power_source,
    check_ground,
    check_isolation,
    check_voltage_compatibility,
    check_scale,
    check_follow_ups,
]


def score_issues(issues: list[Issue]) -> int:
    errors = sum(1 for i in issues if i.severity == IssueSeverity.ERROR)
    warnings = sum(1 for i in issues if i.severity == IssueSeverity.WARNING)
    score = 100 - errors * ERROR_PENALTY - warnings * WARNING_PENALTY
    return max(0, min(100, score))


def order_issues(graph: CircuitGraph, issues: list[Issue]) -> list[Issue]:
    """Errors, warnings, recommendations; graph-level issues lead each
    group, then component issues in insertion order. Sort is stable."""
    position = {c.id: i for i, c in enumerate(graph)}

    def key(issue: Issue) -> tuple[int, int]:
        pos = position.get(issue.component_id, -1) if issue.component_id else -1
        return _SEVERITY_RANK[issue.severity], pos

    return sorted(issues, key=key)


def analyze(
    graph: CircuitGraph,
    checks: list[Check] | None = None,
) -> AnalysisReport:
    """Run all (or selected) checks on a circuit graph.

    Args:
        graph: The circuit graph to inspect. Never mutated.
        checks: Optional subset of check functions to run.
                Defaults to ALL_CHECKS.

    Returns:
        AnalysisReport with ordered issues and an advisory score.

    Raises:
        InvalidGraphError: if ``graph`` is missing or not a CircuitGraph.
    """
    if not isinstance(graph, CircuitGraph):
        raise InvalidGraphError("analyze() requires a CircuitGraph")

    check_fns = checks if checks is not None else ALL_CHECKS
    issues: list[Issue] = []
    for check_fn in check_fns:
        issues.extend(check_fn(graph))

    ordered = order_issues(graph, issues)
    return AnalysisReport(issues=ordered, score=score_issues(ordered))
