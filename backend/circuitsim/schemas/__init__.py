from circuitsim.schemas.circuit import CircuitGraphPayload
from circuitsim.schemas.analysis import AnalysisReport, Issue, IssueSeverity
from circuitsim.schemas.simulation import (
    SimulationConfig,
    SimulationStateDelta,
    SimulationStatus,
)

__all__ = [
    "CircuitGraphPayload",
    "AnalysisReport",
    "Issue",
    "IssueSeverity",
    "SimulationConfig",
    "SimulationStateDelta",
    "SimulationStatus",
]
