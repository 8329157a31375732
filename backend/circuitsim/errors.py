"""Typed failures raised by the simulation core.

Validation errors mean the request itself is malformed and are never
retried. State errors depend on the lifecycle of a session and the caller
decides whether to retry. Structural findings from the analyzer are NOT
exceptions — they are Issue records.
"""

from __future__ import annotations


class CircuitSimError(Exception):
    """Base for every engine failure. ``code`` is the stable wire name."""

    code = "CircuitSimError"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


# ─── Validation ───


class GraphValidationError(CircuitSimError):
    code = "ValidationError"


class UnknownKindError(GraphValidationError):
    code = "UnknownKind"


class DuplicateIdError(GraphValidationError):
    code = "DuplicateId"


class UnknownPinError(GraphValidationError):
    code = "UnknownPin"


class SelfConnectionError(GraphValidationError):
    code = "SelfConnection"


class InvalidGraphError(GraphValidationError):
    code = "InvalidGraph"


class InvalidTimeStepError(GraphValidationError):
    code = "InvalidTimeStep"


class InvalidSensorValueError(GraphValidationError):
    code = "InvalidSensorValue"


class InvalidSensorOverrideError(GraphValidationError):
    code = "InvalidSensorOverride"


# ─── Session / engine state ───


class SimulationStateError(CircuitSimError):
    code = "StateError"


class NotRunningError(SimulationStateError):
    code = "NotRunning"


class InvalidStateTransitionError(SimulationStateError):
    code = "InvalidStateTransition"


class SessionNotFoundError(SimulationStateError):
    code = "SessionNotFound"


class UnknownComponentError(SimulationStateError):
    code = "UnknownComponent"


# ─── Budget ───


class StepTimeoutError(CircuitSimError):
    code = "StepTimeout"
