"""Request / response records for simulation sessions.

Every model serializes with camelCase aliases (``sensorValues``,
``logTail``...) for the web client, while Python code uses snake_case.
"""

from __future__ import annotations

import math
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel

from circuitsim.schemas.analysis import AnalysisReport, Issue
from circuitsim.schemas.circuit import CircuitGraphPayload


class CamelModel(BaseModel):
    model_config = {"alias_generator": to_camel, "populate_by_name": True}


class SimulationStatus(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    STOPPED = "stopped"


class SimulationConfig(CamelModel):
    speed: float = Field(default=1.0, gt=0, description="Simulated-time multiplier")
    sensor_overrides: dict[str, float] = Field(default_factory=dict)


class LogEntry(CamelModel):
    step: int
    time_ms: float
    level: str = "info"
    message: str


class SensorReading(CamelModel):
    value: float
    min_value: float
    max_value: float
    unit: str = ""
    adc_value: int | None = None


class SimulationStateDelta(CamelModel):
    time: float = Field(..., description="Cumulative simulated time (s)")
    time_ms: float
    sensor_values: dict[str, SensorReading] = Field(default_factory=dict)
    output_values: dict[str, dict] = Field(default_factory=dict)
    power_consumption_ma: float = 0.0
    warnings: list[Issue] = Field(default_factory=list)
    errors: list[Issue] = Field(default_factory=list)
    recommendations: list[Issue] = Field(default_factory=list)
    log_tail: list[LogEntry] = Field(default_factory=list)


# ─── Requests ───


class StartSimulationRequest(CamelModel):
    graph: CircuitGraphPayload
    config: SimulationConfig = Field(default_factory=SimulationConfig)


class StepRequest(CamelModel):
    dt_millis: float = Field(default=100.0, ge=0)

    @field_validator("dt_millis")
    @classmethod
    def _finite(cls, v: float) -> float:
        if not math.isfinite(v):
            raise ValueError("dtMillis must be finite")
        return v


# ─── Responses ───


class StartSimulationResponse(CamelModel):
    session_id: str
    status: SimulationStatus
    initial_analysis: AnalysisReport


class SessionAck(CamelModel):
    session_id: str
    status: SimulationStatus
    updated: dict[str, float] = Field(default_factory=dict)


class SessionSummary(CamelModel):
    session_id: str
    status: SimulationStatus
    created_at: datetime
    time_ms: float
    step_count: int
    component_count: int
    connection_count: int
    analysis: AnalysisReport
