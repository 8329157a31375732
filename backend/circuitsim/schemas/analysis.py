from __future__ import annotations

from enum import Enum
from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class IssueSeverity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    RECOMMENDATION = "recommendation"


class IssuePriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class IssueCode(str, Enum):
    NO_POWER_SOURCE = "NoPowerSource"
    NO_GROUND_CONNECTION = "NoGroundConnection"
    UNCONNECTED = "Unconnected"
    VOLTAGE_MISMATCH = "VoltageMismatch"
    LARGE_CIRCUIT = "LargeCircuit"
    CONNECT_COMPONENTS = "ConnectComponents"
    ADD_LEVEL_SHIFTER = "AddLevelShifter"
    POWER_OVERLOAD = "PowerOverload"
    REDUCE_POWER = "ReducePower"


class Issue(BaseModel):
    model_config = {"alias_generator": to_camel, "populate_by_name": True}

    severity: IssueSeverity
    code: IssueCode
    message: str
    component_id: str | None = None
    priority: IssuePriority | None = None
    suggestion: str | None = None


class AnalysisReport(BaseModel):
    issues: list[Issue] = Field(default_factory=list)
    score: int = Field(default=100, ge=0, le=100)

    def _of(self, severity: IssueSeverity) -> list[Issue]:
        return [i for i in self.issues if i.severity == severity]

    @property
    def errors(self) -> list[Issue]:
        return self._of(IssueSeverity.ERROR)

    @property
    def warnings(self) -> list[Issue]:
        return self._of(IssueSeverity.WARNING)

    @property
    def recommendations(self) -> list[Issue]:
        return self._of(IssueSeverity.RECOMMENDATION)
