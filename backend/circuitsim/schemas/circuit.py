"""Serialized circuit graph exchanged with the web/persistence layers."""

from __future__ import annotations

from pydantic import BaseModel, Field


class PinRefPayload(BaseModel):
    component_id: str = Field(..., min_length=1, alias="componentId")
    pin: str = Field(..., min_length=1)

    model_config = {"populate_by_name": True}


class ComponentPayload(BaseModel):
    id: str = Field(..., min_length=1)
    kind: str  # registry kind, e.g. "arduino-uno", "led", "resistor"
    name: str | None = None
    x: float = 0.0
    y: float = 0.0
    properties: dict = Field(default_factory=dict)


class ConnectionPayload(BaseModel):
    id: str | None = None
    source: PinRefPayload = Field(..., alias="from")
    target: PinRefPayload = Field(..., alias="to")

    model_config = {"populate_by_name": True}


class CircuitGraphPayload(BaseModel):
    components: list[ComponentPayload] = Field(default_factory=list)
    connections: list[ConnectionPayload] = Field(default_factory=list)
