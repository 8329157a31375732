from circuitsim.circuit.registry import (
    ComponentCategory,
    ComponentKind,
    ComponentSpec,
    PinRole,
    catalog,
    lookup,
)
from circuitsim.circuit.graph import CircuitGraph, Component, Connection, PinRef

__all__ = [
    "ComponentCategory",
    "ComponentKind",
    "ComponentSpec",
    "PinRole",
    "catalog",
    "lookup",
    "CircuitGraph",
    "Component",
    "Connection",
    "PinRef",
]
