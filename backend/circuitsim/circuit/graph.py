"""Circuit Graph — components, pins and the wires between them.

Connections are indexed by endpoint component so neighbor lookups cost
O(degree) rather than a scan of every wire. Insertion order of both
components and connections is preserved; analysis and simulation iterate
in that order to stay reproducible.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field, replace
from typing import Iterator, NamedTuple

from circuitsim.circuit.registry import (
    ComponentCategory,
    ComponentKind,
    ComponentSpec,
    PinRole,
    lookup,
)
from circuitsim.errors import (
    DuplicateIdError,
    SelfConnectionError,
    UnknownComponentError,
    UnknownPinError,
)
from circuitsim.schemas.circuit import (
    CircuitGraphPayload,
    ComponentPayload,
    ConnectionPayload,
    PinRefPayload,
)


class PinRef(NamedTuple):
    component_id: str
    pin: str

    def __str__(self) -> str:
        return f"{self.component_id}.{self.pin}"


class Neighbor(NamedTuple):
    component_id: str
    pin: str
    connection_id: str


@dataclass
class Component:
    id: str
    kind: ComponentKind
    spec: ComponentSpec
    name: str
    x: float = 0.0
    y: float = 0.0
    properties: dict = field(default_factory=dict)

    @property
    def category(self) -> ComponentCategory:
        return self.spec.category


@dataclass(frozen=True)
class Connection:
    id: str
    source: PinRef
    target: PinRef

    def touches(self, component_id: str) -> bool:
        return component_id in (self.source.component_id, self.target.component_id)


def _as_ref(ref: PinRef | tuple[str, str]) -> PinRef:
    return ref if isinstance(ref, PinRef) else PinRef(*ref)


class CircuitGraph:
    def __init__(self) -> None:
        self._components: dict[str, Component] = {}
        self._connections: dict[str, Connection] = {}
        # component id -> ordered set of connection ids touching it
        self._index: dict[str, dict[str, None]] = {}
        self._next_conn = 1

    # ─── Queries ───

    def __len__(self) -> int:
        return len(self._components)

    def __contains__(self, component_id: object) -> bool:
        return component_id in self._components

    def __iter__(self) -> Iterator[Component]:
        return iter(self._components.values())

    @property
    def components(self) -> list[Component]:
        return list(self._components.values())

    @property
    def connections(self) -> list[Connection]:
        return list(self._connections.values())

    def get(self, component_id: str) -> Component | None:
        return self._components.get(component_id)

    def component(self, component_id: str) -> Component:
        comp = self._components.get(component_id)
        if comp is None:
            raise UnknownComponentError(f"Component '{component_id}' not in graph")
        return comp

    def connection(self, connection_id: str) -> Connection | None:
        return self._connections.get(connection_id)

    def connections_of(self, component_id: str) -> list[Connection]:
        return [
            self._connections[cid] for cid in self._index.get(component_id, ())
        ]

    def degree(self, component_id: str) -> int:
        return len(self._index.get(component_id, ()))

    def neighbors(self, component_id: str) -> set[Neighbor]:
        result: set[Neighbor] = set()
        for conn in self.connections_of(component_id):
            if conn.source.component_id == component_id:
                result.add(Neighbor(conn.target.component_id, conn.target.pin, conn.id))
            if conn.target.component_id == component_id:
                result.add(Neighbor(conn.source.component_id, conn.source.pin, conn.id))
        return result

    def pin_role(self, ref: PinRef) -> PinRole:
        return self.component(ref.component_id).spec.pin(ref.pin).role

    def is_driver_pin(self, ref: PinRef) -> bool:
        comp = self._components.get(ref.component_id)
        if comp is None:
            return False
        pin = comp.spec.pin(ref.pin)
        return pin is not None and pin.driver

    def driver_of(self, conn: Connection) -> PinRef | None:
        """Infer which endpoint sources the digital level on a wire.

        Exactly one driver pin → that endpoint. Two driver pins → the
        declared source. No driver pin → undirected (None).
        """
        src_drives = self.is_driver_pin(conn.source)
        tgt_drives = self.is_driver_pin(conn.target)
        if src_drives:
            return conn.source
        if tgt_drives:
            return conn.target
        return None

    # ─── Mutation ───

    def add_component(
        self,
        kind: ComponentKind | str,
        component_id: str,
        properties: dict | None = None,
        name: str | None = None,
        x: float = 0.0,
        y: float = 0.0,
    ) -> Component:
        if component_id in self._components:
            raise DuplicateIdError(f"Component id '{component_id}' already exists")
        spec = lookup(kind)
        props = spec.default_properties()
        props.update(properties or {})
        comp = Component(
            id=component_id,
            kind=spec.kind,
            spec=spec,
            name=name or component_id,
            x=x,
            y=y,
            properties=props,
        )
        self._components[component_id] = comp
        self._index[component_id] = {}
        return comp

    def _resolve(self, ref: PinRef) -> None:
        comp = self._components.get(ref.component_id)
        if comp is None:
            raise UnknownPinError(
                f"Connection endpoint {ref}: component '{ref.component_id}' not found"
            )
        if comp.spec.pin(ref.pin) is None:
            raise UnknownPinError(
                f"Connection endpoint {ref}: {comp.kind.value} has no pin "
                f"'{ref.pin}'"
            )

    def _generate_connection_id(self) -> str:
        while True:
            cid = f"conn-{self._next_conn}"
            self._next_conn += 1
            if cid not in self._connections:
                return cid

    def add_connection(
        self,
        source: PinRef | tuple[str, str],
        target: PinRef | tuple[str, str],
        connection_id: str | None = None,
    ) -> Connection:
        source, target = _as_ref(source), _as_ref(target)
        self._resolve(source)
        self._resolve(target)
        if source == target:
            raise SelfConnectionError(f"Cannot connect {source} to itself")
        if connection_id is None:
            connection_id = self._generate_connection_id()
        elif connection_id in self._connections:
            raise DuplicateIdError(f"Connection id '{connection_id}' already exists")

        conn = Connection(id=connection_id, source=source, target=target)
        self._connections[connection_id] = conn
        self._index[source.component_id][connection_id] = None
        self._index[target.component_id][connection_id] = None
        return conn

    def remove_connection(self, connection_id: str) -> Connection | None:
        conn = self._connections.pop(connection_id, None)
        if conn is None:
            return None
        for ref in (conn.source, conn.target):
            self._index.get(ref.component_id, {}).pop(connection_id, None)
        return conn

    def remove_component(self, component_id: str) -> list[Connection]:
        """Remove a component and every wire attached to it."""
        if component_id not in self._components:
            raise UnknownComponentError(f"Component '{component_id}' not in graph")
        removed = [
            self.remove_connection(cid)
            for cid in list(self._index.get(component_id, ()))
        ]
        del self._components[component_id]
        self._index.pop(component_id, None)
        return [c for c in removed if c is not None]

    def copy(self) -> CircuitGraph:
        """Independent snapshot. Specs are shared, property bags are not."""
        clone = CircuitGraph()
        for comp in self._components.values():
            clone._components[comp.id] = replace(
                comp, properties=copy.deepcopy(comp.properties)
            )
            clone._index[comp.id] = dict(self._index[comp.id])
        clone._connections = dict(self._connections)
        clone._next_conn = self._next_conn
        return clone

    # ─── Wire format ───

    @classmethod
    def from_payload(cls, payload: CircuitGraphPayload) -> CircuitGraph:
        """Build a graph from the boundary payload, validating as it goes."""
        graph = cls()
        for c in payload.components:
            graph.add_component(
                c.kind, c.id, properties=c.properties, name=c.name, x=c.x, y=c.y
            )
        for w in payload.connections:
            graph.add_connection(
                PinRef(w.source.component_id, w.source.pin),
                PinRef(w.target.component_id, w.target.pin),
                connection_id=w.id,
            )
        return graph

    def to_payload(self) -> CircuitGraphPayload:
        return CircuitGraphPayload(
            components=[
                ComponentPayload(
                    id=c.id,
                    kind=c.kind.value,
                    name=c.name,
                    x=c.x,
                    y=c.y,
                    properties=dict(c.properties),
                )
                for c in self._components.values()
            ],
            connections=[
                ConnectionPayload(
                    id=w.id,
                    source=PinRefPayload(
                        component_id=w.source.component_id, pin=w.source.pin
                    ),
                    target=PinRefPayload(
                        component_id=w.target.component_id, pin=w.target.pin
                    ),
                )
                for w in self._connections.values()
            ],
        )
