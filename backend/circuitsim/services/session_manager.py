"""Session manager — owns every live simulation and serializes writes.

One SimulationEngine per session id. Steps and sensor updates on the same
session run under that session's lock, so state changes never interleave;
different sessions proceed independently. Sessions live until stop().
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

from circuitsim.analysis.engine import analyze
from circuitsim.circuit.graph import CircuitGraph
from circuitsim.config import Settings, get_settings
from circuitsim.errors import SessionNotFoundError
from circuitsim.schemas.analysis import AnalysisReport
from circuitsim.schemas.simulation import (
    SessionAck,
    SessionSummary,
    SimulationConfig,
    SimulationStateDelta,
    SimulationStatus,
)
from circuitsim.simulation.engine import SimulationEngine

logger = logging.getLogger(__name__)


@dataclass
class Session:
    id: str
    engine: SimulationEngine
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def status(self) -> SimulationStatus:
        return self.engine.status

    @property
    def analysis(self) -> AnalysisReport:
        return self.engine.analysis


class SessionManager:
    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()
        self._sessions: dict[str, Session] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    @staticmethod
    def analyze(graph: CircuitGraph) -> AnalysisReport:
        """Stateless analysis; needs no session."""
        return analyze(graph)

    async def create_session(
        self,
        graph: CircuitGraph,
        config: SimulationConfig | None = None,
    ) -> Session:
        engine = SimulationEngine(
            config=config,
            log_capacity=self.settings.log_ring_capacity,
            power_overload_ma=self.settings.power_overload_ma,
            power_advisory_ma=self.settings.power_advisory_ma,
        )
        engine.start(graph)
        session = Session(id=uuid.uuid4().hex, engine=engine)
        async with self._lock:
            self._sessions[session.id] = session
        logger.info(
            "Session %s created — score=%d issues=%d",
            session.id,
            engine.analysis.score,
            len(engine.analysis.issues),
        )
        return session

    async def get_session(self, session_id: str) -> Session:
        async with self._lock:
            session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(f"Simulation session '{session_id}' not found")
        return session

    async def list_sessions(self) -> list[Session]:
        async with self._lock:
            return list(self._sessions.values())

    async def step(self, session_id: str, dt_ms: float) -> SimulationStateDelta:
        session = await self.get_session(session_id)
        async with session.lock:
            deadline = time.monotonic() + self.settings.step_budget_ms / 1000.0
            return session.engine.step(dt_ms, deadline=deadline)

    async def update_sensors(
        self,
        session_id: str,
        updates: dict[str, float],
    ) -> SessionAck:
        """Apply several sensor readings as one all-or-nothing batch."""
        session = await self.get_session(session_id)
        async with session.lock:
            engine = session.engine
            stored = engine.update_sensors(updates)
        logger.debug("Session %s sensors updated: %s", session_id, stored)
        return SessionAck(session_id=session_id, status=engine.status, updated=stored)

    async def pause(self, session_id: str) -> SessionAck:
        session = await self.get_session(session_id)
        async with session.lock:
            session.engine.pause()
        return SessionAck(session_id=session_id, status=session.status)

    async def resume(self, session_id: str) -> SessionAck:
        session = await self.get_session(session_id)
        async with session.lock:
            session.engine.resume()
        return SessionAck(session_id=session_id, status=session.status)

    async def stop(self, session_id: str) -> SessionAck:
        session = await self.get_session(session_id)
        async with session.lock:
            session.engine.stop()
            async with self._lock:
                self._sessions.pop(session_id, None)
        logger.info("Session %s stopped and destroyed", session_id)
        return SessionAck(session_id=session_id, status=session.status)

    async def summary(self, session_id: str) -> SessionSummary:
        session = await self.get_session(session_id)
        async with session.lock:
            engine = session.engine
            graph = engine.graph
            return SessionSummary(
                session_id=session.id,
                status=engine.status,
                created_at=session.created_at,
                time_ms=engine.elapsed_ms,
                step_count=engine.step_count,
                component_count=len(graph) if graph is not None else 0,
                connection_count=len(graph.connections) if graph is not None else 0,
                analysis=engine.analysis,
            )
