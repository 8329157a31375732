"""Tests for the Session Manager (async, driven with asyncio.run)."""

import asyncio
from types import SimpleNamespace

import pytest

from circuitsim.circuit.graph import CircuitGraph
from circuitsim.config import Settings
from circuitsim.errors import (
    InvalidSensorValueError,
    NotRunningError,
    SessionNotFoundError,
    StepTimeoutError,
    UnknownComponentError,
)
from circuitsim.schemas.simulation import SimulationStatus
from circuitsim.services import session_manager
from circuitsim.services.session_manager import SessionManager


# ─── Fixtures ───


def _graph() -> CircuitGraph:
    graph = CircuitGraph()
    graph.add_component("arduino-uno", "uno")
    graph.add_component("led", "led1")
    graph.add_component(
        "temperature-sensor", "temp", properties={"min_value": 0, "max_value": 100}
    )
    graph.add_connection(("uno", "D13"), ("led1", "anode"))
    graph.add_connection(("temp", "OUT"), ("uno", "A0"))
    return graph


def _manager(**overrides) -> SessionManager:
    return SessionManager(Settings(**overrides))


class TestSessions:
    def test_create_and_get(self):
        async def scenario():
            manager = _manager()
            session = await manager.create_session(_graph())
            assert session.status == SimulationStatus.RUNNING
            assert await manager.get_session(session.id) is session
            assert len(manager) == 1

        asyncio.run(scenario())

    def test_unknown_session(self):
        async def scenario():
            await _manager().step("missing", 10)

        with pytest.raises(SessionNotFoundError):
            asyncio.run(scenario())

    def test_sessions_are_independent(self):
        async def scenario():
            manager = _manager()
            a = await manager.create_session(_graph())
            b = await manager.create_session(_graph())
            await manager.step(a.id, 100)
            await manager.pause(b.id)
            return a, b

        a, b = asyncio.run(scenario())
        assert a.id != b.id
        assert a.engine.elapsed_ms == 100
        assert b.engine.elapsed_ms == 0
        assert b.status == SimulationStatus.PAUSED

    def test_stop_destroys(self):
        async def scenario():
            manager = _manager()
            session = await manager.create_session(_graph())
            ack = await manager.stop(session.id)
            assert ack.status == SimulationStatus.STOPPED
            assert await manager.list_sessions() == []
            await manager.get_session(session.id)

        with pytest.raises(SessionNotFoundError):
            asyncio.run(scenario())

    def test_summary(self):
        async def scenario():
            manager = _manager()
            session = await manager.create_session(_graph())
            await manager.step(session.id, 40)
            return await manager.summary(session.id)

        summary = asyncio.run(scenario())
        assert summary.step_count == 1
        assert summary.time_ms == 40
        assert summary.component_count == 3
        assert summary.connection_count == 2
        assert summary.analysis.score == 100


    def test_stateless_analyze(self):
        graph = CircuitGraph()
        graph.add_component("led", "led1")
        report = _manager().analyze(graph)
        assert report.errors[0].code == "NoPowerSource"
        assert len(_manager()) == 0


class TestConcurrency:
    def test_concurrent_steps_are_serialized(self):
        n = 20

        async def scenario():
            manager = _manager()
            session = await manager.create_session(_graph())
            await asyncio.gather(*(manager.step(session.id, 10) for _ in range(n)))
            return session

        session = asyncio.run(scenario())
        assert len(session.engine.log) == n
        assert session.engine.step_count == n
        assert session.engine.elapsed_ms == pytest.approx(n * 10)
        assert [e.step for e in session.engine.log.entries()] == list(range(1, n + 1))

    def test_log_capacity_from_settings(self):
        async def scenario():
            manager = _manager(log_ring_capacity=4)
            session = await manager.create_session(_graph())
            for _ in range(6):
                delta = await manager.step(session.id, 10)
            return delta

        delta = asyncio.run(scenario())
        assert [e.step for e in delta.log_tail] == [3, 4, 5, 6]

    def test_step_budget(self, monkeypatch):
        # a deadline anchored at monotonic zero has long since passed
        monkeypatch.setattr(
            session_manager, "time", SimpleNamespace(monotonic=lambda: 0.0)
        )

        async def scenario():
            manager = _manager()
            session = await manager.create_session(_graph())
            try:
                await manager.step(session.id, 10)
            finally:
                assert session.engine.step_count == 0

        with pytest.raises(StepTimeoutError):
            asyncio.run(scenario())


class TestSensorUpdates:
    def test_batch_clamped(self):
        async def scenario():
            manager = _manager()
            session = await manager.create_session(_graph())
            return await manager.update_sensors(session.id, {"temp": 150})

        ack = asyncio.run(scenario())
        assert ack.updated == {"temp": 100}

    def test_batch_is_atomic(self):
        async def scenario():
            manager = _manager()
            session = await manager.create_session(_graph())
            with pytest.raises(UnknownComponentError):
                await manager.update_sensors(session.id, {"temp": 10, "led1": 1})
            return session

        session = asyncio.run(scenario())
        assert session.engine.sensors["temp"].value == 25

    def test_batch_with_bad_value_is_atomic(self):
        async def scenario():
            manager = _manager()
            graph = _graph()
            graph.add_component("potentiometer", "pot")
            session = await manager.create_session(graph)
            with pytest.raises(InvalidSensorValueError):
                await manager.update_sensors(
                    session.id, {"temp": 70, "pot": float("nan")}
                )
            return await manager.step(session.id, 10)

        delta = asyncio.run(scenario())
        assert delta.sensor_values["temp"].value == 25
        assert delta.sensor_values["pot"].value == 512

    def test_nan_rejected(self):
        async def scenario():
            manager = _manager()
            session = await manager.create_session(_graph())
            await manager.update_sensors(session.id, {"temp": float("nan")})

        with pytest.raises(InvalidSensorValueError):
            asyncio.run(scenario())

    def test_step_while_paused(self):
        async def scenario():
            manager = _manager()
            session = await manager.create_session(_graph())
            await manager.pause(session.id)
            await manager.update_sensors(session.id, {"temp": 30})
            await manager.step(session.id, 10)

        with pytest.raises(NotRunningError):
            asyncio.run(scenario())
