"""Simulation router — session lifecycle, stepping and sensor input."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from circuitsim.circuit.graph import CircuitGraph
from circuitsim.schemas.simulation import (
    SessionAck,
    SessionSummary,
    SimulationStateDelta,
    StartSimulationRequest,
    StartSimulationResponse,
    StepRequest,
)
from circuitsim.services.session_manager import SessionManager

router = APIRouter()


def _get_manager(request: Request) -> SessionManager:
    return request.app.state.sessions


@router.post("", response_model=StartSimulationResponse, status_code=201)
async def start_simulation(
    data: StartSimulationRequest,
    manager: SessionManager = Depends(_get_manager),
):
    """Validate the graph, run initial analysis and open a running session."""
    graph = CircuitGraph.from_payload(data.graph)
    session = await manager.create_session(graph, data.config)
    return StartSimulationResponse(
        session_id=session.id,
        status=session.status,
        initial_analysis=session.analysis,
    )


@router.get("", response_model=list[SessionSummary])
async def list_simulations(manager: SessionManager = Depends(_get_manager)):
    """List every live session."""
    return [await manager.summary(s.id) for s in await manager.list_sessions()]


@router.get("/{session_id}", response_model=SessionSummary)
async def get_simulation(
    session_id: str,
    manager: SessionManager = Depends(_get_manager),
):
    return await manager.summary(session_id)


@router.post("/{session_id}/step", response_model=SimulationStateDelta)
async def step_simulation(
    session_id: str,
    data: StepRequest | None = None,
    manager: SessionManager = Depends(_get_manager),
):
    """Advance the session by ``dtMillis`` and return the new state."""
    data = data or StepRequest()
    return await manager.step(session_id, data.dt_millis)


@router.post("/{session_id}/sensors", response_model=SessionAck)
async def update_sensors(
    session_id: str,
    readings: dict[str, float],
    manager: SessionManager = Depends(_get_manager),
):
    """Feed external sensor readings; values are clamped to sensor bounds."""
    return await manager.update_sensors(session_id, readings)


@router.post("/{session_id}/pause", response_model=SessionAck)
async def pause_simulation(
    session_id: str,
    manager: SessionManager = Depends(_get_manager),
):
    return await manager.pause(session_id)


@router.post("/{session_id}/resume", response_model=SessionAck)
async def resume_simulation(
    session_id: str,
    manager: SessionManager = Depends(_get_manager),
):
    return await manager.resume(session_id)


@router.delete("/{session_id}", response_model=SessionAck)
async def stop_simulation(
    session_id: str,
    manager: SessionManager = Depends(_get_manager),
):
    """Stop the session and release it."""
    return await manager.stop(session_id)
