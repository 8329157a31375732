"""Analysis router — stateless structural check of a circuit graph."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from circuitsim.circuit.graph import CircuitGraph
from circuitsim.schemas.analysis import AnalysisReport
from circuitsim.schemas.circuit import CircuitGraphPayload
from circuitsim.services.session_manager import SessionManager

router = APIRouter()


def _get_manager(request: Request) -> SessionManager:
    return request.app.state.sessions


@router.post("", response_model=AnalysisReport)
async def analyze_inline(
    payload: CircuitGraphPayload,
    manager: SessionManager = Depends(_get_manager),
):
    """Analyze a circuit graph without starting a session."""
    return manager.analyze(CircuitGraph.from_payload(payload))
