"""Component library — read-only view of the kind registry."""

from fastapi import APIRouter

from circuitsim.circuit.registry import catalog, lookup

router = APIRouter()


@router.get("")
async def list_all_components():
    """Return every supported component kind with pins and defaults."""
    return [spec.to_dict() for spec in catalog()]


@router.get("/{kind}")
async def get_component(kind: str):
    """Return one kind's pin table and default properties."""
    return lookup(kind).to_dict()
