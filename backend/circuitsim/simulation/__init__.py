from circuitsim.simulation.engine import SimulationEngine
from circuitsim.simulation.transient import rc_charge

__all__ = ["SimulationEngine", "rc_charge"]
