from circuitsim.analysis.engine import ALL_CHECKS, analyze

__all__ = ["ALL_CHECKS", "analyze"]
