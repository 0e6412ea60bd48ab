# Consensus Module
"""
Leader-selection simulation for PoW, PoS and DPoS.

Tie-break: first candidate in input order among those with the highest metric.
"""

import importlib


# Lazy imports to avoid RuntimeWarning when running module directly
def __getattr__(name):
    """Lazy import to avoid circular import issues."""
    if name not in __all__:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    simulator = importlib.import_module(f"{__name__}.simulator")
    return getattr(simulator, name)

__all__ = [
    'Mechanism',
    'MechanismProfile',
    'Candidate',
    'ConsensusReport',
    'ConsensusSimulator',
    'parse_mechanism',
    'select_winner',
]
