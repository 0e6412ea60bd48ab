# Blockchain Module
"""
Simulated hash chain including:
- Mutable blocks with edit / tamper / reseal
- Proof of Work mining with an attempt cap
- Ripple invalidation and full chain validation
- Tamper detection and repair

Ownership:
- A Chain owns its blocks exclusively
- Callers receive BlockSnapshot copies
"""

import importlib


_EXPORTS = {
    'Block': 'block',
    'BlockSnapshot': 'block',
    'Chain': 'chain',
    'BlockCheck': 'chain',
    'IssueKind': 'chain',
    'ValidationReport': 'chain',
    'create_chain': 'chain',
    'Miner': 'miner',
    'MiningOutcome': 'miner',
    'MiningReport': 'miner',
    'mine_block': 'miner',
    'TamperSimulator': 'tamper',
    'TamperReport': 'tamper',
    'RepairReport': 'tamper',
}


# Lazy imports to avoid RuntimeWarning when running module directly
def __getattr__(name):
    """Lazy import to avoid circular import issues."""
    if name not in _EXPORTS:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    module = importlib.import_module(f"{__name__}.{_EXPORTS[name]}")
    return getattr(module, name)

__all__ = list(_EXPORTS)
