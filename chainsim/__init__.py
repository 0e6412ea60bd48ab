# ChainSim
"""
Educational blockchain simulator:
- Hash-linked blocks with a single canonical SHA-256 hasher
- Proof of Work mining with a configurable attempt cap
- Chain validation, ripple invalidation and tamper detection
- PoW / PoS / DPoS leader-selection rounds
"""

__version__ = "1.0.0"
