"""
Simulator Configuration

Constants and the per-chain configuration record shared by the
blockchain and consensus modules.

Difficulty is measured in leading zero HEX DIGITS of a block hash.
Each extra digit multiplies the expected mining work by 16, so the
default attempt cap covers difficulties up to 3, runs out at 4 about
one time in five and almost always past that.

Author: ChainSim Project
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Tuple


# ============================================================================
# Constants
# ============================================================================

GENESIS_PREV_HASH = "0"  # Sentinel link for the genesis block
GENESIS_PAYLOAD = "Genesis Block"
DEFAULT_DIFFICULTY = 2  # Leading zero hex digits required
MAX_DIFFICULTY = 64  # A SHA-256 hex digest has 64 characters
DEFAULT_MAX_ATTEMPTS = 100_000  # Demo safety valve for mining

DEFAULT_SEED_PAYLOADS: Tuple[Any, ...] = (
    "First Block - Transaction Data",
    "Second Block - More Transactions",
)
DEFAULT_TAMPER_PAYLOAD = "TAMPERED DATA - This block has been modified!"

LOG_FORMAT = "[%(levelname)s] %(name)s: %(message)s"


def expected_attempts(difficulty: int) -> int:
    """
    Expected number of hashes needed to reach a difficulty.

    Every hex digit of a uniform hash is zero with probability 1/16,
    so d leading zeros take about 16^d attempts on average.
    """
    if difficulty < 0:
        raise ValueError("Difficulty cannot be negative")
    return 16 ** difficulty


def validate_difficulty(difficulty: int) -> int:
    """Return difficulty unchanged, or raise ValueError if out of range."""
    if isinstance(difficulty, bool) or not isinstance(difficulty, int):
        raise ValueError(f"Difficulty must be an integer, got {difficulty!r}")
    if not 0 <= difficulty <= MAX_DIFFICULTY:
        raise ValueError(
            f"Difficulty must be between 0 and {MAX_DIFFICULTY}, got {difficulty}"
        )
    return difficulty


@dataclass(frozen=True)
class ChainConfig:
    """
    Settings a Chain is built from and restored to on reset.

    Attributes:
        difficulty: Default difficulty for appended and remined blocks
        genesis_payload: Payload of block 0
        genesis_difficulty: Difficulty the genesis block is sealed at
        seed_payloads: Payloads appended after genesis on creation/reset
        max_attempts: Mining attempt cap
        mine_on_append: Mine appended blocks (True) or only reseal them
    """
    difficulty: int = DEFAULT_DIFFICULTY
    genesis_payload: Any = GENESIS_PAYLOAD
    genesis_difficulty: int = 0
    seed_payloads: Tuple[Any, ...] = field(default_factory=tuple)
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    mine_on_append: bool = True

    def __post_init__(self):
        validate_difficulty(self.difficulty)
        validate_difficulty(self.genesis_difficulty)
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        # Lists are accepted for convenience but stored as a tuple
        object.__setattr__(self, 'seed_payloads', tuple(self.seed_payloads))

    @classmethod
    def seeded(cls, **overrides) -> 'ChainConfig':
        """Config with the default two seed blocks after genesis."""
        overrides.setdefault('seed_payloads', DEFAULT_SEED_PAYLOADS)
        return cls(**overrides)


def configure_logging(level: int = logging.INFO) -> None:
    """Configure root logging for console entry points."""
    logging.basicConfig(level=level, format=LOG_FORMAT)
