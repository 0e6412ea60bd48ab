"""
Block Module

A block binds a payload to a chain position and to its predecessor's hash.

Unlike a production ledger the block is mutable: the simulator needs to
edit, tamper with and remine blocks to show how a hash chain reacts.
Mutation goes through the owning Chain; callers only ever see
BlockSnapshot copies.

Block lifecycle:
    created (nonce 0, hash computed) -> mined -> appended
    edit()   -> payload changed, nonce reset, hash recomputed (unmined)
    tamper() -> payload changed, hash left stale (detectable)
"""

import copy
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..config import DEFAULT_DIFFICULTY, GENESIS_PREV_HASH
from ..core_crypto.hasher import compute_block_hash, leading_zero_count
from ..core_crypto.hasher import meets_difficulty as hash_meets_difficulty


logger = logging.getLogger(__name__)


# ============================================================================
# Read-only View
# ============================================================================

@dataclass(frozen=True)
class BlockSnapshot:
    """Immutable copy of a block's fields, handed out to callers."""
    index: int
    timestamp: int
    payload: Any
    previous_hash: str
    nonce: int
    difficulty: int
    hash: str

    @property
    def leading_zeros(self) -> int:
        return leading_zero_count(self.hash)

    def to_dict(self) -> Dict[str, Any]:
        """Convert snapshot to dictionary for rendering."""
        return {
            'index': self.index,
            'timestamp': self.timestamp,
            'payload': copy.deepcopy(self.payload),
            'previous_hash': self.previous_hash,
            'nonce': self.nonce,
            'difficulty': self.difficulty,
            'hash': self.hash,
        }

    def __str__(self) -> str:
        return (
            f"Block #{self.index}\n"
            f"  Hash: {self.hash[:16]}...\n"
            f"  Prev: {self.previous_hash[:16]}...\n"
            f"  Nonce: {self.nonce}\n"
            f"  Difficulty: {self.difficulty}\n"
            f"  Payload: {self.payload!r}"
        )


# ============================================================================
# Block
# ============================================================================

@dataclass
class Block:
    """
    A single block of the simulated chain.

    `hash` is stored, not derived: after tamper() it deliberately
    disagrees with compute_hash(), which is how tampering is detected.
    """
    index: int
    timestamp: int
    payload: Any
    previous_hash: str
    nonce: int
    difficulty: int
    hash: str

    @classmethod
    def create(
        cls,
        index: int,
        payload: Any,
        previous_hash: str = GENESIS_PREV_HASH,
        difficulty: int = DEFAULT_DIFFICULTY,
        timestamp: Optional[int] = None
    ) -> 'Block':
        """
        Create a block with nonce 0 and a freshly computed hash.

        Args:
            index: Position in the chain
            payload: Any JSON-friendly data (transaction, label, dict...)
            previous_hash: Hash of the preceding block, or the genesis sentinel
            difficulty: Leading zero hex digits the block will be mined to
            timestamp: Unix time in seconds (defaults to now)
        """
        if timestamp is None:
            timestamp = int(time.time())
        payload = copy.deepcopy(payload)
        return cls(
            index=index,
            timestamp=timestamp,
            payload=payload,
            previous_hash=previous_hash,
            nonce=0,
            difficulty=difficulty,
            hash=compute_block_hash(index, timestamp, payload, previous_hash, 0),
        )

    def compute_hash(self) -> str:
        """Recompute the hash from the current fields."""
        return compute_block_hash(
            self.index,
            self.timestamp,
            self.payload,
            self.previous_hash,
            self.nonce
        )

    def reseal(self) -> str:
        """Recompute and store the hash, keeping the nonce."""
        self.hash = self.compute_hash()
        return self.hash

    def relink(self, previous_hash: str) -> str:
        """Point at a new predecessor; resets the nonce since prior work is void."""
        self.previous_hash = previous_hash
        self.nonce = 0
        return self.reseal()

    def edit(self, new_payload: Any) -> str:
        """
        Replace the payload as an operator would before remining.

        The nonce is reset and the hash recomputed, so the block is
        internally consistent but generally below its difficulty target.
        """
        self.payload = copy.deepcopy(new_payload)
        self.nonce = 0
        return self.reseal()

    def tamper(self, new_payload: Any) -> None:
        """Replace the payload WITHOUT resealing, leaving the stored hash stale."""
        logger.debug("Block #%d payload altered without reseal", self.index)
        self.payload = copy.deepcopy(new_payload)

    def is_hash_authentic(self) -> bool:
        """Check that the stored hash matches the block's contents."""
        return self.hash == self.compute_hash()

    def meets_difficulty(self, difficulty: Optional[int] = None) -> bool:
        """Check the stored hash against a difficulty (default: the block's own)."""
        if difficulty is None:
            difficulty = self.difficulty
        return hash_meets_difficulty(self.hash, difficulty)

    def is_sealed(self) -> bool:
        """Authentic hash that also meets the block's difficulty."""
        return self.is_hash_authentic() and self.meets_difficulty()

    def copy(self) -> 'Block':
        """Deep copy, so the payload is not shared with the original."""
        return copy.deepcopy(self)

    def snapshot(self) -> BlockSnapshot:
        """Read-only copy of this block."""
        return BlockSnapshot(
            index=self.index,
            timestamp=self.timestamp,
            payload=copy.deepcopy(self.payload),
            previous_hash=self.previous_hash,
            nonce=self.nonce,
            difficulty=self.difficulty,
            hash=self.hash,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert block to dictionary for rendering."""
        return self.snapshot().to_dict()

    def __str__(self) -> str:
        return str(self.snapshot())
