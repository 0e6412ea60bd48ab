"""
Proof of Work Miner

Brute-force search for a nonce whose block hash starts with `difficulty`
zero hex digits.

Expected work grows as 16^difficulty (see config.expected_attempts):

    difficulty   expected attempts
    ----------   -----------------
        1                     16
        2                    256
        3                  4,096
        4                 65,536
        5              1,048,576

The search is bounded by an attempt cap so it always terminates; running
out of attempts is reported as MiningOutcome.CAPPED, not raised. A caller
running the miner inside a cancellable task passes `should_continue`,
which is polled after every attempt.
"""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional

from ..config import DEFAULT_MAX_ATTEMPTS, expected_attempts, validate_difficulty
from ..core_crypto.hasher import meets_difficulty
from .block import Block


logger = logging.getLogger(__name__)

# Polled after each attempt with (attempt_count, current_hash)
ContinueHook = Callable[[int, str], bool]


class MiningOutcome(Enum):
    """How a mining run ended."""
    FOUND = "found"
    CAPPED = "capped"  # Attempt cap reached, target not met
    CANCELLED = "cancelled"  # should_continue hook asked to stop


@dataclass(frozen=True)
class MiningReport:
    """Result of one mining run."""
    attempt_count: int
    elapsed_time: float  # Seconds
    final_hash: str
    nonce: int
    difficulty: int
    outcome: MiningOutcome

    @property
    def reached_target(self) -> bool:
        return self.outcome is MiningOutcome.FOUND

    @property
    def hash_rate(self) -> float:
        """Attempts per second."""
        if self.elapsed_time <= 0:
            return 0.0
        return self.attempt_count / self.elapsed_time

    def to_dict(self) -> Dict[str, Any]:
        return {
            'attempt_count': self.attempt_count,
            'elapsed_time': self.elapsed_time,
            'final_hash': self.final_hash,
            'nonce': self.nonce,
            'difficulty': self.difficulty,
            'outcome': self.outcome.value,
            'reached_target': self.reached_target,
        }


class Miner:
    """
    Proof of Work miner with a configurable attempt cap.
    """

    def __init__(self, max_attempts: int = DEFAULT_MAX_ATTEMPTS):
        """
        Initialize the miner.

        Args:
            max_attempts: Default cap on nonce attempts per mining run
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts

    def mine(
        self,
        block: Block,
        difficulty: Optional[int] = None,
        max_attempts: Optional[int] = None,
        reset_nonce: bool = False,
        should_continue: Optional[ContinueHook] = None
    ) -> MiningReport:
        """
        Search for a nonce that meets the difficulty target.

        Only nonce, hash and difficulty of the block change.

        Args:
            block: Block to mine (modified in place)
            difficulty: Target leading zero digits (default: block's own)
            max_attempts: Cap for this run (default: miner's cap)
            reset_nonce: Start from nonce 0 instead of the current nonce
            should_continue: Cooperative cancellation hook

        Returns:
            MiningReport; attempt_count is 0 when the starting hash
            already qualifies
        """
        if difficulty is None:
            difficulty = block.difficulty
        validate_difficulty(difficulty)
        cap = self.max_attempts if max_attempts is None else max_attempts
        if cap < 1:
            raise ValueError("max_attempts must be at least 1")

        block.difficulty = difficulty
        if reset_nonce:
            block.nonce = 0
        block.reseal()

        attempts = 0
        outcome = MiningOutcome.FOUND
        start = time.perf_counter()

        while not meets_difficulty(block.hash, difficulty):
            if attempts >= cap:
                outcome = MiningOutcome.CAPPED
                break
            block.nonce += 1
            block.reseal()
            attempts += 1
            if should_continue is not None and not should_continue(attempts, block.hash):
                if not meets_difficulty(block.hash, difficulty):
                    outcome = MiningOutcome.CANCELLED
                break

        elapsed = time.perf_counter() - start
        report = MiningReport(
            attempt_count=attempts,
            elapsed_time=elapsed,
            final_hash=block.hash,
            nonce=block.nonce,
            difficulty=difficulty,
            outcome=outcome,
        )

        if outcome is MiningOutcome.FOUND:
            logger.info(
                "Mined block #%d at difficulty %d: nonce=%d attempts=%d",
                block.index, difficulty, block.nonce, attempts
            )
        else:
            logger.warning(
                "Mining block #%d stopped (%s) after %d attempts; "
                "difficulty %d expects ~%d",
                block.index, outcome.value, attempts,
                difficulty, expected_attempts(difficulty)
            )
        return report

    def mine_payload(
        self,
        payload: Any,
        difficulty: int,
        max_attempts: Optional[int] = None,
        should_continue: Optional[ContinueHook] = None
    ) -> MiningReport:
        """Mine a throwaway block holding just `payload`."""
        block = Block.create(index=0, payload=payload, difficulty=difficulty)
        return self.mine(
            block,
            difficulty=difficulty,
            max_attempts=max_attempts,
            should_continue=should_continue
        )


def mine_block(
    block: Block,
    difficulty: Optional[int] = None,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
) -> MiningReport:
    """Mine a block with a one-off Miner."""
    return Miner(max_attempts).mine(block, difficulty)


# ============================================================================
# Demo
# ============================================================================

if __name__ == "__main__":
    print("Proof of Work: attempts vs difficulty")
    print("=" * 60)
    miner = Miner()
    for d in range(0, 5):
        report = miner.mine_payload("Hello, Blockchain!", difficulty=d)
        print(
            f"  d={d}  attempts={report.attempt_count:>7}  "
            f"expected~{expected_attempts(d):>7}  "
            f"time={report.elapsed_time * 1000:.2f} ms  "
            f"hash={report.final_hash[:16]}..."
        )
