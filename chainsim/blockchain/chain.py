"""
Chain Module

Ordered, hash-linked sequence of blocks with:
- Genesis creation and optional seed blocks
- Mine-on-append or reseal-only append
- Payload edits that cascade relinking to every descendant
- Payload tampering that leaves hashes stale
- Non-mutating validation with a per-block report

Validation rules for block i:
- hash_ok:       stored hash == recomputed hash
- difficulty_ok: stored hash has >= difficulty leading zero hex digits
- link_ok:       previous_hash == block[i-1].hash, and block i-1's stored
                 hash is authentic (genesis is exempt)
- valid:         all of the above and block i-1 is valid

The chain owns its blocks. Blocks passed in are copied; blocks handed out
are BlockSnapshot copies.

Author: ChainSim Project
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..config import ChainConfig, DEFAULT_DIFFICULTY, GENESIS_PREV_HASH, validate_difficulty
from ..errors import InvalidIndexError, InvalidParameterError, OperationResult
from .block import Block, BlockSnapshot
from .miner import ContinueHook, Miner, MiningReport


logger = logging.getLogger(__name__)


# ============================================================================
# Validation Report
# ============================================================================

class IssueKind(Enum):
    """Reasons a block fails validation."""
    HASH_MISMATCH = "hash_mismatch"
    INSUFFICIENT_DIFFICULTY = "insufficient_difficulty"
    BROKEN_LINK = "broken_link"
    INVALID_PREDECESSOR = "invalid_predecessor"


@dataclass(frozen=True)
class BlockCheck:
    """Validation result for a single block."""
    index: int
    hash_ok: bool
    difficulty_ok: bool
    link_ok: bool
    valid: bool
    issues: Tuple[IssueKind, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'index': self.index,
            'hash_ok': self.hash_ok,
            'difficulty_ok': self.difficulty_ok,
            'link_ok': self.link_ok,
            'valid': self.valid,
            'issues': [issue.value for issue in self.issues],
        }


@dataclass(frozen=True)
class ValidationReport:
    """Result of validating a whole chain."""
    checks: Tuple[BlockCheck, ...] = field(default_factory=tuple)

    @property
    def per_block_valid(self) -> Tuple[bool, ...]:
        return tuple(check.valid for check in self.checks)

    @property
    def first_invalid_index(self) -> Optional[int]:
        for check in self.checks:
            if not check.valid:
                return check.index
        return None

    @property
    def is_valid(self) -> bool:
        return self.first_invalid_index is None

    @property
    def links_intact(self) -> bool:
        """True when every hash pointer matches, whatever the difficulty."""
        return all(check.link_ok for check in self.checks)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'per_block_valid': list(self.per_block_valid),
            'first_invalid_index': self.first_invalid_index,
            'is_valid': self.is_valid,
            'checks': [check.to_dict() for check in self.checks],
        }


# ============================================================================
# Chain
# ============================================================================

class Chain:
    """
    A simulated blockchain.

    Features:
    - Per-block difficulty
    - Proof of Work via a pluggable Miner
    - Ripple invalidation on edit, stale hashes on tamper
    - Full chain validation
    """

    def __init__(
        self,
        config: Optional[ChainConfig] = None,
        miner: Optional[Miner] = None
    ):
        """
        Initialize a new chain.

        Args:
            config: Chain settings (difficulty, genesis, seeds, attempt cap)
            miner: Miner to use (default: one with the config's attempt cap)
        """
        self._config = config or ChainConfig()
        self._miner = miner or Miner(self._config.max_attempts)
        self._blocks: List[Block] = []
        self._build_initial_blocks()

    def _build_initial_blocks(self) -> None:
        self._blocks = [self.create_genesis(
            self._config.genesis_payload,
            difficulty=self._config.genesis_difficulty
        )]
        for payload in self._config.seed_payloads:
            self.add_block(payload, mine=True)

    def create_genesis(
        self,
        payload: Any,
        difficulty: int = 0,
        timestamp: Optional[int] = None
    ) -> Block:
        """
        Create a genesis block (index 0, sentinel previous hash).

        The block is mined to `difficulty`; at 0 that costs nothing.
        The returned block is not attached; the constructor and reset()
        use it as block 0.
        """
        genesis = Block.create(
            index=0,
            payload=payload,
            previous_hash=GENESIS_PREV_HASH,
            difficulty=difficulty,
            timestamp=timestamp
        )
        self._miner.mine(genesis, difficulty)
        return genesis

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def config(self) -> ChainConfig:
        return self._config

    @property
    def miner(self) -> Miner:
        return self._miner

    @property
    def difficulty(self) -> int:
        """Default difficulty for new and remined blocks."""
        return self._config.difficulty

    @property
    def length(self) -> int:
        return len(self._blocks)

    def __len__(self) -> int:
        return len(self._blocks)

    @property
    def blocks(self) -> Tuple[BlockSnapshot, ...]:
        """Read-only copies of every block, in order."""
        return tuple(block.snapshot() for block in self._blocks)

    @property
    def last_block(self) -> BlockSnapshot:
        return self._blocks[-1].snapshot()

    def block(self, index: int) -> BlockSnapshot:
        """
        Get a read-only copy of one block.

        Raises:
            InvalidIndexError: If index is outside the chain
        """
        self._check_index(index)
        return self._blocks[index].snapshot()

    def get_block(self, index: int) -> OperationResult:
        """Like block(), but reports a bad index as a failed result."""
        try:
            return OperationResult.ok(self.block(index))
        except InvalidIndexError as e:
            return OperationResult.fail(e)

    def recomputed_hash(self, index: int) -> str:
        """
        Hash block `index` would have if resealed now.

        Raises:
            InvalidIndexError: If index is outside the chain
        """
        self._check_index(index)
        return self._blocks[index].compute_hash()

    def _check_index(self, index: int) -> None:
        if isinstance(index, bool) or not isinstance(index, int):
            raise InvalidIndexError(f"Block index must be an integer, got {index!r}")
        if not 0 <= index < len(self._blocks):
            raise InvalidIndexError(
                f"Block index {index} out of range (chain length {len(self._blocks)})"
            )

    def _resolve_difficulty(self, difficulty: Optional[int], default: Optional[int] = None) -> int:
        if difficulty is None:
            difficulty = self._config.difficulty if default is None else default
        try:
            return validate_difficulty(difficulty)
        except ValueError as e:
            raise InvalidParameterError(str(e)) from e

    # ------------------------------------------------------------------
    # Growth
    # ------------------------------------------------------------------

    def append(
        self,
        block: Block,
        mine: Optional[bool] = None,
        difficulty: Optional[int] = None
    ) -> OperationResult:
        """
        Link a block to the current tip and add it to the chain.

        The chain stores its own copy. previous_hash is overwritten with
        the tip's hash, then the block is either mined (guaranteed valid
        unless the attempt cap is hit) or only resealed (possibly below
        its difficulty target).

        Args:
            block: Block whose index equals the current chain length
            mine: Mine on append (default: config.mine_on_append)
            difficulty: Difficulty to seal at (default: the block's own)

        Returns:
            OperationResult with the MiningReport (None if not mined)
        """
        if mine is None:
            mine = self._config.mine_on_append
        try:
            if block.index != len(self._blocks):
                raise InvalidIndexError(
                    f"Block index {block.index} does not match chain length {len(self._blocks)}"
                )
            difficulty = self._resolve_difficulty(difficulty, block.difficulty)
        except (InvalidIndexError, InvalidParameterError) as e:
            return OperationResult.fail(e)

        new_block = block.copy()
        new_block.relink(self._blocks[-1].hash)
        new_block.difficulty = difficulty

        report = None
        if mine:
            report = self._miner.mine(new_block, new_block.difficulty)

        self._blocks.append(new_block)
        logger.info(
            "Appended block #%d (%s)",
            new_block.index, "mined" if mine else "resealed"
        )
        return OperationResult.ok(report, f"Block #{new_block.index} appended")

    def add_block(
        self,
        payload: Any,
        difficulty: Optional[int] = None,
        mine: Optional[bool] = None,
        timestamp: Optional[int] = None
    ) -> OperationResult:
        """Create the next block for `payload` and append it."""
        try:
            difficulty = self._resolve_difficulty(difficulty)
        except InvalidParameterError as e:
            return OperationResult.fail(e)
        block = Block.create(
            index=len(self._blocks),
            payload=payload,
            previous_hash=self._blocks[-1].hash,
            difficulty=difficulty,
            timestamp=timestamp
        )
        return self.append(block, mine=mine)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def _cascade_from(self, index: int) -> None:
        """Relink every block after `index` to its (new) predecessor hash."""
        for j in range(index + 1, len(self._blocks)):
            self._blocks[j].relink(self._blocks[j - 1].hash)
            logger.debug("Relinked block #%d (nonce reset, unmined)", j)

    def edit_block_payload(self, index: int, payload: Any) -> OperationResult:
        """
        Edit a block's payload and ripple the change down the chain.

        Every later block is relinked with nonce 0, so all links hold but
        the edited block and its descendants need remining.
        """
        try:
            self._check_index(index)
        except InvalidIndexError as e:
            return OperationResult.fail(e)

        self._blocks[index].edit(payload)
        self._cascade_from(index)
        logger.info(
            "Edited block #%d; %d descendant(s) need remining",
            index, len(self._blocks) - index - 1
        )
        return OperationResult.ok(self._blocks[index].snapshot(), f"Block #{index} edited")

    def tamper_block_payload(self, index: int, payload: Any) -> OperationResult:
        """Change a block's payload without touching any hash."""
        try:
            self._check_index(index)
        except InvalidIndexError as e:
            return OperationResult.fail(e)

        self._blocks[index].tamper(payload)
        logger.warning("Block #%d tampered; stored hash is now stale", index)
        return OperationResult.ok(self._blocks[index].snapshot(), f"Block #{index} tampered")

    def remine_block(
        self,
        index: int,
        difficulty: Optional[int] = None,
        reset_nonce: bool = False,
        should_continue: Optional[ContinueHook] = None
    ) -> OperationResult:
        """
        Mine block `index` at `difficulty` (default: the block's own).

        Descendants are relinked to the new hash and left unmined.

        Returns:
            OperationResult with the MiningReport
        """
        try:
            self._check_index(index)
            difficulty = self._resolve_difficulty(difficulty, self._blocks[index].difficulty)
        except (InvalidIndexError, InvalidParameterError) as e:
            return OperationResult.fail(e)

        old_hash = self._blocks[index].hash
        report = self._miner.mine(
            self._blocks[index],
            difficulty,
            reset_nonce=reset_nonce,
            should_continue=should_continue
        )
        if self._blocks[index].hash != old_hash:
            self._cascade_from(index)
        return OperationResult.ok(report, f"Block #{index} remined ({report.outcome.value})")

    def remine_from(
        self,
        index: int,
        difficulty: Optional[int] = None,
        should_continue: Optional[ContinueHook] = None
    ) -> OperationResult:
        """
        Remine blocks index..n-1 in order, each at `difficulty` or its own.

        Stops at the first block whose mining does not reach the target.

        Returns:
            OperationResult with the list of MiningReports
        """
        try:
            self._check_index(index)
            if difficulty is not None:
                difficulty = self._resolve_difficulty(difficulty)
        except (InvalidIndexError, InvalidParameterError) as e:
            return OperationResult.fail(e)

        reports: List[MiningReport] = []
        for i in range(index, len(self._blocks)):
            report = self.remine_block(i, difficulty, should_continue=should_continue).value
            reports.append(report)
            if not report.reached_target:
                break
        return OperationResult.ok(reports, f"Remined {len(reports)} block(s) from #{index}")

    def reset(self) -> None:
        """Discard every block and rebuild genesis and seed blocks."""
        self._build_initial_blocks()
        logger.info("Chain reset to %d block(s)", len(self._blocks))

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def _check_block(
        self,
        block: Block,
        prev_block: Optional[Block],
        prev_valid: bool
    ) -> BlockCheck:
        issues = []

        hash_ok = block.is_hash_authentic()
        if not hash_ok:
            issues.append(IssueKind.HASH_MISMATCH)

        difficulty_ok = block.meets_difficulty()
        if not difficulty_ok:
            issues.append(IssueKind.INSUFFICIENT_DIFFICULTY)

        if prev_block is None:
            link_ok = True
        else:
            link_ok = (
                block.previous_hash == prev_block.hash
                and prev_block.is_hash_authentic()
            )
            if not link_ok:
                issues.append(IssueKind.BROKEN_LINK)
            if not prev_valid:
                issues.append(IssueKind.INVALID_PREDECESSOR)

        return BlockCheck(
            index=block.index,
            hash_ok=hash_ok,
            difficulty_ok=difficulty_ok,
            link_ok=link_ok,
            valid=hash_ok and difficulty_ok and link_ok and prev_valid,
            issues=tuple(issues),
        )

    def validate(self) -> ValidationReport:
        """Validate every block; never mutates the chain."""
        checks = []
        prev_block = None
        prev_valid = True
        for block in self._blocks:
            check = self._check_block(block, prev_block, prev_valid)
            checks.append(check)
            prev_block = block
            prev_valid = check.valid

        report = ValidationReport(checks=tuple(checks))
        if report.is_valid:
            logger.debug("Chain of %d block(s) is valid", len(checks))
        else:
            logger.info("Chain invalid from block #%d", report.first_invalid_index)
        return report

    def is_valid(self) -> bool:
        return self.validate().is_valid

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {
            'difficulty': self._config.difficulty,
            'length': len(self._blocks),
            'blocks': [block.to_dict() for block in self._blocks],
        }

    def print_chain(self) -> None:
        """Print the chain with each block's validity."""
        report = self.validate()
        print(f"\nChain (difficulty={self.difficulty}, length={self.length})")
        print("=" * 60)
        for block, check in zip(self._blocks, report.checks):
            print(block)
            print(f"  Valid: {check.valid}")
            print("-" * 40)


# ============================================================================
# Convenience Functions
# ============================================================================

def create_chain(
    difficulty: int = DEFAULT_DIFFICULTY,
    seed_payloads: Sequence[Any] = ()
) -> Chain:
    """Create a chain with the given difficulty and seed blocks."""
    return Chain(ChainConfig(difficulty=difficulty, seed_payloads=tuple(seed_payloads)))
