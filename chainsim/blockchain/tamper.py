"""
Tamper Simulator

Demonstrates why a hash chain is tamper-evident: a payload is altered
without resealing, and validation pinpoints the block whose stored hash
no longer matches its contents, plus every block after it.

Per-block states:
    Sealed(valid) --tamper--> Inconsistent --repair (edit + remine)--> Sealed(valid)
"""

import copy
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from ..config import DEFAULT_TAMPER_PAYLOAD, validate_difficulty
from ..errors import InvalidParameterError, OperationResult
from .chain import Chain, ValidationReport
from .miner import MiningReport


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TamperReport:
    """What a tamper changed and whether validation caught it."""
    index: int
    original_payload: Any
    tampered_payload: Any
    stored_hash: str
    recomputed_hash: str
    validation: ValidationReport

    @property
    def detected(self) -> bool:
        """Stored hash is stale and validation flagged the block."""
        return (
            self.stored_hash != self.recomputed_hash
            and not self.validation.per_block_valid[self.index]
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'index': self.index,
            'original_payload': self.original_payload,
            'tampered_payload': self.tampered_payload,
            'stored_hash': self.stored_hash,
            'recomputed_hash': self.recomputed_hash,
            'detected': self.detected,
            'validation': self.validation.to_dict(),
        }


@dataclass(frozen=True)
class RepairReport:
    """Mining runs performed to restore a chain after tampering."""
    index: int
    mining_reports: Tuple[MiningReport, ...]
    validation: ValidationReport

    @property
    def restored(self) -> bool:
        return self.validation.is_valid


class TamperSimulator:
    """Tampers with and repairs blocks of a chain it is given."""

    def __init__(self, chain: Chain):
        self._chain = chain

    @property
    def chain(self) -> Chain:
        return self._chain

    def tamper(self, index: int, payload: Any = DEFAULT_TAMPER_PAYLOAD) -> OperationResult:
        """
        Alter block `index` without resealing and validate the result.

        Args:
            index: Block to tamper with
            payload: Replacement payload

        Returns:
            OperationResult with a TamperReport (INVALID_INDEX on a bad index)
        """
        before = self._chain.get_block(index)
        if not before.success:
            return before

        result = self._chain.tamper_block_payload(index, payload)
        if not result.success:
            return result
        after = result.value

        recomputed = self._chain.recomputed_hash(index)
        report = TamperReport(
            index=index,
            original_payload=before.value.payload,
            tampered_payload=copy.deepcopy(after.payload),
            stored_hash=after.hash,
            recomputed_hash=recomputed,
            validation=self._chain.validate(),
        )
        logger.info("Tamper on block #%d detected=%s", index, report.detected)
        return OperationResult.ok(report, f"Block #{index} tampered")

    def repair(
        self,
        index: int,
        payload: Any,
        difficulty: Optional[int] = None
    ) -> OperationResult:
        """
        Restore a tampered chain: edit block `index`, then remine it and
        every later block in order.

        Returns:
            OperationResult with a RepairReport
        """
        if difficulty is not None:
            try:
                validate_difficulty(difficulty)
            except ValueError as e:
                return OperationResult.fail(InvalidParameterError(str(e)))

        edited = self._chain.edit_block_payload(index, payload)
        if not edited.success:
            return edited

        remined = self._chain.remine_from(index, difficulty)
        if not remined.success:
            return remined

        report = RepairReport(
            index=index,
            mining_reports=tuple(remined.value),
            validation=self._chain.validate(),
        )
        logger.info("Repair from block #%d restored=%s", index, report.restored)
        return OperationResult.ok(report, f"Chain repaired from block #{index}")
