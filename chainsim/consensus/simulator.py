"""
Consensus Simulator

Leader selection by a single metric per candidate:
- Proof of Work (PoW): highest computational power
- Proof of Stake (PoS): highest staked amount
- Delegated Proof of Stake (DPoS): most votes

Candidates are generated fresh for every round and are not tied to any
chain state.

Tie-break rule: the winner is the result of a left fold over the pool in
input order that replaces the incumbent only on a STRICTLY greater
metric, so among tied maxima the first candidate wins.

Author: ChainSim Project
"""

import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from ..errors import (
    EmptyCandidatePoolError,
    InvalidMechanismError,
    InvalidParameterError,
    OperationResult,
)


logger = logging.getLogger(__name__)


# ============================================================================
# Mechanisms
# ============================================================================

class Mechanism(Enum):
    """Supported consensus mechanisms (closed set)."""
    PROOF_OF_WORK = "pow"
    PROOF_OF_STAKE = "pos"
    DELEGATED_PROOF_OF_STAKE = "dpos"

    @property
    def profile(self) -> 'MechanismProfile':
        return _PROFILES[self]

    @property
    def label(self) -> str:
        return self.profile.label


@dataclass(frozen=True)
class MechanismProfile:
    """Display text and candidate defaults for one mechanism."""
    label: str
    metric_name: str
    candidate_prefix: str
    default_count: int
    default_range: Tuple[int, int]  # [min, max)
    reason_template: str
    explanation: str


_PROFILES = {
    Mechanism.PROOF_OF_WORK: MechanismProfile(
        label="Proof of Work (PoW)",
        metric_name="power",
        candidate_prefix="Miner",
        default_count=5,
        default_range=(100, 1100),
        reason_template="Selected based on highest computational power: {metric}",
        explanation=(
            "In PoW, the miner with the most computational power (hash rate) "
            "has the highest chance of mining the next block."
        ),
    ),
    Mechanism.PROOF_OF_STAKE: MechanismProfile(
        label="Proof of Stake (PoS)",
        metric_name="stake",
        candidate_prefix="Staker",
        default_count=5,
        default_range=(500, 5500),
        reason_template="Selected based on highest stake: {metric} tokens",
        explanation=(
            "In PoS, validators are chosen based on their stake in the network. "
            "Higher stake = higher chance of validation."
        ),
    ),
    Mechanism.DELEGATED_PROOF_OF_STAKE: MechanismProfile(
        label="Delegated Proof of Stake (DPoS)",
        metric_name="votes",
        candidate_prefix="Delegate",
        default_count=3,
        default_range=(1000, 11000),
        reason_template="Selected based on most votes: {metric} votes",
        explanation=(
            "In DPoS, token holders vote for delegates who validate "
            "transactions on their behalf."
        ),
    ),
}


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def parse_mechanism(value: Union[Mechanism, str]) -> Mechanism:
    """
    Resolve a mechanism from an enum member, its value ("pow") or its
    name ("PROOF_OF_WORK"), case-insensitively.

    Raises:
        InvalidMechanismError: For anything else
    """
    if isinstance(value, Mechanism):
        return value
    if isinstance(value, str):
        key = value.strip().lower()
        for mechanism in Mechanism:
            if key in (mechanism.value, mechanism.name.lower()):
                return mechanism
    raise InvalidMechanismError(f"Unknown consensus mechanism: {value!r}")


# ============================================================================
# Candidates and Reports
# ============================================================================

@dataclass(frozen=True)
class Candidate:
    """A validator competing in one round."""
    id: str
    metric: float

    def __post_init__(self):
        if self.metric < 0:
            raise ValueError(f"Candidate metric cannot be negative: {self.metric}")


@dataclass(frozen=True)
class ConsensusReport:
    """Outcome of one selection round."""
    mechanism: Mechanism
    candidates: Tuple[Candidate, ...]
    winner: Candidate
    reason: str
    explanation: str

    def to_dict(self) -> Dict[str, Any]:
        metric_name = self.mechanism.profile.metric_name
        return {
            'mechanism': self.mechanism.value,
            'label': self.mechanism.label,
            'candidates': [
                {'id': c.id, metric_name: c.metric} for c in self.candidates
            ],
            'winner': {'id': self.winner.id, metric_name: self.winner.metric},
            'reason': self.reason,
            'explanation': self.explanation,
        }


def select_winner(candidates: Sequence[Candidate]) -> Candidate:
    """
    Pick the candidate with the greatest metric, first one on ties.

    Raises:
        EmptyCandidatePoolError: If there are no candidates
    """
    if not candidates:
        raise EmptyCandidatePoolError("Cannot select a winner from an empty candidate pool")
    winner = candidates[0]
    for candidate in candidates[1:]:
        if candidate.metric > winner.metric:
            winner = candidate
    return winner


# ============================================================================
# Simulator
# ============================================================================

class ConsensusSimulator:
    """
    Runs leader-selection rounds for the supported mechanisms.

    Pass `seed` (or your own `random.Random`) for reproducible pools.
    """

    def __init__(self, seed: Optional[int] = None, rng: Optional[random.Random] = None):
        self._rng = rng or random.Random(seed)

    def _candidates(
        self,
        mechanism: Union[Mechanism, str],
        count: Optional[int],
        metric_range: Optional[Tuple[int, int]]
    ) -> Tuple[Mechanism, List[Candidate]]:
        mechanism = parse_mechanism(mechanism)
        profile = mechanism.profile
        if count is None:
            count = profile.default_count
        try:
            low, high = metric_range if metric_range is not None else profile.default_range
        except (TypeError, ValueError) as e:
            raise InvalidParameterError(f"Metric range must be a (min, max) pair: {metric_range!r}") from e

        if not _is_int(count) or count < 0:
            raise InvalidParameterError(f"Candidate count must be a non-negative integer: {count!r}")
        if not (_is_int(low) and _is_int(high)):
            raise InvalidParameterError(
                f"Metric range bounds must be integers, got [{low!r}, {high!r})"
            )
        if low < 0 or low >= high:
            raise InvalidParameterError(
                f"Metric range must satisfy 0 <= min < max, got [{low}, {high})"
            )

        candidates = [
            Candidate(
                id=f"{profile.candidate_prefix} {i + 1}",
                metric=self._rng.randrange(low, high)
            )
            for i in range(count)
        ]
        return mechanism, candidates

    def generate_candidates(
        self,
        mechanism: Union[Mechanism, str],
        count: Optional[int] = None,
        metric_range: Optional[Tuple[int, int]] = None
    ) -> OperationResult:
        """
        Generate a fresh candidate pool.

        Args:
            mechanism: Mechanism the metric is drawn for
            count: Pool size (default: mechanism's default)
            metric_range: Integer bounds [min, max) for each metric

        Returns:
            OperationResult with a list of Candidates
        """
        try:
            mechanism, candidates = self._candidates(mechanism, count, metric_range)
        except (InvalidMechanismError, InvalidParameterError) as e:
            return OperationResult.fail(e)
        return OperationResult.ok(
            candidates,
            f"Generated {len(candidates)} {mechanism.profile.metric_name} candidate(s)"
        )

    def select_winner(self, candidates: Sequence[Candidate]) -> OperationResult:
        """Select the winner of a pool; an empty pool is a failed result."""
        try:
            winner = select_winner(candidates)
        except EmptyCandidatePoolError as e:
            return OperationResult.fail(e)
        return OperationResult.ok(winner, f"{winner.id} selected")

    def run_round(
        self,
        mechanism: Union[Mechanism, str],
        count: Optional[int] = None,
        metric_range: Optional[Tuple[int, int]] = None,
        candidates: Optional[Sequence[Candidate]] = None
    ) -> OperationResult:
        """
        Run one selection round.

        A pool is generated unless `candidates` is given.

        Returns:
            OperationResult with a ConsensusReport
        """
        try:
            if candidates is None:
                mechanism, pool = self._candidates(mechanism, count, metric_range)
            else:
                mechanism = parse_mechanism(mechanism)
                pool = list(candidates)
            winner = select_winner(pool)
        except (InvalidMechanismError, InvalidParameterError, EmptyCandidatePoolError) as e:
            return OperationResult.fail(e)

        profile = mechanism.profile
        report = ConsensusReport(
            mechanism=mechanism,
            candidates=tuple(pool),
            winner=winner,
            reason=profile.reason_template.format(metric=winner.metric),
            explanation=profile.explanation,
        )
        logger.info("%s round: %s wins with %s=%s",
                    profile.label, winner.id, profile.metric_name, winner.metric)
        return OperationResult.ok(report, report.reason)
