"""
Integration tests for ChainSim.

Tests complete workflows:
- Build, mine, tamper and validate a chain
- Edit, remine and consensus side by side
- Results, errors and configuration
"""

import logging

import pytest

from chainsim.blockchain import Chain, TamperSimulator
from chainsim.config import ChainConfig, configure_logging
from chainsim.consensus import ConsensusSimulator, Mechanism
from chainsim.errors import (
    ErrorKind,
    InvalidIndexError,
    InvalidParameterError,
    OperationResult,
)


class TestChainWorkflow:
    """End-to-end chain workflows."""

    def test_mine_then_tamper_genesis(self):
        """Tampering genesis invalidates the whole chain without changing its length."""
        chain = Chain(ChainConfig(genesis_payload="Genesis", difficulty=2))
        assert chain.block(0).difficulty == 0

        result = chain.add_block("tx1")
        assert result.success
        assert result.value.reached_target
        assert chain.block(1).hash.startswith("00")
        assert chain.validate().per_block_valid == (True, True)

        chain.tamper_block_payload(0, "corrupted")
        assert chain.validate().per_block_valid == (False, False)
        assert chain.length == 2

    def test_edit_remine_cycle(self):
        """Edit breaks the chain, remining from the edit restores it."""
        chain = Chain(ChainConfig.seeded(difficulty=2))
        chain.add_block({"from": "alice", "to": "bob", "amount": 5})

        chain.edit_block_payload(1, "rewritten history")
        assert not chain.is_valid()
        assert chain.validate().links_intact

        chain.remine_from(1)
        assert chain.is_valid()
        assert chain.block(1).payload == "rewritten history"

    def test_tamper_and_repair(self):
        """A tampered block is caught and repaired."""
        chain = Chain(ChainConfig.seeded(difficulty=1))
        simulator = TamperSimulator(chain)

        report = simulator.tamper(1, "Alice sends 1000 BTC").value
        assert report.detected
        assert report.validation.first_invalid_index == 1

        repaired = simulator.repair(1, report.original_payload).value
        assert repaired.restored

    def test_reset_restores_initial_blocks(self):
        """Reset discards every change."""
        chain = Chain(ChainConfig.seeded(difficulty=1))
        chain.add_block("extra")
        chain.tamper_block_payload(1, "junk")

        chain.reset()
        assert chain.length == 3
        assert chain.is_valid()

    def test_consensus_independent_of_chain(self):
        """Consensus rounds never touch chain state."""
        chain = Chain(ChainConfig.seeded(difficulty=1))
        before = chain.blocks

        simulator = ConsensusSimulator(seed=11)
        for mechanism in Mechanism:
            assert simulator.run_round(mechanism).success

        assert chain.blocks == before


class TestResultsAndConfig:
    """Results, errors and configuration."""

    def test_failed_result_is_falsy(self):
        """Failed results are falsy and carry the error kind."""
        result = Chain().get_block(5)
        assert not result
        assert result.error is ErrorKind.INVALID_INDEX
        assert "out of range" in result.message

    def test_unwrap_raises_mapped_error(self):
        """unwrap re-raises a failure as its exception class."""
        result = Chain().get_block(5)
        with pytest.raises(InvalidIndexError):
            result.unwrap()
        with pytest.raises(IndexError):
            result.unwrap()

    def test_unwrap_success(self):
        """unwrap returns the value of a successful result."""
        assert OperationResult.ok(42).unwrap() == 42

    def test_fail_from_exception(self):
        """fail() takes the kind and message from the exception."""
        result = OperationResult.fail(InvalidParameterError("bad range"))
        assert result.error is ErrorKind.INVALID_PARAMETER
        assert result.message == "bad range"

    @pytest.mark.parametrize("overrides", [
        {'difficulty': -1},
        {'difficulty': 65},
        {'genesis_difficulty': -2},
        {'max_attempts': 0},
    ])
    def test_config_rejects_bad_values(self, overrides):
        """Config validates its settings."""
        with pytest.raises(ValueError):
            ChainConfig(**overrides)

    def test_config_seed_list_stored_as_tuple(self):
        """Seed payloads are normalised to a tuple."""
        config = ChainConfig(seed_payloads=["a", "b"])
        assert config.seed_payloads == ("a", "b")

    def test_configure_logging(self):
        """configure_logging can be called repeatedly."""
        configure_logging(logging.DEBUG)
        configure_logging()
