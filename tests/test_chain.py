"""
Unit tests for Chain.

Tests:
- Genesis and seed blocks
- Append policies and index checks
- Edit ripple and tamper detection
- Remining and reset
- Validation report contents
"""

import dataclasses
import itertools
from datetime import datetime

import pytest

from chainsim.blockchain.block import Block
from chainsim.blockchain.chain import Chain, IssueKind, create_chain
from chainsim.blockchain.miner import Miner, MiningOutcome
from chainsim.config import ChainConfig, GENESIS_PAYLOAD, GENESIS_PREV_HASH
from chainsim.core_crypto.hasher import compute_block_hash, leading_zero_count, meets_difficulty
from chainsim.errors import ErrorKind, InvalidIndexError


def seeded_chain(difficulty=2, count=3):
    """Genesis plus `count` mined blocks."""
    payloads = tuple(f"tx{i}" for i in range(1, count + 1))
    return Chain(ChainConfig(difficulty=difficulty, seed_payloads=payloads))


def unqualified_payload(snapshot, prefix):
    """First `prefix-N` payload whose nonce-0 hash misses the block's target."""
    for n in itertools.count():
        payload = f"{prefix}-{n}"
        nonce_zero_hash = compute_block_hash(
            snapshot.index, snapshot.timestamp, payload, snapshot.previous_hash, 0
        )
        if not meets_difficulty(nonce_zero_hash, snapshot.difficulty):
            return payload


class TestGenesis:
    """Tests for chain creation."""

    def test_genesis_block_created(self):
        """Chain starts with a genesis block."""
        chain = Chain()
        assert chain.length == 1
        genesis = chain.block(0)
        assert genesis.index == 0
        assert genesis.previous_hash == GENESIS_PREV_HASH
        assert genesis.payload == GENESIS_PAYLOAD
        assert genesis.nonce == 0
        assert genesis.difficulty == 0

    def test_new_chain_is_valid(self):
        """A fresh chain validates."""
        assert Chain().validate().is_valid

    def test_seed_blocks(self):
        """Seed payloads are mined after genesis."""
        chain = Chain(ChainConfig.seeded(difficulty=1))
        assert chain.length == 3
        assert chain.validate().is_valid
        assert all(b.hash.startswith("0") for b in chain.blocks[1:])

    def test_create_genesis_recomputable(self):
        """Genesis at difficulty 0 has a fixed, recomputable hash."""
        chain = Chain()
        first = chain.create_genesis("Genesis", difficulty=0, timestamp=1700000000)
        second = chain.create_genesis("Genesis", difficulty=0, timestamp=1700000000)
        assert first.hash == second.hash
        assert first.hash == first.compute_hash()
        assert first.nonce == 0

    def test_genesis_difficulty(self):
        """Genesis is mined to the configured genesis difficulty."""
        chain = Chain(ChainConfig(genesis_difficulty=2))
        assert chain.block(0).hash.startswith("00")
        assert chain.validate().is_valid

    def test_create_chain_helper(self):
        """create_chain builds a chain with seeds."""
        chain = create_chain(difficulty=1, seed_payloads=["a", "b"])
        assert chain.length == 3
        assert chain.difficulty == 1


class TestAppend:
    """Tests for append and add_block."""

    def test_add_block_mines(self):
        """add_block links and mines the new block."""
        chain = Chain(ChainConfig(difficulty=2))
        result = chain.add_block("tx1")

        assert result.success
        assert result.value.reached_target
        assert chain.length == 2
        assert chain.block(1).previous_hash == chain.block(0).hash
        assert chain.block(1).hash.startswith("00")
        assert chain.validate().is_valid

    def test_append_sets_previous_hash(self):
        """append overwrites previous_hash with the tip's hash."""
        chain = Chain()
        block = Block.create(index=1, payload="tx1", previous_hash="ff" * 32, difficulty=1)
        result = chain.append(block)
        assert result.success
        assert chain.block(1).previous_hash == chain.block(0).hash

    def test_append_wrong_index(self):
        """Index must equal the chain length."""
        chain = Chain()
        block = Block.create(index=5, payload="tx", difficulty=1)
        result = chain.append(block)

        assert not result.success
        assert result.error is ErrorKind.INVALID_INDEX
        assert chain.length == 1

    def test_append_copies_block(self):
        """The caller's block is not aliased into the chain."""
        chain = Chain()
        block = Block.create(index=1, payload={"amount": 10}, difficulty=1)
        chain.append(block)
        block.payload["amount"] = 999
        block.hash = "f" * 64

        assert chain.block(1).payload == {"amount": 10}
        assert chain.validate().is_valid

    def test_append_reseal_only(self):
        """Without mining the block is linked but not mined."""
        chain = Chain(ChainConfig(mine_on_append=False))
        result = chain.add_block("tx1")

        assert result.success
        assert result.value is None
        assert chain.block(1).nonce == 0
        assert chain.validate().links_intact

    def test_append_explicit_difficulty(self):
        """append can seal at a difficulty other than the block's."""
        chain = Chain()
        block = Block.create(index=1, payload="tx1", difficulty=0)
        result = chain.append(block, difficulty=2)
        assert result.value.difficulty == 2
        assert chain.block(1).difficulty == 2

    def test_append_invalid_difficulty(self):
        """Out-of-range difficulty is a failed result."""
        chain = Chain()
        result = chain.add_block("tx1", difficulty=-1)
        assert result.error is ErrorKind.INVALID_PARAMETER
        assert chain.length == 1

    @pytest.mark.parametrize("difficulty", [-1, 65, 2.5, "2"])
    def test_append_block_with_invalid_difficulty(self, difficulty):
        """A block carrying a bad difficulty of its own is a failed result."""
        chain = Chain()
        block = Block.create(index=1, payload="tx1", difficulty=difficulty)
        result = chain.append(block)

        assert not result.success
        assert result.error is ErrorKind.INVALID_PARAMETER
        assert chain.length == 1

    def test_mixed_key_payload(self):
        """Dict payloads with mixed key types can be appended and validated."""
        chain = Chain(ChainConfig(difficulty=1))
        result = chain.add_block({1: "a", "b": 2})
        assert result.success
        assert chain.validate().is_valid

        chain.tamper_block_payload(1, {"b": 2, 1: "z"})
        assert chain.validate().per_block_valid == (True, False)

    def test_capped_append_is_reported(self):
        """Hitting the cap on append is reported, the block is still added."""
        chain = Chain(ChainConfig(difficulty=12, max_attempts=5))
        result = chain.add_block("tx1")

        assert result.success
        assert result.value.outcome is MiningOutcome.CAPPED
        assert chain.length == 2
        assert chain.validate().first_invalid_index == 1


class TestReadAccess:
    """Tests for read-only access."""

    def test_blocks_are_snapshots(self):
        """Snapshots cannot be used to mutate the chain."""
        chain = seeded_chain(difficulty=1, count=1)
        snap = chain.blocks[1]
        with pytest.raises(dataclasses.FrozenInstanceError):
            snap.payload = "changed"
        assert chain.validate().is_valid

    def test_block_out_of_range_raises(self):
        """block() raises for a bad index."""
        with pytest.raises(InvalidIndexError):
            Chain().block(3)

    def test_get_block_out_of_range(self):
        """get_block() reports a bad index as a failed result."""
        result = Chain().get_block(-1)
        assert not result.success
        assert result.error is ErrorKind.INVALID_INDEX

    def test_len_and_last_block(self):
        """len() and last_block follow the chain."""
        chain = seeded_chain(difficulty=1, count=2)
        assert len(chain) == 3
        assert chain.last_block.index == 2

    def test_to_dict(self):
        """Chain serializes every block."""
        d = seeded_chain(difficulty=1, count=1).to_dict()
        assert d['length'] == 2
        assert [b['index'] for b in d['blocks']] == [0, 1]


class TestEdit:
    """Tests for payload edits and ripple invalidation."""

    def test_edit_cascades_links(self):
        """Descendants are relinked with nonce 0; links hold, work does not."""
        chain = seeded_chain(difficulty=3, count=3)
        payload = unqualified_payload(chain.block(1), "tx1-edited")
        result = chain.edit_block_payload(1, payload)
        assert result.success

        blocks = chain.blocks
        assert blocks[1].payload == payload
        for j in range(1, len(blocks)):
            assert blocks[j].nonce == 0
            assert blocks[j].previous_hash == blocks[j - 1].hash

        report = chain.validate()
        assert report.links_intact
        assert all(check.hash_ok for check in report.checks)
        assert report.per_block_valid[0]
        assert report.first_invalid_index == 1
        assert not any(report.per_block_valid[1:])

    def test_edit_then_remine_restores(self):
        """Remining from the edited block makes the chain valid again."""
        chain = seeded_chain(difficulty=2, count=3)
        chain.edit_block_payload(2, "tx2-edited")
        result = chain.remine_from(2)

        assert result.success
        assert len(result.value) == 2
        assert chain.validate().is_valid
        assert chain.block(2).payload == "tx2-edited"

    def test_edit_last_block(self):
        """Editing the tip has no descendants to relink."""
        chain = seeded_chain(difficulty=1, count=2)
        before = chain.blocks
        chain.edit_block_payload(2, "new")
        assert chain.blocks[:2] == before[:2]

    @pytest.mark.parametrize("index", [-1, 4, 100])
    def test_edit_invalid_index(self, index):
        """A bad index fails and changes nothing."""
        chain = seeded_chain(difficulty=1, count=3)
        before = chain.blocks
        result = chain.edit_block_payload(index, "x")

        assert not result.success
        assert result.error is ErrorKind.INVALID_INDEX
        assert chain.blocks == before


class TestTamper:
    """Tests for tampering and detection."""

    def test_tamper_detected_downstream(self):
        """Tampered block fails on hash, successors on linkage."""
        chain = seeded_chain(difficulty=1, count=4)
        before = chain.blocks
        result = chain.tamper_block_payload(2, "forged")
        assert result.success

        after = chain.blocks
        assert after[2].hash == before[2].hash
        for i in (0, 1, 3, 4):
            assert after[i] == before[i]

        report = chain.validate()
        assert report.per_block_valid == (True, True, False, False, False)
        assert report.first_invalid_index == 2
        assert IssueKind.HASH_MISMATCH in report.checks[2].issues
        assert IssueKind.BROKEN_LINK in report.checks[3].issues
        assert IssueKind.INVALID_PREDECESSOR in report.checks[4].issues

    def test_tamper_tip(self):
        """Tampering the last block only invalidates that block."""
        chain = seeded_chain(difficulty=1, count=2)
        chain.tamper_block_payload(2, "forged")
        assert chain.validate().per_block_valid == (True, True, False)

    def test_tamper_invalid_index(self):
        """A bad index fails and changes nothing."""
        chain = seeded_chain(difficulty=1, count=1)
        before = chain.blocks
        result = chain.tamper_block_payload(2, "x")

        assert result.error is ErrorKind.INVALID_INDEX
        assert chain.blocks == before
        assert chain.validate().is_valid

    @pytest.mark.parametrize("original,forged", [
        ({1: "x"}, {"1": "x"}),
        ([1, 2], (1, 2)),
        ({"amount": 10}, {"amount": 10.0}),
        ("2024-01-01 12:00:00", datetime(2024, 1, 1, 12, 0, 0)),
    ])
    def test_lookalike_payload_detected(self, original, forged):
        """Swapping a payload for a same-looking one of another type is caught."""
        chain = Chain(ChainConfig(difficulty=1, seed_payloads=(original,)))
        chain.tamper_block_payload(1, forged)

        report = chain.validate()
        assert report.per_block_valid == (True, False)
        assert IssueKind.HASH_MISMATCH in report.checks[1].issues

    def test_recomputed_hash_differs_after_tamper(self):
        """recomputed_hash exposes the stale stored hash."""
        chain = seeded_chain(difficulty=1, count=1)
        chain.tamper_block_payload(1, "forged")
        assert chain.recomputed_hash(1) != chain.block(1).hash


class TestRemine:
    """Tests for remining single blocks."""

    def test_remine_valid_block_is_free(self):
        """Remining a valid block at its difficulty takes no attempts."""
        chain = seeded_chain(difficulty=2, count=2)
        before = chain.blocks
        result = chain.remine_block(1)

        assert result.success
        assert result.value.attempt_count == 0
        assert chain.blocks == before

    def test_remine_lower_difficulty_is_free(self):
        """Lowering the difficulty on remine takes no attempts."""
        chain = seeded_chain(difficulty=2, count=1)
        result = chain.remine_block(1, difficulty=1)

        assert result.value.attempt_count == 0
        assert chain.block(1).difficulty == 1
        assert chain.validate().is_valid

    def test_remine_cascades_on_change(self):
        """A remine that changes the hash relinks descendants."""
        chain = seeded_chain(difficulty=2, count=2)
        chain.edit_block_payload(1, "changed")
        chain.remine_block(1)

        assert chain.block(2).previous_hash == chain.block(1).hash
        assert chain.block(2).nonce == 0
        assert chain.validate().links_intact

    def test_remine_invalid_difficulty(self):
        """Out-of-range difficulty fails and changes nothing."""
        chain = seeded_chain(difficulty=1, count=1)
        before = chain.blocks
        result = chain.remine_block(1, difficulty=65)

        assert result.error is ErrorKind.INVALID_PARAMETER
        assert chain.blocks == before

    def test_remine_invalid_index(self):
        """Bad index on remine fails."""
        assert Chain().remine_block(1).error is ErrorKind.INVALID_INDEX
        assert Chain().remine_from(1).error is ErrorKind.INVALID_INDEX

    def test_remine_from_stops_when_capped(self):
        """remine_from stops at the first run that misses its target."""
        chain = Chain(ChainConfig(difficulty=1, seed_payloads=("a", "b")),
                      miner=Miner(max_attempts=3))
        result = chain.remine_from(1, difficulty=12)

        assert len(result.value) == 1
        assert result.value[0].outcome is MiningOutcome.CAPPED


class TestReset:
    """Tests for reset."""

    def test_reset_restores_initial_state(self):
        """reset discards blocks and rebuilds genesis and seeds."""
        chain = Chain(ChainConfig.seeded(difficulty=1))
        chain.add_block("extra")
        chain.tamper_block_payload(1, "forged")
        chain.reset()

        assert chain.length == 3
        assert chain.validate().is_valid
        assert chain.block(1).payload == chain.config.seed_payloads[0]


class TestValidation:
    """Tests for validation rules."""

    @pytest.mark.parametrize("difficulty", range(0, 4))
    def test_mined_block_is_valid(self, difficulty):
        """A mined block has enough zeros and an authentic hash, so it is valid."""
        chain = Chain(ChainConfig(difficulty=difficulty))
        chain.add_block("tx1")

        assert leading_zero_count(chain.block(1).hash) >= difficulty
        assert chain.validate().per_block_valid == (True, True)

        chain.tamper_block_payload(1, "forged")
        assert chain.validate().per_block_valid == (True, False)

    @pytest.mark.parametrize("difficulty", range(0, 7))
    def test_valid_iff_zeros_and_authentic(self, difficulty):
        """An authentic block is valid iff its hash has at least d leading zeros."""
        chain = Chain(ChainConfig(difficulty=difficulty, mine_on_append=False))
        chain.add_block("tx1", timestamp=1700000000)

        enough_zeros = leading_zero_count(chain.block(1).hash) >= difficulty
        check = chain.validate().checks[1]
        assert check.hash_ok
        assert check.valid == enough_zeros

        chain.tamper_block_payload(1, "forged")
        assert chain.validate().per_block_valid[1] is False

    @pytest.mark.parametrize("difficulty", range(4, 7))
    def test_capped_block_validity_follows_zeros(self, difficulty):
        """A capped block is judged by its zero count like any other."""
        chain = Chain(ChainConfig(difficulty=difficulty, max_attempts=1))
        chain.add_block("tx1", timestamp=1700000000)

        enough_zeros = leading_zero_count(chain.block(1).hash) >= difficulty
        assert chain.validate().per_block_valid[1] == enough_zeros

    def test_validate_does_not_mutate(self):
        """Validation leaves every block untouched."""
        chain = seeded_chain(difficulty=1, count=2)
        chain.tamper_block_payload(1, "forged")
        before = chain.blocks
        chain.validate()
        assert chain.blocks == before

    def test_insufficient_difficulty_reported(self):
        """A block below its difficulty gets INSUFFICIENT_DIFFICULTY."""
        chain = Chain(ChainConfig(difficulty=12, max_attempts=1))
        chain.add_block("tx1")
        check = chain.validate().checks[1]
        assert check.hash_ok
        assert check.link_ok
        assert not check.difficulty_ok
        assert IssueKind.INSUFFICIENT_DIFFICULTY in check.issues

    def test_report_to_dict(self):
        """Report serializes per-block flags."""
        chain = seeded_chain(difficulty=1, count=1)
        chain.tamper_block_payload(0, "forged")
        d = chain.validate().to_dict()
        assert d['per_block_valid'] == [False, False]
        assert d['first_invalid_index'] == 0
        assert d['checks'][0]['issues'] == ["hash_mismatch"]
