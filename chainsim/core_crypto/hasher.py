"""
Block Hasher

The single canonical digest used for sealing and validating blocks.

Field order (part of the hash contract, validation reproduces it exactly):
    index, timestamp, payload, previous_hash, nonce

The fields are encoded as one compact JSON array. JSON scalars (None,
bool, int, float, str) are written as themselves; every container and
every non-JSON value is written as a tagged array, e.g.

    [1, 2]          -> ["list", [1, 2]]
    (1, 2)          -> ["tuple", [1, 2]]
    {1: "x"}        -> ["dict", [[1, "x"]]]
    {"1": "x"}      -> ["dict", [["1", "x"]]]
    datetime(...)   -> ["object", "datetime.datetime", "2024-01-01 12:00:00"]

so distinct payloads cannot encode to the same bytes, neighbouring fields
never run together (1, "23") vs (12, "3"), and dicts with keys of mixed
types still have a fixed order (items are ordered by their encoded key).
The encoded bytes are hashed with SHA-256 and rendered as lowercase hex.

Difficulty is NOT part of the digest: it describes the
target a hash was mined against, not the block's content.
"""

import json
from typing import Any, Sequence

from cryptography.hazmat.primitives import hashes


HASH_HEX_LENGTH = 64  # SHA-256 digest as hex

_JSON_SCALARS = (type(None), bool, int, float, str)


def _dumps(value: Any) -> str:
    return json.dumps(value, separators=(',', ':'), ensure_ascii=False)


def canonical(value: Any) -> Any:
    """
    Convert a payload into its tagged, JSON-ready canonical form.

    Exact types are checked so subclasses (IntEnum, str enums...) are
    tagged as objects rather than passing for their base type.
    """
    kind = type(value)
    if kind in _JSON_SCALARS:
        return value
    if kind is list:
        return ["list", [canonical(item) for item in value]]
    if kind is tuple:
        return ["tuple", [canonical(item) for item in value]]
    if kind is dict:
        items = [[canonical(k), canonical(v)] for k, v in value.items()]
        items.sort(key=lambda item: _dumps(item[0]))
        return ["dict", items]
    if kind in (set, frozenset):
        members = sorted((canonical(item) for item in value), key=_dumps)
        return [kind.__name__, members]
    if kind in (bytes, bytearray):
        return [kind.__name__, bytes(value).hex()]
    return ["object", f"{kind.__module__}.{kind.__qualname__}", str(value)]


def encode_fields(fields: Sequence[Any]) -> bytes:
    """Serialize a field tuple into the canonical byte form that is hashed."""
    return _dumps([canonical(field) for field in fields]).encode('utf-8')


def digest(fields: Sequence[Any]) -> str:
    """
    Compute the hex SHA-256 digest of a field tuple.

    Args:
        fields: Ordered fields to hash

    Returns:
        64-character lowercase hexadecimal string
    """
    hasher = hashes.Hash(hashes.SHA256())
    hasher.update(encode_fields(fields))
    return hasher.finalize().hex()


def compute_block_hash(
    index: int,
    timestamp: int,
    payload: Any,
    previous_hash: str,
    nonce: int
) -> str:
    """Compute the hash for a block's fields in the canonical order."""
    return digest((index, timestamp, payload, previous_hash, nonce))


def leading_zero_count(hex_hash: str) -> int:
    """Count leading '0' characters in a hex hash."""
    return len(hex_hash) - len(hex_hash.lstrip('0'))


def meets_difficulty(hex_hash: str, difficulty: int) -> bool:
    """Check whether a hash has at least `difficulty` leading zero digits."""
    return hex_hash.startswith('0' * difficulty)
