"""Trove id derivation: pure, no I/O."""
from __future__ import annotations

from eth_abi import encode
from eth_utils import keccak, to_checksum_address

_UINT256_LIMIT = 2**256


def derive_trove_id(owner: str, owner_index: int) -> int:
    """Return the Trove id for ``(owner, owner_index)``.

    id = keccak256(abi.encode(address owner, uint256 owner_index))

    Both fields are encoded as fixed-width 32-byte words, so distinct pairs
    never share a preimage. Owner addresses are case-insensitive.
    """
    if isinstance(owner_index, bool) or not isinstance(owner_index, int):
        raise ValueError(f"owner_index must be an integer, got {owner_index!r}")
    if not 0 <= owner_index < _UINT256_LIMIT:
        raise ValueError(f"owner_index out of uint256 range: {owner_index}")

    try:
        address = to_checksum_address(owner)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid owner address {owner!r}: {e}") from e

    encoded = encode(["address", "uint256"], [address, owner_index])
    return int.from_bytes(keccak(encoded), "big")
