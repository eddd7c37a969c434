"""Merkle whitelist commitments compatible with OpenZeppelin's MerkleProof.

Leaves are ``keccak256(abi.encodePacked(address))`` (20 raw bytes, no padding).
Sibling pairs are sorted before hashing at every level and leaves are sorted
before the tree is laid out, so the root depends only on the address set.
"""

from __future__ import annotations

import json
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from eth_abi.packed import encode_packed
from eth_utils import keccak, to_bytes, to_checksum_address


def hash_address(address: str) -> bytes:
    return keccak(encode_packed(["address"], [to_checksum_address(address)]))


def hash_pair(a: bytes, b: bytes) -> bytes:
    return keccak(a + b) if a <= b else keccak(b + a)


def _hex(value: bytes) -> str:
    return "0x" + value.hex()


def _build_levels(leaves: list[bytes]) -> list[list[bytes]]:
    levels = [leaves]
    while len(levels[-1]) > 1:
        prev = levels[-1]
        nxt = [hash_pair(prev[i], prev[i + 1]) for i in range(0, len(prev) - 1, 2)]
        # odd node is carried up unchanged
        if len(prev) % 2:
            nxt.append(prev[-1])
        levels.append(nxt)
    return levels


def _proof_for_index(levels: list[list[bytes]], index: int) -> list[bytes]:
    proof: list[bytes] = []
    for level in levels[:-1]:
        sibling = index ^ 1
        if sibling < len(level):
            proof.append(level[sibling])
        index //= 2
    return proof


@dataclass(frozen=True)
class WhitelistTree:
    root: str
    addresses: tuple[str, ...]
    proofs: dict[str, list[str]] = field(default_factory=dict)

    def proof(self, address: str) -> list[str]:
        key = to_checksum_address(address)
        if key not in self.proofs:
            raise KeyError(f"{key} is not whitelisted")
        return list(self.proofs[key])

    def is_member(self, address: str) -> bool:
        needle = str(address).lower()
        return any(a.lower() == needle for a in self.addresses)


def build_whitelist(addresses: Iterable[str]) -> WhitelistTree:
    unique: dict[str, str] = {}
    for addr in addresses:
        checksummed = to_checksum_address(addr)
        unique.setdefault(checksummed.lower(), checksummed)
    if not unique:
        raise ValueError("whitelist must contain at least one address")

    ordered = list(unique.values())
    hashed = {addr: hash_address(addr) for addr in ordered}
    leaves = sorted(hashed.values())
    levels = _build_levels(leaves)
    index_of = {leaf: i for i, leaf in enumerate(leaves)}

    proofs = {
        addr: [_hex(p) for p in _proof_for_index(levels, index_of[leaf])]
        for addr, leaf in hashed.items()
    }
    return WhitelistTree(
        root=_hex(levels[-1][0]), addresses=tuple(ordered), proofs=proofs
    )


def verify_proof(address: str, proof: Iterable[str], root: str) -> bool:
    """Off-chain mirror of ``MerkleProof.verify`` for sorted-pair trees."""
    computed = hash_address(address)
    for sibling in proof:
        computed = hash_pair(computed, to_bytes(hexstr=sibling))
    return computed == to_bytes(hexstr=root)


def load_whitelist_addresses(path: str | Path) -> list[str]:
    """Read a bundled ``{"addresses": [...]}`` whitelist document."""
    data = json.loads(Path(path).read_text())
    raw = data.get("addresses") if isinstance(data, dict) else data
    if not isinstance(raw, list):
        raise ValueError(f"{path}: expected an 'addresses' list")
    return [to_checksum_address(a) for a in raw]
