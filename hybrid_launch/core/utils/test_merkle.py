import json
import random

import pytest
from eth_utils import keccak, to_bytes

from hybrid_launch.core.constants.devchain import TEST_ACCOUNTS
from hybrid_launch.core.utils.merkle import (
    build_whitelist,
    hash_address,
    hash_pair,
    load_whitelist_addresses,
    verify_proof,
)

ADDRESSES = [a["address"] for a in TEST_ACCOUNTS] + [
    "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed",
    "0xfB6916095ca1df60bB79Ce92cE3Ea74c37c5d359",
    "0xdbF03B407c01E7cD3CBea99509d93f8DDDC8C6FB",
]


def test_leaf_is_keccak_of_raw_twenty_bytes():
    addr = ADDRESSES[0]
    assert hash_address(addr) == keccak(to_bytes(hexstr=addr))
    assert hash_address(addr.lower()) == hash_address(addr)


def test_hash_pair_is_order_independent():
    a, b = hash_address(ADDRESSES[0]), hash_address(ADDRESSES[1])
    assert hash_pair(a, b) == hash_pair(b, a)


def test_single_address_tree_root_is_leaf():
    tree = build_whitelist([ADDRESSES[0]])
    assert tree.root == "0x" + hash_address(ADDRESSES[0]).hex()
    assert tree.proof(ADDRESSES[0]) == []
    assert verify_proof(ADDRESSES[0], [], tree.root)


@pytest.mark.parametrize("size", [1, 2, 3, 4, 5, 7])
def test_every_proof_verifies(size):
    subset = ADDRESSES[:size]
    tree = build_whitelist(subset)
    for addr in subset:
        assert verify_proof(addr, tree.proof(addr), tree.root)


def test_root_invariant_under_reordering():
    root = build_whitelist(ADDRESSES).root
    rng = random.Random(7)
    for _ in range(5):
        shuffled = ADDRESSES[:]
        rng.shuffle(shuffled)
        assert build_whitelist(shuffled).root == root


def test_proof_rejects_outsider_and_wrong_root():
    tree = build_whitelist(ADDRESSES[:4])
    outsider = ADDRESSES[5]
    assert not verify_proof(outsider, tree.proof(ADDRESSES[0]), tree.root)
    other_root = build_whitelist(ADDRESSES[4:]).root
    assert not verify_proof(ADDRESSES[0], tree.proof(ADDRESSES[0]), other_root)


def test_duplicates_are_collapsed_case_insensitively():
    tree = build_whitelist([ADDRESSES[0], ADDRESSES[0].lower(), ADDRESSES[1]])
    assert tree.addresses == (ADDRESSES[0], ADDRESSES[1])
    assert tree.root == build_whitelist(ADDRESSES[:2]).root


def test_empty_whitelist_raises():
    with pytest.raises(ValueError, match="at least one address"):
        build_whitelist([])


def test_proof_lookup_for_non_member_raises():
    tree = build_whitelist(ADDRESSES[:2])
    with pytest.raises(KeyError):
        tree.proof(ADDRESSES[3])


def test_is_member_is_case_insensitive_set_check():
    tree = build_whitelist(ADDRESSES[:2])
    assert tree.is_member(ADDRESSES[1].lower())
    assert tree.is_member(ADDRESSES[1].upper().replace("0X", "0x"))
    assert not tree.is_member(ADDRESSES[2])


def test_proofs_keyed_by_checksummed_address():
    tree = build_whitelist([a.lower() for a in ADDRESSES[:3]])
    assert set(tree.proofs) == set(ADDRESSES[:3])
    assert all(p.startswith("0x") and len(p) == 66 for ps in tree.proofs.values() for p in ps)


def test_load_whitelist_addresses(tmp_path):
    path = tmp_path / "whitelist.json"
    path.write_text(json.dumps({"addresses": [a.lower() for a in ADDRESSES[:2]]}))
    assert load_whitelist_addresses(path) == ADDRESSES[:2]

    bare = tmp_path / "bare.json"
    bare.write_text(json.dumps(ADDRESSES[:1]))
    assert load_whitelist_addresses(bare) == ADDRESSES[:1]

    bad = tmp_path / "bad.json"
    bad.write_text(json.dumps({"addresses": "nope"}))
    with pytest.raises(ValueError, match="addresses"):
        load_whitelist_addresses(bad)
