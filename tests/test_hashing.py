"""Tests for the public hashing entry points."""

from __future__ import annotations

import hashlib
import logging
import re

import pytest

from acc_hashing import (
    EMPTY_SEQUENCE_DIGEST,
    FormatterError,
    RoutingError,
    hash_access_control_conditions,
    hash_conditions,
    hash_evm_contract_conditions,
    hash_resource_id,
    hash_resource_id_for_signing,
    hash_sol_rpc_conditions,
    hash_unified_access_control_conditions,
)
from acc_hashing.digest import DIGEST_SIZE, to_hex
from acc_hashing.formatters import canonicalize_unified_condition
from acc_hashing.serialization import serialize

from conftest import make_evm_basic

SEQUENCE_HASHERS = [
    hash_access_control_conditions,
    hash_evm_contract_conditions,
    hash_sol_rpc_conditions,
    hash_unified_access_control_conditions,
]


def test_empty_sequence_digest_constant():
    assert EMPTY_SEQUENCE_DIGEST == hashlib.sha256(b"[]").digest()
    assert to_hex(EMPTY_SEQUENCE_DIGEST) == (
        "4f53cda18c2baa0c0354bb5f9a3ecbe5ed12ab4d8e11ba873c2f11161202b945"
    )


@pytest.mark.parametrize("hasher", SEQUENCE_HASHERS)
def test_empty_sequence_hashes_to_constant(hasher):
    assert hasher([]) == EMPTY_SEQUENCE_DIGEST


def test_access_control_conditions_digest_matches_canonical_text(evm_basic):
    digest = hash_access_control_conditions([evm_basic])

    expected_text = (
        '[{"contractAddress":"0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48",'
        '"chain":"ethereum","standardContractType":"ERC20","method":"balanceOf",'
        '"parameters":[":userAddress"],'
        '"returnValueTest":{"comparator":">","value":"1000000"}}]'
    )
    assert digest == hashlib.sha256(expected_text.encode("utf-8")).digest()
    assert len(digest) == DIGEST_SIZE


def test_hashing_is_deterministic(evm_basic, evm_contract, sol_rpc_v2):
    conditions = [evm_basic, {"operator": "or"}, [evm_contract, {"operator": "and"}, sol_rpc_v2]]

    first = hash_unified_access_control_conditions(conditions)
    second = hash_unified_access_control_conditions(conditions)

    assert first == second


def test_sequence_order_changes_digest():
    a = make_evm_basic(chain="ethereum")
    b = make_evm_basic(chain="polygon")

    assert hash_access_control_conditions(
        [a, {"operator": "and"}, b]
    ) != hash_access_control_conditions([b, {"operator": "and"}, a])


def test_sequence_length_changes_digest(evm_basic):
    assert hash_access_control_conditions([evm_basic]) != (
        hash_access_control_conditions([evm_basic, {"operator": "and"}, evm_basic])
    )


def test_grouping_changes_digest(evm_basic):
    flat = [evm_basic, {"operator": "and"}, evm_basic]

    assert hash_access_control_conditions(flat) != (
        hash_access_control_conditions([flat])
    )


def test_hex_case_hashes_identically():
    lower = make_evm_basic(contractAddress="0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48")
    mixed = make_evm_basic(contractAddress="0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48")

    assert hash_access_control_conditions([lower]) == (
        hash_access_control_conditions([mixed])
    )


def test_unified_mixed_sequence(evm_basic, sol_rpc_v2):
    forward = [evm_basic, {"operator": "and"}, sol_rpc_v2]
    backward = [sol_rpc_v2, {"operator": "and"}, evm_basic]

    digest = hash_unified_access_control_conditions(forward)

    assert digest == hash_unified_access_control_conditions(forward)
    assert digest != hash_unified_access_control_conditions(backward)


def test_unified_hashes_the_canonical_forms(evm_contract, cosmos):
    conditions = [evm_contract, {"operator": "or"}, cosmos]
    canonical_text = serialize([canonicalize_unified_condition(c) for c in conditions])

    assert '"conditionType"' not in canonical_text
    assert "null" not in canonical_text
    assert hash_unified_access_control_conditions(conditions) == (
        hashlib.sha256(canonical_text.encode("utf-8")).digest()
    )


def test_unified_rejects_unknown_variant(evm_basic):
    with pytest.raises(RoutingError):
        hash_unified_access_control_conditions(
            [evm_basic, {"operator": "and"}, make_evm_basic(conditionType="near")]
        )


def test_unified_item_without_condition_type_fails_routing(evm_basic):
    with pytest.raises(RoutingError) as excinfo:
        hash_unified_access_control_conditions(
            [evm_basic, {"operator": "or"}, {"chain": "ethereum"}]
        )

    assert excinfo.value.location == "[2]"


def test_evm_item_through_solana_hasher_fails(evm_basic):
    untagged = {k: v for k, v in evm_basic.items() if k != "conditionType"}

    with pytest.raises(RoutingError):
        hash_sol_rpc_conditions([evm_basic])
    with pytest.raises(FormatterError):
        hash_sol_rpc_conditions([untagged])


def test_contract_item_through_basic_hasher_fails(evm_contract):
    del evm_contract["conditionType"]

    with pytest.raises(FormatterError, match="standardContractType"):
        hash_access_control_conditions([evm_contract])


def test_no_partial_digest_on_late_failure(evm_basic):
    broken = make_evm_basic()
    del broken["chain"]

    with pytest.raises(FormatterError) as excinfo:
        hash_access_control_conditions([evm_basic, {"operator": "and"}, broken])

    assert excinfo.value.location == "[2]"


def test_resource_id_for_signing_scenario(resource_id):
    first = hash_resource_id_for_signing(resource_id)
    second = hash_resource_id_for_signing(dict(resource_id))

    assert re.fullmatch(r"[0-9a-f]{64}", first)
    assert first == second
    assert first == hashlib.sha256(
        b'{"baseUrl":"https://example.com","path":"/a","orgId":"","role":"",'
        b'"extraData":""}'
    ).hexdigest()
    assert bytes.fromhex(first) == hash_resource_id(resource_id)


def test_resource_id_field_changes_digest(resource_id):
    changed = dict(resource_id, role="admin")

    assert hash_resource_id(resource_id) != hash_resource_id(changed)


def test_hash_conditions_dispatches_by_family(evm_basic, sol_rpc, evm_contract):
    assert hash_conditions({"accessControlConditions": [evm_basic]}) == (
        hash_access_control_conditions([evm_basic])
    )
    assert hash_conditions({"solRpcConditions": [sol_rpc]}) == (
        hash_sol_rpc_conditions([sol_rpc])
    )
    assert hash_conditions(
        {"evmContractConditions": [evm_contract], "solRpcConditions": None}
    ) == hash_evm_contract_conditions([evm_contract])
    assert hash_conditions({"unifiedAccessControlConditions": []}) == (
        EMPTY_SEQUENCE_DIGEST
    )


def test_hash_conditions_requires_exactly_one_family(evm_basic):
    with pytest.raises(RoutingError, match="No conditions"):
        hash_conditions({})
    with pytest.raises(RoutingError, match="ambiguous"):
        hash_conditions(
            {
                "accessControlConditions": [evm_basic],
                "unifiedAccessControlConditions": [evm_basic],
            }
        )
    with pytest.raises(RoutingError):
        hash_conditions([evm_basic])  # type: ignore[arg-type]


def test_diagnostics_receive_pre_hash_text(evm_basic):
    seen: list[tuple[str, str]] = []

    digest = hash_access_control_conditions(
        [evm_basic], diagnostics=lambda label, text: seen.append((label, text))
    )

    assert len(seen) == 1
    label, text = seen[0]
    assert label == "access control conditions"
    assert hashlib.sha256(text.encode("utf-8")).digest() == digest


def test_failing_diagnostics_do_not_change_digest(evm_basic, caplog):
    def broken_sink(label: str, text: str) -> None:
        raise RuntimeError("sink down")

    with caplog.at_level(logging.WARNING, logger="acc_hashing.hashing"):
        digest = hash_access_control_conditions([evm_basic], diagnostics=broken_sink)

    assert digest == hash_access_control_conditions([evm_basic])
    assert any("Diagnostic sink failed" in r.getMessage() for r in caplog.records)


def test_debug_logging_emits_pre_hash_text(resource_id, caplog):
    with caplog.at_level(logging.DEBUG, logger="acc_hashing.hashing"):
        hash_resource_id(resource_id)

    messages = [r.getMessage() for r in caplog.records]
    assert any(m.startswith("Hashing resource id: {") for m in messages)


def test_no_diagnostics_when_debug_disabled(resource_id, caplog):
    with caplog.at_level(logging.INFO, logger="acc_hashing.hashing"):
        hash_resource_id(resource_id)

    assert not [r for r in caplog.records if r.name == "acc_hashing.hashing"]
