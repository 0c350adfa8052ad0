"""Pytest configuration and fixtures."""

from __future__ import annotations

import os
import sys
from typing import Any

import pytest

# Ensure src/ is on sys.path for tests so the src layout is used during test runs
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
SRC = os.path.join(ROOT, "src")
if SRC not in sys.path:
    sys.path.insert(0, SRC)


USDC_ADDRESS = "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48"


def make_evm_basic(**overrides: Any) -> dict[str, Any]:
    """Return an ERC20 balance check as a unified ``evmBasic`` leaf."""

    condition: dict[str, Any] = {
        "conditionType": "evmBasic",
        "contractAddress": USDC_ADDRESS,
        "standardContractType": "ERC20",
        "chain": "ethereum",
        "method": "balanceOf",
        "parameters": [":userAddress"],
        "returnValueTest": {"comparator": ">", "value": "1000000"},
    }
    condition.update(overrides)
    return condition


def make_evm_contract(**overrides: Any) -> dict[str, Any]:
    """Return an ``evmContract`` leaf calling a view function."""

    condition: dict[str, Any] = {
        "conditionType": "evmContract",
        "contractAddress": "0x7C7757a9675f06F3BE4618bB68732c4aB25D2e88",
        "functionName": "balanceOf",
        "functionParams": [":userAddress", "8"],
        "functionAbi": {
            "type": "function",
            "stateMutability": "view",
            "outputs": [{"type": "uint256", "name": "", "internalType": "uint256"}],
            "name": "balanceOf",
            "inputs": [
                {"type": "address", "name": "account", "internalType": "address"},
                {"type": "uint256", "name": "id", "internalType": "uint256"},
            ],
        },
        "chain": "mumbai",
        "returnValueTest": {"key": "", "comparator": ">", "value": "0"},
    }
    condition.update(overrides)
    return condition


def make_sol_rpc(**overrides: Any) -> dict[str, Any]:
    """Return a v1 Solana balance check."""

    condition: dict[str, Any] = {
        "method": "getBalance",
        "params": [":userAddress"],
        "chain": "solana",
        "returnValueTest": {"key": "", "comparator": ">=", "value": "100000000"},
    }
    condition.update(overrides)
    return condition


def make_sol_rpc_v2(**overrides: Any) -> dict[str, Any]:
    """Return a v2 Solana leaf with PDA parameters, tagged for unified use."""

    condition: dict[str, Any] = {
        "conditionType": "solRpc",
        "method": "getBalance",
        "params": [":userAddress"],
        "pdaParams": [],
        "pdaInterface": {"offset": 0, "fields": {}},
        "pdaKey": "",
        "chain": "solana",
        "returnValueTest": {"key": "", "comparator": ">=", "value": "100000000"},
    }
    condition.update(overrides)
    return condition


def make_cosmos(**overrides: Any) -> dict[str, Any]:
    """Return a Cosmos balance check."""

    condition: dict[str, Any] = {
        "conditionType": "cosmos",
        "path": "/cosmos/bank/v1beta1/balances/:userAddress",
        "chain": "cosmos",
        "returnValueTest": {
            "key": "$.balances[0].amount",
            "comparator": ">=",
            "value": "1000000",
        },
    }
    condition.update(overrides)
    return condition


def make_resource_id(**overrides: Any) -> dict[str, Any]:
    """Return the resource id used across signing tests."""

    resource_id: dict[str, Any] = {
        "baseUrl": "https://example.com",
        "path": "/a",
        "orgId": "",
        "role": "",
        "extraData": "",
    }
    resource_id.update(overrides)
    return resource_id


@pytest.fixture
def evm_basic() -> dict[str, Any]:
    return make_evm_basic()


@pytest.fixture
def evm_contract() -> dict[str, Any]:
    return make_evm_contract()


@pytest.fixture
def sol_rpc() -> dict[str, Any]:
    return make_sol_rpc()


@pytest.fixture
def sol_rpc_v2() -> dict[str, Any]:
    return make_sol_rpc_v2()


@pytest.fixture
def cosmos() -> dict[str, Any]:
    return make_cosmos()


@pytest.fixture
def resource_id() -> dict[str, Any]:
    return make_resource_id()
