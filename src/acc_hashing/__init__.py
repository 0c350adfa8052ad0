"""Deterministic hashing of access control conditions and signing resource ids."""

from __future__ import annotations

from importlib import import_module
from typing import Any, TYPE_CHECKING

__all__ = [
    "hash_access_control_conditions",
    "hash_evm_contract_conditions",
    "hash_sol_rpc_conditions",
    "hash_unified_access_control_conditions",
    "hash_resource_id",
    "hash_resource_id_for_signing",
    "hash_conditions",
    "ConditionHashingError",
    "FormatterError",
    "RoutingError",
    "EncodingError",
    "EMPTY_SEQUENCE_DIGEST",
]

if TYPE_CHECKING:
    from .digest import EMPTY_SEQUENCE_DIGEST
    from .errors import (
        ConditionHashingError,
        EncodingError,
        FormatterError,
        RoutingError,
    )
    from .hashing import (
        hash_access_control_conditions,
        hash_conditions,
        hash_evm_contract_conditions,
        hash_resource_id,
        hash_resource_id_for_signing,
        hash_sol_rpc_conditions,
        hash_unified_access_control_conditions,
    )


def __getattr__(name: str) -> Any:
    """Lazily import submodules so importing the package stays cheap."""

    module_map = {
        "hash_access_control_conditions": "hashing",
        "hash_evm_contract_conditions": "hashing",
        "hash_sol_rpc_conditions": "hashing",
        "hash_unified_access_control_conditions": "hashing",
        "hash_resource_id": "hashing",
        "hash_resource_id_for_signing": "hashing",
        "hash_conditions": "hashing",
        "ConditionHashingError": "errors",
        "FormatterError": "errors",
        "RoutingError": "errors",
        "EncodingError": "errors",
        "EMPTY_SEQUENCE_DIGEST": "digest",
    }

    if name not in module_map:
        raise AttributeError(name)

    module = import_module(f".{module_map[name]}", __name__)
    return getattr(module, name)
