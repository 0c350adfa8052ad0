"""Deterministic hashing of access control conditions and resource ids.

Every entry point runs the same pipeline: canonicalize each item in input
order, serialize the canonical forms to compact JSON, encode as UTF-8 and
digest with SHA-256. Failures in any stage abort the whole call; no digest
is ever produced over a partially canonicalized sequence.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Final

from .digest import digest_bytes, to_hex
from .errors import RoutingError
from .formatters import canonicalize_resource_id, canonicalize_sequence
from .serialization import encode

__all__ = [
    "DiagnosticSink",
    "hash_access_control_conditions",
    "hash_evm_contract_conditions",
    "hash_sol_rpc_conditions",
    "hash_unified_access_control_conditions",
    "hash_resource_id",
    "hash_resource_id_for_signing",
    "hash_conditions",
]

logger = logging.getLogger(__name__)

DiagnosticSink = Callable[[str, str], None]
"""Callback receiving ``(label, pre_hash_text)`` for debugging."""


def _emit(label: str, data: bytes, diagnostics: DiagnosticSink | None) -> None:
    """Report the pre-hash text without ever affecting the digest."""

    if diagnostics is None:
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("Hashing %s: %s", label, data.decode("utf-8"))
        return
    try:
        diagnostics(label, data.decode("utf-8"))
    except Exception as exc:
        logger.warning(
            "Diagnostic sink failed while hashing %s",
            label,
            extra={"error": str(exc)},
        )


def _hash_sequence(
    conditions: object,
    variant: str,
    label: str,
    diagnostics: DiagnosticSink | None,
) -> bytes:
    forms = canonicalize_sequence(conditions, variant)
    data = encode(forms)
    _emit(label, data, diagnostics)
    return digest_bytes(data)


def hash_access_control_conditions(
    access_control_conditions: object,
    *,
    diagnostics: DiagnosticSink | None = None,
) -> bytes:
    """Hash ``evmBasic`` access control conditions.

    Args:
        access_control_conditions: Ordered condition items, operators and
            nested groups as decoded from JSON.
        diagnostics: Optional callback receiving the pre-hash text.

    Returns:
        The 32-byte SHA-256 digest of the canonical serialization.

    Raises:
        FormatterError: An item is malformed.
        RoutingError: An item declares a different ``conditionType``.
        EncodingError: A value has no deterministic JSON encoding.
    """

    return _hash_sequence(
        access_control_conditions,
        "evmBasic",
        "access control conditions",
        diagnostics,
    )


def hash_evm_contract_conditions(
    evm_contract_conditions: object,
    *,
    diagnostics: DiagnosticSink | None = None,
) -> bytes:
    """Hash EVM contract conditions (arbitrary ABI function calls)."""

    return _hash_sequence(
        evm_contract_conditions,
        "evmContract",
        "evm contract conditions",
        diagnostics,
    )


def hash_sol_rpc_conditions(
    sol_rpc_conditions: object,
    *,
    diagnostics: DiagnosticSink | None = None,
) -> bytes:
    """Hash Solana RPC conditions.

    Items carrying ``pdaParams`` use the v2 canonical shape; others keep the
    original v1 shape.
    """

    return _hash_sequence(
        sol_rpc_conditions, "solRpc", "sol rpc conditions", diagnostics
    )


def hash_unified_access_control_conditions(
    unified_access_control_conditions: object,
    *,
    diagnostics: DiagnosticSink | None = None,
) -> bytes:
    """Hash a mixed sequence whose leaves are routed by ``conditionType``.

    Each leaf is canonicalized with its own variant's rules and the
    resulting canonical forms are what gets hashed. Solana leaves always use
    the v2 shape here.

    Raises:
        RoutingError: A leaf has a missing or unknown ``conditionType``.
    """

    return _hash_sequence(
        unified_access_control_conditions,
        "unified",
        "unified access control conditions",
        diagnostics,
    )


def hash_resource_id(
    resource_id: object,
    *,
    diagnostics: DiagnosticSink | None = None,
) -> bytes:
    """Hash a signing resource id (``baseUrl``, ``path``, ``orgId``, ...)."""

    data = encode(canonicalize_resource_id(resource_id))
    _emit("resource id", data, diagnostics)
    return digest_bytes(data)


def hash_resource_id_for_signing(
    resource_id: object,
    *,
    diagnostics: DiagnosticSink | None = None,
) -> str:
    """Return the resource id digest as lowercase hex for signing requests."""

    return to_hex(hash_resource_id(resource_id, diagnostics=diagnostics))


_CONDITION_HASHERS: Final[dict[str, Callable[..., bytes]]] = {
    "accessControlConditions": hash_access_control_conditions,
    "evmContractConditions": hash_evm_contract_conditions,
    "solRpcConditions": hash_sol_rpc_conditions,
    "unifiedAccessControlConditions": hash_unified_access_control_conditions,
}


def hash_conditions(
    params: Mapping[str, object],
    *,
    diagnostics: DiagnosticSink | None = None,
) -> bytes:
    """Hash whichever condition family ``params`` carries.

    ``params`` must hold exactly one non-null entry among
    ``accessControlConditions``, ``evmContractConditions``,
    ``solRpcConditions`` and ``unifiedAccessControlConditions``.

    Raises:
        RoutingError: No family, or more than one, is present.
    """

    if not isinstance(params, Mapping):
        raise RoutingError(
            f"Expected an object of condition families, got {type(params).__name__}"
        )
    present = [
        key for key in _CONDITION_HASHERS if params.get(key) is not None
    ]
    if not present:
        raise RoutingError(
            "No conditions given; provide one of " + ", ".join(_CONDITION_HASHERS)
        )
    if len(present) > 1:
        raise RoutingError(
            "Conditions are ambiguous; got " + ", ".join(present)
        )
    key = present[0]
    return _CONDITION_HASHERS[key](params[key], diagnostics=diagnostics)
