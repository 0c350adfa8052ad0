"""Per-variant canonical formatters for access control conditions.

Each formatter turns one JSON-shaped condition item into a canonical model
whose field order is fixed by its class declaration. Formatters are pure:
they read their input and never modify it. Nested lists are treated as
parenthesised groups and keep their position and internal order.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping, Sequence
from typing import Any, Final

from pydantic import ValidationError

from .canonical import (
    CanonicalAccessControlCondition,
    CanonicalCosmosCondition,
    CanonicalEvmContractCondition,
    CanonicalForm,
    CanonicalOperator,
    CanonicalResourceId,
    CanonicalSolRpcCondition,
    CanonicalSolRpcConditionV2,
)
from .errors import FormatterError, RoutingError

__all__ = [
    "CONDITION_TYPES",
    "canonicalize_access_control_condition",
    "canonicalize_evm_contract_condition",
    "canonicalize_sol_rpc_condition",
    "canonicalize_cosmos_condition",
    "canonicalize_unified_condition",
    "canonicalize_resource_id",
    "canonicalize_sequence",
]

Formatter = Callable[[object, str], CanonicalForm]

_HEX_ADDRESS = re.compile(r"^0[xX][0-9a-fA-F]+$")

_DISCRIMINANT = "conditionType"

_RETURN_VALUE_TEST_FIELDS = ("key", "comparator", "value")
_BASIC_RETURN_VALUE_TEST_FIELDS = ("comparator", "value")
_ABI_FIELDS = ("name", "inputs", "outputs", "constant", "stateMutability")
_ABI_PARAM_FIELDS = ("name", "type")
_PDA_INTERFACE_FIELDS = ("offset", "fields")

_EVM_BASIC_FIELDS = (
    "contractAddress",
    "chain",
    "standardContractType",
    "method",
    "parameters",
    "returnValueTest",
)
_EVM_CONTRACT_FIELDS = (
    "contractAddress",
    "functionName",
    "functionParams",
    "functionAbi",
    "chain",
    "returnValueTest",
)
_SOL_RPC_FIELDS = (
    "method",
    "params",
    "pdaParams",
    "pdaInterface",
    "pdaKey",
    "chain",
    "returnValueTest",
)
_COSMOS_FIELDS = ("path", "chain", "method", "parameters", "returnValueTest")
_RESOURCE_ID_FIELDS = ("baseUrl", "path", "orgId", "role", "extraData")


def _child(location: str, name: str | int) -> str:
    if isinstance(name, int):
        return f"{location}[{name}]"
    return f"{location}.{name}" if location else name


def _fold_keys(
    raw: Mapping[Any, object], names: Sequence[str], location: str
) -> dict[str, object]:
    """Select declared fields from ``raw`` matching key names case-insensitively.

    Keys outside ``names`` are dropped. Two keys folding onto the same field
    are rejected because either choice would hide a semantic difference.
    """

    lookup = {name.lower(): name for name in names}
    folded: dict[str, object] = {}
    for key, value in raw.items():
        if not isinstance(key, str):
            raise FormatterError(
                f"Field names must be strings, got {type(key).__name__}",
                location=location or None,
            )
        target = lookup.get(key.lower())
        if target is None:
            continue
        if target in folded:
            raise FormatterError(
                f"Field {target!r} is given more than once with different casing",
                location=location or None,
            )
        folded[target] = value
    return folded


def _require(fields: Mapping[str, object], name: str, location: str) -> object:
    if name not in fields:
        raise FormatterError(
            f"Missing required field {name!r}", location=location or None
        )
    return fields[name]


def _mapping(value: object, what: str, location: str) -> Mapping[Any, object]:
    if not isinstance(value, Mapping):
        raise FormatterError(
            f"{what} must be an object, got {type(value).__name__}",
            location=location or None,
        )
    return value


def _list(value: object, what: str, location: str) -> list[object]:
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        raise FormatterError(
            f"{what} must be an array, got {type(value).__name__}",
            location=location or None,
        )
    return list(value)


def _normalize_address(value: object) -> object:
    """Lower-case ``0x`` hex addresses; anything else is left to validation."""

    if isinstance(value, str) and _HEX_ADDRESS.match(value):
        return "0x" + value[2:].lower()
    return value


def _build(model: type[Any], location: str, **values: object) -> Any:
    try:
        return model(**values)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
            for err in exc.errors()
        )
        raise FormatterError(
            f"Invalid {model.__name__}: {problems}", location=location or None
        ) from exc


def _return_value_test(
    raw: object, location: str, *, keyed: bool = True
) -> dict[str, object]:
    where = _child(location, "returnValueTest")
    names = _RETURN_VALUE_TEST_FIELDS if keyed else _BASIC_RETURN_VALUE_TEST_FIELDS
    fields = _fold_keys(_mapping(raw, "returnValueTest", where), names, where)
    return {name: _require(fields, name, where) for name in names}


def _abi_params(raw: object, what: str, location: str) -> list[dict[str, object]]:
    where = _child(location, what)
    params = []
    for index, param in enumerate(_list(raw, what, where)):
        param_where = _child(where, index)
        fields = _fold_keys(
            _mapping(param, "ABI parameter", param_where),
            _ABI_PARAM_FIELDS,
            param_where,
        )
        params.append(
            {name: _require(fields, name, param_where) for name in _ABI_PARAM_FIELDS}
        )
    return params


def _split_item(
    item: object, location: str, names: Sequence[str]
) -> CanonicalOperator | dict[str, object]:
    """Return the canonical operator for operator items, else the folded fields."""

    raw = _mapping(item, "Condition item", location)
    head = _fold_keys(raw, ("operator", "returnValueTest"), location)
    if "operator" in head:
        leftovers = _fold_keys(raw, names, location)
        leftovers.pop("operator", None)
        if leftovers or "returnValueTest" in head:
            raise FormatterError(
                "Operator item must not carry condition fields",
                location=location or None,
            )
        return _operator(head["operator"], location)
    if "returnValueTest" not in head:
        raise FormatterError(
            "Condition item is neither an operator nor a condition "
            "(missing 'returnValueTest')",
            location=location or None,
        )
    return _fold_keys(raw, names, location)


def _operator(value: object, location: str) -> CanonicalOperator:
    return _build(CanonicalOperator, location, operator=value)


def _format_access_control_condition(item: object, location: str) -> CanonicalForm:
    if isinstance(item, list):
        return [
            _format_access_control_condition(child, _child(location, index))
            for index, child in enumerate(item)
        ]
    fields = _split_item(item, location, _EVM_BASIC_FIELDS)
    if isinstance(fields, CanonicalOperator):
        return fields
    values = {name: _require(fields, name, location) for name in _EVM_BASIC_FIELDS}
    return _build(
        CanonicalAccessControlCondition,
        location,
        contract_address=_normalize_address(values["contractAddress"]),
        chain=values["chain"],
        standard_contract_type=values["standardContractType"],
        method=values["method"],
        parameters=values["parameters"],
        return_value_test=_return_value_test(
            values["returnValueTest"], location, keyed=False
        ),
    )


def _format_evm_contract_condition(item: object, location: str) -> CanonicalForm:
    if isinstance(item, list):
        return [
            _format_evm_contract_condition(child, _child(location, index))
            for index, child in enumerate(item)
        ]
    fields = _split_item(item, location, _EVM_CONTRACT_FIELDS)
    if isinstance(fields, CanonicalOperator):
        return fields
    values = {
        name: _require(fields, name, location) for name in _EVM_CONTRACT_FIELDS
    }

    abi_where = _child(location, "functionAbi")
    abi = _fold_keys(
        _mapping(values["functionAbi"], "functionAbi", abi_where),
        _ABI_FIELDS,
        abi_where,
    )
    function_abi = {
        "name": _require(abi, "name", abi_where),
        "inputs": _abi_params(_require(abi, "inputs", abi_where), "inputs", abi_where),
        "outputs": _abi_params(
            _require(abi, "outputs", abi_where), "outputs", abi_where
        ),
        "constant": abi.get("constant", False),
        "state_mutability": _require(abi, "stateMutability", abi_where),
    }

    return _build(
        CanonicalEvmContractCondition,
        location,
        contract_address=_normalize_address(values["contractAddress"]),
        function_name=values["functionName"],
        function_params=values["functionParams"],
        function_abi=function_abi,
        chain=values["chain"],
        return_value_test=_return_value_test(values["returnValueTest"], location),
    )


def _format_sol_rpc_condition(
    item: object, location: str, require_v2: bool = False
) -> CanonicalForm:
    if isinstance(item, list):
        return [
            _format_sol_rpc_condition(child, _child(location, index), require_v2)
            for index, child in enumerate(item)
        ]
    fields = _split_item(item, location, _SOL_RPC_FIELDS)
    if isinstance(fields, CanonicalOperator):
        return fields

    method = _require(fields, "method", location)
    params = _require(fields, "params", location)
    chain = _require(fields, "chain", location)
    return_value_test = _return_value_test(
        _require(fields, "returnValueTest", location), location
    )

    if "pdaParams" not in fields and not require_v2:
        return _build(
            CanonicalSolRpcCondition,
            location,
            method=method,
            params=params,
            chain=chain,
            return_value_test=return_value_test,
        )

    missing = [name for name in ("pdaInterface", "pdaKey") if name not in fields]
    interface_where = _child(location, "pdaInterface")
    interface: dict[str, object] = {}
    if "pdaInterface" in fields:
        interface = _fold_keys(
            _mapping(fields["pdaInterface"], "pdaInterface", interface_where),
            _PDA_INTERFACE_FIELDS,
            interface_where,
        )
        missing.extend(
            f"pdaInterface.{name}"
            for name in _PDA_INTERFACE_FIELDS
            if name not in interface
        )
    if missing:
        raise FormatterError(
            "Solana RPC conditions require the v2 fields "
            f"{', '.join(missing)}; add them to the condition",
            location=location or None,
        )

    values: dict[str, object] = {"method": method, "params": params}
    # An absent pdaParams stays unset so the serializer omits it.
    if "pdaParams" in fields:
        values["pda_params"] = fields["pdaParams"]
    values["pda_interface"] = {
        "offset": interface["offset"],
        "fields": interface["fields"],
    }
    values["pda_key"] = fields["pdaKey"]
    values["chain"] = chain
    values["return_value_test"] = return_value_test
    return _build(CanonicalSolRpcConditionV2, location, **values)


def _format_cosmos_condition(item: object, location: str) -> CanonicalForm:
    if isinstance(item, list):
        return [
            _format_cosmos_condition(child, _child(location, index))
            for index, child in enumerate(item)
        ]
    fields = _split_item(item, location, _COSMOS_FIELDS)
    if isinstance(fields, CanonicalOperator):
        return fields

    values: dict[str, object] = {
        "path": _require(fields, "path", location),
        "chain": _require(fields, "chain", location),
    }
    # Absent optional fields stay unset so the serializer omits them.
    if "method" in fields:
        values["method"] = fields["method"]
    if "parameters" in fields:
        values["parameters"] = fields["parameters"]
    values["return_value_test"] = _return_value_test(
        _require(fields, "returnValueTest", location), location
    )
    return _build(CanonicalCosmosCondition, location, **values)


CONDITION_TYPES: Final[dict[str, Formatter]] = {
    "evmBasic": _format_access_control_condition,
    "evmContract": _format_evm_contract_condition,
    "solRpc": lambda item, location: _format_sol_rpc_condition(
        item, location, require_v2=True
    ),
    "cosmos": _format_cosmos_condition,
}
"""Closed routing table from ``conditionType`` to the variant formatter."""


def _discriminant(item: Mapping[Any, object], location: str) -> object | None:
    found = _fold_keys(item, (_DISCRIMINANT,), location)
    return found.get(_DISCRIMINANT)


def _format_unified_condition(item: object, location: str) -> CanonicalForm:
    if isinstance(item, list):
        return [
            _format_unified_condition(child, _child(location, index))
            for index, child in enumerate(item)
        ]
    raw = _mapping(item, "Condition item", location)
    condition_type = _discriminant(raw, location)
    if condition_type is None:
        # Only operator items may omit the discriminant.
        operator = None
        if "operator" in _fold_keys(raw, ("operator",), location):
            operator = _split_item(raw, location, ())
        if isinstance(operator, CanonicalOperator):
            return operator
        raise RoutingError(
            f"Condition item is missing {_DISCRIMINANT!r}", location=location or None
        )
    if not isinstance(condition_type, str) or condition_type not in CONDITION_TYPES:
        raise RoutingError(
            f"Unknown {_DISCRIMINANT} {condition_type!r}; expected one of "
            f"{', '.join(sorted(CONDITION_TYPES))}",
            location=location or None,
        )
    return CONDITION_TYPES[condition_type](raw, location)


def _guard_variant(expected: str, formatter: Formatter) -> Formatter:
    """Reject items that declare a different ``conditionType`` than expected."""

    def check(item: object, location: str) -> None:
        if isinstance(item, list):
            for index, child in enumerate(item):
                check(child, _child(location, index))
            return
        if not isinstance(item, Mapping):
            return
        declared = _discriminant(item, location)
        if declared is not None and declared != expected:
            raise RoutingError(
                f"Item declares {_DISCRIMINANT} {declared!r} but was passed to "
                f"the {expected} formatter",
                location=location or None,
            )

    def guarded(item: object, location: str) -> CanonicalForm:
        check(item, location)
        return formatter(item, location)

    return guarded


def canonicalize_access_control_condition(item: object) -> CanonicalForm:
    """Canonicalize an ``evmBasic`` item, operator or nested group."""

    return _guard_variant("evmBasic", _format_access_control_condition)(item, "")


def canonicalize_evm_contract_condition(item: object) -> CanonicalForm:
    """Canonicalize an ``evmContract`` item, operator or nested group."""

    return _guard_variant("evmContract", _format_evm_contract_condition)(item, "")


def canonicalize_sol_rpc_condition(
    item: object, require_v2: bool = False
) -> CanonicalForm:
    """Canonicalize a Solana RPC item, operator or nested group.

    Args:
        item: Condition item as decoded from JSON.
        require_v2: Force the PDA-aware v2 shape even when ``pdaParams`` is
            absent, failing if ``pdaInterface`` or ``pdaKey`` is missing.
    """

    def formatter(node: object, location: str) -> CanonicalForm:
        return _format_sol_rpc_condition(node, location, require_v2)

    return _guard_variant("solRpc", formatter)(item, "")


def canonicalize_cosmos_condition(item: object) -> CanonicalForm:
    """Canonicalize a Cosmos item, operator or nested group."""

    return _guard_variant("cosmos", _format_cosmos_condition)(item, "")


def canonicalize_unified_condition(item: object) -> CanonicalForm:
    """Canonicalize a unified item by routing on its ``conditionType``.

    Raises:
        RoutingError: The item is a leaf without a known ``conditionType``.
        FormatterError: The routed formatter rejected the item.
    """

    return _format_unified_condition(item, "")


def canonicalize_resource_id(resource_id: object) -> CanonicalResourceId:
    """Canonicalize a signing resource identifier."""

    raw = _mapping(resource_id, "Resource id", "")
    fields = _fold_keys(raw, _RESOURCE_ID_FIELDS, "")
    values = {name: _require(fields, name, "") for name in _RESOURCE_ID_FIELDS}
    return _build(
        CanonicalResourceId,
        "",
        base_url=values["baseUrl"],
        path=values["path"],
        org_id=values["orgId"],
        role=values["role"],
        extra_data=values["extraData"],
    )


_SEQUENCE_FORMATTERS: Final[dict[str, Formatter]] = {
    "evmBasic": _guard_variant("evmBasic", _format_access_control_condition),
    "evmContract": _guard_variant("evmContract", _format_evm_contract_condition),
    "solRpc": _guard_variant(
        "solRpc", lambda item, location: _format_sol_rpc_condition(item, location)
    ),
    "unified": _format_unified_condition,
}


def canonicalize_sequence(conditions: object, variant: str) -> list[CanonicalForm]:
    """Canonicalize every item of a condition sequence in input order.

    Args:
        conditions: Ordered sequence of condition items.
        variant: ``evmBasic``, ``evmContract``, ``solRpc`` or ``unified``.

    Returns:
        Canonical forms in exactly the input order.
    """

    formatter = _SEQUENCE_FORMATTERS.get(variant)
    if formatter is None:
        raise RoutingError(f"Unknown condition sequence variant {variant!r}")
    if isinstance(conditions, (str, bytes, Mapping)) or not isinstance(
        conditions, Sequence
    ):
        raise FormatterError(
            "Conditions must be an array of condition items, got "
            f"{type(conditions).__name__}"
        )
    return [
        formatter(item, _child("", index)) for index, item in enumerate(conditions)
    ]
