"""Pydantic models describing canonical condition forms.

Field declaration order is the emission order used by the serializer, so the
order of attributes in each class is part of the hash contract and must not be
rearranged.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, Strict, StrictBool, StrictInt
from pydantic.alias_generators import to_camel

__all__ = [
    "JsonArray",
    "CanonicalModel",
    "CanonicalOperator",
    "CanonicalBasicReturnValueTest",
    "CanonicalReturnValueTest",
    "CanonicalAccessControlCondition",
    "CanonicalAbiParam",
    "CanonicalFunctionAbi",
    "CanonicalEvmContractCondition",
    "CanonicalPdaInterface",
    "CanonicalSolRpcCondition",
    "CanonicalSolRpcConditionV2",
    "CanonicalCosmosCondition",
    "CanonicalResourceId",
    "CanonicalItem",
    "CanonicalForm",
]


# Lax list validation would accept sets, whose iteration order is not stable.
JsonArray = Annotated[list[Any], Strict()]


class CanonicalModel(BaseModel):
    """Immutable base for canonical forms with camelCase wire names."""

    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class CanonicalOperator(CanonicalModel):
    """Boolean connective sitting between two sibling items."""

    kind: Literal["operator"] = Field(default="operator", exclude=True)
    operator: Literal["and", "or"]


class CanonicalBasicReturnValueTest(CanonicalModel):
    """Return value test of an ``evmBasic`` condition (no ``key``)."""

    kind: Literal["basic_return_value_test"] = Field(
        default="basic_return_value_test", exclude=True
    )
    comparator: str
    value: Any


class CanonicalReturnValueTest(CanonicalModel):
    """Keyed return value test used by contract, Solana and Cosmos leaves."""

    kind: Literal["return_value_test"] = Field(
        default="return_value_test", exclude=True
    )
    key: str
    comparator: str
    value: Any


class CanonicalAccessControlCondition(CanonicalModel):
    """Canonical ``evmBasic`` access control condition."""

    kind: Literal["evm_basic"] = Field(default="evm_basic", exclude=True)
    contract_address: str
    chain: str
    standard_contract_type: str
    method: str
    parameters: JsonArray
    return_value_test: CanonicalBasicReturnValueTest


class CanonicalAbiParam(CanonicalModel):
    """ABI input or output reduced to its name and type."""

    kind: Literal["abi_param"] = Field(default="abi_param", exclude=True)
    name: str
    type: str


class CanonicalFunctionAbi(CanonicalModel):
    """Function ABI fragment with only the fields that affect the call."""

    kind: Literal["function_abi"] = Field(default="function_abi", exclude=True)
    name: str
    inputs: list[CanonicalAbiParam]
    outputs: list[CanonicalAbiParam]
    constant: StrictBool = False
    state_mutability: str


class CanonicalEvmContractCondition(CanonicalModel):
    """Canonical ``evmContract`` condition calling an arbitrary ABI function."""

    kind: Literal["evm_contract"] = Field(default="evm_contract", exclude=True)
    contract_address: str
    function_name: str
    function_params: JsonArray
    function_abi: CanonicalFunctionAbi
    chain: str
    return_value_test: CanonicalReturnValueTest


class CanonicalPdaInterface(CanonicalModel):
    """Layout of the program derived account read by a v2 Solana condition."""

    kind: Literal["pda_interface"] = Field(default="pda_interface", exclude=True)
    offset: StrictInt
    fields: dict[str, Any]


class CanonicalSolRpcCondition(CanonicalModel):
    """Canonical Solana RPC condition in its original (v1) shape."""

    kind: Literal["sol_rpc"] = Field(default="sol_rpc", exclude=True)
    method: str
    params: JsonArray
    chain: str
    return_value_test: CanonicalReturnValueTest


class CanonicalSolRpcConditionV2(CanonicalModel):
    """Canonical Solana RPC condition carrying PDA lookup parameters.

    ``pda_params`` is optional and only emitted when it was supplied.
    """

    kind: Literal["sol_rpc_v2"] = Field(default="sol_rpc_v2", exclude=True)
    method: str
    params: JsonArray
    pda_params: JsonArray | None = None
    pda_interface: CanonicalPdaInterface
    pda_key: str
    chain: str
    return_value_test: CanonicalReturnValueTest


class CanonicalCosmosCondition(CanonicalModel):
    """Canonical Cosmos condition; ``method`` and ``parameters`` are optional.

    Optional fields are only emitted when they were supplied, which the
    serializer detects through ``model_fields_set``.
    """

    kind: Literal["cosmos"] = Field(default="cosmos", exclude=True)
    path: str
    chain: str
    method: str | None = None
    parameters: JsonArray | None = None
    return_value_test: CanonicalReturnValueTest


class CanonicalResourceId(CanonicalModel):
    """Canonical signing resource identifier."""

    kind: Literal["resource_id"] = Field(default="resource_id", exclude=True)
    base_url: str
    path: str
    org_id: str
    role: str
    extra_data: str


CanonicalItem = Union[
    CanonicalOperator,
    CanonicalAccessControlCondition,
    CanonicalEvmContractCondition,
    CanonicalSolRpcCondition,
    CanonicalSolRpcConditionV2,
    CanonicalCosmosCondition,
]
"""Any canonical member of a condition sequence, discriminated by ``kind``."""

CanonicalForm = Union[CanonicalItem, CanonicalResourceId, list["CanonicalForm"]]
"""Output of a canonicalizer: a single item, a resource id or a nested group."""
