"""
Transaction Codec - Build and encode L1X transaction payloads.

Transactions are immutable dataclasses. Each one has two renderings:

- the JSON wire form sent in ``l1x_submitTransaction`` requests, and
- the protocol encoding (variant tag + eth-abi encoded fields) that is
  hashed and signed for every transaction type except native transfers.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

from eth_abi import encode

from ..errors import EncodingError
from ..utils import decode_hex

DEFAULT_INIT_ARGS = b"{}"


class AccessType(str, Enum):
    PRIVATE = "PRIVATE"
    PUBLIC = "PUBLIC"


class ContractType(str, Enum):
    L1XVM = "L1XVM"
    EVM = "EVM"


_ACCESS_CODES = {AccessType.PRIVATE: 0, AccessType.PUBLIC: 1}
_CONTRACT_CODES = {ContractType.L1XVM: 0, ContractType.EVM: 1}


@dataclass(frozen=True)
class Deployment:
    access_type: AccessType
    contract_type: ContractType
    code: bytes

    variant = "SmartContractDeployment"
    tag = 0


@dataclass(frozen=True)
class Init:
    deployed_address: bytes
    init_args: bytes = DEFAULT_INIT_ARGS

    variant = "SmartContractInit"
    tag = 1


@dataclass(frozen=True)
class FunctionCall:
    contract_address: bytes
    arguments: bytes
    # The textual selector is not populated from user input.
    function: bytes = b""

    variant = "SmartContractFunctionCall"
    tag = 2


@dataclass(frozen=True)
class ReadOnlyCall:
    contract_address: bytes
    arguments: bytes
    function: bytes = b""

    variant = "SmartContractReadOnlyCall"
    tag = 3


@dataclass(frozen=True)
class NativeTransfer:
    to_address: bytes
    amount: int

    variant = "NativeTokenTransfer"
    tag = 4


Transaction = Union[Deployment, Init, FunctionCall, NativeTransfer]


def build_deployment(
    code: bytes | str,
    access_type: AccessType = AccessType.PRIVATE,
    contract_type: ContractType = ContractType.L1XVM,
) -> Deployment:
    """
    Build a contract deployment transaction.

    Args:
        code: Raw code bytes, or a hex string (``0x`` optional)
        access_type: Contract visibility
        contract_type: Target VM

    Returns:
        Deployment transaction

    Raises:
        EncodingError: If ``code`` is a string that is not valid hex
    """
    if isinstance(code, str):
        code = decode_hex(code, "contract code")
    return Deployment(access_type=access_type, contract_type=contract_type, code=bytes(code))


def build_init(deployed_address: str, init_args: bytes = DEFAULT_INIT_ARGS) -> Init:
    return Init(
        deployed_address=decode_hex(deployed_address, "deployed address"),
        init_args=init_args,
    )


def build_function_call(contract_address: str, arguments: str) -> FunctionCall:
    return FunctionCall(
        contract_address=decode_hex(contract_address, "contract address"),
        arguments=decode_hex(arguments, "function payload"),
    )


def build_read_only_call(contract_address: str, arguments: str) -> ReadOnlyCall:
    return ReadOnlyCall(
        contract_address=decode_hex(contract_address, "contract address"),
        arguments=decode_hex(arguments, "function payload"),
    )


def build_native_transfer(to_address: str, amount: int) -> NativeTransfer:
    address = decode_hex(to_address, "recipient address")
    if len(address) != 20:
        raise EncodingError(
            f"Recipient address must be 20 bytes, got {len(address)}: {to_address!r}"
        )
    if amount < 0:
        raise EncodingError(f"Transfer amount must be non-negative, got {amount}")
    return NativeTransfer(to_address=address, amount=amount)


def to_wire(tx: Transaction | ReadOnlyCall) -> dict[str, Any]:
    """Render a transaction as the JSON structure the node deserializes."""
    if isinstance(tx, Deployment):
        body: dict[str, Any] = {
            "access_type": tx.access_type.value,
            "contract_type": tx.contract_type.value,
            "contract_code": list(tx.code),
        }
    elif isinstance(tx, Init):
        body = {
            "contract_code_address": list(tx.deployed_address),
            "arguments": list(tx.init_args),
        }
    elif isinstance(tx, (FunctionCall, ReadOnlyCall)):
        body = {
            "contract_instance_address": list(tx.contract_address),
            "function": list(tx.function),
            "arguments": list(tx.arguments),
        }
    elif isinstance(tx, NativeTransfer):
        body = {"address": list(tx.to_address), "amount": str(tx.amount)}
    else:
        raise EncodingError(f"Unsupported transaction type: {type(tx).__name__}")

    if isinstance(tx, ReadOnlyCall):
        return body
    return {tx.variant: body}


def protocol_encode(tx: Transaction) -> bytes:
    """Variant tag byte followed by the eth-abi encoding of its fields."""
    if isinstance(tx, Deployment):
        fields = encode(
            ["uint8", "uint8", "bytes"],
            [_ACCESS_CODES[tx.access_type], _CONTRACT_CODES[tx.contract_type], tx.code],
        )
    elif isinstance(tx, Init):
        fields = encode(["bytes", "bytes"], [tx.deployed_address, tx.init_args])
    elif isinstance(tx, FunctionCall):
        fields = encode(
            ["bytes", "bytes", "bytes"],
            [tx.contract_address, tx.function, tx.arguments],
        )
    elif isinstance(tx, NativeTransfer):
        fields = encode(["bytes", "uint128"], [tx.to_address, tx.amount])
    else:
        raise EncodingError(f"Cannot protocol-encode {type(tx).__name__}")
    return bytes([tx.tag]) + fields
