"""
Transaction signing.

Two canonicalizations are in use and are selected by transaction type:

- native token transfers sign the SHA-256 of a compact JSON document
  ``{"nonce", "transaction_type", "fee_limit"}`` (field order fixed);
- every other transaction signs the SHA-256 of the protocol encoding of
  ``(transaction, fee_limit, nonce)``.

The node verifies each type against its own canonicalization, so the two
paths must not be merged.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from eth_abi import encode
from eth_account.signers.local import LocalAccount

from ..chain.codec import NativeTransfer, Transaction, protocol_encode, to_wire
from ..errors import SigningError
from ..utils import compact_json, sha256_digest
from .keys import load_account, sign_digest, verifying_key_for


def native_transfer_payload(tx: NativeTransfer, fee_limit: int, nonce: int) -> bytes:
    """JSON signing payload for a native token transfer."""
    document = {
        "nonce": nonce,
        "transaction_type": {
            "NativeTokenTransfer": [list(tx.to_address), str(tx.amount)],
        },
        "fee_limit": fee_limit,
    }
    return compact_json(document).encode("utf-8")


def protocol_payload(tx: Transaction, fee_limit: int, nonce: int) -> bytes:
    """Protocol-encoded signing payload for every non-transfer transaction."""
    return encode(["bytes", "uint128", "uint128"], [protocol_encode(tx), fee_limit, nonce])


def signing_payload(tx: Transaction, fee_limit: int, nonce: int) -> bytes:
    strategy: Callable[[Any, int, int], bytes]
    if isinstance(tx, NativeTransfer):
        strategy = native_transfer_payload
    else:
        strategy = protocol_payload
    return strategy(tx, fee_limit, nonce)


@dataclass(frozen=True)
class SignedTransaction:
    nonce: int
    fee_limit: int
    signature: bytes
    verifying_key: bytes
    transaction: Transaction

    def to_request(self) -> dict[str, Any]:
        """Body of an ``l1x_submitTransaction`` request."""
        return {
            "nonce": str(self.nonce),
            "fee_limit": str(self.fee_limit),
            "signature": list(self.signature),
            "verifying_key": list(self.verifying_key),
            "transaction_type": to_wire(self.transaction),
        }


class Signer:
    """Holds one account and signs transactions on its behalf."""

    def __init__(self, private_key: str) -> None:
        self._account: LocalAccount = load_account(private_key)
        self.verifying_key: bytes = verifying_key_for(self._account)

    @property
    def address(self) -> str:
        return self._account.address

    def sign(self, tx: Transaction, fee_limit: int, nonce: int) -> bytes:
        if fee_limit < 0 or nonce < 0:
            raise SigningError("fee_limit and nonce must be non-negative")
        digest = sha256_digest(signing_payload(tx, fee_limit, nonce))
        return sign_digest(self._account, digest)

    def sign_transaction(self, tx: Transaction, fee_limit: int, nonce: int) -> SignedTransaction:
        return SignedTransaction(
            nonce=nonce,
            fee_limit=fee_limit,
            signature=self.sign(tx, fee_limit, nonce),
            verifying_key=self.verifying_key,
            transaction=tx,
        )
