"""
ECDSA / secp256k1 key handling for L1X accounts.

A wallet is a 32-byte secp256k1 secret key (hex, ``0x`` optional). The node
identifies the signer by the 33-byte compressed public key ("verifying key")
and the account address is the last 20 bytes of the Keccak-256 hash of the
uncompressed public key, as on Ethereum.

Dependencies: eth-account for key parsing, eth-keys for raw hash signing.
"""

from __future__ import annotations

from eth_account import Account
from eth_account.signers.local import LocalAccount
from eth_keys import keys

from ..errors import SigningError
from ..utils import normalize_hex


def load_account(private_key: str) -> LocalAccount:
    """
    Parse a hex private key into an eth-account LocalAccount.

    Raises:
        SigningError: If the key is not 32 bytes of valid hex
    """
    cleaned = normalize_hex(private_key)
    try:
        return Account.from_key("0x" + cleaned)
    except (ValueError, TypeError) as exc:
        raise SigningError("Unable to parse the provided private key") from exc


def verifying_key_for(account: LocalAccount) -> bytes:
    """Compressed (33-byte) public key of ``account``."""
    return keys.PrivateKey(bytes(account.key)).public_key.to_compressed_bytes()


def address_from_verifying_key(verifying_key: bytes) -> bytes:
    """
    Derive the 20-byte account address from a verifying key.

    Accepts the compressed (33-byte) or uncompressed (65-byte SEC1) form.
    """
    try:
        if len(verifying_key) == 33:
            public_key = keys.PublicKey.from_compressed_bytes(verifying_key)
        elif len(verifying_key) == 65:
            public_key = keys.PublicKey(verifying_key[1:])
        else:
            public_key = keys.PublicKey(verifying_key)
    except Exception as exc:
        raise SigningError("Unable to construct public key from verifying key") from exc
    return public_key.to_canonical_address()


def sign_digest(account: LocalAccount, digest: bytes) -> bytes:
    """
    Sign a 32-byte digest with the account's secret key.

    Returns:
        64-byte compact signature (``r || s``, low-S normalized)
    """
    if len(digest) != 32:
        raise SigningError(f"Digest must be 32 bytes, got {len(digest)}")
    signature = keys.PrivateKey(bytes(account.key)).sign_msg_hash(digest)
    return signature.to_bytes()[:64]
