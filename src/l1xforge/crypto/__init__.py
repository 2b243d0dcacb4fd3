"""
Crypto - Account keys and transaction signing (secp256k1).

Uses eth-account / eth-keys for key handling and deterministic (RFC 6979)
low-S signatures.
"""
