"""
Error taxonomy for l1x-forge.

Every failure surfaced by the core derives from ``ForgeError`` and carries
an ``exit_code`` that the CLI uses when it terminates.
"""

from __future__ import annotations


class ForgeError(RuntimeError):
    exit_code: int = 1


class EncodingError(ForgeError, ValueError):
    """Malformed hex or JSON input."""

    exit_code = 2


class SigningError(ForgeError):
    """Unusable secret key material."""

    exit_code = 3


class RpcError(ForgeError):
    """Transport or protocol failure talking to the node."""

    exit_code = 4

    def __init__(self, message: str, method: str | None = None) -> None:
        super().__init__(message)
        self.method = method


class NonceFetchError(RpcError):
    pass


class SubmitError(RpcError):
    pass


class ConfirmationError(ForgeError):
    """No address or result could be resolved after polling.

    This is a soft failure: the transaction may simply not be indexed yet.
    """

    exit_code = 5

    def __init__(self, message: str, tx_hash: str | None = None) -> None:
        super().__init__(message)
        self.tx_hash = tx_hash


class OperationCancelled(ConfirmationError):
    pass


class RegistryInvariantError(ForgeError):
    exit_code = 6


class RegistryIOError(ForgeError):
    exit_code = 7


class ConfigError(ForgeError):
    exit_code = 8


class ArtifactError(ForgeError):
    exit_code = 9


class UnknownContractError(ForgeError):
    exit_code = 10
