"""
JSON-RPC Client for L1X nodes.

Lightweight httpx-based client. Every call is a single POST to the node
endpoint with ``params = {"request": <payload>}``. The client holds no chain
state and never retries: retry and confirmation policy belong to the caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from ..crypto.keys import address_from_verifying_key
from ..crypto.signing import SignedTransaction
from ..errors import EncodingError, NonceFetchError, RpcError, SubmitError
from ..utils import bytes_from_json
from .codec import ReadOnlyCall, to_wire

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0

METHOD_GET_ACCOUNT_STATE = "l1x_getAccountState"
METHOD_SUBMIT_TRANSACTION = "l1x_submitTransaction"
METHOD_GET_EVENTS = "l1x_getEvents"
METHOD_READ_ONLY_CALL = "l1x_smartContractReadOnlyCall"


@dataclass(frozen=True)
class SubmitResult:
    hash: str
    contract_address: Optional[str] = None


@dataclass(frozen=True)
class ReadOnlyResult:
    status: int
    result: bytes = b""

    @property
    def ok(self) -> bool:
        return self.status == 0


class RpcClient:
    """
    Stateless JSON-RPC envelope around one node endpoint.

    Args:
        endpoint: Node JSON-RPC URL
        timeout: Per-request timeout in seconds
        transport: Optional httpx transport (tests use ``httpx.MockTransport``)
    """

    def __init__(
        self,
        endpoint: str,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.endpoint = endpoint
        self.timeout = timeout
        self._transport = transport
        self._request_id = 0

    def call(self, method: str, request: Any) -> Any:
        """
        Make a JSON-RPC call.

        Args:
            method: RPC method name (e.g., "l1x_getEvents")
            request: Value placed under ``params.request``

        Returns:
            Result field from the RPC response

        Raises:
            RpcError: On transport failure, HTTP error, malformed JSON or
                an ``error`` member in the response
        """
        self._request_id += 1
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": {"request": request},
            "id": self._request_id,
        }
        logger.debug("RPC %s -> %s", method, self.endpoint)

        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                response = client.post(self.endpoint, json=payload)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPError as exc:
            raise RpcError(f"{method} request failed: {exc}", method=method) from exc
        except ValueError as exc:
            raise RpcError(f"{method} returned a non-JSON response", method=method) from exc

        if not isinstance(data, dict):
            raise RpcError(f"{method} returned an unexpected envelope", method=method)
        if data.get("error") is not None:
            raise RpcError(f"RPC error from {method}: {data['error']}", method=method)

        return data.get("result")

    def get_nonce(self, verifying_key: bytes) -> int:
        """
        Fetch the current on-chain nonce of the account owning ``verifying_key``.

        Raises:
            NonceFetchError: On transport failure or malformed response
        """
        address = address_from_verifying_key(verifying_key).hex()
        method = METHOD_GET_ACCOUNT_STATE
        try:
            result = self.call(method, {"address": address})
        except RpcError as exc:
            raise NonceFetchError(f"Unable to get nonce: {exc}", method=method) from exc

        try:
            state = result["account_state"]
            nonce = int(state["nonce"])
        except (TypeError, KeyError, ValueError) as exc:
            raise NonceFetchError(f"Malformed account state: {result!r}", method=method) from exc
        if nonce < 0:
            raise NonceFetchError(f"Negative nonce in account state: {nonce}", method=method)
        return nonce

    def submit_transaction(self, signed: SignedTransaction) -> SubmitResult:
        """
        Submit a signed transaction.

        Success means the node accepted the transaction, not that it is
        confirmed.

        Raises:
            SubmitError: On transport failure or malformed response
        """
        method = METHOD_SUBMIT_TRANSACTION
        try:
            result = self.call(method, signed.to_request())
        except RpcError as exc:
            raise SubmitError(f"Submit transaction failed: {exc}", method=method) from exc

        if not isinstance(result, dict) or not isinstance(result.get("hash"), str):
            raise SubmitError(f"Malformed submit response: {result!r}", method=method)

        contract_address = result.get("contract_address")
        if contract_address is not None and not isinstance(contract_address, str):
            contract_address = str(contract_address)
        return SubmitResult(hash=result["hash"], contract_address=contract_address or None)

    def get_events(self, tx_hash: str, timestamp: int = 0) -> list[bytes]:
        """Return the opaque event payloads recorded for ``tx_hash``."""
        method = METHOD_GET_EVENTS
        result = self.call(method, {"tx_hash": tx_hash, "timestamp": timestamp})

        if result is None:
            return []
        if not isinstance(result, dict):
            raise RpcError(f"Malformed events response: {result!r}", method=method)

        events_data = result.get("events_data") or []
        if not isinstance(events_data, list):
            raise RpcError("events_data is not a list", method=method)
        try:
            return [bytes_from_json(item, "event") for item in events_data]
        except EncodingError as exc:
            raise RpcError(f"Malformed event payload: {exc}", method=method) from exc

    def read_only_call(self, call: ReadOnlyCall) -> ReadOnlyResult:
        """
        Simulate a contract call without a transaction.

        A missing result or non-zero status is a contract-level failure and
        is reported through ``ReadOnlyResult.status``, not raised.
        """
        method = METHOD_READ_ONLY_CALL
        result = self.call(method, to_wire(call))

        if not isinstance(result, dict):
            return ReadOnlyResult(status=1)
        try:
            status = int(result.get("status", 0))
        except (TypeError, ValueError) as exc:
            raise RpcError(f"Malformed read-only status: {result!r}", method=method) from exc
        if status != 0:
            return ReadOnlyResult(status=status)

        raw = result.get("result")
        if raw is None:
            return ReadOnlyResult(status=1)
        try:
            return ReadOnlyResult(status=0, result=bytes_from_json(raw, "result"))
        except EncodingError as exc:
            raise RpcError(f"Malformed read-only result: {exc}", method=method) from exc
