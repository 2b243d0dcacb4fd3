from __future__ import annotations

import hashlib
import json
from typing import Any

from .errors import EncodingError


def sha256_digest(data: bytes) -> bytes:
    return hashlib.sha256(data).digest()


def normalize_hex(value: str) -> str:
    """Trim whitespace, strip surrounding quotes and a leading ``0x``."""
    cleaned = value.strip().strip('"').strip("'").strip()
    if cleaned[:2] in ("0x", "0X"):
        cleaned = cleaned[2:]
    return cleaned


def decode_hex(value: str, field: str = "value") -> bytes:
    cleaned = normalize_hex(value)
    try:
        return bytes.fromhex(cleaned)
    except ValueError as exc:
        raise EncodingError(f"Invalid hex for {field}: {value!r}") from exc


def prefixed_hex(value: str | bytes) -> str:
    """Render an address in its persisted ``0x`` form."""
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    return "0x" + normalize_hex(value)


def bytes_from_json(value: Any, field: str = "value") -> bytes:
    """Decode a byte field from a JSON-RPC payload.

    Nodes emit ``Vec<u8>`` as an array of integers; a hex string is accepted
    as well.
    """
    if isinstance(value, str):
        return decode_hex(value, field)
    if isinstance(value, list):
        try:
            return bytes(value)
        except (TypeError, ValueError) as exc:
            raise EncodingError(f"Invalid byte array for {field}") from exc
    raise EncodingError(f"Expected bytes for {field}, got {type(value).__name__}")


def compact_json(payload: Any) -> str:
    return json.dumps(payload, separators=(",", ":"))
