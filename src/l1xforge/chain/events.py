"""
Event decoding.

The node returns events as opaque byte blobs. Which shape a blob has depends
on the call that produced it, and the shapes cannot be told apart by content,
so the caller always names the strategy:

- ``STATUS_HEX``: the first event, hex-encoded (ebpf deploy/init and plain
  function calls);
- ``JSON_ADDRESS``: the first event parsed as JSON, its ``address`` field
  (EVM deployments).

``None`` means "no address resolved" and is not an error.
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Optional, Sequence

from ..errors import EncodingError
from ..utils import normalize_hex


class EventShape(str, Enum):
    STATUS_HEX = "status-hex"
    JSON_ADDRESS = "json-address"


def first_event_hex(events: Sequence[bytes]) -> Optional[str]:
    if not events:
        return None
    return bytes(events[0]).hex()


def first_event_address(events: Sequence[bytes]) -> Optional[str]:
    if not events:
        return None
    try:
        document = json.loads(bytes(events[0]))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise EncodingError("First event is not a JSON document") from exc

    if not isinstance(document, dict):
        return None
    address = document.get("address")
    if address is None:
        return None
    cleaned = normalize_hex(str(address))
    return cleaned or None


def extract(events: Sequence[bytes], shape: EventShape) -> Optional[str]:
    if shape is EventShape.STATUS_HEX:
        return first_event_hex(events)
    if shape is EventShape.JSON_ADDRESS:
        return first_event_address(events)
    raise ValueError(f"Unknown event shape: {shape}")
