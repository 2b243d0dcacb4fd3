"""
Confirmation polling.

After a submission the node needs time to include the transaction and index
its events. ``wait_for_events`` sleeps, polls ``l1x_getEvents`` and repeats
with backoff until events show up, the attempts run out or the deadline
passes. The default policy is a single 10 second delay followed by a single
poll.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Optional, Protocol

from ..errors import OperationCancelled

logger = logging.getLogger(__name__)


class EventSource(Protocol):
    def get_events(self, tx_hash: str, timestamp: int = 0) -> list[bytes]:
        ...


@dataclass(frozen=True)
class ConfirmationPolicy:
    """
    Attributes:
        delay: Seconds to wait before the first poll
        attempts: Maximum number of polls
        backoff: Multiplier applied to the delay between polls
        timeout: Overall deadline in seconds (None = bounded by attempts only)
        min_interval: Lower bound on the wait between two polls
    """
    delay: float = 10.0
    attempts: int = 1
    backoff: float = 1.5
    timeout: Optional[float] = None
    min_interval: float = 0.5

    def __post_init__(self) -> None:
        if self.delay < 0:
            raise ValueError("delay must be non-negative")
        if self.attempts < 1:
            raise ValueError("attempts must be at least 1")
        if self.backoff < 1:
            raise ValueError("backoff must be >= 1")
        if self.timeout is not None and self.timeout < 0:
            raise ValueError("timeout must be non-negative")
        if self.min_interval < 0:
            raise ValueError("min_interval must be non-negative")


def wait_for_events(
    source: EventSource,
    tx_hash: str,
    policy: ConfirmationPolicy,
    cancel: Optional[threading.Event] = None,
) -> list[bytes]:
    """
    Wait for the events of a submitted transaction.

    Args:
        source: Anything with ``get_events`` (normally the RpcClient)
        tx_hash: Transaction hash returned by the submission
        policy: Delay / attempts / backoff / timeout
        cancel: Set this event to abort the wait

    Returns:
        The events from the last poll; empty if none arrived in time

    Raises:
        OperationCancelled: If ``cancel`` was set while waiting
        RpcError: Propagated unchanged from ``get_events``
    """
    cancel = cancel or threading.Event()
    deadline = None if policy.timeout is None else time.monotonic() + policy.timeout
    base_delay = policy.delay
    events: list[bytes] = []

    for attempt in range(1, policy.attempts + 1):
        if deadline is not None:
            delay = min(base_delay, max(0.0, deadline - time.monotonic()))
        else:
            delay = base_delay
        logger.info("Waiting %.1fs for events of %s (poll %d/%d)", delay, tx_hash, attempt, policy.attempts)
        if cancel.wait(delay):
            raise OperationCancelled(f"Confirmation of {tx_hash} cancelled", tx_hash=tx_hash)

        events = source.get_events(tx_hash)
        logger.info("Tx %s | Num Events: %d", tx_hash, len(events))
        for index, event in enumerate(events):
            logger.debug("Evt[%d] :: %s", index, event.hex())
        if events:
            return events

        if deadline is not None and time.monotonic() >= deadline:
            logger.warning("Confirmation deadline reached for %s", tx_hash)
            break
        base_delay = max(base_delay * policy.backoff, policy.min_interval)

    return events
