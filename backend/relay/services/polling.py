"""
Wait for a provider resource to reach a terminal status.

Vector stores, the files inside them and file batches are all indexed
asynchronously by the provider. ``poll_until_terminal`` re-reads one
resource until its terminal predicate holds or the wait budget is spent,
sleeping on a capped linear backoff between reads (5s, 10s, 15s, 20s, 20s...).

Only "not finished yet" is retried. An exception from ``fetch`` (network
failure, 4xx/5xx from the provider) aborts the poll immediately.

The deadline is checked before each fetch rather than after each sleep, so
the total wait can overshoot ``max_wait_ms`` by up to one backoff interval
plus one fetch.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from relay.core.exceptions import PollTimeoutError

logger = logging.getLogger(__name__)

DEFAULT_MAX_WAIT_MS = 600_000

ResourceT = TypeVar("ResourceT")


@dataclass(frozen=True)
class BackoffSchedule:
    initial_ms: int = 5000
    step_ms: int = 5000
    max_ms: int = 20000

    def next_after(self, current_ms: int) -> int:
        return min(current_ms + self.step_ms, self.max_ms)


DEFAULT_BACKOFF = BackoffSchedule()


@dataclass
class PollSession:
    """Per-call polling state. Never shared between calls."""

    resource_id: str
    max_wait_ms: int
    started_at: float
    current_backoff_ms: int
    attempts: int = 0

    @property
    def deadline(self) -> float:
        return self.started_at + self.max_wait_ms / 1000

    def elapsed_ms(self, now: float) -> float:
        return (now - self.started_at) * 1000


async def poll_until_terminal(
    resource_id: str,
    fetch: Callable[[str], Awaitable[ResourceT]],
    is_terminal: Callable[[ResourceT], bool],
    max_wait_ms: int = DEFAULT_MAX_WAIT_MS,
    *,
    backoff: BackoffSchedule = DEFAULT_BACKOFF,
    sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    clock: Callable[[], float] = time.monotonic,
    resource_kind: str = "Resource",
) -> ResourceT:
    """Fetch ``resource_id`` until ``is_terminal`` accepts the snapshot.

    Args:
        resource_id: Identifier handed to ``fetch`` on every attempt.
        fetch: Coroutine function reading the current resource snapshot.
        is_terminal: Pure predicate on a snapshot.
        max_wait_ms: Wait budget in milliseconds.
        backoff: Delay schedule between attempts.
        sleep: Awaitable sleep taking seconds; injectable for tests.
        clock: Monotonic clock in seconds; injectable for tests.
        resource_kind: Label used in log lines and the timeout message.

    Returns:
        The first snapshot for which ``is_terminal`` is true.

    Raises:
        PollTimeoutError: If the budget elapses before a terminal snapshot
            is observed.
        Exception: Whatever ``fetch`` raises, unchanged and un-retried.
    """
    session = PollSession(
        resource_id=resource_id,
        max_wait_ms=max_wait_ms,
        started_at=clock(),
        current_backoff_ms=backoff.initial_ms,
    )

    while clock() < session.deadline:
        resource = await fetch(resource_id)
        session.attempts += 1

        if is_terminal(resource):
            logger.info(
                "%s %s reached terminal status after %d attempt(s)",
                resource_kind,
                resource_id,
                session.attempts,
                extra={
                    "resource_id": resource_id,
                    "attempts": session.attempts,
                    "elapsed_ms": round(session.elapsed_ms(clock())),
                },
            )
            return resource

        logger.debug(
            "%s %s not terminal yet (attempt %d); sleeping %dms",
            resource_kind,
            resource_id,
            session.attempts,
            session.current_backoff_ms,
        )
        await sleep(session.current_backoff_ms / 1000)
        session.current_backoff_ms = backoff.next_after(session.current_backoff_ms)

    logger.warning(
        "%s %s did not complete within %dms",
        resource_kind,
        resource_id,
        max_wait_ms,
        extra={"resource_id": resource_id, "attempts": session.attempts},
    )
    raise PollTimeoutError(resource_id=resource_id, max_wait_ms=max_wait_ms, resource_kind=resource_kind)
