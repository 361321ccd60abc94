"""Transaction lifecycle — what the user sees while a write is in flight.

Lifecycle:
    IDLE → PENDING → SUCCESS → (after success_delay) IDLE
                   → ERROR   → (after error_delay)   IDLE
    Any state → PENDING (start)

One slot only. Starting a new operation while another is pending
overwrites the display; the earlier operation is not cancelled and may
still resolve, in which case its outcome is shown (last writer wins).

Each start() hands back a ticket. A caller whose context goes away
abandons its ticket so that a result arriving later is dropped instead
of being shown to whoever is looking now.

The reversion to IDLE is a timer owned by this instance. Any new
start() cancels it, so a stale timer can never clear a fresh PENDING.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from typing import Callable, Optional

from committee.models.lifecycle import IDLE, TransactionPhase, TransactionStatus


logger = logging.getLogger(__name__)

SUCCESS_DELAY = 2.0
ERROR_DELAY = 3.0

Listener = Callable[[TransactionStatus], None]


# Valid transitions: {from_phase: {allowed_to_phases}}. Ticketed results
# skip the check, since a superseded operation may resolve over another outcome.
_TRANSITIONS: dict[TransactionPhase, set[TransactionPhase]] = {
    TransactionPhase.IDLE: {TransactionPhase.PENDING},
    TransactionPhase.PENDING: {
        TransactionPhase.PENDING,
        TransactionPhase.SUCCESS,
        TransactionPhase.ERROR,
    },
    TransactionPhase.SUCCESS: {TransactionPhase.PENDING, TransactionPhase.IDLE},
    TransactionPhase.ERROR: {TransactionPhase.PENDING, TransactionPhase.IDLE},
}


class TransitionError(Exception):
    """Raised when a lifecycle transition is not allowed."""


class TransactionLifecycle:
    """Single-slot status tracker with auto-reverting outcomes.

    Must be driven from inside a running event loop.
    """

    def __init__(
        self,
        success_delay: float = SUCCESS_DELAY,
        error_delay: float = ERROR_DELAY,
    ) -> None:
        self._success_delay = success_delay
        self._error_delay = error_delay
        self._status: TransactionStatus = IDLE
        self._revert_handle: Optional[asyncio.TimerHandle] = None
        self._tickets = itertools.count(1)
        self._outstanding: set[int] = set()
        self._listeners: list[Listener] = []

    @property
    def status(self) -> TransactionStatus:
        return self._status

    @property
    def phase(self) -> TransactionPhase:
        return self._status.phase

    @property
    def outstanding(self) -> frozenset[int]:
        return frozenset(self._outstanding)

    @property
    def revert_scheduled(self) -> bool:
        return self._revert_handle is not None

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def start(self, message: str) -> int:
        """Show PENDING for a new operation and return its ticket."""
        self._check(TransactionPhase.PENDING)
        self._cancel_revert()
        ticket = next(self._tickets)
        self._outstanding.add(ticket)
        self._set(TransactionStatus(TransactionPhase.PENDING, message))
        return ticket

    def succeed(self, message: str, ticket: Optional[int] = None) -> bool:
        return self._resolve(TransactionPhase.SUCCESS, message, ticket, self._success_delay)

    def fail(self, message: str, ticket: Optional[int] = None) -> bool:
        return self._resolve(TransactionPhase.ERROR, message, ticket, self._error_delay)

    def abandon(self, ticket: int) -> None:
        """Forget an operation whose caller no longer cares about it."""
        self._outstanding.discard(ticket)

    def abandon_all(self) -> None:
        self._outstanding.clear()

    def reset(self) -> None:
        """Return to IDLE immediately."""
        self._cancel_revert()
        self._set(IDLE)

    def close(self) -> None:
        """Cancel timers and drop listeners and tickets."""
        self._cancel_revert()
        self._outstanding.clear()
        self._listeners.clear()
        self._status = IDLE

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _resolve(
        self,
        target: TransactionPhase,
        message: str,
        ticket: Optional[int],
        delay: float,
    ) -> bool:
        if ticket is not None:
            if ticket not in self._outstanding:
                logger.info(
                    "Dropping %s result for abandoned operation %d: %s",
                    target.value, ticket, message,
                )
                return False
            self._outstanding.discard(ticket)
        else:
            self._check(target)

        self._cancel_revert()
        self._set(TransactionStatus(target, message))
        loop = asyncio.get_running_loop()
        self._revert_handle = loop.call_later(delay, self._revert)
        return True

    def _check(self, target: TransactionPhase) -> None:
        if target not in _TRANSITIONS[self._status.phase]:
            raise TransitionError(
                f"Invalid lifecycle transition: {self._status.phase.value} → {target.value}"
            )

    def _revert(self) -> None:
        self._revert_handle = None
        self._check(TransactionPhase.IDLE)
        self._set(IDLE)

    def _cancel_revert(self) -> None:
        if self._revert_handle is not None:
            self._revert_handle.cancel()
            self._revert_handle = None

    def _set(self, status: TransactionStatus) -> None:
        self._status = status
        for listener in list(self._listeners):
            listener(status)
