"""Committee service — facade the UI (or CLI) talks to.

It orchestrates the subsystems for each user action:
- Join: writer creates the record and links it into the index.
- Sortition: trigger checks availability and runs the selector.
- Refresh: reader rebuilds the roster into the session cache.

Every write-path action is tracked by the session's transaction
lifecycle: PENDING while waiting on the ledger, then SUCCESS or ERROR
with a message fit for display. No failure is dropped; each one both
reaches the lifecycle and comes back in ServiceResult.errors.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Optional

from committee.engine.sortition import CommitteeSelector, SortitionTrigger
from committee.engine.transaction_lifecycle import TransactionLifecycle
from committee.errors import (
    AvailabilityError,
    InvalidMemberError,
    LedgerError,
    RegistryConflict,
    UnknownError,
    UserRejected,
)
from committee.ledger.store import LedgerStore
from committee.models.member import Role
from committee.registry.reader import RegistryReader
from committee.registry.writer import DEFAULT_MAX_ATTEMPTS, RegistryWriter
from committee.session import ClientSession


logger = logging.getLogger(__name__)

JOIN_PENDING = "Adding committee member..."
JOIN_SUCCESS = "Committee member added successfully!"
JOIN_FAILED = "Submission failed"
SORTITION_PENDING = "Initiating sortition process..."
SORTITION_SUCCESS = "Sortition completed successfully!"
SORTITION_FAILED = "Sortition failed"
NOT_CONNECTED = "Please connect wallet first"


@dataclass(frozen=True)
class ServiceResult:
    """Result of a service operation."""
    success: bool
    errors: list[str] = field(default_factory=list)
    data: dict[str, Any] = field(default_factory=dict)


def describe_failure(exc: BaseException, prefix: str) -> str:
    """Turn an exception into the message shown to the user."""
    if isinstance(exc, UserRejected):
        return "Transaction rejected by user"
    if isinstance(exc, RegistryConflict):
        return f"{prefix}: the committee changed while you were joining, please retry"
    if isinstance(exc, AvailabilityError):
        return f"{prefix}: ledger store is not available"
    return f"{prefix}: {str(exc) or 'Unknown error'}"


def classify_failure(exc: BaseException) -> str:
    if isinstance(exc, (LedgerError, InvalidMemberError)):
        return type(exc).__name__
    return UnknownError.__name__


class CommitteeService:
    """Unified committee client facade.

    Usage:
        service = CommitteeService(store)
        await service.session.connect(provider)
        await service.refresh()
        result = await service.join("Delegate", 50)
        result = await service.run_sortition()
    """

    def __init__(
        self,
        store: LedgerStore,
        session: Optional[ClientSession] = None,
        selector: Optional[CommitteeSelector] = None,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        retry_delay: float = 0.0,
    ) -> None:
        self.session = session or ClientSession()
        self._reader = RegistryReader(store)
        self._writer = RegistryWriter(store, max_attempts=max_attempts, retry_delay=retry_delay)
        self._sortition = SortitionTrigger(store, selector=selector, reader=self._reader)

    @property
    def lifecycle(self) -> TransactionLifecycle:
        return self.session.lifecycle

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def refresh(self) -> ServiceResult:
        """Reload the committee from the ledger into the session cache."""
        try:
            members = await self._reader.load_all()
        except LedgerError as exc:
            logger.error("Error loading members: %s", exc)
            return ServiceResult(success=False, errors=[str(exc)])
        self.session.set_members(members)
        return ServiceResult(success=True, data={"count": len(members)})

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def join(self, role: Role | str, reputation: int) -> ServiceResult:
        """Add the connected account to the committee."""
        if not self.session.connected:
            return ServiceResult(success=False, errors=[NOT_CONNECTED])

        ticket = self.lifecycle.start(JOIN_PENDING)
        try:
            member = await self._writer.join(self.session.account, role, reputation)
        except Exception as exc:
            return self._failed(exc, JOIN_FAILED, ticket)

        if not self.lifecycle.succeed(JOIN_SUCCESS, ticket):
            # Caller went away; do not touch its session.
            return ServiceResult(success=True, data={"member_id": member.member_id})

        refreshed = await self.refresh()
        data = asdict(member)
        data["role"] = member.role.value
        if not refreshed.success:
            # Joined, but the cached roster is stale until the next refresh.
            data["refresh_errors"] = refreshed.errors
        return ServiceResult(success=True, data=data)

    async def run_sortition(self, seed: Optional[str] = None) -> ServiceResult:
        if not self.session.connected:
            return ServiceResult(success=False, errors=[NOT_CONNECTED])

        ticket = self.lifecycle.start(SORTITION_PENDING)
        try:
            outcome = await self._sortition.run(seed)
        except Exception as exc:
            return self._failed(exc, SORTITION_FAILED, ticket)

        self.lifecycle.succeed(SORTITION_SUCCESS, ticket)
        return ServiceResult(
            success=True,
            data={
                "performed": outcome.performed,
                "committee_size": outcome.committee_size,
                "seed": outcome.seed,
                "selected": [m.member_id for m in outcome.selected],
                "completed_utc": outcome.completed_utc,
            },
        )

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    def status(self) -> dict[str, Any]:
        stats = self.session.stats()
        tx = self.lifecycle.status
        return {
            "account": self.session.account,
            "members": stats.total,
            "average_reputation": round(stats.average_reputation, 1),
            "by_role": stats.by_role,
            "transaction": {"phase": tx.phase.value, "message": tx.message},
        }

    def _failed(self, exc: Exception, prefix: str, ticket: int) -> ServiceResult:
        message = describe_failure(exc, prefix)
        logger.warning("%s (%s)", message, classify_failure(exc))
        self.lifecycle.fail(message, ticket)
        return ServiceResult(
            success=False,
            errors=[message],
            data={"error_kind": classify_failure(exc)},
        )
