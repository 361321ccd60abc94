"""Sortition trigger — hands the committee to a selection function.

The selection algorithm itself is deliberately not part of this
package. What a conforming selector must provide:
- Deterministic output for a given committee and public seed, so any
  third party can recompute it.
- No dependence on data beyond the committee snapshot and the seed.

Without a selector the trigger only confirms the ledger is reachable
and reports that no selection was performed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Protocol, Sequence

from committee.errors import AvailabilityError
from committee.ledger.store import LedgerStore
from committee.models.member import CommitteeMember
from committee.registry.reader import RegistryReader


logger = logging.getLogger(__name__)


class CommitteeSelector(Protocol):
    """Verifiable selection over a committee snapshot."""

    def select(
        self,
        members: Sequence[CommitteeMember],
        seed: str,
    ) -> Sequence[CommitteeMember]:
        ...


@dataclass(frozen=True)
class SortitionOutcome:
    """Result of one sortition run."""
    performed: bool
    committee_size: int
    seed: Optional[str] = None
    selected: tuple[CommitteeMember, ...] = field(default_factory=tuple)
    completed_utc: str = ""


class SortitionTrigger:
    """Checks availability, then runs the configured selector (if any)."""

    def __init__(
        self,
        store: LedgerStore,
        selector: Optional[CommitteeSelector] = None,
        reader: Optional[RegistryReader] = None,
    ) -> None:
        self._store = store
        self._selector = selector
        self._reader = reader or RegistryReader(store)

    async def run(self, seed: Optional[str] = None) -> SortitionOutcome:
        if not await self._store.is_available():
            raise AvailabilityError("Ledger store is not available")

        now = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
        if self._selector is None:
            logger.info("No selector configured; sortition is a no-op")
            return SortitionOutcome(performed=False, committee_size=0, completed_utc=now)

        if not seed:
            raise ValueError("A public seed is required to run a selector")

        members = await self._reader.load_all()
        selected = tuple(self._selector.select(members, seed))
        stray = [m.member_id for m in selected if m not in members]
        if stray:
            raise ValueError(f"Selector returned non-members: {stray}")

        logger.info(
            "Sortition selected %d of %d members (seed %s)",
            len(selected), len(members), seed,
        )
        return SortitionOutcome(
            performed=True,
            committee_size=len(members),
            seed=seed,
            selected=selected,
            completed_utc=now,
        )
