"""Registry reader — rebuilds the committee from the ledger.

The ledger has no query capability, so the roster is reconstructed by
reading the index blob and then each referenced record. A single bad
entry never aborts the load: the index may reference a record whose
write never confirmed, or a record may have been written by an older
or foreign client. Those entries are skipped and logged.

Only a store that reports itself unavailable fails the whole load.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from committee.errors import AvailabilityError, DecodeError, LedgerError
from committee.ledger.store import LedgerStore
from committee.models.member import CommitteeMember
from committee.registry.codec import (
    INDEX_KEY,
    decode_index,
    decode_member,
    member_key,
)


logger = logging.getLogger(__name__)


class RegistryReader:
    """Loads the current committee, newest member first."""

    def __init__(self, store: LedgerStore) -> None:
        self._store = store

    async def load_index(self) -> list[str]:
        """Return the distinct member ids in index order.

        An undecodable index is treated as empty.
        """
        raw = await self._store.read(INDEX_KEY)
        try:
            ids = decode_index(raw)
        except DecodeError as exc:
            logger.warning("Ignoring corrupt member index: %s", exc)
            return []
        # Preserve first occurrence; a duplicate is a writer bug, not a member.
        return list(dict.fromkeys(ids))

    async def load_all(self) -> list[CommitteeMember]:
        if not await self._store.is_available():
            raise AvailabilityError("Ledger store is not available")

        ids = await self.load_index()
        results = await asyncio.gather(*(self._load_one(i) for i in ids))

        positioned = [
            (pos, member) for pos, member in enumerate(results) if member is not None
        ]
        # Later index position breaks joinedDate ties: it joined later.
        positioned.sort(key=lambda pm: (pm[1].joined_date, pm[0]), reverse=True)
        return [member for _, member in positioned]

    async def _load_one(self, member_id: str) -> Optional[CommitteeMember]:
        try:
            raw = await self._store.read(member_key(member_id))
        except AvailabilityError:
            raise
        except LedgerError as exc:
            logger.warning("Skipping member %s: read failed: %s", member_id, exc)
            return None

        if not raw:
            logger.warning("Skipping member %s: record not found", member_id)
            return None
        try:
            return decode_member(member_id, raw)
        except DecodeError as exc:
            logger.warning("Skipping member %s: %s", member_id, exc)
            return None
