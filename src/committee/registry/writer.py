"""Registry writer — adds members to the committee.

A join is two writes that the ledger cannot make atomic:
1. The member record under its own key. Keys are unique per member,
   so writers never contend here.
2. The member index, a single blob every writer shares.

Step 2 is a read-modify-write. Done naively, two concurrent joins both
read the same index, each append their own id, and the later write
silently drops the earlier id. The record survives but nothing points
at it. To prevent that, the index write carries the version that was
read, the store refuses it if the index moved on, and the writer
re-reads and retries a bounded number of times.

If step 2 never succeeds the record from step 1 is orphaned: present
on the ledger, invisible to readers. That is logged, not repaired.
"""

from __future__ import annotations

import asyncio
import logging
import random
import secrets
import time
from typing import Callable

from committee.errors import (
    DecodeError,
    InvalidMemberError,
    PreconditionFailed,
    RegistryConflict,
)
from committee.ledger.store import LedgerStore
from committee.models.member import CommitteeMember, Role, validate_reputation
from committee.registry.codec import (
    INDEX_KEY,
    decode_index,
    encode_index,
    encode_member,
    member_key,
)


logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 5
_ID_ATTEMPTS = 3


def generate_member_id(now: float) -> str:
    """Millisecond timestamp plus a 32-bit random suffix."""
    return f"{int(now * 1000)}-{secrets.token_hex(4)}"


class RegistryWriter:
    """Creates member records and links them into the index.

    Usage:
        writer = RegistryWriter(store)
        member = await writer.join("0xAA11...", "Delegate", 50)
    """

    def __init__(
        self,
        store: LedgerStore,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        retry_delay: float = 0.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")
        self._store = store
        self._max_attempts = max_attempts
        self._retry_delay = retry_delay
        self._clock = clock

    async def join(
        self,
        address: str,
        role: Role | str,
        reputation: int,
    ) -> CommitteeMember:
        """Add a member and return it once both writes have confirmed.

        Raises InvalidMemberError before touching the store if the
        input is invalid, RegistryConflict if the index could not be
        updated within max_attempts, and store errors as they occur.
        """
        if not isinstance(address, str) or not address.strip():
            raise InvalidMemberError("Address is required")
        parsed_role = Role.parse(role)
        validate_reputation(reputation)

        now = self._clock()
        member = CommitteeMember(
            member_id=await self._fresh_id(now),
            address=address.strip(),
            joined_date=int(now),
            role=parsed_role,
            reputation=reputation,
        )

        await self._store.write(member_key(member.member_id), encode_member(member))
        logger.info("Wrote record for member %s", member.member_id)

        try:
            await self._link(member.member_id)
        except Exception:
            logger.error(
                "Member %s record written but not indexed (orphaned)",
                member.member_id,
            )
            raise
        return member

    async def _fresh_id(self, now: float) -> str:
        for _ in range(_ID_ATTEMPTS):
            candidate = generate_member_id(now)
            if not await self._store.read(member_key(candidate)):
                return candidate
            logger.info("Member id %s already taken, regenerating", candidate)
        raise RegistryConflict(candidate, _ID_ATTEMPTS)

    async def _link(self, member_id: str) -> None:
        """Append member_id to the index under optimistic concurrency."""
        for attempt in range(1, self._max_attempts + 1):
            raw, version = await self._store.read_versioned(INDEX_KEY)
            try:
                ids = decode_index(raw)
            except DecodeError as exc:
                # Rewriting starts a fresh index; the old blob was unreadable anyway.
                logger.warning("Replacing corrupt member index: %s", exc)
                ids = []

            if member_id in ids:
                return
            ids.append(member_id)

            try:
                await self._store.write(INDEX_KEY, encode_index(ids), expected_version=version)
                return
            except PreconditionFailed as exc:
                logger.info(
                    "Index update for %s lost a race (attempt %d/%d): %s",
                    member_id, attempt, self._max_attempts, exc,
                )
                if self._retry_delay:
                    await asyncio.sleep(random.uniform(0, self._retry_delay))

        raise RegistryConflict(member_id, self._max_attempts)
