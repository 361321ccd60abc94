"""Ledger store contract and the in-memory implementation.

The ledger is a plain key→bytes store. It offers no indexing and no
multi-key transactions. The one concession it makes to concurrent
writers is a per-key version counter: every confirmed write bumps the
key's version, and a write may carry the version the writer last saw
so the store can reject it if somebody else got there first.

Versions start at 0 for a key that has never been written.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol, runtime_checkable

from committee.errors import AvailabilityError, PreconditionFailed


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WriteReceipt:
    """Confirmation of a write that landed on the ledger."""
    key: str
    version: int
    tx_hash: Optional[str] = None


@runtime_checkable
class LedgerStore(Protocol):
    """Asynchronous contract every ledger backend satisfies."""

    async def is_available(self) -> bool:
        ...

    async def read(self, key: str) -> bytes:
        """Return the stored bytes, or b"" when the key is absent."""
        ...

    async def read_versioned(self, key: str) -> tuple[bytes, int]:
        """Return the stored bytes together with the key's version."""
        ...

    async def write(
        self,
        key: str,
        value: bytes,
        expected_version: Optional[int] = None,
    ) -> WriteReceipt:
        """Write and wait for confirmation.

        If expected_version is given and no longer matches the key's
        version at confirmation time, raises PreconditionFailed.
        """
        ...


class InMemoryLedgerStore:
    """Process-local ledger with optional JSON file persistence.

    Write latency can be simulated with confirm_delay: the precondition
    is checked when the write confirms, not when it is submitted, which
    is how a chain behaves.

    Usage:
        store = InMemoryLedgerStore()
        await store.write("member_keys", b"[]")
        data, version = await store.read_versioned("member_keys")
    """

    def __init__(
        self,
        storage_path: Optional[Path] = None,
        confirm_delay: float = 0.0,
    ) -> None:
        self._data: dict[str, bytes] = {}
        self._versions: dict[str, int] = {}
        self._storage_path = storage_path
        self._confirm_delay = confirm_delay
        self._tx_counter = 0
        self.available = True
        self.write_count = 0

        if storage_path and storage_path.exists():
            self._load_from_file(storage_path)

    async def is_available(self) -> bool:
        return self.available

    async def read(self, key: str) -> bytes:
        self._require_available()
        return self._data.get(key, b"")

    async def read_versioned(self, key: str) -> tuple[bytes, int]:
        self._require_available()
        return self._data.get(key, b""), self._versions.get(key, 0)

    async def write(
        self,
        key: str,
        value: bytes,
        expected_version: Optional[int] = None,
    ) -> WriteReceipt:
        self._require_available()
        if self._confirm_delay:
            await asyncio.sleep(self._confirm_delay)

        current = self._versions.get(key, 0)
        if expected_version is not None and expected_version != current:
            raise PreconditionFailed(key, expected_version, current)

        self._data[key] = bytes(value)
        self._versions[key] = current + 1
        self._tx_counter += 1
        self.write_count += 1
        if self._storage_path:
            self._save_to_file()
        logger.debug("Confirmed write to %s (version %d)", key, current + 1)
        return WriteReceipt(
            key=key,
            version=current + 1,
            tx_hash=f"local:{self._tx_counter:08d}",
        )

    def keys(self) -> list[str]:
        return sorted(self._data)

    def _require_available(self) -> None:
        if not self.available:
            raise AvailabilityError("Ledger store is not available")

    def _save_to_file(self) -> None:
        """Rewrite the whole snapshot; values are hex-encoded."""
        snapshot = {
            key: {"value": self._data[key].hex(), "version": self._versions[key]}
            for key in self._data
        }
        self._storage_path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._storage_path.with_suffix(self._storage_path.suffix + ".tmp")
        tmp.write_text(json.dumps(snapshot, sort_keys=True, indent=2), encoding="utf-8")
        tmp.replace(self._storage_path)

    def _load_from_file(self, path: Path) -> None:
        snapshot = json.loads(path.read_text(encoding="utf-8"))
        for key, entry in snapshot.items():
            self._data[key] = bytes.fromhex(entry["value"])
            self._versions[key] = int(entry["version"])
        self._tx_counter = sum(self._versions.values())
