"""Tests for the registry reader — proves a bad entry never aborts a load."""

import asyncio
import json

import pytest

from committee.errors import AvailabilityError, ChainError
from committee.ledger.store import InMemoryLedgerStore
from committee.models.member import Role
from committee.registry.codec import INDEX_KEY, encode_index, member_key
from committee.registry.reader import RegistryReader


def _record(address: str, joined: int, role: str = "Delegate", reputation: int = 50) -> bytes:
    return json.dumps({
        "address": address,
        "joinedDate": joined,
        "role": role,
        "reputation": reputation,
    }).encode("utf-8")


def _seed(store: InMemoryLedgerStore, index: bytes, records: dict[str, bytes]) -> None:
    async def run():
        await store.write(INDEX_KEY, index)
        for member_id, raw in records.items():
            await store.write(member_key(member_id), raw)

    asyncio.run(run())


def _load(store) -> list:
    return asyncio.run(RegistryReader(store).load_all())


class FlakyStore(InMemoryLedgerStore):
    """Fails reads for selected keys with a chain error."""

    def __init__(self, failing: set[str]) -> None:
        super().__init__()
        self._failing = failing

    async def read(self, key: str) -> bytes:
        if key in self._failing:
            raise ChainError(f"RPC timeout reading {key}")
        return await super().read(key)


class TestLoadAll:
    def test_empty_store(self) -> None:
        assert _load(InMemoryLedgerStore()) == []

    def test_newest_first(self) -> None:
        store = InMemoryLedgerStore()
        _seed(store, encode_index(["old", "new", "mid"]), {
            "old": _record("0x01", 100),
            "new": _record("0x02", 300),
            "mid": _record("0x03", 200),
        })
        assert [m.member_id for m in _load(store)] == ["new", "mid", "old"]

    def test_same_second_later_join_first(self) -> None:
        store = InMemoryLedgerStore()
        _seed(store, encode_index(["first", "second"]), {
            "first": _record("0x01", 100),
            "second": _record("0x02", 100),
        })
        assert [m.member_id for m in _load(store)] == ["second", "first"]

    def test_fields_decoded(self) -> None:
        store = InMemoryLedgerStore()
        _seed(store, encode_index(["a"]), {"a": _record("0xAA11", 123, "Validator", 80)})
        [member] = _load(store)
        assert member.address == "0xAA11"
        assert member.joined_date == 123
        assert member.role is Role.VALIDATOR
        assert member.reputation == 80

    def test_duplicate_index_entry_yields_one_member(self) -> None:
        store = InMemoryLedgerStore()
        _seed(store, encode_index(["a", "a"]), {"a": _record("0x01", 1)})
        assert len(_load(store)) == 1


class TestCorruptionTolerance:
    def test_corrupt_index_is_empty(self) -> None:
        store = InMemoryLedgerStore()
        _seed(store, b"{not json", {"a": _record("0x01", 1)})
        assert _load(store) == []

    def test_one_corrupt_record_of_n(self) -> None:
        store = InMemoryLedgerStore()
        _seed(store, encode_index(["a", "b", "c", "d"]), {
            "a": _record("0x01", 1),
            "b": b"\x00garbage",
            "c": _record("0x03", 3),
            "d": _record("0x04", 4),
        })
        assert sorted(m.member_id for m in _load(store)) == ["a", "c", "d"]

    def test_missing_record_skipped(self) -> None:
        """Index references a record whose write never confirmed."""
        store = InMemoryLedgerStore()
        _seed(store, encode_index(["a", "ghost"]), {"a": _record("0x01", 1)})
        assert [m.member_id for m in _load(store)] == ["a"]

    def test_invalid_role_record_skipped(self) -> None:
        store = InMemoryLedgerStore()
        _seed(store, encode_index(["a", "b"]), {
            "a": _record("0x01", 1),
            "b": _record("0x02", 2, role=""),
        })
        assert [m.member_id for m in _load(store)] == ["a"]

    def test_per_entry_read_failure_skipped(self) -> None:
        store = FlakyStore({member_key("b")})
        _seed(store, encode_index(["a", "b"]), {
            "a": _record("0x01", 1),
            "b": _record("0x02", 2),
        })
        assert [m.member_id for m in _load(store)] == ["a"]

    def test_corruption_logged(self, caplog) -> None:
        store = InMemoryLedgerStore()
        _seed(store, encode_index(["a"]), {"a": b"{"})
        with caplog.at_level("WARNING", logger="committee.registry.reader"):
            assert _load(store) == []
        assert "Skipping member a" in caplog.text


class TestAvailability:
    def test_unavailable_store_surfaces(self) -> None:
        store = InMemoryLedgerStore()
        store.available = False
        with pytest.raises(AvailabilityError):
            _load(store)
