"""Tests for the transaction lifecycle — transitions, timers, stale results."""

import asyncio

import pytest

from committee.engine.transaction_lifecycle import (
    ERROR_DELAY,
    SUCCESS_DELAY,
    TransactionLifecycle,
    TransitionError,
    _TRANSITIONS,
)
from committee.models.lifecycle import TransactionPhase, TransactionStatus


PENDING = TransactionPhase.PENDING
SUCCESS = TransactionPhase.SUCCESS
ERROR = TransactionPhase.ERROR
IDLE = TransactionPhase.IDLE

FAST = 0.05


def _lifecycle() -> TransactionLifecycle:
    return TransactionLifecycle(success_delay=FAST, error_delay=FAST * 2)


class TestDefaults:
    def test_initial_state_idle(self) -> None:
        lc = TransactionLifecycle()
        assert lc.phase == IDLE
        assert not lc.status.visible

    def test_default_delays(self) -> None:
        assert SUCCESS_DELAY == 2.0
        assert ERROR_DELAY == 3.0


class TestTransitions:
    def test_start_from_any_state(self) -> None:
        async def run():
            lc = _lifecycle()
            lc.start("one")
            assert lc.status == TransactionStatus(PENDING, "one")
            lc.succeed("done")
            lc.start("two")
            assert lc.status == TransactionStatus(PENDING, "two")
            lc.fail("oops")
            lc.start("three")
            assert lc.status == TransactionStatus(PENDING, "three")

        asyncio.run(run())

    def test_succeed_from_idle_rejected(self) -> None:
        async def run():
            lc = _lifecycle()
            with pytest.raises(TransitionError, match="idle → success"):
                lc.succeed("nothing pending")
            assert lc.phase == IDLE

        asyncio.run(run())

    def test_fail_after_success_rejected_without_ticket(self) -> None:
        async def run():
            lc = _lifecycle()
            lc.start("x")
            lc.succeed("ok")
            with pytest.raises(TransitionError):
                lc.fail("late")
            assert lc.phase == SUCCESS

        asyncio.run(run())

    def test_listeners_see_every_status(self) -> None:
        async def run():
            lc = _lifecycle()
            seen: list[TransactionStatus] = []
            unsubscribe = lc.subscribe(seen.append)
            lc.start("go")
            lc.fail("bad")
            unsubscribe()
            lc.start("unseen")
            return seen

        seen = asyncio.run(run())
        assert [s.phase for s in seen] == [PENDING, ERROR]
        assert seen[1].message == "bad"

    def test_every_table_edge_is_taken(self) -> None:
        """start and the timed revert go through the same table as succeed/fail."""
        async def run():
            lc = _lifecycle()
            edges: set[tuple[TransactionPhase, TransactionPhase]] = set()
            previous = [lc.phase]

            def record(status: TransactionStatus) -> None:
                edges.add((previous[0], status.phase))
                previous[0] = status.phase

            lc.subscribe(record)
            lc.start("a")
            lc.start("b")
            lc.succeed("ok")
            lc.start("c")
            lc.succeed("ok again")
            await asyncio.sleep(FAST * 2)
            lc.start("d")
            lc.fail("bad")
            lc.start("e")
            lc.fail("bad again")
            await asyncio.sleep(FAST * 3)
            return edges

        expected = {(src, dst) for src, targets in _TRANSITIONS.items() for dst in targets}
        assert asyncio.run(run()) == expected


class TestTiming:
    def test_success_reverts_once(self) -> None:
        async def run():
            lc = _lifecycle()
            phases: list[TransactionPhase] = []
            lc.subscribe(lambda s: phases.append(s.phase))
            lc.start("adding")
            lc.succeed("added")
            await asyncio.sleep(FAST / 5)
            assert lc.phase == SUCCESS
            await asyncio.sleep(FAST * 2)
            assert lc.phase == IDLE
            assert not lc.revert_scheduled
            await asyncio.sleep(FAST * 3)
            return phases

        assert asyncio.run(run()) == [PENDING, SUCCESS, IDLE]

    def test_error_uses_longer_delay(self) -> None:
        async def run():
            lc = _lifecycle()
            lc.start("adding")
            lc.fail("failed")
            await asyncio.sleep(FAST * 1.4)
            assert lc.phase == ERROR
            await asyncio.sleep(FAST * 1.6)
            assert lc.phase == IDLE

        asyncio.run(run())

    def test_start_cancels_pending_reversion(self) -> None:
        async def run():
            lc = _lifecycle()
            lc.start("first")
            lc.succeed("first done")
            assert lc.revert_scheduled
            await asyncio.sleep(FAST / 5)
            lc.start("second")
            assert not lc.revert_scheduled
            await asyncio.sleep(FAST * 3)
            assert lc.status == TransactionStatus(PENDING, "second")

        asyncio.run(run())

    def test_close_cancels_timer(self) -> None:
        async def run():
            lc = _lifecycle()
            lc.start("x")
            lc.succeed("y")
            lc.close()
            assert not lc.revert_scheduled
            assert lc.phase == IDLE

        asyncio.run(run())


class TestTickets:
    def test_overlapping_operations_last_writer_wins(self) -> None:
        """A second start overwrites the display; the first may still resolve."""
        async def run():
            lc = _lifecycle()
            first = lc.start("first")
            second = lc.start("second")
            assert lc.status.message == "second"
            assert lc.succeed("first done", first)
            assert lc.status == TransactionStatus(SUCCESS, "first done")
            assert lc.fail("second failed", second)
            assert lc.status == TransactionStatus(ERROR, "second failed")
            assert lc.outstanding == frozenset()

        asyncio.run(run())

    def test_abandoned_result_dropped(self) -> None:
        async def run():
            lc = _lifecycle()
            ticket = lc.start("join")
            lc.abandon(ticket)
            lc.reset()
            assert lc.succeed("late", ticket) is False
            assert lc.phase == IDLE
            assert not lc.revert_scheduled

        asyncio.run(run())

    def test_ticket_resolves_once(self) -> None:
        async def run():
            lc = _lifecycle()
            ticket = lc.start("join")
            assert lc.succeed("ok", ticket)
            assert lc.fail("again", ticket) is False
            assert lc.phase == SUCCESS

        asyncio.run(run())

    def test_abandon_all(self) -> None:
        async def run():
            lc = _lifecycle()
            tickets = [lc.start("a"), lc.start("b")]
            lc.abandon_all()
            return [lc.succeed("x", t) for t in tickets]

        assert asyncio.run(run()) == [False, False]
