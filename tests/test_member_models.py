"""Tests for member models — closed role set, reputation bounds, statistics."""

import pytest

from committee.errors import InvalidMemberError
from committee.models.member import (
    CommitteeMember,
    MemberStats,
    Role,
    validate_reputation,
)


def _member(member_id: str, role: Role, reputation: int) -> CommitteeMember:
    return CommitteeMember(
        member_id=member_id,
        address=f"0x{member_id}",
        joined_date=1700000000,
        role=role,
        reputation=reputation,
    )


class TestRoleParsing:
    def test_all_roles_parse_from_wire_names(self) -> None:
        for name in ("Delegate", "Validator", "Contributor", "Ambassador"):
            assert Role.parse(name).value == name

    def test_role_passthrough(self) -> None:
        assert Role.parse(Role.VALIDATOR) is Role.VALIDATOR

    def test_surrounding_whitespace_tolerated(self) -> None:
        assert Role.parse(" Delegate ") is Role.DELEGATE

    @pytest.mark.parametrize("value", ["", "   ", None, "delegate", "Admin", 3])
    def test_rejected(self, value) -> None:
        with pytest.raises(InvalidMemberError):
            Role.parse(value)

    def test_invalid_member_error_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            Role.parse("Admin")


class TestReputation:
    @pytest.mark.parametrize("value", [0, 1, 50, 100])
    def test_accepted(self, value: int) -> None:
        assert validate_reputation(value) == value

    @pytest.mark.parametrize("value", [-1, 101, 50.0, "50", True, None])
    def test_rejected(self, value) -> None:
        with pytest.raises(InvalidMemberError):
            validate_reputation(value)


class TestMemberStats:
    def test_empty_committee(self) -> None:
        stats = MemberStats.compute([])
        assert stats.total == 0
        assert stats.average_reputation == 0.0
        assert set(stats.by_role) == {r.value for r in Role}

    def test_average_and_breakdown(self) -> None:
        stats = MemberStats.compute([
            _member("a", Role.DELEGATE, 50),
            _member("b", Role.VALIDATOR, 80),
            _member("c", Role.DELEGATE, 20),
        ])
        assert stats.total == 3
        assert stats.average_reputation == pytest.approx(50.0)
        assert stats.by_role["Delegate"] == 2
        assert stats.by_role["Validator"] == 1
        assert stats.by_role["Ambassador"] == 0
