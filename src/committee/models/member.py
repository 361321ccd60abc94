"""Committee member data model.

A member is created exactly once, when an account joins the committee,
and is never mutated or removed afterwards. The ledger store owns the
canonical copy; instances here are read snapshots.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Iterable

from committee.errors import InvalidMemberError


MIN_REPUTATION = 0
MAX_REPUTATION = 100


class Role(str, enum.Enum):
    """Closed set of committee roles."""
    DELEGATE = "Delegate"
    VALIDATOR = "Validator"
    CONTRIBUTOR = "Contributor"
    AMBASSADOR = "Ambassador"

    @classmethod
    def parse(cls, value: "Role | str") -> "Role":
        """Resolve a role from its wire name.

        Raises InvalidMemberError for empty or unknown names.
        """
        if isinstance(value, Role):
            return value
        if not isinstance(value, str) or not value.strip():
            raise InvalidMemberError("Role is required")
        try:
            return cls(value.strip())
        except ValueError:
            allowed = ", ".join(r.value for r in cls)
            raise InvalidMemberError(
                f"Unknown role {value!r}. Allowed: [{allowed}]"
            ) from None


def validate_reputation(reputation: object) -> int:
    """Check reputation is an integer in [0, 100]."""
    if isinstance(reputation, bool) or not isinstance(reputation, int):
        raise InvalidMemberError(
            f"Reputation must be an integer, got {type(reputation).__name__}"
        )
    if not (MIN_REPUTATION <= reputation <= MAX_REPUTATION):
        raise InvalidMemberError(
            f"Reputation must be in [{MIN_REPUTATION}, {MAX_REPUTATION}], "
            f"got {reputation}"
        )
    return reputation


@dataclass(frozen=True)
class CommitteeMember:
    """A single committee member as stored on the ledger."""
    member_id: str
    address: str
    joined_date: int  # unix seconds
    role: Role
    reputation: int


@dataclass(frozen=True)
class MemberStats:
    """Aggregate view over a committee snapshot."""
    total: int
    average_reputation: float
    by_role: dict[str, int] = field(default_factory=dict)

    @staticmethod
    def compute(members: Iterable[CommitteeMember]) -> MemberStats:
        members = list(members)
        by_role = {role.value: 0 for role in Role}
        for m in members:
            by_role[m.role.value] += 1
        total = len(members)
        average = (
            sum(m.reputation for m in members) / total if total else 0.0
        )
        return MemberStats(total=total, average_reputation=average, by_role=by_role)
