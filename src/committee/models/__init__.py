"""Core data models for the committee registry."""

from committee.models.member import (
    CommitteeMember,
    MemberStats,
    Role,
)
from committee.models.lifecycle import TransactionPhase, TransactionStatus

__all__ = [
    "CommitteeMember",
    "MemberStats",
    "Role",
    "TransactionPhase",
    "TransactionStatus",
]
