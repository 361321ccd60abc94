"""Error taxonomy for the committee registry client.

Every failure the client can observe maps onto one of these types:
- Read-path corruption (DecodeError) is recovered locally and logged.
- Write-path failures (everything else) surface to the user through the
  transaction lifecycle's Error state with a human-readable message.
"""

from __future__ import annotations


class LedgerError(Exception):
    """Base class for all ledger and registry failures."""


class DecodeError(LedgerError):
    """A record or index blob is present but cannot be parsed."""


class AvailabilityError(LedgerError):
    """The ledger store reports itself unavailable."""


class UserRejected(LedgerError):
    """The account holder declined to sign or authorise a write."""


class ChainError(LedgerError):
    """A transaction reverted or the RPC endpoint failed."""


class PreconditionFailed(LedgerError):
    """A versioned write was rejected because the key moved on.

    Raised by the store, handled by the registry writer's retry loop.
    """

    def __init__(self, key: str, expected: int, actual: int) -> None:
        super().__init__(
            f"Version mismatch on {key}: expected {expected}, found {actual}"
        )
        self.key = key
        self.expected = expected
        self.actual = actual


class RegistryConflict(LedgerError):
    """The member index kept changing underneath us; retries exhausted."""

    def __init__(self, member_id: str, attempts: int) -> None:
        super().__init__(
            f"Member index update for {member_id} conflicted {attempts} times"
        )
        self.member_id = member_id
        self.attempts = attempts


class UnknownError(LedgerError):
    """Any other failure, wrapped with best-effort message text."""


class InvalidMemberError(ValueError):
    """A join request was rejected before any store write."""
