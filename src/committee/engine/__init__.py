"""Runtime engines — transaction lifecycle and sortition trigger."""

from committee.engine.sortition import SortitionOutcome, SortitionTrigger
from committee.engine.transaction_lifecycle import TransactionLifecycle, TransitionError

__all__ = ["SortitionOutcome", "SortitionTrigger", "TransactionLifecycle", "TransitionError"]
