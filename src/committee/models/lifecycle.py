"""Transaction lifecycle data models."""

from __future__ import annotations

import enum
from dataclasses import dataclass


class TransactionPhase(str, enum.Enum):
    """Display phase of the single tracked operation."""
    IDLE = "idle"
    PENDING = "pending"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class TransactionStatus:
    """What the user currently sees about the tracked operation."""
    phase: TransactionPhase
    message: str = ""

    @property
    def visible(self) -> bool:
        return self.phase != TransactionPhase.IDLE


IDLE = TransactionStatus(TransactionPhase.IDLE)
