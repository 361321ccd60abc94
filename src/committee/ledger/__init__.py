"""Ledger store backends."""

from committee.ledger.store import InMemoryLedgerStore, LedgerStore, WriteReceipt
from committee.ledger.web3_store import LEDGER_ABI, Web3LedgerStore

__all__ = ["InMemoryLedgerStore", "LedgerStore", "WriteReceipt", "LEDGER_ABI", "Web3LedgerStore"]
