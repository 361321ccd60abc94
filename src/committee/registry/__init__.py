"""Committee registry — records and the member index on the ledger."""

from committee.registry.reader import RegistryReader
from committee.registry.writer import RegistryWriter

__all__ = ["RegistryReader", "RegistryWriter"]
