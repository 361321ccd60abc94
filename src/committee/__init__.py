"""Committee registry client — roster of committee members on a ledger store."""

__version__ = "0.1.0"
