"""Account connection — providers and signers."""

from committee.identity.accounts import (
    AccountProvider,
    LocalAccountProvider,
    StaticAccountProvider,
)

__all__ = ["AccountProvider", "LocalAccountProvider", "StaticAccountProvider"]
