"""Account providers — who is connected and who signs.

The wallet itself is an external collaborator. The client only needs:
- request_accounts(): the connected account ids, active one first.
- on_accounts_changed(callback): notification of a new active account,
  or "" when the holder disconnects.

LocalAccountProvider satisfies that contract from a private key held by
this process (CLI and scripted use). An optional approve callback stands
in for the wallet prompt: returning False rejects the signature.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional, Protocol

from committee.errors import UserRejected


logger = logging.getLogger(__name__)

AccountListener = Callable[[str], None]


class AccountProvider(Protocol):
    async def request_accounts(self) -> list[str]:
        ...

    def on_accounts_changed(self, callback: AccountListener) -> Callable[[], None]:
        ...


class LocalAccountProvider:
    """Single-key provider backed by eth_account."""

    def __init__(
        self,
        private_key: str,
        approve: Optional[Callable[[dict[str, Any]], bool]] = None,
    ) -> None:
        from eth_account import Account

        self._account: Any = Account.from_key(private_key)
        self._approve = approve
        self._connected = True
        self._listeners: list[AccountListener] = []

    @property
    def address(self) -> str:
        return self._account.address

    async def request_accounts(self) -> list[str]:
        if not self._connected:
            self._connected = True
            self._emit(self.address)
        return [self.address]

    def on_accounts_changed(self, callback: AccountListener) -> Callable[[], None]:
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def sign_transaction(self, tx: dict[str, Any]) -> bytes:
        if not self._connected:
            raise UserRejected("Account is disconnected")
        if self._approve is not None and not self._approve(tx):
            raise UserRejected("Transaction rejected by user")
        signed = self._account.sign_transaction(tx)
        return signed.raw_transaction

    def switch_key(self, private_key: str) -> None:
        """Replace the active account, as a wallet account switch would."""
        from eth_account import Account

        self._account = Account.from_key(private_key)
        self._connected = True
        self._emit(self.address)

    def disconnect(self) -> None:
        self._connected = False
        self._emit("")

    def _emit(self, account: str) -> None:
        logger.debug("Active account changed to %r", account)
        for listener in list(self._listeners):
            listener(account)


class StaticAccountProvider:
    """Fixed account id with no signing key (local stores only)."""

    def __init__(self, address: str) -> None:
        self.address = address

    async def request_accounts(self) -> list[str]:
        return [self.address] if self.address else []

    def on_accounts_changed(self, callback: AccountListener) -> Callable[[], None]:
        return lambda: None
