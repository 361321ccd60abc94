"""Client session — the process-scoped state a running client holds.

Holds the active account and the last committee snapshot read from the
ledger. Nothing here is authoritative: the ledger is the source of
truth, and the snapshot only changes when somebody calls refresh.

Lifecycle:
    session = ClientSession(lifecycle)
    await session.connect(provider)    # on startup / wallet selection
    ...
    session.teardown()                 # on disconnect / shutdown

teardown() abandons every operation still in flight so that their
late results are not applied to a context that no longer exists.
"""

from __future__ import annotations

import enum
import logging
from typing import Callable, Optional

from committee.engine.transaction_lifecycle import TransactionLifecycle
from committee.identity.accounts import AccountProvider
from committee.models.member import CommitteeMember, MemberStats


logger = logging.getLogger(__name__)


class SessionEvent(str, enum.Enum):
    ACCOUNT_CHANGED = "account_changed"
    MEMBERS_CHANGED = "members_changed"
    TORN_DOWN = "torn_down"


SessionListener = Callable[[SessionEvent, "ClientSession"], None]


class ClientSession:
    """Explicit holder for account, provider and member cache."""

    def __init__(self, lifecycle: Optional[TransactionLifecycle] = None) -> None:
        self.lifecycle = lifecycle or TransactionLifecycle()
        self._account = ""
        self._provider: Optional[AccountProvider] = None
        self._provider_unsubscribe: Optional[Callable[[], None]] = None
        self._members: list[CommitteeMember] = []
        self._listeners: list[SessionListener] = []

    @property
    def account(self) -> str:
        return self._account

    @property
    def provider(self) -> Optional[AccountProvider]:
        return self._provider

    @property
    def connected(self) -> bool:
        return bool(self._account)

    @property
    def members(self) -> list[CommitteeMember]:
        return list(self._members)

    def stats(self) -> MemberStats:
        return MemberStats.compute(self._members)

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def connect(self, provider: AccountProvider) -> str:
        """Attach a provider and adopt its active account."""
        accounts = await provider.request_accounts()
        self._detach_provider()
        self._provider = provider
        self._provider_unsubscribe = provider.on_accounts_changed(self._on_account_changed)
        self._on_account_changed(accounts[0] if accounts else "")
        return self._account

    def disconnect(self) -> None:
        self._detach_provider()
        self._on_account_changed("")

    def set_members(self, members: list[CommitteeMember]) -> None:
        self._members = list(members)
        self._emit(SessionEvent.MEMBERS_CHANGED)

    def teardown(self) -> None:
        """Drop all client state and abandon in-flight operations."""
        self._detach_provider()
        self.lifecycle.abandon_all()
        self.lifecycle.reset()
        self._account = ""
        self._members = []
        self._emit(SessionEvent.TORN_DOWN)
        self._listeners.clear()

    def _on_account_changed(self, account: str) -> None:
        if account == self._account:
            return
        self._account = account
        self._emit(SessionEvent.ACCOUNT_CHANGED)

    def _detach_provider(self) -> None:
        if self._provider_unsubscribe is not None:
            self._provider_unsubscribe()
        self._provider_unsubscribe = None
        self._provider = None

    def _emit(self, event: SessionEvent) -> None:
        for listener in list(self._listeners):
            listener(event, self)
