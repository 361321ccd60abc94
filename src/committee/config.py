"""Client configuration from the environment.

Values come from process environment variables, optionally seeded from
a .env file:

    LEDGER_RPC_URL            HTTP RPC endpoint
    LEDGER_CONTRACT_ADDRESS   deployed ledger contract
    PRIVATE_KEY               signing key for writes
    LEDGER_CHAIN_ID           default 11155111 (Sepolia)
    LEDGER_CONFIRM_TIMEOUT    seconds, default 300
    LEDGER_STORE_PATH         local JSON store instead of a chain
    REGISTRY_MAX_ATTEMPTS     index update attempts, default 5
    LIFECYCLE_SUCCESS_DELAY   seconds, default 2.0
    LIFECYCLE_ERROR_DELAY     seconds, default 3.0
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, TypeVar

from dotenv import load_dotenv

from committee.engine.transaction_lifecycle import ERROR_DELAY, SUCCESS_DELAY
from committee.registry.writer import DEFAULT_MAX_ATTEMPTS


T = TypeVar("T")


def _env(name: str, cast: Callable[[str], T], default: T) -> T:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return cast(raw.strip())
    except ValueError:
        raise ValueError(f"Invalid value for {name}: {raw!r}") from None


@dataclass(frozen=True)
class ClientConfig:
    rpc_url: Optional[str] = None
    contract_address: Optional[str] = None
    private_key: Optional[str] = None
    chain_id: int = 11155111
    confirm_timeout: float = 300
    store_path: Optional[Path] = None
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    success_delay: float = SUCCESS_DELAY
    error_delay: float = ERROR_DELAY

    @classmethod
    def from_env(cls, env_file: Optional[Path] = None) -> ClientConfig:
        """Load .env (if present) and read configuration."""
        if env_file is not None:
            load_dotenv(env_file)
        else:
            load_dotenv()

        store_path = os.getenv("LEDGER_STORE_PATH")
        return cls(
            rpc_url=os.getenv("LEDGER_RPC_URL") or None,
            contract_address=os.getenv("LEDGER_CONTRACT_ADDRESS") or None,
            private_key=os.getenv("PRIVATE_KEY") or None,
            chain_id=_env("LEDGER_CHAIN_ID", int, 11155111),
            confirm_timeout=_env("LEDGER_CONFIRM_TIMEOUT", float, 300.0),
            store_path=Path(store_path) if store_path else None,
            max_attempts=_env("REGISTRY_MAX_ATTEMPTS", int, DEFAULT_MAX_ATTEMPTS),
            success_delay=_env("LIFECYCLE_SUCCESS_DELAY", float, SUCCESS_DELAY),
            error_delay=_env("LIFECYCLE_ERROR_DELAY", float, ERROR_DELAY),
        )

    def has_chain(self) -> bool:
        return bool(self.rpc_url and self.contract_address)
