"""Ledger store backed by an EVM key-value contract.

The contract is a notary: it keeps bytes under string keys plus a
per-key version counter, and nothing else. No code in this module
interprets the bytes.

Contract surface (see LEDGER_ABI):
    isAvailable() -> bool
    getData(string key) -> bytes
    getVersion(string key) -> uint256
    setData(string key, bytes value)
    setDataIfVersion(string key, bytes value, uint256 expected)
        reverts with "version mismatch" when expected != current

web3 is synchronous; every call runs in a worker thread so the event
loop keeps serving the UI while a transaction waits for confirmation.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional, Protocol

from committee.errors import (
    AvailabilityError,
    ChainError,
    LedgerError,
    PreconditionFailed,
    UserRejected,
)
from committee.ledger.store import WriteReceipt


logger = logging.getLogger(__name__)


def _fn(name: str, inputs: list[tuple[str, str]], outputs: list[str], mutability: str) -> dict:
    return {
        "type": "function",
        "name": name,
        "inputs": [{"name": n, "type": t} for n, t in inputs],
        "outputs": [{"name": "", "type": t} for t in outputs],
        "stateMutability": mutability,
    }


LEDGER_ABI: list[dict[str, Any]] = [
    _fn("isAvailable", [], ["bool"], "view"),
    _fn("getData", [("key", "string")], ["bytes"], "view"),
    _fn("getVersion", [("key", "string")], ["uint256"], "view"),
    _fn("setData", [("key", "string"), ("value", "bytes")], [], "nonpayable"),
    _fn(
        "setDataIfVersion",
        [("key", "string"), ("value", "bytes"), ("expected", "uint256")],
        [],
        "nonpayable",
    ),
]

_VERSION_MISMATCH = "version mismatch"
_USER_REJECTED = "user rejected"


class TransactionSigner(Protocol):
    """Anything that can sign a transaction dict for one address."""

    @property
    def address(self) -> str:
        ...

    def sign_transaction(self, tx: dict[str, Any]) -> bytes:
        """Return raw signed bytes. Raises UserRejected if declined."""
        ...


class Web3LedgerStore:
    """LedgerStore over a deployed key-value contract.

    Args:
        rpc_url: HTTP RPC endpoint.
        contract_address: Address of the deployed ledger contract.
        signer: Signs write transactions. Reads work without one.
        chain_id: Network chain ID (default: 11155111 = Sepolia).
        confirm_timeout: Seconds to wait for a receipt.
        w3: Pre-built Web3 instance (tests inject a fake here).
    """

    def __init__(
        self,
        rpc_url: str,
        contract_address: str,
        signer: Optional[TransactionSigner] = None,
        chain_id: int = 11155111,
        confirm_timeout: float = 300,
        w3: Any = None,
    ) -> None:
        if w3 is None:
            from web3 import Web3, HTTPProvider
            w3 = Web3(HTTPProvider(rpc_url))
            contract_address = Web3.to_checksum_address(contract_address)
        self._w3 = w3
        self._contract = w3.eth.contract(address=contract_address, abi=LEDGER_ABI)
        self._signer = signer
        self._chain_id = chain_id
        self._confirm_timeout = confirm_timeout

    async def is_available(self) -> bool:
        try:
            return bool(await asyncio.to_thread(self._call, "isAvailable"))
        except ChainError as exc:
            logger.warning("Availability probe failed: %s", exc)
            return False

    async def read(self, key: str) -> bytes:
        return bytes(await asyncio.to_thread(self._call, "getData", key))

    async def read_versioned(self, key: str) -> tuple[bytes, int]:
        # Two calls, one snapshot: pin both reads to the same block.
        def _snapshot() -> tuple[bytes, int]:
            block = self._w3.eth.block_number
            data = self._call("getData", key, block_identifier=block)
            version = self._call("getVersion", key, block_identifier=block)
            return bytes(data), int(version)

        return await asyncio.to_thread(_snapshot)

    async def write(
        self,
        key: str,
        value: bytes,
        expected_version: Optional[int] = None,
    ) -> WriteReceipt:
        if self._signer is None:
            raise ChainError("No signing account is configured for ledger writes")
        return await asyncio.to_thread(self._send, key, bytes(value), expected_version)

    # ------------------------------------------------------------------
    # Blocking helpers (run in worker threads)
    # ------------------------------------------------------------------

    def _call(self, name: str, *args: Any, block_identifier: Any = "latest") -> Any:
        try:
            return getattr(self._contract.functions, name)(*args).call(
                block_identifier=block_identifier,
            )
        except LedgerError:
            raise
        except Exception as exc:
            raise ChainError(f"{name} call failed: {exc}") from exc

    def _send(
        self,
        key: str,
        value: bytes,
        expected_version: Optional[int],
    ) -> WriteReceipt:
        if expected_version is None:
            fn = self._contract.functions.setData(key, value)
        else:
            fn = self._contract.functions.setDataIfVersion(key, value, expected_version)

        sender = self._signer.address
        try:
            tx = fn.build_transaction({
                "from": sender,
                "nonce": self._w3.eth.get_transaction_count(sender, "pending"),
                "chainId": self._chain_id,
            })
        except Exception as exc:
            # Gas estimation replays the call, so a stale version reverts here.
            raise self._translate(exc, key, expected_version) from exc

        raw = self._signer.sign_transaction(tx)

        try:
            tx_hash = self._w3.eth.send_raw_transaction(raw)
            logger.info("Sent tx %s for %s", tx_hash.hex(), key)
            receipt = self._w3.eth.wait_for_transaction_receipt(
                tx_hash, timeout=self._confirm_timeout,
            )
        except Exception as exc:
            raise self._translate(exc, key, expected_version) from exc

        if receipt["status"] != 1:
            if expected_version is not None:
                # Mined but reverted: somebody else's write landed first.
                raise PreconditionFailed(key, expected_version, self._version_of(key))
            raise ChainError(f"Transaction {tx_hash.hex()} reverted")

        logger.info("Confirmed %s in block %s", key, receipt["blockNumber"])
        return WriteReceipt(
            key=key,
            version=self._version_of(key),
            tx_hash=tx_hash.hex(),
        )

    def _version_of(self, key: str) -> int:
        return int(self._call("getVersion", key))

    def _translate(
        self,
        exc: Exception,
        key: str,
        expected_version: Optional[int],
    ) -> LedgerError:
        if isinstance(exc, LedgerError):
            return exc
        text = str(exc).lower()
        if _USER_REJECTED in text:
            return UserRejected("Transaction rejected by user")
        if expected_version is not None and _VERSION_MISMATCH in text:
            return PreconditionFailed(key, expected_version, self._version_of(key))
        if "not available" in text:
            return AvailabilityError(str(exc))
        return ChainError(str(exc))
