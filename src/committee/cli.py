"""Committee CLI — command-line interface for the registry client.

Usage:
    python -m committee.cli status
    python -m committee.cli members
    python -m committee.cli stats
    python -m committee.cli join --role Delegate --reputation 50
    python -m committee.cli sortition
    python -m committee.cli --store-path data/ledger.json --address 0xAA11 join --role Validator --reputation 80

Without --store-path the ledger contract configured in .env is used
(LEDGER_RPC_URL, LEDGER_CONTRACT_ADDRESS, PRIVATE_KEY).
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from committee.config import ClientConfig
from committee.engine.transaction_lifecycle import TransactionLifecycle
from committee.identity.accounts import (
    AccountProvider,
    LocalAccountProvider,
    StaticAccountProvider,
)
from committee.ledger.store import InMemoryLedgerStore, LedgerStore
from committee.ledger.web3_store import Web3LedgerStore
from committee.models.member import Role
from committee.service import CommitteeService, ServiceResult
from committee.session import ClientSession


def _make_service(args: argparse.Namespace) -> tuple[CommitteeService, Optional[AccountProvider]]:
    """Build a service over the selected store, plus an account provider."""
    config = ClientConfig.from_env(args.env_file)
    store_path = args.store_path or config.store_path

    provider: Optional[AccountProvider] = None
    if config.private_key:
        provider = LocalAccountProvider(config.private_key)
    elif args.address:
        provider = StaticAccountProvider(args.address)

    store: LedgerStore
    if store_path is not None:
        store = InMemoryLedgerStore(storage_path=Path(store_path))
    elif config.has_chain():
        store = Web3LedgerStore(
            rpc_url=config.rpc_url,
            contract_address=config.contract_address,
            signer=provider if isinstance(provider, LocalAccountProvider) else None,
            chain_id=config.chain_id,
            confirm_timeout=config.confirm_timeout,
        )
    else:
        raise SystemExit(
            "ERROR: Missing LEDGER_RPC_URL and/or LEDGER_CONTRACT_ADDRESS "
            "(or pass --store-path)"
        )

    session = ClientSession(
        TransactionLifecycle(config.success_delay, config.error_delay)
    )
    service = CommitteeService(store, session=session, max_attempts=config.max_attempts)
    return service, provider


def _report(result: ServiceResult) -> int:
    if result.success:
        print(json.dumps(result.data, indent=2, default=str))
        return 0
    print(f"Failed: {'; '.join(result.errors)}", file=sys.stderr)
    return 1


async def _connected(args: argparse.Namespace) -> CommitteeService:
    service, provider = _make_service(args)
    if provider is not None:
        await service.session.connect(provider)
    return service


def cmd_status(args: argparse.Namespace) -> int:
    async def run() -> int:
        service = await _connected(args)
        print(json.dumps(service.status(), indent=2))
        return 0

    return asyncio.run(run())


def cmd_members(args: argparse.Namespace) -> int:
    async def run() -> int:
        service = await _connected(args)
        result = await service.refresh()
        if not result.success:
            return _report(result)
        rows = [
            {
                "id": m.member_id,
                "address": m.address,
                "joinedDate": m.joined_date,
                "role": m.role.value,
                "reputation": m.reputation,
            }
            for m in service.session.members
        ]
        print(json.dumps(rows, indent=2))
        return 0

    return asyncio.run(run())


def cmd_stats(args: argparse.Namespace) -> int:
    async def run() -> int:
        service = await _connected(args)
        result = await service.refresh()
        if not result.success:
            return _report(result)
        print(json.dumps(service.status(), indent=2))
        return 0

    return asyncio.run(run())


def cmd_join(args: argparse.Namespace) -> int:
    async def run() -> int:
        service = await _connected(args)
        return _report(await service.join(args.role, args.reputation))

    return asyncio.run(run())


def cmd_sortition(args: argparse.Namespace) -> int:
    async def run() -> int:
        service = await _connected(args)
        return _report(await service.run_sortition(args.seed))

    return asyncio.run(run())


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="committee",
        description="Committee registry client",
    )
    parser.add_argument(
        "--store-path",
        type=Path,
        default=None,
        help="Use a local JSON ledger file instead of the configured contract",
    )
    parser.add_argument("--env-file", type=Path, default=None, help="Path to .env file")
    parser.add_argument("--address", help="Account id to act as (local store only)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command")

    sub.add_parser("status", help="Show connected account and transaction state")
    sub.add_parser("members", help="List committee members, newest first")
    sub.add_parser("stats", help="Show committee statistics")

    p_join = sub.add_parser("join", help="Join the committee as the connected account")
    p_join.add_argument("--role", required=True, choices=[r.value for r in Role])
    p_join.add_argument("--reputation", required=True, type=int, help="0-100")

    p_sort = sub.add_parser("sortition", help="Trigger sortition")
    p_sort.add_argument("--seed", help="Public random seed")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        return 0

    commands = {
        "status": cmd_status,
        "members": cmd_members,
        "stats": cmd_stats,
        "join": cmd_join,
        "sortition": cmd_sortition,
    }

    handler = commands.get(args.command)
    if handler is None:
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return 1

    return handler(args)


if __name__ == "__main__":
    raise SystemExit(main())
