#!/usr/bin/env python3
"""
Aethera terminal dashboard — polls the staking API and shows vault and
stake state, with an interactive prompt for simulating and submitting
stakes.

Usage:
    python run_dashboard.py --address 0xabc...             # interactive
    python run_dashboard.py --address 0xabc... --watch     # print updates only

Signing stake / unstake / claim needs a local key in
``AETHERA_WALLET_PRIVATE_KEY``; the dashboard then talks to the fullnode
directly for that one transaction and re-polls the API afterwards.
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import json
import logging
import os
import sys

PROJECT_ROOT = os.path.dirname(os.path.abspath(__file__))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from aethera_staking.chain import AptosChainClient  # noqa: E402
from aethera_staking.client import StakingAPIClient  # noqa: E402
from aethera_staking.config import AetheraConfig, load_config  # noqa: E402
from aethera_staking.dashboard import (  # noqa: E402
    DEFAULT_DURATION,
    DURATION_PRESETS,
    Dashboard,
    DashboardState,
    validate_stake_amount,
)
from aethera_staking.errors import StakingError  # noqa: E402
from aethera_staking.logging_config import setup_logging  # noqa: E402
from aethera_staking.precision import format_duration, format_timestamp  # noqa: E402
from aethera_staking.service import StakingService  # noqa: E402
from aethera_staking.signer import Ed25519Signer  # noqa: E402

logger = logging.getLogger("aethera.dashboard.cli")

WALLET_KEY_ENV = "AETHERA_WALLET_PRIVATE_KEY"


def render(state: DashboardState) -> str:
    lines = []
    if state.stats:
        s = state.stats
        if not s.get("vault_initialized", True):
            lines.append("  Vault: not initialised")
        else:
            lines.append(
                f"  Vault: {s['total_staked_apt']} APT staked | APY {s['apy_rate']}% | "
                f"balance {s['vault_balance_apt']} APT"
            )
    else:
        lines.append(f"  Vault: no data ({state.errors.get('stats', 'not loaded')})")

    if not state.address:
        lines.append("  Wallet: not connected")
        return "\n".join(lines)

    bal = state.balance["balance_apt"] if state.balance else "?"
    lines.append(f"  Wallet: {state.address} | {bal} APT")
    p = state.player
    if p is None:
        lines.append(f"  Stake: no data ({state.errors.get('player', 'not loaded')})")
    elif not p.get("has_stake"):
        lines.append("  Stake: none yet")
    else:
        status = format_duration(state.time_remaining) if p["is_locked"] else "Unlocked"
        lines.append(
            f"  Stake: {p['staked_amount_apt']} APT | unlocks {format_timestamp(p['unlock_timestamp'])} "
            f"({status}) | pending {p['pending_rewards_apt']} APT"
        )
    return "\n".join(lines)


def _parse_duration(token: str) -> int:
    for label, seconds in DURATION_PRESETS:
        if token.lower() == label.lower().replace(" ", ""):
            return seconds
    return int(token)


async def _submit(cfg: AetheraConfig, dashboard: Dashboard, action: str, *args) -> None:
    key = os.environ.get(WALLET_KEY_ENV, "")
    if not key:
        print(f"  Set {WALLET_KEY_ENV} to sign transactions")
        return
    signer = Ed25519Signer.from_hex(key)
    async with AptosChainClient(cfg.chain) as chain:
        service = StakingService(chain, cfg.chain)
        if action == "stake":
            result = await service.stake(signer, *args)
        elif action == "unstake":
            result = await service.unstake(signer)
        else:
            result = await service.claim_rewards(signer)
    print(f"  {result.message}: {result.transaction_hash}")
    dashboard.after_transaction(result.transaction_hash)


async def interactive_cli(cfg: AetheraConfig, dashboard: Dashboard):
    loop = asyncio.get_running_loop()

    def print_help():
        print("""
╔══════════════════════════════════════════════════════════════╗
║  Aethera Staking Dashboard                                    ║
╠══════════════════════════════════════════════════════════════╣
║  status                 - Show vault and stake state          ║
║  connect <addr>         - Watch a wallet address              ║
║  disconnect             - Stop watching the wallet            ║
║  refresh                - Re-poll everything now              ║
║  presets                - List lock duration presets          ║
║  simulate <apt> [dur]   - Estimate rewards                    ║
║  stake <apt> [dur]      - Stake (needs local key)             ║
║  unstake                - Unstake (needs local key)           ║
║  claim                  - Claim rewards (needs local key)     ║
║  help                   - Show this help                      ║
║  quit                   - Exit                                ║
╚══════════════════════════════════════════════════════════════╝
""")

    print_help()

    while True:
        try:
            line = await loop.run_in_executor(None, lambda: input("\n[aethera] > "))
            parts = line.strip().split()
            if not parts:
                continue
            cmd = parts[0].lower()

            if cmd == "help":
                print_help()

            elif cmd == "status":
                dashboard.tick_countdown()
                print(render(dashboard.state))

            elif cmd == "connect":
                if len(parts) < 2:
                    print("  Usage: connect <address>")
                    continue
                await dashboard.connect(parts[1])
                print(render(dashboard.state))

            elif cmd == "disconnect":
                dashboard.disconnect()

            elif cmd == "refresh":
                await dashboard.refresh()
                print(render(dashboard.state))

            elif cmd == "presets":
                for label, seconds in DURATION_PRESETS:
                    print(f"  {label.replace(' ', ''):<8} {seconds}s")

            elif cmd == "simulate":
                if len(parts) < 2:
                    print("  Usage: simulate <amount_apt> [duration]")
                    continue
                duration = _parse_duration(parts[2]) if len(parts) > 2 else DEFAULT_DURATION
                sim = await dashboard.simulate(parts[1], duration)
                if sim is None:
                    print(f"  No estimate: {dashboard.state.errors.get('simulation', 'invalid amount')}")
                else:
                    print(json.dumps(sim, indent=2))

            elif cmd == "stake":
                if len(parts) < 2:
                    print("  Usage: stake <amount_apt> [duration]")
                    continue
                octas = validate_stake_amount(parts[1], dashboard.balance_octas)
                duration = _parse_duration(parts[2]) if len(parts) > 2 else DEFAULT_DURATION
                await _submit(cfg, dashboard, "stake", octas, duration)

            elif cmd in ("unstake", "claim"):
                await _submit(cfg, dashboard, cmd)

            elif cmd in ("quit", "exit", "q"):
                break

            else:
                print(f"  Unknown command: {cmd}. Type 'help'.")

        except (EOFError, KeyboardInterrupt):
            break
        except (StakingError, ValueError) as e:
            print(f"  Error: {e}")


def parse_args(argv: list[str] | None = None):
    p = argparse.ArgumentParser(description="Aethera staking terminal dashboard")
    p.add_argument("--config", default=None, help="Path to aethera.toml config file")
    p.add_argument("--api-url", default=None, help="Staking API base URL (…/api)")
    p.add_argument("--address", default=None, help="Wallet address to watch")
    p.add_argument("--watch", action="store_true", help="Print updates without a prompt")
    return p.parse_args(argv)


async def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    cfg = load_config(args.config)
    if args.api_url:
        cfg.dashboard.api_url = args.api_url
    setup_logging(cfg.logging.level, cfg.logging.format, cfg.logging.file)

    def on_update(what: str, state: DashboardState) -> None:
        if args.watch and what in ("vault", "player"):
            print(render(state), flush=True)

    async with StakingAPIClient(cfg.dashboard.api_url, timeout=cfg.dashboard.request_timeout) as client:
        dashboard = Dashboard(client, cfg.dashboard, on_update=on_update)
        dashboard.state.address = args.address
        await dashboard.start()
        try:
            if args.watch:
                while True:
                    await asyncio.sleep(3600)
            else:
                await interactive_cli(cfg, dashboard)
        finally:
            await dashboard.stop()


def main_sync():
    """Synchronous entry point for console_scripts."""
    with contextlib.suppress(KeyboardInterrupt):
        asyncio.run(main())


if __name__ == "__main__":
    main_sync()
