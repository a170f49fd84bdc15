#!/usr/bin/env python3
"""
Aethera Staking API runner — starts the HTTP API in front of an Aptos fullnode.

Usage:
    python run_server.py --config aethera.toml --port 3000

Environment variables (alternative to a config file):
    APTOS_NETWORK, APTOS_NODE_URL, CONTRACT_ADDRESS, VAULT_AUTHORITY_ADDRESS,
    ADMIN_PRIVATE_KEY, PORT, CORS_ORIGIN
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import logging
import os
import signal
import sys

PROJECT_ROOT = os.path.dirname(os.path.abspath(__file__))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from aethera_staking.api import APIServer  # noqa: E402
from aethera_staking.chain import AptosChainClient  # noqa: E402
from aethera_staking.config import load_config  # noqa: E402
from aethera_staking.errors import ConfigurationError  # noqa: E402
from aethera_staking.logging_config import setup_logging  # noqa: E402
from aethera_staking.service import StakingService  # noqa: E402

logger = logging.getLogger("aethera.server")


def parse_args(argv: list[str] | None = None):
    p = argparse.ArgumentParser(description="Aethera Staking API server")
    p.add_argument("--config", default=None, help="Path to aethera.toml config file")
    p.add_argument("--host", default=None, help="Listen host")
    p.add_argument("--port", type=int, default=None, help="Listen port")
    p.add_argument("--network", default=None, help="mainnet | testnet | devnet | local")
    p.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING, ...")
    return p.parse_args(argv)


async def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    cfg = load_config(args.config)

    # CLI flags override config
    if args.host:
        cfg.api.host = args.host
    if args.port:
        cfg.api.port = args.port
    if args.network:
        cfg.chain.network = args.network
    if args.log_level:
        cfg.logging.level = args.log_level.upper()

    setup_logging(cfg.logging.level, cfg.logging.format, cfg.logging.file)

    chain = AptosChainClient(cfg.chain)
    try:
        service = StakingService.from_config(chain, cfg.chain)
    except ConfigurationError as exc:
        logger.error(f"Cannot start: {exc}")
        return 1

    await chain.start()
    api = APIServer(service, api_config=cfg.api, network=cfg.chain.network)
    await api.start()
    logger.info(
        f"Network={cfg.chain.network} node={cfg.chain.fullnode_url} "
        f"contract={cfg.chain.contract_address} vault={cfg.chain.vault_authority}"
    )

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(sig, stop.set)
    try:
        await stop.wait()
    finally:
        logger.info("Shutting down...")
        await api.stop()
        await chain.close()
    return 0


def main_sync():
    """Synchronous entry point for console_scripts."""
    with contextlib.suppress(KeyboardInterrupt):
        sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    main_sync()
