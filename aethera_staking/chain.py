"""
Aptos fullnode REST accessor.

Thin async wrapper over the node's ``/v1`` JSON API, built on
``aiohttp.ClientSession``:

    GET  /accounts/{address}/resource/{type}   one Move resource
    GET  /accounts/{address}/resources         every resource of an account
    GET  /accounts/{address}                   sequence number
    POST /view                                 read-only view function
    GET  /estimate_gas_price                   current gas unit price
    POST /transactions/encode_submission       BCS signing message for a txn
    POST /transactions                         submit a signed txn
    GET  /transactions/by_hash/{hash}          poll until committed

Transactions are encoded by the node itself (``encode_submission``), so
no BCS serialiser is needed client-side; the signer only signs the
returned bytes.

Usage:
    async with AptosChainClient(cfg.chain) as chain:
        data = await chain.get_account_resource(addr, resource_type)
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Optional, Sequence

import aiohttp

from aethera_staking.config import ChainConfig
from aethera_staking.errors import ChainError, ResourceNotFound
from aethera_staking.signer import Ed25519Signer

logger = logging.getLogger("aethera.chain")

PENDING_TXN_TYPE = "pending_transaction"
APTOS_COIN_STORE = "0x1::coin::CoinStore<0x1::aptos_coin::AptosCoin>"
APTOS_COIN_TYPE = "0x1::aptos_coin::AptosCoin"


class AptosChainClient:
    """One ``ClientSession`` against one fullnode, opened on first use."""

    def __init__(self, cfg: ChainConfig, *, session: Optional[aiohttp.ClientSession] = None):
        self.cfg = cfg
        self.base_url = cfg.fullnode_url
        self._session = session
        self._owns_session = session is None

    # ── lifecycle ────────────────────────────────────────────────

    async def start(self) -> None:
        if self._session is None:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.cfg.request_timeout),
                headers={"Accept": "application/json"},
            )
            self._owns_session = True
            logger.info(f"Chain client connected to {self.base_url}")

    async def close(self) -> None:
        if self._session is not None and self._owns_session:
            await self._session.close()
        self._session = None

    async def __aenter__(self) -> AptosChainClient:
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    # ── transport ────────────────────────────────────────────────

    async def _request(self, method: str, path: str, *, json: Any = None) -> Any:
        if self._session is None:
            await self.start()
        url = f"{self.base_url}{path}"
        try:
            async with self._session.request(method, url, json=json) as resp:
                try:
                    body = await resp.json(content_type=None)
                except ValueError:
                    body = None
                if resp.status >= 400:
                    message = body.get("message") if isinstance(body, dict) else None
                    raise ChainError(
                        message or f"{method} {path} failed with HTTP {resp.status}",
                        http_status=resp.status,
                    )
                return body
        except aiohttp.ClientError as exc:
            raise ChainError(f"Fullnode unreachable: {exc}") from exc
        except asyncio.TimeoutError as exc:
            raise ChainError(f"Fullnode request timed out: {method} {path}") from exc

    # ── reads ────────────────────────────────────────────────────

    async def get_account_resource(self, address: str, resource_type: str) -> dict[str, Any]:
        """``data`` of one resource; :class:`ResourceNotFound` when absent."""
        try:
            body = await self._request("GET", f"/accounts/{address}/resource/{resource_type}")
        except ChainError as exc:
            if exc.http_status == 404:
                raise ResourceNotFound(address, resource_type) from exc
            raise
        return body.get("data", {})

    async def get_account_resources(self, address: str) -> list[dict[str, Any]]:
        try:
            return await self._request("GET", f"/accounts/{address}/resources")
        except ChainError as exc:
            if exc.http_status == 404:
                raise ResourceNotFound(address, "*") from exc
            raise

    async def get_sequence_number(self, address: str) -> int:
        body = await self._request("GET", f"/accounts/{address}")
        return int(body["sequence_number"])

    async def view(
        self,
        function: str,
        arguments: Sequence[Any] = (),
        type_arguments: Sequence[str] = (),
    ) -> list[Any]:
        return await self._request("POST", "/view", json={
            "function": function,
            "type_arguments": list(type_arguments),
            "arguments": list(arguments),
        })

    async def get_coin_balance(self, address: str) -> int:
        """APT balance in octas; 0 for an account that does not exist."""
        try:
            resources = await self.get_account_resources(address)
        except ResourceNotFound:
            return 0
        for res in resources:
            if res.get("type") == APTOS_COIN_STORE:
                return int(res.get("data", {}).get("coin", {}).get("value", 0))
        # Accounts migrated to fungible assets no longer carry a CoinStore.
        result = await self.view("0x1::coin::balance", [address], [APTOS_COIN_TYPE])
        return int(result[0]) if result else 0

    async def estimate_gas_price(self) -> int:
        body = await self._request("GET", "/estimate_gas_price")
        return int(body["gas_estimate"])

    # ── writes ───────────────────────────────────────────────────

    async def submit_entry_function(
        self,
        signer: Ed25519Signer,
        function: str,
        arguments: Sequence[Any] = (),
        type_arguments: Sequence[str] = (),
    ) -> str:
        """Encode, sign and submit one entry-function call; returns the txn hash."""
        sequence_number = await self.get_sequence_number(signer.address)
        gas_price = await self.estimate_gas_price()
        txn = {
            "sender": signer.address,
            "sequence_number": str(sequence_number),
            "max_gas_amount": str(self.cfg.max_gas_amount),
            "gas_unit_price": str(gas_price),
            "expiration_timestamp_secs": str(int(time.time()) + self.cfg.txn_expiration_seconds),
            "payload": {
                "type": "entry_function_payload",
                "function": function,
                "type_arguments": list(type_arguments),
                "arguments": [str(a) if isinstance(a, int) else a for a in arguments],
            },
        }
        encoded = await self._request("POST", "/transactions/encode_submission", json=txn)
        message = bytes.fromhex(encoded[2:] if encoded.startswith("0x") else encoded)
        txn["signature"] = signer.signature_payload(message)

        pending = await self._request("POST", "/transactions", json=txn)
        txn_hash = pending["hash"]
        logger.info(f"Submitted {function} from {signer.address}: {txn_hash}")
        return txn_hash

    async def wait_for_transaction(self, txn_hash: str) -> dict[str, Any]:
        """Poll until *txn_hash* is committed; returns the committed transaction."""
        deadline = time.monotonic() + self.cfg.wait_timeout
        while True:
            try:
                txn = await self._request("GET", f"/transactions/by_hash/{txn_hash}")
                if txn.get("type") != PENDING_TXN_TYPE:
                    return txn
            except ChainError as exc:
                # The node may not have indexed a just-submitted txn yet.
                if exc.http_status != 404:
                    raise
            if time.monotonic() >= deadline:
                raise ChainError(f"Timed out waiting for transaction {txn_hash}")
            await asyncio.sleep(self.cfg.wait_poll_interval)
