"""
Async HTTP client for the Aethera staking API.

Every GET carries a ``_t=<epoch ms>`` query parameter plus no-cache
headers so intermediaries never serve a stale balance.  Methods return
the decoded ``{success, data?, error?}`` envelope as-is; network
failures are reported as a failed envelope rather than raised, so a
polling caller can show "no data" and carry on.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Optional

import aiohttp

logger = logging.getLogger("aethera.client")

NO_CACHE_HEADERS = {
    "Content-Type": "application/json",
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


class StakingAPIClient:

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 10.0,
        admin_key: str = "",
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._admin_key = admin_key
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> StakingAPIClient:
        if self._session is None:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._timeout),
                headers=NO_CACHE_HEADERS,
            )
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        if self._session is not None and self._owns_session:
            await self._session.close()
        self._session = None

    async def _call(self, method: str, path: str, *, json: Any = None,
                    headers: Optional[dict] = None) -> dict[str, Any]:
        if self._session is None:
            await self.__aenter__()
        params = {"_t": str(int(time.time() * 1000))} if method == "GET" else None
        try:
            async with self._session.request(
                method, f"{self.base_url}{path}", params=params, json=json,
                headers=headers or NO_CACHE_HEADERS,
            ) as resp:
                try:
                    body = await resp.json(content_type=None)
                except ValueError:
                    body = None
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            logger.warning(f"{method} {path} failed: {exc}")
            return {"success": False, "error": f"API unreachable: {exc}"}
        if not isinstance(body, dict):
            return {"success": False, "error": f"Unexpected response (HTTP {resp.status})"}
        return body

    # ── reads ────────────────────────────────────────────────────

    async def get_vault_info(self) -> dict[str, Any]:
        return await self._call("GET", "/vault/info")

    async def get_player_info(self, address: str) -> dict[str, Any]:
        return await self._call("GET", f"/player/{address}")

    async def get_stats(self) -> dict[str, Any]:
        return await self._call("GET", "/stats")

    async def get_balance(self, address: str) -> dict[str, Any]:
        return await self._call("GET", f"/balance/{address}")

    async def simulate_stake(self, amount: int, duration_seconds: int) -> dict[str, Any]:
        return await self._call("POST", "/stake/simulate", json={
            "amount": str(amount),
            "duration_seconds": duration_seconds,
        })

    # ── admin ────────────────────────────────────────────────────

    def _admin_headers(self) -> dict:
        headers = dict(NO_CACHE_HEADERS)
        if self._admin_key:
            headers["X-Admin-Key"] = self._admin_key
        return headers

    async def admin_update_config(self, apy_rate: int) -> dict[str, Any]:
        return await self._call("POST", "/admin/config", json={"apy_rate": apy_rate},
                                headers=self._admin_headers())

    async def admin_deposit(self, amount: int) -> dict[str, Any]:
        return await self._call("POST", "/admin/deposit", json={"amount": str(amount)},
                                headers=self._admin_headers())

    async def admin_withdraw(self) -> dict[str, Any]:
        return await self._call("POST", "/admin/withdraw", headers=self._admin_headers())
