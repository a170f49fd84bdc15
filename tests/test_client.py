"""
Tests for aethera_staking.client against the real API app and a capture server.
"""

from __future__ import annotations

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from aethera_staking.api import APIServer
from aethera_staking.client import StakingAPIClient
from aethera_staking.config import APIConfig
from conftest import CONTRACT, VAULT_AUTHORITY, vault_resource


def _api_app(service, **overrides) -> web.Application:
    cfg = APIConfig(rate_limit_max=0, **overrides)
    return APIServer(service, api_config=cfg).build_app()


class TestAgainstAPI:

    @pytest.mark.asyncio
    async def test_reads(self, service, fake_chain):
        fake_chain.put(VAULT_AUTHORITY, f"{CONTRACT}::state::VaultAccount", vault_resource(apy="9"))
        fake_chain.balances["0xa"] = 5
        async with TestServer(_api_app(service)) as server:
            async with StakingAPIClient(str(server.make_url("/api"))) as client:
                vault = await client.get_vault_info()
                stats = await client.get_stats()
                player = await client.get_player_info("0xa")
                balance = await client.get_balance("0xa")
        assert vault["success"] and vault["data"]["apy_rate"] == 9
        assert stats["data"]["total_stakers"] is None
        assert player["data"]["has_stake"] is False
        assert balance["data"]["balance"] == "5"

    @pytest.mark.asyncio
    async def test_simulate(self, service, fake_chain):
        fake_chain.put(VAULT_AUTHORITY, f"{CONTRACT}::state::VaultAccount", vault_resource(apy="10"))
        async with TestServer(_api_app(service)) as server:
            async with StakingAPIClient(str(server.make_url("/api"))) as client:
                result = await client.simulate_stake(100_000_000, 31_536_000)
        assert result["success"] is True
        assert result["data"]["estimated_rewards"] == "10000000"

    @pytest.mark.asyncio
    async def test_error_envelope_passed_through(self, service):
        async with TestServer(_api_app(service)) as server:
            async with StakingAPIClient(str(server.make_url("/api"))) as client:
                result = await client.simulate_stake(0, 60)
        assert result["success"] is False
        assert result["error"]

    @pytest.mark.asyncio
    async def test_admin_key_sent(self, service, fake_chain):
        async with TestServer(_api_app(service, admin_key="k")) as server:
            base = str(server.make_url("/api"))
            async with StakingAPIClient(base) as anonymous:
                denied = await anonymous.admin_withdraw()
            async with StakingAPIClient(base, admin_key="k") as admin:
                allowed = await admin.admin_update_config(11)
        assert denied["success"] is False
        assert allowed["success"] is True
        assert fake_chain.submitted[0][2] == [11]


class TestTransport:

    @pytest.mark.asyncio
    async def test_get_is_cache_busted(self):
        seen = []

        async def capture(request):
            seen.append((dict(request.query), dict(request.headers)))
            return web.json_response({"success": True, "data": {}})

        app = web.Application()
        app.router.add_get("/api/stats", capture)
        async with TestServer(app) as server:
            async with StakingAPIClient(str(server.make_url("/api"))) as client:
                await client.get_stats()
        query, headers = seen[0]
        assert query["_t"].isdigit()
        assert headers["Cache-Control"] == "no-cache, no-store, must-revalidate"
        assert headers["Pragma"] == "no-cache"

    @pytest.mark.asyncio
    async def test_non_json_response(self):
        async def plain(request):
            return web.Response(text="<html>bad gateway</html>", status=502)

        app = web.Application()
        app.router.add_get("/api/stats", plain)
        async with TestServer(app) as server:
            async with StakingAPIClient(str(server.make_url("/api"))) as client:
                result = await client.get_stats()
        assert result == {"success": False, "error": "Unexpected response (HTTP 502)"}

    @pytest.mark.asyncio
    async def test_unreachable_api(self):
        async with StakingAPIClient("http://127.0.0.1:1/api", timeout=2.0) as client:
            result = await client.get_vault_info()
        assert result["success"] is False
        assert result["error"].startswith("API unreachable")
