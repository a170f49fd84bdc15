"""
REST / HTTP API for the Aethera staking dashboard.

Built on ``aiohttp``.  Every response under ``/api`` uses the envelope

    {"success": true,  "data": {...}}
    {"success": false, "error": "message"}

Endpoints
---------
GET  /health                  Liveness
GET  /api/vault/info          Vault state
GET  /api/player/{address}    Player stake + reward projection
GET  /api/stats               Aggregate staking stats
GET  /api/balance/{address}   Wallet APT balance
POST /api/stake/simulate      Projected reward + unlock time for a stake
POST /api/admin/config        Update APY rate            (admin)
POST /api/admin/deposit       Fund the vault             (admin)
POST /api/admin/withdraw      Drain the vault            (admin)

Security
--------
- Per-IP token-bucket rate limiter on ``/api/`` (window + max requests).
- CORS middleware (listed origins get credentials; ``*`` is a bare wildcard).
- Security response headers on every response.
- Request body size cap (``max_body_bytes``, default 1 MiB).
- Optional ``X-Admin-Key`` gate on ``/api/admin/*``, timing-safe compare.
- Admin mutations sign with the server-held key only; without one they
  fail before anything reaches the chain.

Usage:
    api = APIServer(service, api_config=cfg.api)
    await api.start()
    ...
    await api.stop()
"""

from __future__ import annotations

import hmac
import json
import logging
import time
from collections import defaultdict
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Optional

from aiohttp import web

from aethera_staking.errors import InvalidRequest, StakingError, TransactionFailed
from aethera_staking.models import BalanceInfo, VaultInfo

if TYPE_CHECKING:
    from aethera_staking.config import APIConfig
    from aethera_staking.service import StakingService

logger = logging.getLogger("aethera.api")

ACCESS_LOG_FORMAT = '%a - - %t "%r" %s %b "%{Referer}i" "%{User-Agent}i"'

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
    "Cross-Origin-Resource-Policy": "same-origin",
    "X-DNS-Prefetch-Control": "off",
}


# ═══════════════════════════════════════════════════════════════════
#  Envelope & input helpers
# ═══════════════════════════════════════════════════════════════════

def _json_dumps(obj: Any) -> str:
    return json.dumps(obj, default=str)


def _ok(data: Any, status: int = 200) -> web.Response:
    return web.json_response({"success": True, "data": data}, status=status, dumps=_json_dumps)


def _fail(error: str, status: int, *, data: Any = None, headers: Any = None) -> web.Response:
    body: dict[str, Any] = {"success": False, "error": error}
    if data is not None:
        body["data"] = data
    return web.json_response(body, status=status, headers=headers, dumps=_json_dumps)


def _safe_int(value: Any, name: str = "value") -> int:
    """Coerce *value* to a whole number, rejecting fractions, bools and junk."""
    if isinstance(value, bool):
        raise InvalidRequest(f"{name} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if value.is_integer():
            return int(value)
        raise InvalidRequest(f"{name} must be an integer")
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError as exc:
            raise InvalidRequest(f"{name} must be an integer") from exc
    raise InvalidRequest(f"{name} must be an integer")


def _missing(value: Any) -> bool:
    return value is None or value == ""


async def _read_body(request: web.Request) -> dict[str, Any]:
    if not request.can_read_body:
        return {}
    try:
        body = await request.json()
    except ValueError as exc:
        raise InvalidRequest("Invalid JSON body") from exc
    if not isinstance(body, dict):
        raise InvalidRequest("JSON body must be an object")
    return body


# ═══════════════════════════════════════════════════════════════════
#  Rate Limiter (per-IP token bucket)
# ═══════════════════════════════════════════════════════════════════

class _TokenBucket:
    """Per-IP token bucket: *max_requests* per *window* seconds, refilled continuously.

    Every ``PRUNE_EVERY`` calls, buckets that have refilled to capacity are
    dropped; a returning IP starts again from a full bucket either way.
    """

    PRUNE_EVERY = 1024

    __slots__ = ("_buckets", "_capacity", "_rate", "_calls")

    def __init__(self, max_requests: int, window: float):
        self._capacity = max_requests  # 0 = unlimited
        self._rate = max_requests / window if window > 0 else 0.0
        self._calls = 0
        # ip -> [tokens, last_refill_timestamp]
        self._buckets: dict[str, list[float]] = defaultdict(
            lambda: [float(max_requests), time.monotonic()]
        )

    def allow(self, ip: str) -> bool:
        if self._capacity <= 0:
            return True
        now = time.monotonic()
        self._calls += 1
        if self._calls % self.PRUNE_EVERY == 0:
            self.prune(now)
        bucket = self._buckets[ip]
        bucket[0] = min(float(self._capacity), bucket[0] + (now - bucket[1]) * self._rate)
        bucket[1] = now
        if bucket[0] >= 1.0:
            bucket[0] -= 1.0
            return True
        return False

    def prune(self, now: float | None = None) -> int:
        """Forget IPs whose bucket is full again; returns how many were dropped."""
        now = time.monotonic() if now is None else now
        full = [
            ip for ip, (tokens, last) in self._buckets.items()
            if tokens + (now - last) * self._rate >= self._capacity
        ]
        for ip in full:
            del self._buckets[ip]
        return len(full)


# ═══════════════════════════════════════════════════════════════════
#  Middleware factories
# ═══════════════════════════════════════════════════════════════════

@web.middleware
async def error_middleware(request: web.Request, handler):
    """Turn every failure into a ``{success: false}`` envelope."""
    try:
        return await handler(request)
    except web.HTTPException as exc:
        if exc.status < 400:
            raise
        if exc.status == 404:
            message = "Route not found"
        elif exc.text and not exc.text.startswith(f"{exc.status}:"):
            message = exc.text
        else:
            message = exc.reason
        headers = {k: v for k, v in exc.headers.items() if k.lower() == "retry-after"}
        return _fail(message, exc.status, headers=headers or None)
    except TransactionFailed as exc:
        return _fail(str(exc), exc.status, data={
            "transaction_hash": exc.transaction_hash,
            "vm_status": exc.vm_status,
        })
    except StakingError as exc:
        if exc.status >= 500:
            logger.error(f"{request.method} {request.path} failed: {exc}")
        return _fail(str(exc), exc.status)
    except Exception as exc:
        logger.exception(f"Unhandled error on {request.method} {request.path}")
        return _fail(str(exc) or "Internal server error", 500)


def _make_rate_limit_middleware(bucket: _TokenBucket, prefix: str = "/api/"):
    """aiohttp middleware that enforces per-IP rate limits under *prefix*."""

    @web.middleware
    async def rate_limit_middleware(request: web.Request, handler):
        if request.path.startswith(prefix):
            ip = request.remote or "unknown"
            if not bucket.allow(ip):
                raise web.HTTPTooManyRequests(
                    text="Too many requests from this IP, please try again later.",
                    headers={"Retry-After": "60"},
                )
        return await handler(request)

    return rate_limit_middleware


def _make_cors_middleware(origins: list[str]):
    """aiohttp middleware that adds CORS headers for allowed origins.

    Explicitly listed origins are echoed back with credentials allowed.
    ``*`` answers with a literal wildcard and never allows credentials.
    """

    allowed = set(origins)
    allow_any = "*" in allowed
    allowed.discard("*")

    @web.middleware
    async def cors_middleware(request: web.Request, handler):
        origin = request.headers.get("Origin", "")
        if request.method == "OPTIONS":
            resp = web.Response(status=204)
        else:
            resp = await handler(request)

        if not origin:
            return resp
        if origin in allowed:
            resp.headers["Access-Control-Allow-Origin"] = origin
            resp.headers["Access-Control-Allow-Credentials"] = "true"
            resp.headers["Vary"] = "Origin"
        elif allow_any:
            resp.headers["Access-Control-Allow-Origin"] = "*"
        else:
            return resp
        resp.headers["Access-Control-Allow-Methods"] = "GET, POST, OPTIONS"
        resp.headers["Access-Control-Allow-Headers"] = (
            "Content-Type, Cache-Control, Pragma, Expires, X-Admin-Key"
        )
        resp.headers["Access-Control-Max-Age"] = "3600"
        return resp

    return cors_middleware


@web.middleware
async def security_headers_middleware(request: web.Request, handler):
    resp = await handler(request)
    for name, value in SECURITY_HEADERS.items():
        resp.headers.setdefault(name, value)
    return resp


def _make_admin_key_middleware(admin_key: str, prefix: str = "/api/admin/"):
    """Require ``X-Admin-Key`` on admin routes (header only, never query)."""

    @web.middleware
    async def admin_key_middleware(request: web.Request, handler):
        if request.path.startswith(prefix):
            key = request.headers.get("X-Admin-Key", "")
            if not hmac.compare_digest(key, admin_key):
                raise web.HTTPUnauthorized(text="Invalid or missing admin key")
        return await handler(request)

    return admin_key_middleware


# ═══════════════════════════════════════════════════════════════════
#  Server
# ═══════════════════════════════════════════════════════════════════

class APIServer:
    """aiohttp application around a :class:`StakingService`."""

    def __init__(
        self,
        service: StakingService,
        *,
        api_config: Optional[APIConfig] = None,
        network: str = "",
    ):
        self.service = service
        self._api_config = api_config
        self.network = network
        self._app: web.Application | None = None
        self._runner: web.AppRunner | None = None

    # ── lifecycle ────────────────────────────────────────────────

    def build_app(self) -> web.Application:
        middlewares: list = []
        max_body = 1_048_576
        cfg = self._api_config

        if cfg is not None and cfg.cors_origins:
            middlewares.append(_make_cors_middleware(cfg.cors_origins))
        middlewares.append(security_headers_middleware)
        middlewares.append(error_middleware)
        if cfg is not None:
            max_body = cfg.max_body_bytes
            if cfg.rate_limit_max > 0:
                bucket = _TokenBucket(cfg.rate_limit_max, cfg.rate_limit_window)
                middlewares.append(_make_rate_limit_middleware(bucket))
            if cfg.admin_key:
                middlewares.append(_make_admin_key_middleware(cfg.admin_key))

        app = web.Application(middlewares=middlewares, client_max_size=max_body)
        self._register_routes(app)
        self._app = app
        return app

    async def start(self) -> None:
        host = self._api_config.host if self._api_config else "127.0.0.1"
        port = self._api_config.port if self._api_config else 3000
        self._runner = web.AppRunner(self.build_app(), access_log_format=ACCESS_LOG_FORMAT)
        await self._runner.setup()
        site = web.TCPSite(self._runner, host, port)
        await site.start()
        logger.info(f"Aethera Staking API listening on http://{host}:{port}")

    async def stop(self) -> None:
        if self._runner:
            await self._runner.cleanup()
            self._runner = None

    # ── routes ───────────────────────────────────────────────────

    def _register_routes(self, app: web.Application) -> None:
        app.router.add_get("/health", self._health)
        # Public
        app.router.add_get("/api/vault/info", self._vault_info)
        app.router.add_get("/api/player/{address}", self._player_info)
        app.router.add_get("/api/stats", self._stats)
        app.router.add_get("/api/balance/{address}", self._balance)
        app.router.add_post("/api/stake/simulate", self._simulate_stake)
        # Admin
        app.router.add_post("/api/admin/config", self._admin_config)
        app.router.add_post("/api/admin/deposit", self._admin_deposit)
        app.router.add_post("/api/admin/withdraw", self._admin_withdraw)

    # ── handlers ─────────────────────────────────────────────────

    async def _health(self, _request: web.Request) -> web.Response:
        return web.json_response({
            "success": True,
            "message": "Aethera Staking API is running",
            "network": self.network,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        })

    async def _vault_info(self, _request: web.Request) -> web.Response:
        vault = await self.service.get_vault_info()
        if vault is None:
            vault = VaultInfo.uninitialized(self.service.cfg.vault_authority)
        return _ok(vault.to_dict())

    async def _player_info(self, request: web.Request) -> web.Response:
        address = request.match_info["address"].strip()
        info = await self.service.get_player_info(address)
        return _ok(info.to_dict())

    async def _stats(self, _request: web.Request) -> web.Response:
        stats = await self.service.get_staking_stats()
        return _ok(stats.to_dict())

    async def _balance(self, request: web.Request) -> web.Response:
        address = request.match_info["address"].strip()
        balance = await self.service.get_account_balance(address)
        return _ok(BalanceInfo(address, balance).to_dict())

    async def _simulate_stake(self, request: web.Request) -> web.Response:
        """
        POST /api/stake/simulate
        Body: {"amount": "150000000", "duration_seconds": 604800}

        ``amount`` is in octas.  Reads the live APY; submits nothing.
        """
        body = await _read_body(request)
        amount = body.get("amount")
        duration = body.get("duration_seconds")
        if _missing(amount) or _missing(duration):
            raise InvalidRequest("Amount and duration are required")

        result = await self.service.simulate_stake(
            _safe_int(amount, "amount"), _safe_int(duration, "duration_seconds"),
        )
        return _ok(result.to_dict())

    # ── admin handlers ───────────────────────────────────────────

    async def _admin_config(self, request: web.Request) -> web.Response:
        """POST /api/admin/config   Body: {"apy_rate": 12}"""
        body = await _read_body(request)
        if _missing(body.get("apy_rate")):
            raise InvalidRequest("APY rate is required")
        apy_rate = _safe_int(body["apy_rate"], "apy_rate")
        result = await self.service.update_apy_rate(apy_rate)
        return _ok(result.to_dict())

    async def _admin_deposit(self, request: web.Request) -> web.Response:
        """POST /api/admin/deposit   Body: {"amount": "1000000000"}"""
        body = await _read_body(request)
        if _missing(body.get("amount")):
            raise InvalidRequest("Amount is required")
        amount = _safe_int(body["amount"], "amount")
        result = await self.service.deposit(amount)
        return _ok(result.to_dict())

    async def _admin_withdraw(self, _request: web.Request) -> web.Response:
        """POST /api/admin/withdraw — withdraw every coin held by the vault."""
        result = await self.service.withdraw()
        return _ok(result.to_dict())
