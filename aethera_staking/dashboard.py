"""
Dashboard state synchronisation.

Keeps a local view of vault stats and the connected wallet's stake in
step with the API by polling, with three independent timers:

  - vault stats          every ``vault_interval``      (30 s)
  - player stake/balance every ``player_interval``     (15 s)
  - lock countdown       every ``countdown_interval``  (1 s, local only)

There is no ordering guarantee between timers.  After a transaction is
submitted the dashboard waits ``post_tx_delay`` and re-polls; it does not
wait for read-after-write consistency.  Failed reads leave the affected
field at ``None`` and record the error; nothing is retried automatically,
callers use :meth:`Dashboard.refresh` as the manual retry.

Stake-form edits go through a debounced call to the simulate endpoint.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Awaitable, Callable, Optional

from aethera_staking.config import DashboardConfig
from aethera_staking.errors import InvalidRequest
from aethera_staking.precision import apt_to_octas
from aethera_staking.rewards import time_remaining

log = logging.getLogger("aethera.dashboard")

DURATION_PRESETS: list[tuple[str, int]] = [
    ("1 Min", 60),
    ("7 Days", 7 * 86_400),
    ("30 Days", 30 * 86_400),
    ("90 Days", 90 * 86_400),
    ("180 Days", 180 * 86_400),
    ("365 Days", 365 * 86_400),
]
DEFAULT_DURATION = 7 * 86_400


def validate_stake_amount(text: str, balance_octas: int) -> int:
    """Parse a user-entered APT amount and check it against the balance.

    Returns the amount in octas.  Raises :class:`InvalidRequest` for
    anything that is not a positive number no larger than the balance.
    """
    raw = (text or "").strip()
    if not raw:
        raise InvalidRequest("Enter an amount")
    try:
        value = Decimal(raw)
    except InvalidOperation as exc:
        raise InvalidRequest("Amount must be a number") from exc
    if not value.is_finite() or value < 0:
        raise InvalidRequest("Amount must be a non-negative number")
    octas = apt_to_octas(value)
    if octas <= 0:
        raise InvalidRequest("Amount must be greater than zero")
    if octas > balance_octas:
        raise InvalidRequest("Amount exceeds available balance")
    return octas


class Debouncer:
    """Run only the last of a burst of calls, *delay* seconds after it arrives."""

    def __init__(self, delay: float):
        self.delay = delay
        self._task: Optional[asyncio.Task] = None

    def call(self, fn: Callable[[], Awaitable[Any]]) -> asyncio.Task:
        self.cancel()
        self._task = asyncio.ensure_future(self._run(fn))
        return self._task

    async def _run(self, fn: Callable[[], Awaitable[Any]]) -> Any:
        await asyncio.sleep(self.delay)
        return await fn()

    def cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None


@dataclass
class DashboardState:
    """Last known values; ``None`` means "no data"."""
    address: Optional[str] = None
    vault: Optional[dict] = None
    stats: Optional[dict] = None
    player: Optional[dict] = None
    balance: Optional[dict] = None
    simulation: Optional[dict] = None
    time_remaining: int = 0
    errors: dict[str, str] = field(default_factory=dict)


class Dashboard:

    def __init__(
        self,
        client: Any,
        cfg: Optional[DashboardConfig] = None,
        *,
        on_update: Optional[Callable[[str, DashboardState], None]] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.client = client
        self.cfg = cfg or DashboardConfig()
        self.state = DashboardState()
        self._on_update = on_update
        self._clock = clock
        self._tasks: list[asyncio.Task] = []
        self._pending: set[asyncio.Task] = set()
        self._debouncer = Debouncer(self.cfg.simulate_debounce)

    # ── wallet ───────────────────────────────────────────────────

    async def connect(self, address: str) -> None:
        self.state.address = address
        await self.refresh_player()

    def disconnect(self) -> None:
        self.state.address = None
        self.state.player = None
        self.state.balance = None
        self.state.time_remaining = 0
        self._notify("player")

    # ── reads ────────────────────────────────────────────────────

    def _notify(self, what: str) -> None:
        if self._on_update is not None:
            self._on_update(what, self.state)

    def _take(self, key: str, envelope: dict) -> Optional[dict]:
        if envelope.get("success") and envelope.get("data") is not None:
            self.state.errors.pop(key, None)
            return envelope["data"]
        self.state.errors[key] = envelope.get("error") or "No data"
        log.debug(f"{key} refresh failed: {self.state.errors[key]}")
        return None

    async def refresh_vault(self) -> None:
        self.state.vault = self._take("vault", await self.client.get_vault_info())
        self.state.stats = self._take("stats", await self.client.get_stats())
        self._notify("vault")

    async def refresh_player(self) -> None:
        address = self.state.address
        if not address:
            return
        self.state.player = self._take("player", await self.client.get_player_info(address))
        self.state.balance = self._take("balance", await self.client.get_balance(address))
        self.tick_countdown()
        self._notify("player")

    async def refresh(self) -> None:
        """Manual refresh / retry of everything."""
        await self.refresh_vault()
        await self.refresh_player()

    def tick_countdown(self) -> int:
        player = self.state.player
        if not player or not player.get("has_stake", True):
            self.state.time_remaining = 0
        else:
            self.state.time_remaining = time_remaining(
                int(player.get("unlock_timestamp", 0)), int(self._clock()),
            )
        return self.state.time_remaining

    @property
    def balance_octas(self) -> int:
        if not self.state.balance:
            return 0
        return int(self.state.balance.get("balance", 0))

    # ── stake form ───────────────────────────────────────────────

    async def simulate(self, amount_text: str, duration_seconds: int) -> Optional[dict]:
        try:
            octas = apt_to_octas(amount_text)
        except ValueError:
            octas = 0
        if octas <= 0:
            self.state.simulation = None
            return None
        self.state.simulation = self._take(
            "simulation", await self.client.simulate_stake(octas, duration_seconds),
        )
        self._notify("simulation")
        return self.state.simulation

    def edit_stake_form(self, amount_text: str, duration_seconds: int = DEFAULT_DURATION) -> asyncio.Task:
        """Debounced simulate; only the last edit in a burst reaches the API."""
        return self._debouncer.call(lambda: self.simulate(amount_text, duration_seconds))

    def after_transaction(self, txn_hash: str = "") -> asyncio.Task:
        """Re-poll everything ``post_tx_delay`` seconds after a submission."""
        log.info(f"Transaction submitted {txn_hash}; refreshing in {self.cfg.post_tx_delay}s")

        async def _delayed() -> None:
            await asyncio.sleep(self.cfg.post_tx_delay)
            await self.refresh()

        task = asyncio.ensure_future(_delayed())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    # ── timers ───────────────────────────────────────────────────

    async def _every(self, interval: float, fn: Callable[[], Any]) -> None:
        while True:
            await asyncio.sleep(interval)
            try:
                result = fn()
                if asyncio.iscoroutine(result):
                    await result
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                log.warning(f"Polling step failed: {exc}")

    async def start(self) -> None:
        await self.refresh()
        self._tasks = [
            asyncio.ensure_future(self._every(self.cfg.vault_interval, self.refresh_vault)),
            asyncio.ensure_future(self._every(self.cfg.player_interval, self.refresh_player)),
            asyncio.ensure_future(self._every(self.cfg.countdown_interval, self._countdown_step)),
        ]

    def _countdown_step(self) -> None:
        self.tick_countdown()
        self._notify("countdown")

    async def stop(self) -> None:
        self._debouncer.cancel()
        tasks = self._tasks + list(self._pending)
        for task in tasks:
            task.cancel()
        for task in tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._tasks = []
        self._pending.clear()

    @property
    def running(self) -> bool:
        return any(not t.done() for t in self._tasks)
