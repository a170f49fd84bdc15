"""
Staking service: the facade between the HTTP layer and the chain.

Each read fetches a raw Move resource, treats "not found" as the benign
uninitialised / never-staked state, and attaches the derived fields
(lock status, time remaining, reward projection).  Each write submits
exactly one entry-function transaction, waits for it to commit and
reports success from the chain's own execution flag.

The service is constructed explicitly with its chain accessor, the
chain configuration, an optional admin signer and a clock, so every
collaborator can be replaced in tests.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Optional, Protocol, Sequence

from aethera_staking.config import ChainConfig
from aethera_staking.errors import (
    ConfigurationError,
    InvalidRequest,
    ResourceNotFound,
    TransactionFailed,
)
from aethera_staking.models import (
    PlayerInfo,
    SimulationResult,
    StakingStats,
    TransactionResult,
    VaultInfo,
)
from aethera_staking.rewards import estimate_reward, unlock_timestamp
from aethera_staking.signer import Ed25519Signer

logger = logging.getLogger("aethera.service")

VAULT_RESOURCE = "VaultAccount"
PLAYER_RESOURCE = "PlayerAccount"


class ChainAccessor(Protocol):
    async def get_account_resource(self, address: str, resource_type: str) -> dict[str, Any]: ...

    async def get_coin_balance(self, address: str) -> int: ...

    async def submit_entry_function(
        self,
        signer: Ed25519Signer,
        function: str,
        arguments: Sequence[Any] = (),
        type_arguments: Sequence[str] = (),
    ) -> str: ...

    async def wait_for_transaction(self, txn_hash: str) -> dict[str, Any]: ...


class StakingService:

    def __init__(
        self,
        chain: ChainAccessor,
        cfg: ChainConfig,
        *,
        admin_signer: Optional[Ed25519Signer] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.chain = chain
        self.cfg = cfg
        self.admin_signer = admin_signer
        self._clock = clock

    @classmethod
    def from_config(cls, chain: ChainAccessor, cfg: ChainConfig) -> StakingService:
        """Build a service, loading the admin signer when a key is configured."""
        cfg.validate()
        signer = Ed25519Signer.from_hex(cfg.admin_private_key) if cfg.admin_private_key else None
        if signer is None:
            logger.warning("ADMIN_PRIVATE_KEY not set; admin endpoints will refuse requests")
        return cls(chain, cfg, admin_signer=signer)

    def now(self) -> int:
        return int(self._clock())

    # ── reads ────────────────────────────────────────────────────

    async def get_vault_info(self) -> Optional[VaultInfo]:
        """Current vault state, or ``None`` when the vault is not initialised."""
        try:
            data = await self.chain.get_account_resource(
                self.cfg.vault_authority, self.cfg.resource_type(VAULT_RESOURCE),
            )
        except ResourceNotFound:
            logger.info(f"Vault not initialised at {self.cfg.vault_authority}")
            return None
        return VaultInfo.from_resource(data)

    async def get_player_info(self, address: str) -> PlayerInfo:
        if not address:
            raise InvalidRequest("Player address is required")
        try:
            data = await self.chain.get_account_resource(
                address, self.cfg.resource_type(PLAYER_RESOURCE),
            )
        except ResourceNotFound:
            return PlayerInfo.empty(address)
        vault = await self.get_vault_info()
        apy_rate = vault.apy_rate if vault else 0
        return PlayerInfo.from_resource(address, data, apy_rate=apy_rate, now=self.now())

    async def get_staking_stats(self) -> StakingStats:
        vault = await self.get_vault_info()
        if vault is None:
            vault = VaultInfo.uninitialized(self.cfg.vault_authority)
        return StakingStats.from_vault(vault)

    async def get_account_balance(self, address: str) -> int:
        if not address:
            raise InvalidRequest("Address is required")
        return await self.chain.get_coin_balance(address)

    async def simulate_stake(self, amount: int, duration_seconds: int) -> SimulationResult:
        """Projected reward for staking *amount* octas for *duration_seconds*.

        Only the vault's current APY is read; nothing is submitted.  A zero
        duration is an instantly-unlockable stake earning nothing.
        """
        if amount <= 0:
            raise InvalidRequest("Amount must be positive")
        if duration_seconds < 0:
            raise InvalidRequest("Duration must not be negative")
        vault = await self.get_vault_info()
        apy_rate = vault.apy_rate if vault else 0
        return SimulationResult(
            amount=amount,
            duration_seconds=duration_seconds,
            apy_rate=apy_rate,
            estimated_rewards=estimate_reward(amount, apy_rate, duration_seconds),
            unlock_timestamp=unlock_timestamp(self.now(), duration_seconds),
            vault_initialized=vault is not None,
        )

    # ── writes ───────────────────────────────────────────────────

    def _require_admin(self) -> Ed25519Signer:
        if self.admin_signer is None:
            raise ConfigurationError("Admin credentials not configured")
        return self.admin_signer

    async def _execute(
        self,
        signer: Ed25519Signer,
        function_name: str,
        arguments: Sequence[Any],
        message: str,
    ) -> TransactionResult:
        function = self.cfg.function(function_name)
        txn_hash = await self.chain.submit_entry_function(signer, function, arguments)
        committed = await self.chain.wait_for_transaction(txn_hash)
        result = TransactionResult.from_committed(committed, message)
        if not result.success:
            logger.error(f"{function_name} failed on chain: {result.vm_status}",
                         extra={"txn_hash": txn_hash})
            raise TransactionFailed(
                f"{function_name} failed: {result.vm_status or 'execution unsuccessful'}",
                transaction_hash=txn_hash,
                vm_status=result.vm_status,
            )
        logger.info(message, extra={"txn_hash": txn_hash, "sender": signer.address})
        return result

    async def stake(self, signer: Ed25519Signer, amount: int, duration_seconds: int) -> TransactionResult:
        if amount <= 0:
            raise InvalidRequest("Amount must be positive")
        if duration_seconds < 0:
            raise InvalidRequest("Duration must not be negative")
        return await self._execute(
            signer, "sol_stake", [self.cfg.vault_authority, amount, duration_seconds],
            "Staking successful",
        )

    async def unstake(self, signer: Ed25519Signer) -> TransactionResult:
        return await self._execute(
            signer, "sol_unstake", [self.cfg.vault_authority], "Unstaking successful",
        )

    async def claim_rewards(self, signer: Ed25519Signer) -> TransactionResult:
        return await self._execute(
            signer, "claim_rewards", [self.cfg.vault_authority], "Rewards claimed successfully",
        )

    async def update_apy_rate(self, apy_rate: int) -> TransactionResult:
        admin = self._require_admin()
        if apy_rate < 0:
            raise InvalidRequest("APY rate must not be negative")
        return await self._execute(admin, "config", [apy_rate], "APY rate updated successfully")

    async def deposit(self, amount: int) -> TransactionResult:
        admin = self._require_admin()
        if amount <= 0:
            raise InvalidRequest("Amount must be positive")
        return await self._execute(
            admin, "deposit", [self.cfg.vault_authority, amount], "Deposit successful",
        )

    async def withdraw(self) -> TransactionResult:
        admin = self._require_admin()
        return await self._execute(admin, "withdraw", [], "Withdrawal successful")
