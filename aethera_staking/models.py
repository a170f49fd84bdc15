"""
Response shapes for vault, player, balance and transaction data.

Raw Move resources arrive as JSON with ``u64`` fields encoded as decimal
strings.  The ``from_resource`` constructors parse them into integer octa
counts; ``to_dict`` renders them back as strings alongside an ``*_apt``
display value so JavaScript clients never lose precision.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from aethera_staking.precision import format_apt
from aethera_staking.rewards import (
    elapsed_since,
    estimate_reward,
    is_locked,
    time_remaining,
    unlock_timestamp,
)


def _u64(value: Any) -> int:
    if value in (None, ""):
        return 0
    return int(value)


@dataclass
class VaultInfo:
    authority: str
    total_staked: int
    apy_rate: int
    vault_balance: int
    initialized: bool = True

    @classmethod
    def from_resource(cls, data: dict[str, Any]) -> VaultInfo:
        coins = data.get("vault_coins") or {}
        return cls(
            authority=data.get("authority", ""),
            total_staked=_u64(data.get("staked_amount")),
            apy_rate=_u64(data.get("apy_rate")),
            vault_balance=_u64(coins.get("value")),
        )

    @classmethod
    def uninitialized(cls, authority: str) -> VaultInfo:
        return cls(authority=authority, total_staked=0, apy_rate=0,
                   vault_balance=0, initialized=False)

    def to_dict(self) -> dict:
        return {
            "initialized": self.initialized,
            "authority": self.authority,
            "total_staked": str(self.total_staked),
            "total_staked_apt": format_apt(self.total_staked),
            "apy_rate": self.apy_rate,
            "vault_balance": str(self.vault_balance),
            "vault_balance_apt": format_apt(self.vault_balance),
        }


@dataclass
class PlayerInfo:
    """A player's stake record plus values derived at read time."""
    address: str
    staked_amount: int = 0
    stake_timestamp: int = 0
    lock_duration: int = 0
    reward_time: int = 0
    reward_amount: int = 0
    # derived
    unlock_timestamp: int = 0
    is_locked: bool = False
    time_remaining: int = 0
    pending_rewards: int = 0
    has_stake: bool = True

    @classmethod
    def from_resource(
        cls,
        address: str,
        data: dict[str, Any],
        *,
        apy_rate: int,
        now: int,
    ) -> PlayerInfo:
        staked = _u64(data.get("staked_amount"))
        start = _u64(data.get("staked_time"))
        duration = _u64(data.get("duration_time"))
        reward_time = _u64(data.get("reward_time"))
        unlock_at = unlock_timestamp(start, duration)
        return cls(
            address=address,
            staked_amount=staked,
            stake_timestamp=start,
            lock_duration=duration,
            reward_time=reward_time,
            reward_amount=_u64(data.get("reward_amount")),
            unlock_timestamp=unlock_at,
            is_locked=is_locked(unlock_at, now),
            time_remaining=time_remaining(unlock_at, now),
            pending_rewards=estimate_reward(staked, apy_rate, elapsed_since(reward_time, now)),
        )

    @classmethod
    def empty(cls, address: str) -> PlayerInfo:
        """The "has not staked yet" record."""
        return cls(address=address, has_stake=False)

    def to_dict(self) -> dict:
        return {
            "address": self.address,
            "has_stake": self.has_stake,
            "staked_amount": str(self.staked_amount),
            "staked_amount_apt": format_apt(self.staked_amount),
            "stake_timestamp": self.stake_timestamp,
            "lock_duration": self.lock_duration,
            "unlock_timestamp": self.unlock_timestamp,
            "is_locked": self.is_locked,
            "time_remaining": self.time_remaining,
            "reward_time": self.reward_time,
            "reward_amount": str(self.reward_amount),
            "reward_amount_apt": format_apt(self.reward_amount),
            "pending_rewards": str(self.pending_rewards),
            "pending_rewards_apt": format_apt(self.pending_rewards),
        }


@dataclass
class StakingStats:
    total_staked: int
    apy_rate: int
    vault_balance: int
    vault_initialized: bool = True
    # No staker index exists on chain; the metric is reported as unknown.
    total_stakers: Optional[int] = None

    @classmethod
    def from_vault(cls, vault: VaultInfo) -> StakingStats:
        return cls(
            total_staked=vault.total_staked,
            apy_rate=vault.apy_rate,
            vault_balance=vault.vault_balance,
            vault_initialized=vault.initialized,
        )

    def to_dict(self) -> dict:
        return {
            "vault_initialized": self.vault_initialized,
            "total_staked": str(self.total_staked),
            "total_staked_apt": format_apt(self.total_staked),
            "total_stakers": self.total_stakers,
            "apy_rate": self.apy_rate,
            "vault_balance": str(self.vault_balance),
            "vault_balance_apt": format_apt(self.vault_balance),
        }


@dataclass
class BalanceInfo:
    address: str
    balance: int

    def to_dict(self) -> dict:
        return {
            "address": self.address,
            "balance": str(self.balance),
            "balance_apt": format_apt(self.balance),
        }


@dataclass
class SimulationResult:
    amount: int
    duration_seconds: int
    apy_rate: int
    estimated_rewards: int
    unlock_timestamp: int
    vault_initialized: bool = True

    def to_dict(self) -> dict:
        return {
            "amount": str(self.amount),
            "duration_seconds": self.duration_seconds,
            "apy_rate": self.apy_rate,
            "vault_initialized": self.vault_initialized,
            "estimated_rewards": str(self.estimated_rewards),
            "estimated_rewards_apt": format_apt(self.estimated_rewards),
            "unlock_timestamp": self.unlock_timestamp,
        }


@dataclass
class TransactionResult:
    """Outcome of one submitted entry-function transaction."""
    success: bool
    transaction_hash: str
    vm_status: str = ""
    message: str = ""
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_committed(cls, txn: dict[str, Any], message: str) -> TransactionResult:
        return cls(
            success=bool(txn.get("success", False)),
            transaction_hash=txn.get("hash", ""),
            vm_status=txn.get("vm_status", ""),
            message=message,
            extra={"version": txn.get("version"), "gas_used": txn.get("gas_used")},
        )

    def to_dict(self) -> dict:
        out = {
            "transaction_hash": self.transaction_hash,
            "vm_status": self.vm_status,
            "message": self.message,
        }
        out.update({k: v for k, v in self.extra.items() if v is not None})
        return out
