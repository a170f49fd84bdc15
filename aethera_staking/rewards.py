"""
Reward estimation for the Aethera staking vault.

The vault contract accrues simple interest pro-rata over a 365-day year
(leap years ignored).  The on-chain ``claim_rewards`` path computes

    reward = staked_amount × apy_rate × elapsed / (SECONDS_PER_YEAR × 100)

with unsigned integer division.  :func:`estimate_reward` reproduces that
bit for bit so a projection shown to a user never exceeds what the
contract will actually pay out.

The same function backs both the stake simulation (elapsed = requested
lock duration) and the live projection on a player's stake (elapsed =
time since the last reward checkpoint).
"""

from __future__ import annotations

SECONDS_PER_YEAR: int = 365 * 24 * 60 * 60  # 31_536_000
PERCENT_DIVISOR: int = 100
REWARD_DIVISOR: int = SECONDS_PER_YEAR * PERCENT_DIVISOR  # 3_153_600_000


def _check_non_negative_int(value: int, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an integer, got {type(value).__name__}")
    if value < 0:
        raise ValueError(f"{name} must be non-negative")
    return value


def estimate_reward(staked_amount: int, apy_rate: int, elapsed_seconds: int) -> int:
    """Projected reward in octas for *staked_amount* held *elapsed_seconds*.

    >>> estimate_reward(100_000_000, 10, SECONDS_PER_YEAR)
    10000000
    """
    _check_non_negative_int(staked_amount, "staked_amount")
    _check_non_negative_int(apy_rate, "apy_rate")
    _check_non_negative_int(elapsed_seconds, "elapsed_seconds")
    return staked_amount * apy_rate * elapsed_seconds // REWARD_DIVISOR


# ── Lock window helpers ─────────────────────────────────────────────────

def unlock_timestamp(start: int, duration: int) -> int:
    return start + duration


def is_locked(unlock_at: int, now: int) -> bool:
    return now < unlock_at


def time_remaining(unlock_at: int, now: int) -> int:
    """Seconds until unlock; 0 once the lock has expired."""
    return max(0, unlock_at - now)


def elapsed_since(checkpoint: int, now: int) -> int:
    """Seconds since *checkpoint*, clamped at 0 for a node clock ahead of ours."""
    return max(0, now - checkpoint)
