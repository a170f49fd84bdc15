"""
Error taxonomy for Aethera Staking.

    StakingError
    ├── ResourceNotFound      on-chain resource absent (vault not initialised,
    │                         player never staked); the service maps it to an
    │                         empty state
    ├── InvalidRequest        missing or malformed caller input       → 400
    ├── ConfigurationError    missing contract address / admin key    → 500
    └── ChainError            fullnode unreachable or request refused → 502
        └── TransactionFailed submitted but not executed successfully → 502
"""

from __future__ import annotations


class StakingError(Exception):
    """Base class for every error raised by this package."""

    status: int = 500


class ResourceNotFound(StakingError):
    status = 404

    def __init__(self, address: str, resource_type: str):
        super().__init__(f"Resource {resource_type} not found at {address}")
        self.address = address
        self.resource_type = resource_type


class InvalidRequest(StakingError):
    status = 400


class ConfigurationError(StakingError):
    status = 500


class ChainError(StakingError):
    status = 502

    def __init__(self, message: str, *, http_status: int | None = None):
        super().__init__(message)
        self.http_status = http_status


class TransactionFailed(ChainError):
    def __init__(self, message: str, *, transaction_hash: str = "", vm_status: str = ""):
        super().__init__(message)
        self.transaction_hash = transaction_hash
        self.vm_status = vm_status
