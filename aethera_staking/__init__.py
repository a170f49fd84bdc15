"""
Aethera Staking - API and dashboard for an Aptos staking vault.

Key features:
- Reward projection matching the vault contract's integer formula
- Aptos fullnode REST accessor with Ed25519 transaction signing
- aiohttp staking API with a uniform success/error envelope
- Polling terminal dashboard with countdown and debounced simulation
"""

__version__ = "1.0.0"
__all__ = [
    "precision",
    "rewards",
    "models",
    "errors",
    "config",
    "logging_config",
    "signer",
    "chain",
    "service",
    "api",
    "client",
    "dashboard",
]
