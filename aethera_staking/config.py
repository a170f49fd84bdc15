"""
TOML-based configuration for the Aethera staking API and dashboard.

Loads settings from a TOML file, a ``.env`` file and environment
variables.  Environment variables take precedence over file values;
values already present in the process environment win over ``.env``.

Usage:
    from aethera_staking.config import load_config
    cfg = load_config("aethera.toml")
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from aethera_staking.errors import ConfigurationError

if sys.version_info >= (3, 11):
    import tomllib
else:
    try:
        import tomllib  # type: ignore[import]
    except ModuleNotFoundError:
        import tomli as tomllib  # type: ignore[import,no-redef]


NETWORK_URLS: dict[str, str] = {
    "mainnet": "https://api.mainnet.aptoslabs.com/v1",
    "testnet": "https://api.testnet.aptoslabs.com/v1",
    "devnet": "https://api.devnet.aptoslabs.com/v1",
    "local": "http://127.0.0.1:8080/v1",
}

STATE_MODULE = "state"


@dataclass
class ChainConfig:
    """Fullnode endpoint, contract location and the admin signing key."""
    network: str = "testnet"
    node_url: str = ""                 # empty = derived from ``network``
    contract_address: str = ""
    vault_authority: str = ""
    admin_private_key: str = ""        # empty = admin endpoints refuse to sign
    request_timeout: float = 15.0
    max_gas_amount: int = 20_000
    txn_expiration_seconds: int = 600
    wait_timeout: float = 30.0
    wait_poll_interval: float = 1.0

    @property
    def fullnode_url(self) -> str:
        if self.node_url:
            return self.node_url.rstrip("/")
        return NETWORK_URLS.get(self.network.lower(), NETWORK_URLS["testnet"])

    def function(self, name: str) -> str:
        """Fully-qualified entry/view function id in the staking module."""
        return f"{self.contract_address}::{STATE_MODULE}::{name}"

    def resource_type(self, name: str) -> str:
        return f"{self.contract_address}::{STATE_MODULE}::{name}"

    def validate(self) -> None:
        if not self.contract_address:
            raise ConfigurationError("CONTRACT_ADDRESS is not configured")
        if not self.vault_authority:
            raise ConfigurationError("VAULT_AUTHORITY_ADDRESS is not configured")


@dataclass
class APIConfig:
    """REST API settings."""
    host: str = "0.0.0.0"
    port: int = 3000
    admin_key: str = ""                 # require X-Admin-Key on /api/admin/* (empty = no gate)
    rate_limit_window: float = 900.0    # seconds
    rate_limit_max: int = 100           # requests per window per IP (0 = unlimited)
    cors_origins: list[str] = field(default_factory=lambda: ["*"])
    max_body_bytes: int = 1_048_576     # 1 MiB max request body


@dataclass
class DashboardConfig:
    """Polling cadence for the terminal dashboard."""
    api_url: str = "http://localhost:3000/api"
    vault_interval: float = 30.0
    player_interval: float = 15.0
    countdown_interval: float = 1.0
    post_tx_delay: float = 2.0
    simulate_debounce: float = 0.3
    request_timeout: float = 10.0


@dataclass
class LoggingConfig:
    """Logging settings."""
    level: str = "INFO"
    format: str = "human"   # "human" or "json"
    file: str | None = None


@dataclass
class AetheraConfig:
    """Top-level configuration container."""
    chain: ChainConfig = field(default_factory=ChainConfig)
    api: APIConfig = field(default_factory=APIConfig)
    dashboard: DashboardConfig = field(default_factory=DashboardConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _merge(dc: Any, raw: dict[str, Any]) -> None:
    """Merge a raw dict into a dataclass instance (in-place)."""
    for key, value in raw.items():
        key_under = key.replace("-", "_")
        if hasattr(dc, key_under):
            setattr(dc, key_under, value)


def _csv(value: str) -> list[str]:
    return [p.strip() for p in value.split(",") if p.strip()]


def load_config(path: str | None = None, *, env_file: str | None = ".env") -> AetheraConfig:
    """
    Load configuration from a TOML file, then overlay environment variables.

    Env-var mapping:
        APTOS_NETWORK                -> chain.network
        APTOS_NODE_URL               -> chain.node_url
        CONTRACT_ADDRESS             -> chain.contract_address
        VAULT_AUTHORITY_ADDRESS      -> chain.vault_authority
        ADMIN_PRIVATE_KEY            -> chain.admin_private_key
        PORT / AETHERA_API_PORT      -> api.port
        AETHERA_API_HOST             -> api.host
        AETHERA_ADMIN_KEY            -> api.admin_key
        CORS_ORIGIN                  -> api.cors_origins   (comma-separated)
        API_RATE_LIMIT_WINDOW_MS     -> api.rate_limit_window (converted to seconds)
        API_RATE_LIMIT_MAX_REQUESTS  -> api.rate_limit_max
        AETHERA_API_URL              -> dashboard.api_url
        AETHERA_LOG_LEVEL            -> logging.level
        AETHERA_LOG_FMT              -> logging.format
        AETHERA_LOG_FILE             -> logging.file
    """
    if env_file:
        load_dotenv(env_file, override=False)

    cfg = AetheraConfig()

    # ── TOML file ────────────────────────────────────────────────
    if path is not None:
        p = Path(path)
        if p.exists():
            with open(p, "rb") as f:
                data = tomllib.load(f)
            for section_name, section_dc in [
                ("chain", cfg.chain),
                ("api", cfg.api),
                ("dashboard", cfg.dashboard),
                ("logging", cfg.logging),
            ]:
                if section_name in data:
                    _merge(section_dc, data[section_name])

    # ── Environment variable overrides ───────────────────────────
    if v := os.environ.get("APTOS_NETWORK"):
        cfg.chain.network = v.lower()
    if v := os.environ.get("APTOS_NODE_URL"):
        cfg.chain.node_url = v
    if v := os.environ.get("CONTRACT_ADDRESS"):
        cfg.chain.contract_address = v
    if v := os.environ.get("VAULT_AUTHORITY_ADDRESS"):
        cfg.chain.vault_authority = v
    if v := os.environ.get("ADMIN_PRIVATE_KEY"):
        cfg.chain.admin_private_key = v
    if v := os.environ.get("PORT"):
        cfg.api.port = int(v)
    if v := os.environ.get("AETHERA_API_PORT"):
        cfg.api.port = int(v)
    if v := os.environ.get("AETHERA_API_HOST"):
        cfg.api.host = v
    if v := os.environ.get("AETHERA_ADMIN_KEY"):
        cfg.api.admin_key = v
    if v := os.environ.get("CORS_ORIGIN"):
        cfg.api.cors_origins = _csv(v)
    if v := os.environ.get("API_RATE_LIMIT_WINDOW_MS"):
        cfg.api.rate_limit_window = int(v) / 1000.0
    if v := os.environ.get("API_RATE_LIMIT_MAX_REQUESTS"):
        cfg.api.rate_limit_max = int(v)
    if v := os.environ.get("AETHERA_API_URL"):
        cfg.dashboard.api_url = v
    if v := os.environ.get("AETHERA_LOG_LEVEL"):
        cfg.logging.level = v.upper()
    if v := os.environ.get("AETHERA_LOG_FMT"):
        cfg.logging.format = v
    if v := os.environ.get("AETHERA_LOG_FILE"):
        cfg.logging.file = v

    return cfg
