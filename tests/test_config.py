"""
Tests for aethera_staking.config — TOML configuration and environment overrides.

Covers:
  - Default values for all dataclass sections
  - TOML parsing and section merging
  - Environment variable overrides (precedence over TOML)
  - .env loading without clobbering the real environment
  - Network URL resolution and contract identifiers
  - ChainConfig validation
"""

from __future__ import annotations

import os
import textwrap
import unittest
from unittest.mock import patch

import pytest

from aethera_staking.config import (
    NETWORK_URLS,
    AetheraConfig,
    APIConfig,
    ChainConfig,
    DashboardConfig,
    LoggingConfig,
    _merge,
    load_config,
)
from aethera_staking.errors import ConfigurationError

_ENV_KEYS = [
    "APTOS_NETWORK", "APTOS_NODE_URL", "CONTRACT_ADDRESS", "VAULT_AUTHORITY_ADDRESS",
    "ADMIN_PRIVATE_KEY", "PORT", "AETHERA_API_PORT", "AETHERA_API_HOST", "AETHERA_ADMIN_KEY",
    "CORS_ORIGIN", "API_RATE_LIMIT_WINDOW_MS", "API_RATE_LIMIT_MAX_REQUESTS",
    "AETHERA_API_URL", "AETHERA_LOG_LEVEL", "AETHERA_LOG_FMT", "AETHERA_LOG_FILE",
]


def _clean_env():
    return {k: v for k, v in os.environ.items() if k not in _ENV_KEYS}


# ═══════════════════════════════════════════════════════════════════
#  Defaults
# ═══════════════════════════════════════════════════════════════════

class TestDefaults(unittest.TestCase):

    def test_chain_defaults(self):
        c = ChainConfig()
        self.assertEqual(c.network, "testnet")
        self.assertEqual(c.contract_address, "")
        self.assertEqual(c.admin_private_key, "")
        self.assertEqual(c.fullnode_url, NETWORK_URLS["testnet"])

    def test_api_defaults(self):
        a = APIConfig()
        self.assertEqual(a.port, 3000)
        self.assertEqual(a.rate_limit_window, 900.0)
        self.assertEqual(a.rate_limit_max, 100)
        self.assertEqual(a.cors_origins, ["*"])
        self.assertEqual(a.max_body_bytes, 1_048_576)
        self.assertEqual(a.admin_key, "")

    def test_dashboard_defaults(self):
        d = DashboardConfig()
        self.assertEqual(d.vault_interval, 30.0)
        self.assertEqual(d.player_interval, 15.0)
        self.assertEqual(d.countdown_interval, 1.0)
        self.assertEqual(d.simulate_debounce, 0.3)

    def test_logging_defaults(self):
        lg = LoggingConfig()
        self.assertEqual(lg.level, "INFO")
        self.assertEqual(lg.format, "human")
        self.assertIsNone(lg.file)

    def test_sections_are_independent(self):
        a, b = AetheraConfig(), AetheraConfig()
        a.api.cors_origins.append("https://x")
        self.assertEqual(b.api.cors_origins, ["*"])


# ═══════════════════════════════════════════════════════════════════
#  Chain helpers
# ═══════════════════════════════════════════════════════════════════

class TestChainConfig:

    def test_node_url_overrides_network(self):
        c = ChainConfig(network="mainnet", node_url="http://node:8080/v1/")
        assert c.fullnode_url == "http://node:8080/v1"

    def test_unknown_network_falls_back_to_testnet(self):
        assert ChainConfig(network="moonnet").fullnode_url == NETWORK_URLS["testnet"]

    def test_function_and_resource_ids(self):
        c = ChainConfig(contract_address="0xabc")
        assert c.function("sol_stake") == "0xabc::state::sol_stake"
        assert c.resource_type("VaultAccount") == "0xabc::state::VaultAccount"

    def test_validate_requires_contract(self):
        with pytest.raises(ConfigurationError, match="CONTRACT_ADDRESS"):
            ChainConfig(vault_authority="0x1").validate()

    def test_validate_requires_vault_authority(self):
        with pytest.raises(ConfigurationError, match="VAULT_AUTHORITY_ADDRESS"):
            ChainConfig(contract_address="0x1").validate()

    def test_validate_passes(self):
        ChainConfig(contract_address="0x1", vault_authority="0x2").validate()


# ═══════════════════════════════════════════════════════════════════
#  TOML + env loading
# ═══════════════════════════════════════════════════════════════════

class TestLoadConfig:

    def test_missing_file_gives_defaults(self, tmp_path):
        with patch.dict(os.environ, _clean_env(), clear=True):
            cfg = load_config(str(tmp_path / "nope.toml"), env_file=None)
        assert cfg.api.port == 3000

    def test_toml_sections_merged(self, tmp_path):
        path = tmp_path / "aethera.toml"
        path.write_text(textwrap.dedent("""
            [chain]
            network = "devnet"
            contract-address = "0xc0ffee"
            vault_authority = "0xbeef"

            [api]
            port = 4000
            cors_origins = ["https://app.example"]

            [dashboard]
            player_interval = 5.0

            [logging]
            level = "DEBUG"
            unknown_key = 1
        """))
        with patch.dict(os.environ, _clean_env(), clear=True):
            cfg = load_config(str(path), env_file=None)
        assert cfg.chain.network == "devnet"
        assert cfg.chain.contract_address == "0xc0ffee"
        assert cfg.chain.vault_authority == "0xbeef"
        assert cfg.api.port == 4000
        assert cfg.api.cors_origins == ["https://app.example"]
        assert cfg.dashboard.player_interval == 5.0
        assert cfg.logging.level == "DEBUG"
        assert not hasattr(cfg.logging, "unknown_key")

    def test_env_overrides_toml(self, tmp_path):
        path = tmp_path / "aethera.toml"
        path.write_text('[api]\nport = 4000\n[chain]\nnetwork = "devnet"\n')
        env = _clean_env()
        env.update({
            "PORT": "5000",
            "APTOS_NETWORK": "MAINNET",
            "CONTRACT_ADDRESS": "0x1",
            "VAULT_AUTHORITY_ADDRESS": "0x2",
            "ADMIN_PRIVATE_KEY": "0xkey",
            "CORS_ORIGIN": "https://a.io, https://b.io",
            "API_RATE_LIMIT_WINDOW_MS": "60000",
            "API_RATE_LIMIT_MAX_REQUESTS": "10",
            "AETHERA_LOG_LEVEL": "warning",
        })
        with patch.dict(os.environ, env, clear=True):
            cfg = load_config(str(path), env_file=None)
        assert cfg.api.port == 5000
        assert cfg.chain.network == "mainnet"
        assert cfg.chain.contract_address == "0x1"
        assert cfg.chain.vault_authority == "0x2"
        assert cfg.chain.admin_private_key == "0xkey"
        assert cfg.api.cors_origins == ["https://a.io", "https://b.io"]
        assert cfg.api.rate_limit_window == 60.0
        assert cfg.api.rate_limit_max == 10
        assert cfg.logging.level == "WARNING"

    def test_aethera_port_wins_over_port(self):
        env = _clean_env()
        env.update({"PORT": "5000", "AETHERA_API_PORT": "6000"})
        with patch.dict(os.environ, env, clear=True):
            cfg = load_config(None, env_file=None)
        assert cfg.api.port == 6000

    def test_dotenv_file_loaded(self, tmp_path):
        dotenv = tmp_path / ".env"
        dotenv.write_text("CONTRACT_ADDRESS=0xfromdotenv\nVAULT_AUTHORITY_ADDRESS=0xvault\n")
        with patch.dict(os.environ, _clean_env(), clear=True):
            cfg = load_config(None, env_file=str(dotenv))
        assert cfg.chain.contract_address == "0xfromdotenv"
        assert cfg.chain.vault_authority == "0xvault"

    def test_dotenv_does_not_override_process_env(self, tmp_path):
        dotenv = tmp_path / ".env"
        dotenv.write_text("CONTRACT_ADDRESS=0xfromdotenv\n")
        env = _clean_env()
        env["CONTRACT_ADDRESS"] = "0xreal"
        with patch.dict(os.environ, env, clear=True):
            cfg = load_config(None, env_file=str(dotenv))
        assert cfg.chain.contract_address == "0xreal"


class TestMerge:

    def test_hyphenated_keys(self):
        c = ChainConfig()
        _merge(c, {"wait-timeout": 5.0})
        assert c.wait_timeout == 5.0

    def test_unknown_keys_ignored(self):
        c = ChainConfig()
        _merge(c, {"nonsense": 1})
        assert not hasattr(c, "nonsense")
