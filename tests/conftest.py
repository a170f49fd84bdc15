"""
Shared pytest fixtures for the Aethera staking test suite.
"""

from __future__ import annotations

import pytest

from aethera_staking.config import ChainConfig
from aethera_staking.errors import ResourceNotFound
from aethera_staking.service import StakingService
from aethera_staking.signer import Ed25519Signer

CONTRACT = "0xc0ffee"
VAULT_AUTHORITY = "0xva017"
NOW = 1_700_000_000

# RFC 8032 test vector 1
RFC8032_SECRET = "9d61b19deffd5a60ba844af492ec2cc44449c5697b326919703bac031cae7f60"
RFC8032_PUBLIC = "d75a980182b10ab7d54bfed3c964073a0ee172f3daa62325af021a68f707511a"


class FakeChain:
    """In-memory stand-in for :class:`AptosChainClient`."""

    def __init__(self):
        self.resources: dict[tuple[str, str], dict] = {}
        self.balances: dict[str, int] = {}
        self.submitted: list[tuple[str, str, list]] = []
        self.txn_success = True
        self.vm_status = "Executed successfully"

    def put(self, address: str, resource_type: str, data: dict) -> None:
        self.resources[(address, resource_type)] = data

    async def get_account_resource(self, address, resource_type):
        try:
            return self.resources[(address, resource_type)]
        except KeyError:
            raise ResourceNotFound(address, resource_type) from None

    async def get_coin_balance(self, address):
        return self.balances.get(address, 0)

    async def submit_entry_function(self, signer, function, arguments=(), type_arguments=()):
        self.submitted.append((signer.address, function, list(arguments)))
        return f"0xhash{len(self.submitted)}"

    async def wait_for_transaction(self, txn_hash):
        return {
            "type": "user_transaction",
            "hash": txn_hash,
            "success": self.txn_success,
            "vm_status": self.vm_status,
            "version": "42",
            "gas_used": "7",
        }


def vault_resource(staked="0", apy="10", balance="0"):
    return {
        "authority": VAULT_AUTHORITY,
        "staked_amount": staked,
        "apy_rate": apy,
        "vault_coins": {"value": balance},
    }


def player_resource(staked="100000000", staked_time=NOW - 3600, duration=86_400,
                    reward_time=NOW - 3600, reward_amount="0"):
    return {
        "staked_amount": staked,
        "staked_time": str(staked_time),
        "duration_time": str(duration),
        "reward_time": str(reward_time),
        "reward_amount": reward_amount,
    }


@pytest.fixture
def chain_cfg():
    return ChainConfig(
        network="devnet",
        contract_address=CONTRACT,
        vault_authority=VAULT_AUTHORITY,
    )


@pytest.fixture
def fake_chain():
    return FakeChain()


@pytest.fixture
def admin_signer():
    return Ed25519Signer.from_hex(RFC8032_SECRET)


@pytest.fixture
def service(fake_chain, chain_cfg, admin_signer):
    """Service with an admin key and a frozen clock."""
    return StakingService(fake_chain, chain_cfg, admin_signer=admin_signer, clock=lambda: NOW)


@pytest.fixture
def keyless_service(fake_chain, chain_cfg):
    """Service without any admin credential."""
    return StakingService(fake_chain, chain_cfg, clock=lambda: NOW)
