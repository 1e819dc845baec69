"""
ETH Wallet Test Suite - Shared Fixtures
"""

import pytest

from eth_wallet.exceptions import NetworkError
from eth_wallet.wallet.keystore import KeyStore
from eth_wallet.wallet.manager import WalletManager

# Well-known development key (Hardhat/Anvil account #0). Never holds real funds.
TEST_PRIVATE_KEY = "ac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
TEST_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
ENCRYPTION_KEY = b"0123456789abcdef0123456789abcdef"


class FakeProvider:
    """Stands in for Web3Provider and records what the manager asks of it."""

    def __init__(self, rpc_url="", timeout=30.0, balance=0, nonce=7,
                 gas_price=20_000_000_000, chain_id=11155111, fail_on=None):
        self.rpc_url = rpc_url
        self.balance = balance
        self.nonce = nonce
        self.gas_price = gas_price
        self.chain_id = chain_id
        self.fail_on = fail_on
        self.calls = []
        self.broadcasts = []

    def _record(self, name):
        self.calls.append(name)
        if self.fail_on == name:
            raise NetworkError(f"failed to {name}: connection reset")

    def get_balance(self, address):
        self._record("get_balance")
        return self.balance

    def get_nonce(self, address):
        self._record("get_nonce")
        return self.nonce

    def suggest_gas_price(self):
        self._record("suggest_gas_price")
        return self.gas_price

    def get_chain_id(self):
        self._record("get_chain_id")
        return self.chain_id

    def broadcast(self, signed):
        self._record("broadcast")
        self.broadcasts.append(signed)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the developer's real wallet environment out of the tests."""
    for var in (
        "ETH_RPC_URL",
        "ETHERSCAN_API_KEY",
        "ETHERSCAN_API_URL",
        "WALLET_ENCRYPTION_KEY",
        "WALLET_PRIVATE_KEY",
        "ETH_WALLET_DATA_DIR",
        "ETH_WALLET_CONFIG",
    ):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def keystore(tmp_path):
    return KeyStore(tmp_path / "wallets.json", tmp_path / "default_wallet.txt")


@pytest.fixture
def encrypted_keystore(tmp_path):
    return KeyStore(
        tmp_path / "wallets.json",
        tmp_path / "default_wallet.txt",
        encryption_key=ENCRYPTION_KEY,
    )


@pytest.fixture
def provider():
    return FakeProvider(balance=2_500_000_000_000_000_000)


@pytest.fixture
def manager(keystore, provider):
    return WalletManager(keystore, provider)
