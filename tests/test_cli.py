"""
CLI commands end to end against a temporary data directory.
"""

import pytest
from typer.testing import CliRunner

from eth_wallet.cli.app import app

from conftest import TEST_ADDRESS, TEST_PRIVATE_KEY, FakeProvider

runner = CliRunner()


@pytest.fixture
def data_dir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    return tmp_path


def invoke(data_dir, *args, env=None):
    return runner.invoke(app, ["--data-dir", str(data_dir), *args], env=env)


class TestLifecycleCommands:

    def test_create_then_show(self, data_dir):
        result = invoke(data_dir, "create", "--name", "main")
        assert result.exit_code == 0, result.output
        assert "Wallet created successfully!" in result.output
        assert (data_dir / "wallets.json").exists()
        assert (data_dir / "default_wallet.txt").read_text() == "main"

        result = invoke(data_dir, "show")
        assert result.exit_code == 0
        assert "Wallet address: 0x" in result.output

    def test_import_then_show(self, data_dir):
        result = invoke(data_dir, "import", TEST_PRIVATE_KEY)
        assert result.exit_code == 0, result.output
        assert TEST_ADDRESS in result.output

        result = invoke(data_dir, "show")
        assert TEST_ADDRESS in result.output

    def test_import_invalid_key(self, data_dir):
        result = invoke(data_dir, "import", "not-a-key")
        assert result.exit_code == 1
        assert "invalid private key format" in result.output
        assert not (data_dir / "wallets.json").exists()

    def test_show_without_wallet(self, data_dir):
        result = invoke(data_dir, "show")
        assert result.exit_code == 1
        assert "wallet not found" in result.output

    def test_list_and_use(self, data_dir):
        invoke(data_dir, "import", TEST_PRIVATE_KEY, "--name", "dev")
        invoke(data_dir, "create", "--name", "other")

        result = invoke(data_dir, "list")
        assert result.exit_code == 0
        assert "dev" in result.output and "other" in result.output

        result = invoke(data_dir, "use", "other")
        assert result.exit_code == 0
        assert (data_dir / "default_wallet.txt").read_text() == "other"

        result = invoke(data_dir, "use", "ghost")
        assert result.exit_code == 1

    def test_list_empty(self, data_dir):
        result = invoke(data_dir, "list")
        assert result.exit_code == 0
        assert "No wallets stored" in result.output

    def test_encrypted_store_via_env(self, data_dir):
        env = {"WALLET_ENCRYPTION_KEY": "k" * 32}
        result = invoke(data_dir, "import", TEST_PRIVATE_KEY, env=env)
        assert result.exit_code == 0, result.output
        assert TEST_PRIVATE_KEY not in (data_dir / "wallets.json").read_text()

        assert TEST_ADDRESS in invoke(data_dir, "show", env=env).output
        assert invoke(data_dir, "show").exit_code == 1


class TestChainCommands:

    @pytest.fixture
    def fake_provider(self, monkeypatch):
        provider = FakeProvider(balance=2_500_000_000_000_000_000)
        monkeypatch.setattr(
            "eth_wallet.wallet.manager.Web3Provider", lambda *args, **kwargs: provider
        )
        return provider

    def test_balance(self, data_dir, fake_provider):
        invoke(data_dir, "import", TEST_PRIVATE_KEY)
        result = invoke(data_dir, "balance")
        assert result.exit_code == 0, result.output
        assert "Wallet Balance: 2.5 ETH" in result.output

    def test_send(self, data_dir, fake_provider):
        invoke(data_dir, "import", TEST_PRIVATE_KEY)
        result = invoke(data_dir, "send", "0x" + "11" * 20, "0.5", "--yes")
        assert result.exit_code == 0, result.output
        [signed] = fake_provider.broadcasts
        assert signed.hash in result.output

    def test_send_requires_confirmation(self, data_dir, fake_provider):
        invoke(data_dir, "import", TEST_PRIVATE_KEY)
        result = runner.invoke(
            app, ["--data-dir", str(data_dir), "send", "0x" + "11" * 20, "0.5"], input="n\n"
        )
        assert result.exit_code == 1
        assert fake_provider.broadcasts == []

    def test_send_bad_amount(self, data_dir, fake_provider):
        invoke(data_dir, "import", TEST_PRIVATE_KEY)
        result = invoke(data_dir, "send", "0x" + "11" * 20, "abc", "--yes")
        assert result.exit_code == 1
        assert "invalid ETH amount" in result.output

    def test_send_without_wallet(self, data_dir, fake_provider):
        result = invoke(data_dir, "send", "0x" + "11" * 20, "1", "--yes")
        assert result.exit_code == 1
        assert fake_provider.calls == []

    def test_history_needs_api_key(self, data_dir, fake_provider):
        invoke(data_dir, "import", TEST_PRIVATE_KEY)
        result = invoke(data_dir, "history")
        assert result.exit_code == 1
        assert "ETHERSCAN_API_KEY" in result.output
