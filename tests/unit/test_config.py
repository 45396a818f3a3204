"""Unit tests for settings, network configuration and logging setup."""

import logging
from pathlib import Path

import pytest

from contract_scripts.config.logging_config import setup_logger
from contract_scripts.config.network import (
    DEFAULT_LOCAL_RPC_URL,
    get_network_config,
    is_network_configured,
    resolve_network_name,
)
from contract_scripts.config.settings import (
    DEFAULT_OPTIMIZER_RUNS,
    DEFAULT_SOLC_VERSION,
    load_settings,
)
from contract_scripts.exceptions import ConfigurationError

KEY_1 = "0x" + "11" * 32
KEY_2 = "0x" + "22" * 32


class TestLoadSettings:
    def test_defaults(self, tmp_path):
        settings = load_settings(tmp_path)
        assert settings.contracts_dir == tmp_path / "contracts"
        assert settings.artifacts_dir == tmp_path / "artifacts"
        assert settings.deployments_file == tmp_path / "deployments.json"
        assert settings.solc_version == DEFAULT_SOLC_VERSION
        assert settings.optimizer_runs == DEFAULT_OPTIMIZER_RUNS
        assert settings.receipt_timeout == 120

    def test_project_root_from_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("PROJECT_ROOT", str(tmp_path))
        assert load_settings().project_root == tmp_path

    def test_overrides_from_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("DEPLOYMENTS_FILE", "state/deployments.json")
        monkeypatch.setenv("SOLC_OPTIMIZER_RUNS", "1000")
        monkeypatch.setenv("SOLC_REMAPPINGS", "a/=lib/a/, b/=lib/b/")
        settings = load_settings(tmp_path)
        assert settings.deployments_file == tmp_path / "state" / "deployments.json"
        assert settings.optimizer_runs == 1000
        assert settings.remappings == ["a/=lib/a/", "b/=lib/b/"]

    def test_invalid_integer(self, tmp_path, monkeypatch):
        monkeypatch.setenv("TX_RECEIPT_TIMEOUT", "soon")
        with pytest.raises(ConfigurationError, match="TX_RECEIPT_TIMEOUT"):
            load_settings(tmp_path)

    def test_relative_path(self, tmp_path):
        settings = load_settings(tmp_path)
        assert settings.relative("contracts/Counter.sol") == "contracts/Counter.sol"
        assert settings.relative(tmp_path / "contracts" / "Counter.sol") == "contracts/Counter.sol"

    def test_relative_outside_root_is_absolute(self, tmp_path):
        settings = load_settings(tmp_path / "project")
        outside = tmp_path / "elsewhere" / "Token.sol"
        assert Path(settings.relative(outside)).is_absolute()

    def test_openzeppelin_remapping_added(self, tmp_path):
        (tmp_path / "node_modules" / "@openzeppelin").mkdir(parents=True)
        assert load_settings(tmp_path).effective_remappings() == ["@openzeppelin/=node_modules/@openzeppelin/"]

    def test_no_remapping_without_node_modules(self, tmp_path):
        assert load_settings(tmp_path).effective_remappings() == []


class TestNetworkConfig:
    def test_localhost_default(self):
        config = get_network_config("localhost")
        assert config.rpc_url == DEFAULT_LOCAL_RPC_URL
        assert config.chain_id is None
        assert config.private_keys == []

    def test_localhost_from_local_rpc_url(self, monkeypatch):
        monkeypatch.setenv("LOCAL_RPC_URL", "http://127.0.0.1:9545")
        assert get_network_config("localhost").rpc_url == "http://127.0.0.1:9545"

    def test_unknown_network(self):
        with pytest.raises(ConfigurationError, match="SEPOLIA_RPC_URL"):
            get_network_config("sepolia")

    def test_custom_network(self, monkeypatch):
        monkeypatch.setenv("SEPOLIA_RPC_URL", "https://rpc.sepolia.example")
        monkeypatch.setenv("SEPOLIA_CHAIN_ID", "11155111")
        monkeypatch.setenv("SEPOLIA_PRIVATE_KEY", KEY_2)
        monkeypatch.setenv("PRIVATE_KEY", KEY_1)
        config = get_network_config("sepolia")
        assert config.rpc_url == "https://rpc.sepolia.example"
        assert config.chain_id == 11155111
        assert config.private_keys == [KEY_2]

    def test_bad_chain_id(self, monkeypatch):
        monkeypatch.setenv("SEPOLIA_RPC_URL", "https://rpc.sepolia.example")
        monkeypatch.setenv("SEPOLIA_CHAIN_ID", "sepolia")
        with pytest.raises(ConfigurationError, match="SEPOLIA_CHAIN_ID"):
            get_network_config("sepolia")

    def test_private_key_list(self, monkeypatch):
        monkeypatch.setenv("PRIVATE_KEY", f"{KEY_1}, {KEY_2}")
        assert get_network_config("localhost").private_keys == [KEY_1, KEY_2]

    def test_is_network_configured(self, monkeypatch):
        assert is_network_configured("localhost")
        assert not is_network_configured("mainnet")
        assert not is_network_configured(None)
        monkeypatch.setenv("MAINNET_RPC_URL", "https://rpc.example")
        assert is_network_configured("mainnet")


class TestResolveNetworkName:
    def test_cli_value_wins(self, monkeypatch):
        monkeypatch.setenv("NETWORK", "sepolia")
        assert resolve_network_name("localhost") == "localhost"

    def test_env_fallback(self, monkeypatch):
        monkeypatch.setenv("NETWORK", "sepolia")
        assert resolve_network_name(None) == "sepolia"

    def test_required(self):
        with pytest.raises(ConfigurationError, match="Network not specified"):
            resolve_network_name(None)

    def test_optional(self):
        assert resolve_network_name(None, required=False) is None


class TestSetupLogger:
    def test_no_duplicate_handlers(self):
        first = setup_logger("contract_scripts.tests.dup")
        second = setup_logger("contract_scripts.tests.dup")
        assert first is second
        assert len(second.handlers) == 1

    def test_log_level_from_env(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "warning")
        logger = setup_logger("contract_scripts.tests.level")
        assert logger.level == logging.WARNING

    def test_file_handlers_with_log_dir(self, tmp_path):
        logger = setup_logger("contract_scripts.tests.files", log_dir=str(tmp_path), console=False)
        logger.error("boom")
        for handler in logger.handlers:
            handler.flush()
        assert (tmp_path / "contract_scripts.tests.files.log").exists()
        assert "boom" in (tmp_path / "contract_scripts.tests.files_errors.log").read_text()
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)
