"""Unit tests for deploy argument handling (no chain involved)."""

import logging

import pytest

from contract_scripts.exceptions import ArgumentError, ArtifactNotFoundError, ConfigurationError
from contract_scripts.setup import deploy
from contract_scripts.setup.deploy import prepare_constructor_args, run_deploy

TOKEN_ABI = [
    {
        "type": "constructor",
        "stateMutability": "nonpayable",
        "inputs": [{"name": "name", "type": "string"}, {"name": "supply", "type": "uint256"}],
    },
    {
        "type": "function",
        "name": "name",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "string"}],
    },
]


@pytest.fixture
def token_artifact(artifact_factory):
    return artifact_factory("contracts/Token.sol", "Token", TOKEN_ABI, bytecode="0x6000")


class TestPrepareConstructorArgs:
    def test_valid_args(self, token_artifact):
        assert prepare_constructor_args(token_artifact, '["My Token", "1000"]') == ["My Token", 1000]

    def test_numeric_name_stays_string(self, token_artifact):
        assert prepare_constructor_args(token_artifact, '["42", 1]') == ["42", 1]

    def test_required_but_missing(self, token_artifact):
        with pytest.raises(ArgumentError, match="Contract 'Token' requires constructor arguments"):
            prepare_constructor_args(token_artifact, None)

    def test_blank_counts_as_missing(self, token_artifact):
        with pytest.raises(ArgumentError, match="requires constructor arguments"):
            prepare_constructor_args(token_artifact, "   ")

    def test_count_mismatch(self, token_artifact):
        with pytest.raises(ArgumentError, match="Expected 2, got 1"):
            prepare_constructor_args(token_artifact, '["only one"]')

    def test_invalid_json(self, token_artifact):
        with pytest.raises(ArgumentError, match="Invalid JSON format for constructor arguments"):
            prepare_constructor_args(token_artifact, "[My Token]")

    def test_args_ignored_for_empty_constructor(self, artifact_factory, caplog):
        artifact = artifact_factory("contracts/Counter.sol", "Counter", [], bytecode="0x6000")
        with caplog.at_level(logging.WARNING):
            assert prepare_constructor_args(artifact, "[1]") == []
        assert "Arguments will be ignored" in caplog.text


class TestRunDeployValidation:
    """Failures that must happen before any network call."""

    def test_missing_contract_path(self, settings):
        with pytest.raises(ConfigurationError, match="CONTRACT_PATH and CONTRACT_NAME"):
            run_deploy("", "Token", None, "localhost", settings=settings)

    def test_missing_network(self, settings):
        with pytest.raises(ConfigurationError, match="Network not specified"):
            run_deploy("contracts/Token.sol", "Token", None, "", settings=settings)

    def test_bad_args_submit_nothing(self, settings, ledger, stub_compiler, token_artifact, monkeypatch):
        def fail(*args, **kwargs):
            raise AssertionError("network must not be touched")

        monkeypatch.setattr(deploy, "get_web3", fail)
        monkeypatch.setattr(deploy, "get_network_config", fail)
        compiler = stub_compiler(token_artifact)

        with pytest.raises(ArgumentError):
            run_deploy(
                "contracts/Token.sol", "Token", "[1, 2, 3]", "localhost",
                settings=settings, compiler=compiler, ledger=ledger,
            )
        assert compiler.calls == [["contracts/Token.sol"]]
        assert not ledger.path.exists()

    def test_unknown_contract_name(self, settings, ledger, stub_compiler, token_artifact):
        with pytest.raises(ArtifactNotFoundError, match="Contracts in contracts/Token.sol: Token"):
            run_deploy(
                "contracts/Token.sol", "Tokn", None, "localhost",
                settings=settings, compiler=stub_compiler(token_artifact), ledger=ledger,
            )

    def test_interface_not_deployable(self, settings, ledger, stub_compiler, artifact_factory):
        artifact = artifact_factory("contracts/IToken.sol", "IToken", [])
        with pytest.raises(ArgumentError, match="no bytecode"):
            run_deploy(
                "contracts/IToken.sol", "IToken", None, "localhost",
                settings=settings, compiler=stub_compiler(artifact), ledger=ledger,
            )

    def test_unlinked_library(self, settings, ledger, stub_compiler, artifact_factory):
        artifact = artifact_factory(
            "contracts/Vault.sol", "Vault", [], bytecode="0x6000",
            link_references={"contracts/Math.sol": {"Math": [{"start": 1, "length": 20}]}},
        )
        with pytest.raises(ArgumentError, match="needs linked libraries: Math"):
            run_deploy(
                "contracts/Vault.sol", "Vault", None, "localhost",
                settings=settings, compiler=stub_compiler(artifact), ledger=ledger,
            )


class TestDeployMain:
    def test_missing_inputs_exit_code(self, monkeypatch, tmp_path):
        monkeypatch.setenv("PROJECT_ROOT", str(tmp_path))
        monkeypatch.setenv("NETWORK", "localhost")
        assert deploy.main([]) == 1

    def test_missing_network_exit_code(self, monkeypatch, tmp_path):
        monkeypatch.setenv("PROJECT_ROOT", str(tmp_path))
        assert deploy.main(["--contract-path", "contracts/Token.sol", "--contract-name", "Token"]) == 1
        assert not (tmp_path / "deployments.json").exists()
