"""Shared pytest fixtures for contract-scripts tests."""

import json
from pathlib import Path
from typing import Any, Dict, List

import pytest

from contract_scripts.config.settings import Settings, load_settings
from contract_scripts.helpers.compiler import ARTIFACT_FORMAT, CompilationResult, fully_qualified_name
from contract_scripts.ledger import DeploymentLedger

ENV_VARS = [
    "NETWORK",
    "LOCAL_RPC_URL",
    "PRIVATE_KEY",
    "PROJECT_ROOT",
    "CONTRACTS_DIR",
    "ARTIFACTS_DIR",
    "DEPLOYMENTS_FILE",
    "SOLC_VERSION",
    "SOLC_OPTIMIZER_RUNS",
    "SOLC_EVM_VERSION",
    "SOLC_REMAPPINGS",
    "TX_RECEIPT_TIMEOUT",
    "LOG_LEVEL",
    "LOG_DIR",
    "CONTRACT_ADDRESS",
    "CONTRACT_NAME",
    "CONTRACT_PATH",
    "CONSTRUCTOR_ARGS",
    "CONTRACT_FUNCTION",
    "CONTRACT_ARGS",
    "ABI_FILE",
    "SOURCE_FILE",
    "NETWORK_DEPLOYED",
    "MAINNET_RPC_URL",
]

# EIP-55 reference address
CHECKSUM_ADDRESS = "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed"

ERC20_ABI: List[Dict[str, Any]] = [
    {
        "type": "function",
        "name": "totalSupply",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "type": "function",
        "name": "transfer",
        "stateMutability": "nonpayable",
        "inputs": [{"name": "to", "type": "address"}, {"name": "amount", "type": "uint256"}],
        "outputs": [{"name": "", "type": "bool"}],
    },
    {
        "type": "event",
        "name": "Transfer",
        "anonymous": False,
        "inputs": [
            {"name": "from", "type": "address", "indexed": True},
            {"name": "to", "type": "address", "indexed": True},
            {"name": "value", "type": "uint256", "indexed": False},
        ],
    },
]


def make_artifact(
    source_name: str,
    contract_name: str,
    abi: List[Dict[str, Any]],
    bytecode: str = "0x",
    link_references: Dict[str, Any] = None,
) -> Dict[str, Any]:
    return {
        "_format": ARTIFACT_FORMAT,
        "contractName": contract_name,
        "sourceName": source_name,
        "abi": abi,
        "bytecode": bytecode,
        "deployedBytecode": "0x",
        "linkReferences": link_references or {},
        "deployedLinkReferences": {},
    }


class StubCompiler:
    """Stands in for SolidityCompiler with pre-built artifacts."""

    def __init__(self, *artifacts: Dict[str, Any]):
        self.artifacts = {
            fully_qualified_name(a["sourceName"], a["contractName"]): a for a in artifacts
        }
        self.calls: List[List[Any]] = []

    def compile_project(self, extra_sources=()):
        self.calls.append(list(extra_sources))
        return CompilationResult(artifacts=dict(self.artifacts))


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's environment out of the tests."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings rooted at a temporary project directory."""
    (tmp_path / "contracts").mkdir()
    return load_settings(tmp_path)


@pytest.fixture
def ledger(settings: Settings) -> DeploymentLedger:
    return DeploymentLedger(settings.deployments_file)


@pytest.fixture
def erc20_abi() -> List[Dict[str, Any]]:
    return json.loads(json.dumps(ERC20_ABI))


@pytest.fixture
def abi_file(tmp_path: Path, erc20_abi: List[Dict[str, Any]]) -> Path:
    """A plain JSON ABI file."""
    path = tmp_path / "abis" / "Token.json"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(erc20_abi, indent=2))
    return path


@pytest.fixture
def artifact_factory():
    """Build Hardhat-style artifact dicts."""
    return make_artifact


@pytest.fixture
def stub_compiler():
    """Return the StubCompiler class for tests to instantiate with artifacts."""
    return StubCompiler


@pytest.fixture
def checksum_address() -> str:
    return CHECKSUM_ADDRESS
