#!/usr/bin/env python3
"""
Deploy a contract from a local Solidity file.

Usage:
    python -m scripts deploy --network <networkName> \\
        --contract-path <path_to_sol_file_relative_to_project_root> \\
        --contract-name <NameOfContractToDeploy> \\
        [--constructor-args <json_string_array_of_args>]

    The same values can be given as CONTRACT_PATH, CONTRACT_NAME,
    CONSTRUCTOR_ARGS and NETWORK environment variables.

Example:
    CONTRACT_PATH=contracts/MyToken.sol CONTRACT_NAME=MyToken \\
    CONSTRUCTOR_ARGS='["My Token", "MTK", 1000000]' \\
        python -m scripts deploy --network localhost

Prints a JSON object with the deployment details:
    {
      "contractAddress": "0x...",
      "transactionHash": "0x...",
      "contractName": "MyToken",
      "artifactPath": "artifacts/contracts/MyToken.sol/MyToken.json",
      "abi": [...]
    }
"""

from __future__ import annotations

import argparse
import logging
import os
from typing import Any

from dotenv import load_dotenv
from web3 import Web3

from contract_scripts.config.logging_config import get_script_logger
from contract_scripts.config.network import NetworkConfig, get_network_config, resolve_network_name
from contract_scripts.config.settings import Settings, load_settings
from contract_scripts.exceptions import ArgumentError, ConfigurationError
from contract_scripts.helpers.abi_utils import constructor_inputs, parse_json_args
from contract_scripts.helpers.compiler import SolidityCompiler, artifact_file, fully_qualified_name
from contract_scripts.helpers.output import DEPLOYMENT_MARKER, emit_result
from contract_scripts.helpers.web3_setup import Signer, first_signer, get_web3, send_transaction
from contract_scripts.ledger import DeploymentLedger, DeploymentRecord

logger = logging.getLogger(__name__)


def prepare_constructor_args(artifact: dict[str, Any], raw_args: str | None) -> list[Any]:
    """
    Validate ``raw_args`` against the artifact's constructor.

    Args:
        artifact: Compiled artifact with ``abi`` and ``contractName``
        raw_args: JSON array text, or None/empty

    Returns:
        Arguments coerced to the constructor's parameter types

    Raises:
        ArgumentError: If arguments are required but missing, are not a JSON
            array, or do not match the parameter count or types.
    """
    inputs = constructor_inputs(artifact["abi"])
    name = artifact["contractName"]
    if not inputs:
        if raw_args and raw_args.strip():
            logger.warning("⚠️ Constructor arguments provided, but contract constructor is empty. Arguments will be ignored.")
        return []
    if not raw_args or not raw_args.strip():
        raise ArgumentError(
            f"Contract '{name}' requires constructor arguments, but none were provided via CONSTRUCTOR_ARGS."
        )
    logger.info("🔧 Parsing constructor arguments...")
    args = parse_json_args(raw_args, inputs, kind="constructor")
    logger.info(f"🔩 Constructor arguments: {raw_args.strip()}")
    return args


def _check_deployable(artifact: dict[str, Any], fqn: str) -> None:
    if artifact.get("bytecode", "0x") in ("", "0x"):
        raise ArgumentError(f"Contract '{fqn}' has no bytecode (abstract contract or interface).")
    if artifact.get("linkReferences"):
        libraries = sorted({lib for refs in artifact["linkReferences"].values() for lib in refs})
        raise ArgumentError(f"Contract '{fqn}' needs linked libraries: {', '.join(libraries)}")


def deploy_artifact(
    w3: Web3,
    signer: Signer,
    artifact: dict[str, Any],
    args: list[Any],
    timeout: int = 120,
) -> tuple[str, str, Any]:
    """Send the creation transaction and wait for it.

    Returns:
        (contract address, transaction hash, receipt)
    """
    factory = w3.eth.contract(abi=artifact["abi"], bytecode=artifact["bytecode"])
    logger.info("⏳ Deploying contract...")
    tx_hash, receipt = send_transaction(w3, signer, factory.constructor(*args), timeout=timeout)
    address = Web3.to_checksum_address(receipt["contractAddress"])
    return address, tx_hash, receipt


def run_deploy(
    contract_path: str,
    contract_name: str,
    constructor_args: str | None,
    network_name: str,
    *,
    settings: Settings | None = None,
    compiler: Any = None,
    network: NetworkConfig | None = None,
    w3: Web3 | None = None,
    ledger: DeploymentLedger | None = None,
) -> dict[str, Any]:
    """
    Compile, deploy and record a contract.

    Collaborators default to the ones built from the environment; tests pass
    their own.

    Returns:
        The JSON summary for the calling process
    """
    if not contract_path or not contract_name:
        raise ConfigurationError("CONTRACT_PATH and CONTRACT_NAME environment variables are required")
    if not network_name:
        raise ConfigurationError("Network not specified. Use --network <networkName> or set NETWORK")

    settings = settings or load_settings()
    compiler = compiler or SolidityCompiler(settings)
    ledger = ledger or DeploymentLedger(settings.deployments_file)

    logger.info(f"🚀 Deploying '{contract_name}' from '{contract_path}' on network '{network_name}'...")

    # 1. Compile the whole project (includes the requested file)
    compilation = compiler.compile_project(extra_sources=[contract_path])
    source_name = settings.relative(contract_path)
    fqn = fully_qualified_name(source_name, contract_name)
    artifact = compilation.get(source_name, contract_name)
    _check_deployable(artifact, fqn)

    # 2. Validate constructor arguments before touching the network
    args = prepare_constructor_args(artifact, constructor_args)

    # 3. Connect and resolve the deployer
    if w3 is None:
        network = network or get_network_config(network_name)
        w3 = get_web3(network)
    if network is None:
        network = NetworkConfig(name=network_name, rpc_url="")
    signer = first_signer(w3, network)
    logger.info(f"👤 Deployer address: {signer.address}")
    balance = w3.eth.get_balance(signer.address)
    logger.info(f"💰 Deployer balance: {Web3.from_wei(balance, 'ether')} ETH")

    # 4. Deploy
    address, tx_hash, _receipt = deploy_artifact(w3, signer, artifact, args, timeout=settings.receipt_timeout)
    logger.info(f"✅ Contract '{contract_name}' deployed to address: {address}")
    logger.info(f"🧾 Transaction hash: {tx_hash}")

    # 5. Record in the ledger
    artifact_path = settings.relative(artifact_file(settings, source_name, contract_name))
    record = DeploymentRecord(
        network=network_name,
        contract_name=contract_name,
        contract_address=address,
        deployment_type="local",
        artifact_path=artifact_path,
        source_path=source_name,
        abi=artifact["abi"],
        transaction_hash=tx_hash,
    )
    ledger.write(address, record)

    return {
        "contractAddress": record.contract_address,
        "transactionHash": tx_hash,
        "contractName": contract_name,
        "artifactPath": artifact_path,
        "abi": artifact["abi"],
    }


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Compile and deploy a contract, recording it in deployments.json")
    parser.add_argument("--network", default=None, help="Network to deploy to (or NETWORK env var)")
    parser.add_argument("--contract-path", default=None, help="Solidity file (or CONTRACT_PATH env var)")
    parser.add_argument("--contract-name", default=None, help="Contract to deploy (or CONTRACT_NAME env var)")
    parser.add_argument(
        "--constructor-args",
        default=None,
        help="JSON array of constructor arguments (or CONSTRUCTOR_ARGS env var)",
    )
    parser.add_argument("--debug", action="store_true", help="Verbose logging")
    return parser


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)
    log = get_script_logger(debug=args.debug)

    try:
        network_name = resolve_network_name(args.network)
        result = run_deploy(
            contract_path=args.contract_path or os.getenv("CONTRACT_PATH", ""),
            contract_name=args.contract_name or os.getenv("CONTRACT_NAME", ""),
            constructor_args=args.constructor_args if args.constructor_args is not None else os.getenv("CONSTRUCTOR_ARGS"),
            network_name=network_name,
        )
    except Exception as e:
        log.error(f"❌ Deployment script failed: {e}", exc_info=args.debug)
        return 1

    emit_result(result, DEPLOYMENT_MARKER)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
