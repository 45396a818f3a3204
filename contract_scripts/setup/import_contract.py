#!/usr/bin/env python3
"""
Register contracts that were deployed elsewhere in deployments.json.

Three flows, none of which sends a transaction:

- ``add-using-abi``: address + name + plain JSON ABI file
      CONTRACT_ADDRESS=0x... CONTRACT_NAME=ExternalDAIToken \\
      ABI_FILE=./abis/ExternalDAIToken.json NETWORK_DEPLOYED=mainnet \\
          python -m scripts add-using-abi [--network <probeNetwork>]

- ``add-using-code``: address + name + Solidity source compiled with the project
      CONTRACT_ADDRESS=0x... CONTRACT_NAME=ExternalGovToken \\
      SOURCE_FILE=./external_sources/GovToken.sol NETWORK_DEPLOYED=mainnet \\
          python -m scripts add-using-code

- ``add-external``: positional variant that also writes a stub artifact
      python -m scripts add-external <address> <contract-name> <abi-file-path>

Each flow optionally probes the contract by calling a parameterless view
function on the active network; a failed probe only logs a warning.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
from pathlib import Path
from typing import Any, Mapping, Sequence

from dotenv import load_dotenv
from web3 import Web3

from contract_scripts.config.logging_config import get_script_logger
from contract_scripts.config.network import (
    DEFAULT_NETWORK,
    get_network_config,
    is_network_configured,
    resolve_network_name,
)
from contract_scripts.config.settings import Settings, load_settings
from contract_scripts.exceptions import ArtifactNotFoundError, ConfigurationError, InvalidAbiError
from contract_scripts.helpers.abi_utils import (
    abi_functions,
    find_probe_function,
    function_signature,
    load_abi_file,
    validate_address,
)
from contract_scripts.helpers.compiler import ARTIFACT_FORMAT, SolidityCompiler
from contract_scripts.helpers.output import DEPLOYMENT_MARKER, emit_result
from contract_scripts.helpers.web3_setup import get_web3
from contract_scripts.ledger import DeploymentLedger, DeploymentRecord

logger = logging.getLogger(__name__)


def verify_contract_accessibility(w3: Web3, address: str, abi: Sequence[Mapping[str, Any]]) -> bool:
    """
    Call a parameterless view/pure function to check the contract answers.

    Never raises: any failure is logged as a warning and reported as False.
    """
    try:
        logger.info("🔍 Verifying contract accessibility by calling a view function (if available)...")
        probe = find_probe_function(abi)
        if probe is None:
            logger.info("ℹ️ No suitable parameterless view function found to test accessibility. Assuming ABI is correct.")
            return True
        contract = w3.eth.contract(address=Web3.to_checksum_address(address), abi=list(abi))
        logger.info(f"🧪 Attempting to call view function: {probe['name']}()")
        contract.get_function_by_signature(function_signature(probe))().call()
        logger.info(f"✅ Successfully called '{probe['name']}()'. Contract seems accessible.")
        return True
    except Exception as e:
        logger.warning(f"⚠️ Warning: Could not verify contract accessibility by calling a view function: {e}")
        logger.warning("   This might be due to network issues, incorrect ABI, or the contract not being deployed at the address.")
        return False


def probe_contract(
    address: str,
    abi: Sequence[Mapping[str, Any]],
    network_deployed: str,
    active_network: str | None = None,
    w3: Web3 | None = None,
) -> bool:
    """Run the accessibility probe against the active network, if any."""
    if w3 is None:
        if active_network is None and is_network_configured(network_deployed):
            active_network = network_deployed
        if active_network is None:
            logger.warning("⚠️ No network selected for the accessibility check; skipping it.")
            return False
        try:
            w3 = get_web3(get_network_config(active_network))
        except Exception as e:
            logger.warning(f"⚠️ Warning: Could not connect to network '{active_network}': {e}")
            return False

    if active_network and active_network != network_deployed:
        logger.warning(
            f"⚠️ Verification check will use network '{active_network}', but contract is on "
            f"'{network_deployed}'. Results may be inaccurate if networks differ."
        )
    return verify_contract_accessibility(w3, address, abi)


def _import_summary(record: DeploymentRecord) -> dict[str, Any]:
    logger.info("📋 Import Summary:")
    logger.info(f"  Contract Name: {record.contract_name}")
    logger.info(f"  Address: {record.contract_address}")
    logger.info(f"  Network Deployed: {record.network}")
    return {
        "contractAddress": record.contract_address,
        "transactionHash": None,
        "contractName": record.contract_name,
        "artifactPath": record.artifact_path,
        "abi": record.abi,
    }


def _require(**values: str | None) -> None:
    missing = [name for name, value in values.items() if not value]
    if missing:
        raise ConfigurationError(f"{', '.join(missing)} environment variables are required")


def import_using_abi(
    contract_address: str,
    contract_name: str,
    abi_file: str,
    network_deployed: str,
    *,
    active_network: str | None = None,
    settings: Settings | None = None,
    ledger: DeploymentLedger | None = None,
    w3: Web3 | None = None,
) -> dict[str, Any]:
    """
    Record an external contract described by a plain JSON ABI file.

    Raises:
        ConfigurationError: Missing parameter
        InvalidAddressError: Malformed address
        ArtifactNotFoundError: ABI file does not exist
        InvalidAbiError: ABI file is not an array of typed entries
    """
    _require(
        CONTRACT_ADDRESS=contract_address,
        CONTRACT_NAME=contract_name,
        ABI_FILE=abi_file,
        NETWORK_DEPLOYED=network_deployed,
    )
    logger.info(
        f"🔗 Importing external contract '{contract_name}' at address '{contract_address}' "
        f"from network '{network_deployed}' using ABI from '{abi_file}'"
    )
    validate_address(contract_address)
    abi = load_abi_file(abi_file)
    logger.info(f"✅ ABI loaded successfully with {len(abi_functions(abi))} functions.")

    settings = settings or load_settings()
    ledger = ledger or DeploymentLedger(settings.deployments_file)

    probe_contract(contract_address, abi, network_deployed, active_network, w3)

    record = DeploymentRecord(
        network=network_deployed,
        contract_name=contract_name,
        contract_address=contract_address,
        deployment_type="external_abi",
        artifact_path=None,
        abi=abi,
    )
    ledger.write(contract_address, record)
    return _import_summary(record)


def import_using_code(
    contract_address: str,
    contract_name: str,
    source_file: str,
    network_deployed: str,
    *,
    active_network: str | None = None,
    settings: Settings | None = None,
    compiler: Any = None,
    ledger: DeploymentLedger | None = None,
    w3: Web3 | None = None,
) -> dict[str, Any]:
    """
    Record an external contract whose Solidity source is available.

    The project is compiled with ``source_file`` included and the ABI of
    ``contract_name`` from that file is stored. No artifact path is recorded.
    """
    _require(
        CONTRACT_ADDRESS=contract_address,
        CONTRACT_NAME=contract_name,
        SOURCE_FILE=source_file,
        NETWORK_DEPLOYED=network_deployed,
    )
    logger.info(
        f"🔗 Importing external contract '{contract_name}' at address '{contract_address}' "
        f"from network '{network_deployed}' using source code from '{source_file}'"
    )
    validate_address(contract_address)

    settings = settings or load_settings()
    source_path = Path(source_file)
    if not source_path.is_absolute():
        source_path = settings.project_root / source_path
    if not source_path.exists():
        raise ArtifactNotFoundError(f"Source code file not found at: {source_file}")
    if source_path.suffix != ".sol":
        raise ConfigurationError(f"Source file must be a .sol file: {source_file}")

    compiler = compiler or SolidityCompiler(settings)
    ledger = ledger or DeploymentLedger(settings.deployments_file)

    compilation = compiler.compile_project(extra_sources=[source_path])
    source_name = settings.relative(source_path)
    artifact = compilation.get(source_name, contract_name)
    abi = artifact.get("abi")
    if abi is None:
        raise InvalidAbiError("ABI not found in compiled artifact.")

    probe_contract(contract_address, abi, network_deployed, active_network, w3)

    record = DeploymentRecord(
        network=network_deployed,
        contract_name=contract_name,
        contract_address=contract_address,
        deployment_type="external_code",
        artifact_path=None,
        source_path=source_name,
        abi=abi,
    )
    ledger.write(contract_address, record)
    return _import_summary(record)


def add_external_contract(
    contract_address: str,
    contract_name: str,
    abi_file: str,
    *,
    network_name: str | None = None,
    settings: Settings | None = None,
    ledger: DeploymentLedger | None = None,
    w3: Web3 | None = None,
) -> dict[str, Any]:
    """
    Record an external contract and write a stub artifact for it.

    The artifact lands at ``artifacts/contracts/<name>.sol/<name>.json`` with
    empty bytecode so artifact-based tooling can resolve the contract by name.
    """
    _require(address=contract_address, contract_name=contract_name, abi_file=abi_file)
    validate_address(contract_address)
    abi = load_abi_file(abi_file)

    settings = settings or load_settings()
    ledger = ledger or DeploymentLedger(settings.deployments_file)
    network_name = network_name or DEFAULT_NETWORK

    source_name = f"contracts/{contract_name}.sol"
    artifact_file = settings.artifacts_dir / source_name / f"{contract_name}.json"
    artifact_file.parent.mkdir(parents=True, exist_ok=True)
    artifact = {
        "_format": ARTIFACT_FORMAT,
        "contractName": contract_name,
        "sourceName": source_name,
        "abi": abi,
        "bytecode": "0x",
        "deployedBytecode": "0x",
        "linkReferences": {},
        "deployedLinkReferences": {},
    }
    artifact_file.write_text(json.dumps(artifact, indent=2), encoding="utf-8")
    logger.info(f"✅ Local artifact for '{contract_name}' saved to: {settings.relative(artifact_file)}")

    probe_contract(contract_address, abi, network_name, network_name if w3 is None else None, w3)

    record = DeploymentRecord(
        network=network_name,
        contract_name=contract_name,
        contract_address=contract_address,
        deployment_type="external_abi",
        artifact_path=settings.relative(artifact_file),
        abi=abi,
    )
    ledger.write(contract_address, record)
    logger.info(f"✅ Successfully added external contract {contract_name} at {contract_address}")
    return _import_summary(record)


# --------------------------------------------------------------------------- #
# CLI                                                                          #
# --------------------------------------------------------------------------- #


def _base_parser(description: str) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=description)
    parser.add_argument("--network", default=None, help="Network used for the accessibility check (or NETWORK env var)")
    parser.add_argument("--debug", action="store_true", help="Verbose logging")
    return parser


def _run(label: str, debug: bool, fn, *args: Any, **kwargs: Any) -> int:
    log = get_script_logger(debug=debug)
    try:
        result = fn(*args, **kwargs)
    except Exception as e:
        log.error(f"❌ Failed to import contract using {label}: {e}", exc_info=debug)
        return 1
    emit_result(result, DEPLOYMENT_MARKER)
    return 0


def main_abi(argv: list[str] | None = None) -> int:
    load_dotenv()
    parser = _base_parser("Import an external contract using its address and ABI file")
    parser.add_argument("--address", default=None, help="Contract address (or CONTRACT_ADDRESS)")
    parser.add_argument("--name", default=None, help="Local reference name (or CONTRACT_NAME)")
    parser.add_argument("--abi-file", default=None, help="Path to JSON ABI file (or ABI_FILE)")
    parser.add_argument("--network-deployed", default=None, help="Network the contract lives on (or NETWORK_DEPLOYED)")
    args = parser.parse_args(argv)
    return _run(
        "ABI",
        args.debug,
        import_using_abi,
        args.address or os.getenv("CONTRACT_ADDRESS", ""),
        args.name or os.getenv("CONTRACT_NAME", ""),
        args.abi_file or os.getenv("ABI_FILE", ""),
        args.network_deployed or os.getenv("NETWORK_DEPLOYED", ""),
        active_network=resolve_network_name(args.network, required=False),
    )


def main_code(argv: list[str] | None = None) -> int:
    load_dotenv()
    parser = _base_parser("Import an external contract using its address and Solidity source")
    parser.add_argument("--address", default=None, help="Contract address (or CONTRACT_ADDRESS)")
    parser.add_argument("--name", default=None, help="Contract name in the source (or CONTRACT_NAME)")
    parser.add_argument("--source-file", default=None, help="Path to .sol file (or SOURCE_FILE)")
    parser.add_argument("--network-deployed", default=None, help="Network the contract lives on (or NETWORK_DEPLOYED)")
    args = parser.parse_args(argv)
    return _run(
        "source code",
        args.debug,
        import_using_code,
        args.address or os.getenv("CONTRACT_ADDRESS", ""),
        args.name or os.getenv("CONTRACT_NAME", ""),
        args.source_file or os.getenv("SOURCE_FILE", ""),
        args.network_deployed or os.getenv("NETWORK_DEPLOYED", ""),
        active_network=resolve_network_name(args.network, required=False),
    )


def main_external(argv: list[str] | None = None) -> int:
    load_dotenv()
    parser = _base_parser("Add an external contract from an ABI file and write a stub artifact")
    parser.add_argument("address", help="Contract address")
    parser.add_argument("contract_name", help="Contract name")
    parser.add_argument("abi_file", help="Path to JSON ABI file")
    args = parser.parse_args(argv)
    return _run(
        "ABI",
        args.debug,
        add_external_contract,
        args.address,
        args.contract_name,
        args.abi_file,
        network_name=resolve_network_name(args.network, required=False),
    )


if __name__ == "__main__":
    raise SystemExit(main_abi())
