#!/usr/bin/env python3
"""
Call a function on a contract recorded in deployments.json.

Usage (environment variables):
    CONTRACT_ADDRESS=0x... CONTRACT_FUNCTION=balanceOf \\
    CONTRACT_ARGS='["0xabc..."]' python -m scripts interact --network localhost

Usage (positional):
    python -m scripts interact --network localhost <address> <functionName> [args...]

An overloaded function is selected by its full signature, e.g.
``"transfer(address,uint256)"``.

view/pure functions are called without a transaction. Anything else is sent
from the first configured signer and its receipt logs are decoded against the
contract's ABI events. A single compact JSON object is printed after the
interaction marker, including on failure (``success: false``).
"""

from __future__ import annotations

import argparse
import logging
import os
from typing import Any, Sequence

from dotenv import load_dotenv
from web3 import Web3

from contract_scripts.config.logging_config import get_script_logger
from contract_scripts.config.network import NetworkConfig, get_network_config, resolve_network_name
from contract_scripts.config.settings import Settings, load_settings
from contract_scripts.exceptions import ConfigurationError, DeploymentNotFoundError, InvalidAbiError
from contract_scripts.helpers.abi_utils import (
    find_function,
    format_call_result,
    function_signature,
    is_read_only,
    parse_cli_args,
    parse_json_args,
    parse_receipt_logs,
    validate_address,
)
from contract_scripts.helpers.compiler import load_artifact
from contract_scripts.helpers.output import INTERACTION_MARKER, emit_result
from contract_scripts.helpers.web3_setup import first_signer, get_web3, send_transaction
from contract_scripts.ledger import DeploymentLedger, DeploymentRecord, utc_timestamp

logger = logging.getLogger(__name__)


def _record_abi(record: DeploymentRecord, settings: Settings) -> list[dict[str, Any]]:
    if record.abi is not None:
        return record.abi
    # records written without an inline ABI still point at their artifact
    if record.artifact_path:
        return load_artifact(settings.project_root / record.artifact_path)["abi"]
    raise InvalidAbiError(f"No ABI stored for contract at {record.contract_address}")


def run_interact(
    contract_address: str,
    function_name: str,
    network_name: str,
    *,
    raw_args: str | None = None,
    tokens: Sequence[str] | None = None,
    settings: Settings | None = None,
    network: NetworkConfig | None = None,
    w3: Web3 | None = None,
    ledger: DeploymentLedger | None = None,
) -> dict[str, Any]:
    """
    Invoke ``function_name`` on the recorded contract at ``contract_address``.

    Arguments come either from ``raw_args`` (a JSON array) or from
    ``tokens`` (command-line strings); they are checked against the ABI
    before any network call.

    Returns:
        The success payload

    Raises:
        DeploymentNotFoundError: Address not in the ledger
        LedgerError: The ledger record is malformed
        FunctionNotFoundError: Unknown or ambiguous function
        ArgumentError: Arguments do not match the declared inputs
        TransactionFailedError: Transaction reverted (status 0)
    """
    validate_address(contract_address)
    settings = settings or load_settings()
    ledger = ledger or DeploymentLedger(settings.deployments_file)

    logger.info(f"🔄 Interacting with contract at {contract_address} on network '{network_name}'")
    entry = ledger.get(contract_address)
    if entry is None:
        raise DeploymentNotFoundError(f"Contract at address {contract_address} not found in deployments.json")
    record = DeploymentRecord.from_dict(entry)

    if record.network != network_name:
        logger.warning(
            f"⚠️ Warning: Contract was deployed to '{record.network}' but you are interacting on "
            f"'{network_name}'. Make sure this is intended."
        )

    abi = _record_abi(record, settings)
    fn_abi = find_function(abi, function_name)
    inputs = fn_abi.get("inputs", [])
    if tokens is not None:
        args = parse_cli_args(tokens, inputs)
    else:
        args = parse_json_args(raw_args, inputs)

    if w3 is None:
        network = network or get_network_config(network_name)
        w3 = get_web3(network)
    if network is None:
        network = NetworkConfig(name=network_name, rpc_url="")

    contract = w3.eth.contract(address=Web3.to_checksum_address(contract_address), abi=abi)
    bound = contract.get_function_by_signature(function_signature(fn_abi))(*args)
    logger.info(f"📞 Calling {function_signature(fn_abi)} on {record.contract_name}")

    payload: dict[str, Any] = {
        "success": True,
        "contractAddress": contract_address.lower(),
        "functionName": fn_abi["name"],
        "network": network_name,
        "timestamp": utc_timestamp(),
    }

    if is_read_only(fn_abi):
        result = format_call_result(bound.call(), fn_abi.get("outputs", []))
        logger.info(f"✅ Result: {result}")
        payload["functionType"] = "view"
        payload["result"] = result
        return payload

    signer = first_signer(w3, network)
    logger.info(f"👤 Sending transaction from {signer.address}")
    tx_hash, receipt = send_transaction(w3, signer, bound, timeout=settings.receipt_timeout)
    logger.info(f"✅ Transaction confirmed in block {receipt['blockNumber']} (gas used: {receipt['gasUsed']})")

    logs = parse_receipt_logs(contract, receipt)
    payload["functionType"] = "transaction"
    payload["transactionHash"] = tx_hash
    payload["gasUsed"] = str(receipt["gasUsed"])
    payload["blockNumber"] = receipt["blockNumber"]
    if logs:
        payload["logs"] = logs
    payload["signerAddress"] = signer.address
    return payload


def error_payload(contract_address: str, function_name: str, network_name: str | None, error: Exception) -> dict[str, Any]:
    return {
        "success": False,
        "contractAddress": contract_address.lower(),
        "functionName": function_name,
        "network": network_name,
        "timestamp": utc_timestamp(),
        "functionType": "view",
        "error": str(error),
    }


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Call a function on a contract recorded in deployments.json")
    parser.add_argument("--network", default=None, help="Network to use (or NETWORK env var)")
    parser.add_argument("--debug", action="store_true", help="Verbose logging")
    parser.add_argument("address", nargs="?", default=None, help="Contract address (or CONTRACT_ADDRESS)")
    parser.add_argument("function", nargs="?", default=None, help="Function name or signature (or CONTRACT_FUNCTION)")
    parser.add_argument("args", nargs="*", help="Function arguments (otherwise CONTRACT_ARGS as a JSON array)")
    return parser


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)
    log = get_script_logger(debug=args.debug)

    positional = args.address is not None
    contract_address = args.address or os.getenv("CONTRACT_ADDRESS", "")
    function_name = args.function or os.getenv("CONTRACT_FUNCTION", "")
    network_name = args.network or os.getenv("NETWORK")

    try:
        if not contract_address or not function_name:
            raise ConfigurationError(
                "CONTRACT_ADDRESS and CONTRACT_FUNCTION are required "
                "(or pass <address> <functionName> [args...])"
            )
        network_name = resolve_network_name(args.network)
        result = run_interact(
            contract_address,
            function_name,
            network_name,
            raw_args=None if positional else os.getenv("CONTRACT_ARGS"),
            tokens=args.args if positional else None,
        )
    except Exception as e:
        log.error(f"❌ Interaction failed: {e}", exc_info=args.debug)
        emit_result(error_payload(contract_address, function_name, network_name, e), INTERACTION_MARKER, compact=True)
        return 1

    emit_result(result, INTERACTION_MARKER, compact=True)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
