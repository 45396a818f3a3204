"""
Web3 setup helper - connects to a configured network and resolves signers.

Public API
----------
get_web3(network)
    Return a Web3 instance connected to the network's RPC URL.
get_signers(w3, network) / first_signer(w3, network)
    Accounts that can send transactions: configured private keys first,
    falling back to the node's unlocked accounts.
send_transaction(w3, signer, call, timeout)
    Build, sign, send and wait for a contract call or constructor.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import Web3

from contract_scripts.config.network import NetworkConfig
from contract_scripts.exceptions import ConfigurationError, TransactionFailedError

try:
    from web3.middleware import ExtraDataToPOAMiddleware as _poa_middleware
except ImportError:  # web3 < 7
    from web3.middleware import geth_poa_middleware as _poa_middleware

__all__ = ["Signer", "get_web3", "get_signers", "first_signer", "send_transaction", "to_hex"]

logger = logging.getLogger(__name__)


@dataclass
class Signer:
    """A sending account: a local key, or an address unlocked on the node."""

    address: str
    account: Optional[LocalAccount] = None

    @property
    def is_local(self) -> bool:
        return self.account is not None


def to_hex(value: Any) -> str:
    """Hex string with ``0x`` prefix for bytes-like values and hashes."""
    if isinstance(value, str):
        return value if value.startswith("0x") else "0x" + value
    return Web3.to_hex(value)


def get_web3(network: NetworkConfig) -> Web3:
    """
    Get a Web3 instance connected to the network's RPC URL.

    Args:
        network: Resolved network configuration

    Returns:
        Web3 instance

    Raises:
        ConfigurationError: If the node reports a chain id other than the
            configured one.
    """
    w3 = Web3(Web3.HTTPProvider(network.rpc_url))
    w3.middleware_onion.inject(_poa_middleware, layer=0)

    if network.chain_id is not None:
        actual_chain_id = w3.eth.chain_id
        if actual_chain_id != network.chain_id:
            raise ConfigurationError(
                f"Chain ID mismatch on '{network.name}': expected {network.chain_id}, got {actual_chain_id}"
            )
    return w3


def get_signers(w3: Web3, network: NetworkConfig) -> list[Signer]:
    if network.private_keys:
        signers = []
        for key in network.private_keys:
            acct: LocalAccount = Account.from_key(key)
            signers.append(Signer(address=acct.address, account=acct))
        return signers
    return [Signer(address=Web3.to_checksum_address(a)) for a in w3.eth.accounts]


def first_signer(w3: Web3, network: NetworkConfig) -> Signer:
    """Return the first available signer for the network.

    Raises:
        ConfigurationError: If neither PRIVATE_KEY nor node accounts exist.
    """
    signers = get_signers(w3, network)
    if not signers:
        raise ConfigurationError(
            f"No accounts available on '{network.name}'. Set PRIVATE_KEY in your environment."
        )
    return signers[0]


def send_transaction(w3: Web3, signer: Signer, call: Any, timeout: int = 120) -> tuple[str, Any]:
    """
    Send a contract function call or constructor and wait for its receipt.

    Args:
        w3: Web3 instance
        signer: Sending account
        call: A bound ``ContractFunction`` or ``ContractConstructor``
        timeout: Seconds to wait for the receipt

    Returns:
        (transaction hash hex, receipt)

    Raises:
        TransactionFailedError: If the receipt status is not 1.
    """
    if signer.is_local:
        tx = call.build_transaction({
            "from": signer.address,
            "nonce": w3.eth.get_transaction_count(signer.address, "pending"),
            "chainId": w3.eth.chain_id,
        })
        signed = signer.account.sign_transaction(tx)
        raw = getattr(signed, "raw_transaction", None) or getattr(signed, "rawTransaction", None)
        tx_hash = w3.eth.send_raw_transaction(raw)
    else:
        tx_hash = call.transact({"from": signer.address})

    tx_hash_hex = to_hex(tx_hash)
    logger.info(f"⏳ Transaction sent. Hash: {tx_hash_hex}")
    receipt = w3.eth.wait_for_transaction_receipt(tx_hash, timeout=timeout)
    if int(receipt["status"]) != 1:
        raise TransactionFailedError(
            f"Transaction {tx_hash_hex} failed in block {receipt['blockNumber']} (status 0)"
        )
    return tx_hash_hex, receipt
