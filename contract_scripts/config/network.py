"""
Network configuration for the contract scripts.

Plays the role of the project's network table: every script is run against a
named network whose RPC URL, optional chain id and signer keys come from the
environment.

- ``localhost`` is always defined; its RPC URL is ``LOCAL_RPC_URL``
  (default ``http://127.0.0.1:8545``).
- Any other network ``<name>`` is defined by ``<NAME>_RPC_URL`` and may set
  ``<NAME>_CHAIN_ID`` and ``<NAME>_PRIVATE_KEY``.
- ``PRIVATE_KEY`` (comma separated for several accounts) is the default
  signer list for every network. When no key is configured the node's own
  unlocked accounts are used.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field

from contract_scripts.exceptions import ConfigurationError

DEFAULT_NETWORK = "localhost"
DEFAULT_LOCAL_RPC_URL = "http://127.0.0.1:8545"

# Built-in networks; values may be overridden through the environment.
NETWORKS: dict[str, dict[str, object]] = {
    "localhost": {
        "rpc_env": "LOCAL_RPC_URL",
        "rpc_url": DEFAULT_LOCAL_RPC_URL,
        "chain_id": None,
    },
}


@dataclass
class NetworkConfig:
    """Connection settings for one named network."""

    name: str
    rpc_url: str
    chain_id: int | None = None
    private_keys: list[str] = field(default_factory=list)


def _env_prefix(name: str) -> str:
    return re.sub(r"[^A-Za-z0-9]", "_", name).upper()


def _split_keys(raw: str | None) -> list[str]:
    if not raw:
        return []
    return [k.strip() for k in raw.split(",") if k.strip()]


def get_network_config(name: str) -> NetworkConfig:
    """Get the configuration for a named network.

    Args:
        name: Network name, e.g. ``localhost`` or ``sepolia``.

    Returns:
        NetworkConfig for the network.

    Raises:
        ConfigurationError: If the network has no RPC URL configured.
    """
    if not name:
        raise ConfigurationError("Network name is empty")

    prefix = _env_prefix(name)
    builtin = NETWORKS.get(name.lower())

    rpc_url = os.getenv(f"{prefix}_RPC_URL")
    if not rpc_url and builtin is not None:
        rpc_url = os.getenv(str(builtin["rpc_env"])) or str(builtin["rpc_url"])
    if not rpc_url:
        raise ConfigurationError(
            f"Network '{name}' is not configured. Set {prefix}_RPC_URL in your environment."
        )

    chain_id: int | None = None
    raw_chain_id = os.getenv(f"{prefix}_CHAIN_ID")
    if raw_chain_id:
        try:
            chain_id = int(raw_chain_id)
        except ValueError:
            raise ConfigurationError(f"{prefix}_CHAIN_ID must be an integer, got {raw_chain_id!r}")
    elif builtin is not None:
        chain_id = builtin.get("chain_id")  # type: ignore[assignment]

    keys = _split_keys(os.getenv(f"{prefix}_PRIVATE_KEY")) or _split_keys(os.getenv("PRIVATE_KEY"))

    return NetworkConfig(name=name, rpc_url=rpc_url, chain_id=chain_id, private_keys=keys)


def is_network_configured(name: str | None) -> bool:
    """Return True when ``name`` resolves to a network with an RPC URL."""
    if not name:
        return False
    try:
        get_network_config(name)
    except ConfigurationError:
        return False
    return True


def resolve_network_name(cli_value: str | None = None, *, required: bool = True) -> str | None:
    """Pick the active network from ``--network`` or the ``NETWORK`` env var.

    Raises:
        ConfigurationError: If ``required`` and no network was selected.
    """
    name = cli_value or os.getenv("NETWORK")
    if not name and required:
        raise ConfigurationError("Network not specified. Use --network <networkName> or set NETWORK")
    return name or None
