"""
Deployment ledger.

``deployments.json`` maps lower-cased contract addresses to deployment
records::

    {
      "0xabc...": {
        "network": "localhost",
        "contractName": "Counter",
        "contractAddress": "0xabc...",
        "timestamp": "2025-01-01T00:00:00.000Z",
        "deploymentType": "local",
        "artifactPath": "artifacts/contracts/Counter.sol/Counter.json",
        "sourcePath": "contracts/Counter.sol",
        "abi": [...],
        "transactionHash": "0x..."
      }
    }

The address is the only key. Writing an address replaces its record as a
whole; records are never removed by the scripts.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from contract_scripts.exceptions import LedgerError

logger = logging.getLogger(__name__)

DEPLOYMENT_TYPES = ("local", "external_abi", "external_code")

# One lock per ledger file keeps writers in this process from interleaving
_locks: dict[str, threading.Lock] = {}
_locks_guard = threading.Lock()


def _lock_for(path: Path) -> threading.Lock:
    key = str(path.resolve())
    with _locks_guard:
        lock = _locks.get(key)
        if lock is None:
            lock = _locks[key] = threading.Lock()
        return lock


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a ``Z`` suffix."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass
class DeploymentRecord:
    network: str
    contract_name: str
    contract_address: str
    deployment_type: str
    timestamp: str | None = None
    artifact_path: str | None = None
    source_path: str | None = None
    abi: list[dict[str, Any]] | None = None
    transaction_hash: str | None = None

    def __post_init__(self) -> None:
        if self.deployment_type not in DEPLOYMENT_TYPES:
            raise ValueError(
                f"deployment_type must be one of {DEPLOYMENT_TYPES}, got {self.deployment_type!r}"
            )
        self.contract_address = self.contract_address.lower()
        if self.timestamp is None:
            self.timestamp = utc_timestamp()

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "network": self.network,
            "contractName": self.contract_name,
            "contractAddress": self.contract_address,
            "timestamp": self.timestamp,
            "deploymentType": self.deployment_type,
            "artifactPath": self.artifact_path,
        }
        if self.source_path is not None:
            data["sourcePath"] = self.source_path
        if self.abi is not None:
            data["abi"] = self.abi
        if self.transaction_hash is not None:
            data["transactionHash"] = self.transaction_hash
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> DeploymentRecord:
        """Rebuild a record read from the ledger.

        Raises:
            LedgerError: If a required field is missing or invalid.
        """
        try:
            return cls(
                network=data["network"],
                contract_name=data["contractName"],
                contract_address=data["contractAddress"],
                deployment_type=data["deploymentType"],
                timestamp=data.get("timestamp"),
                artifact_path=data.get("artifactPath"),
                source_path=data.get("sourcePath"),
                abi=data.get("abi"),
                transaction_hash=data.get("transactionHash"),
            )
        except KeyError as e:
            raise LedgerError(f"Ledger record is missing field {e}") from e
        except ValueError as e:
            raise LedgerError(f"Invalid ledger record: {e}") from e


class DeploymentLedger:
    """Read/write access to a ``deployments.json`` file."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def read(self) -> dict[str, dict[str, Any]]:
        """Return the whole address -> record mapping.

        A missing file yields an empty mapping.

        Raises:
            LedgerError: If the file exists but does not hold a JSON object.
        """
        if not self.path.exists():
            return {}
        raw = self.path.read_text(encoding="utf-8")
        if not raw.strip():
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise LedgerError(f"Ledger file {self.path} is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise LedgerError(f"Ledger file {self.path} must contain a JSON object")
        return data

    def get(self, address: str) -> dict[str, Any] | None:
        """Return the record stored for ``address`` (any case), if any."""
        return self.read().get(address.lower())

    def write(self, address: str, record: DeploymentRecord | Mapping[str, Any]) -> dict[str, Any]:
        """Store ``record`` under the lower-cased ``address`` and persist.

        Any record previously stored at that address is replaced entirely.

        Returns:
            The record as written.
        """
        entry = record.to_dict() if isinstance(record, DeploymentRecord) else dict(record)
        key = address.lower()
        with _lock_for(self.path):
            deployments = self.read()
            deployments[key] = entry
            self._persist(deployments)
        logger.info(f"📝 Deployment info saved to {self.path}")
        return entry

    def _persist(self, deployments: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=str(self.path.parent)
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(deployments, f, indent=2, ensure_ascii=False)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
