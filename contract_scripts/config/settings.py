"""
Project settings for the contract scripts.

Values are read from the environment (a local ``.env`` is loaded by each CLI
through python-dotenv before settings are built). Paths are resolved against
``PROJECT_ROOT``, which defaults to the current working directory, the same
way the deploy scripts always ran from the project root.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from contract_scripts.exceptions import ConfigurationError

# Compiler defaults (solidity 0.8.28, optimizer on, 200 runs)
DEFAULT_SOLC_VERSION = "0.8.28"
DEFAULT_OPTIMIZER_RUNS = 200
DEFAULT_RECEIPT_TIMEOUT = 120  # seconds

DEPLOYMENTS_FILE_NAME = "deployments.json"


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}")


def _env_list(name: str) -> list[str]:
    raw = os.getenv(name, "")
    return [item.strip() for item in raw.split(",") if item.strip()]


@dataclass
class Settings:
    """Resolved project layout and compiler configuration."""

    project_root: Path
    contracts_dir: Path
    artifacts_dir: Path
    deployments_file: Path
    solc_version: str = DEFAULT_SOLC_VERSION
    optimizer_runs: int = DEFAULT_OPTIMIZER_RUNS
    evm_version: str | None = None
    remappings: list[str] = field(default_factory=list)
    receipt_timeout: int = DEFAULT_RECEIPT_TIMEOUT

    def relative(self, path: str | Path) -> str:
        """Return ``path`` relative to the project root with forward slashes.

        Paths outside the project root are returned absolute.
        """
        p = Path(path)
        if not p.is_absolute():
            p = self.project_root / p
        p = p.resolve()
        try:
            return p.relative_to(self.project_root.resolve()).as_posix()
        except ValueError:
            return p.as_posix()

    def effective_remappings(self) -> list[str]:
        remappings = list(self.remappings)
        oz_dir = self.project_root / "node_modules" / "@openzeppelin"
        if oz_dir.is_dir() and not any(r.startswith("@openzeppelin/") for r in remappings):
            remappings.append("@openzeppelin/=node_modules/@openzeppelin/")
        return remappings


def load_settings(project_root: str | Path | None = None) -> Settings:
    """Build :class:`Settings` from environment variables.

    Args:
        project_root: Optional explicit root. Falls back to ``PROJECT_ROOT``
            and then to the current working directory.

    Returns:
        Settings instance
    """
    root = Path(project_root or os.getenv("PROJECT_ROOT") or Path.cwd())

    def _resolve(env_name: str, default: str) -> Path:
        p = Path(os.getenv(env_name) or default)
        return p if p.is_absolute() else root / p

    return Settings(
        project_root=root,
        contracts_dir=_resolve("CONTRACTS_DIR", "contracts"),
        artifacts_dir=_resolve("ARTIFACTS_DIR", "artifacts"),
        deployments_file=_resolve("DEPLOYMENTS_FILE", DEPLOYMENTS_FILE_NAME),
        solc_version=os.getenv("SOLC_VERSION") or DEFAULT_SOLC_VERSION,
        optimizer_runs=_env_int("SOLC_OPTIMIZER_RUNS", DEFAULT_OPTIMIZER_RUNS),
        evm_version=os.getenv("SOLC_EVM_VERSION") or None,
        remappings=_env_list("SOLC_REMAPPINGS"),
        receipt_timeout=_env_int("TX_RECEIPT_TIMEOUT", DEFAULT_RECEIPT_TIMEOUT),
    )
