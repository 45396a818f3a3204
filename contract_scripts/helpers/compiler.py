"""
Solidity project compiler.

Compiles every ``.sol`` file under the contracts directory (plus any extra
source files passed in) in one standard-JSON run through py-solc-x and writes
one Hardhat-style artifact per contract::

    artifacts/<sourceName>/<ContractName>.json

Contracts are addressed by fully-qualified name ``<sourceName>:<ContractName>``
where ``sourceName`` is the project-relative path with forward slashes, e.g.
``contracts/Counter.sol:Counter``.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import solcx
from solcx.exceptions import SolcError

from contract_scripts.config.settings import Settings
from contract_scripts.exceptions import ArtifactNotFoundError, CompilationError

logger = logging.getLogger(__name__)

ARTIFACT_FORMAT = "hh-sol-artifact-1"

OUTPUT_SELECTION = [
    "abi",
    "evm.bytecode.object",
    "evm.bytecode.linkReferences",
    "evm.deployedBytecode.object",
    "evm.deployedBytecode.linkReferences",
]


def fully_qualified_name(source_name: str, contract_name: str) -> str:
    return f"{source_name}:{contract_name}"


def _hex(obj: str | None) -> str:
    if not obj:
        return "0x"
    return obj if obj.startswith("0x") else "0x" + obj


def artifact_file(settings: Settings, source_name: str, contract_name: str) -> Path:
    """Where the artifact for ``source_name:contract_name`` is written."""
    if Path(source_name).is_absolute():
        # Sources outside the project land under artifacts/external/
        return settings.artifacts_dir / "external" / Path(source_name).name / f"{contract_name}.json"
    return settings.artifacts_dir / source_name / f"{contract_name}.json"


def load_artifact(path: str | Path) -> dict[str, Any]:
    """Read an artifact JSON file written by :class:`SolidityCompiler`."""
    p = Path(path)
    if not p.exists():
        raise ArtifactNotFoundError(f"Artifact file not found at {p}")
    with open(p, encoding="utf-8") as f:
        return json.load(f)


@dataclass
class CompilationResult:
    """Artifacts of one compiler run, keyed by fully-qualified name."""

    artifacts: dict[str, dict[str, Any]] = field(default_factory=dict)
    artifact_paths: dict[str, Path] = field(default_factory=dict)

    def fully_qualified_names(self) -> list[str]:
        return sorted(self.artifacts)

    def get(self, source_name: str, contract_name: str) -> dict[str, Any]:
        """Return the artifact for ``source_name:contract_name``.

        Raises:
            ArtifactNotFoundError: If the contract was not produced by this run.
        """
        fqn = fully_qualified_name(source_name, contract_name)
        artifact = self.artifacts.get(fqn)
        if artifact is None:
            in_source = sorted(
                a["contractName"] for a in self.artifacts.values() if a["sourceName"] == source_name
            )
            hint = f" Contracts in {source_name}: {', '.join(in_source)}" if in_source else ""
            raise ArtifactNotFoundError(f"Artifact for contract '{fqn}' not found.{hint}")
        return artifact


class SolidityCompiler:
    """Compile the project's Solidity sources with a pinned solc version"""

    def __init__(self, settings: Settings):
        self.settings = settings

    def ensure_solc(self) -> str:
        """Install the configured solc version if it is missing."""
        version = self.settings.solc_version
        installed = {str(v) for v in solcx.get_installed_solc_versions()}
        if version not in installed:
            logger.info(f"⬇️  Installing solc {version}...")
            solcx.install_solc(version)
        return version

    def source_name(self, path: str | Path) -> str:
        return self.settings.relative(path)

    def collect_sources(self, extra_sources: Iterable[str | Path] = ()) -> dict[str, dict[str, str]]:
        files: list[Path] = []
        contracts_dir = self.settings.contracts_dir
        if contracts_dir.is_dir():
            files.extend(sorted(contracts_dir.rglob("*.sol")))
        for extra in extra_sources:
            p = Path(extra)
            if not p.is_absolute():
                p = self.settings.project_root / p
            files.append(p)

        sources: dict[str, dict[str, str]] = {}
        for p in files:
            if not p.exists():
                raise ArtifactNotFoundError(f"Source file not found at: {p}")
            name = self.source_name(p)
            if name not in sources:
                sources[name] = {"content": p.read_text(encoding="utf-8")}
        return sources

    def build_input(self, sources: dict[str, dict[str, str]]) -> dict[str, Any]:
        settings: dict[str, Any] = {
            "optimizer": {"enabled": True, "runs": self.settings.optimizer_runs},
            "outputSelection": {"*": {"*": OUTPUT_SELECTION}},
        }
        if self.settings.evm_version:
            settings["evmVersion"] = self.settings.evm_version
        remappings = self.settings.effective_remappings()
        if remappings:
            settings["remappings"] = remappings
        return {"language": "Solidity", "sources": sources, "settings": settings}

    def artifact_path(self, source_name: str, contract_name: str) -> Path:
        return artifact_file(self.settings, source_name, contract_name)

    def compile_project(self, extra_sources: Iterable[str | Path] = ()) -> CompilationResult:
        """
        Compile all project sources and write artifacts.

        Args:
            extra_sources: Additional .sol files to include in the run

        Returns:
            CompilationResult with every compiled contract

        Raises:
            CompilationError: If solc reports errors or nothing was compiled
        """
        sources = self.collect_sources(extra_sources)
        if not sources:
            raise CompilationError(f"No Solidity sources found under {self.settings.contracts_dir}")

        version = self.ensure_solc()
        logger.info(f"🔨 Compiling {len(sources)} source file(s) with solc {version}...")

        root = self.settings.project_root.resolve()
        allow_paths = [str(root)]
        node_modules = root / "node_modules"
        if node_modules.exists():
            allow_paths.append(str(node_modules))

        try:
            output = solcx.compile_standard(
                self.build_input(sources),
                base_path=str(root),
                allow_paths=",".join(allow_paths),
                solc_version=version,
            )
        except SolcError as e:
            raise CompilationError(f"Compilation failed:\n{e}") from e

        errors = [err for err in output.get("errors", []) if err.get("severity") == "error"]
        if errors:
            messages = "\n".join(err.get("formattedMessage", err.get("message", "")) for err in errors)
            raise CompilationError(f"Compilation failed:\n{messages}")
        for warning in output.get("errors", []):
            logger.debug(warning.get("formattedMessage", warning.get("message", "")))

        result = CompilationResult()
        for source_name, contracts in output.get("contracts", {}).items():
            for contract_name, data in contracts.items():
                evm = data.get("evm", {})
                bytecode = evm.get("bytecode", {})
                deployed = evm.get("deployedBytecode", {})
                artifact = {
                    "_format": ARTIFACT_FORMAT,
                    "contractName": contract_name,
                    "sourceName": source_name,
                    "abi": data.get("abi", []),
                    "bytecode": _hex(bytecode.get("object")),
                    "deployedBytecode": _hex(deployed.get("object")),
                    "linkReferences": bytecode.get("linkReferences", {}),
                    "deployedLinkReferences": deployed.get("linkReferences", {}),
                }
                path = self.artifact_path(source_name, contract_name)
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_text(json.dumps(artifact, indent=2), encoding="utf-8")

                fqn = fully_qualified_name(source_name, contract_name)
                result.artifacts[fqn] = artifact
                result.artifact_paths[fqn] = path

        logger.info(f"✅ Compiled {len(result.artifacts)} contract(s).")
        return result
