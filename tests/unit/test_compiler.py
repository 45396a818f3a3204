"""Unit tests for the project compiler (solc itself is stubbed out)."""

import json

import pytest
import solcx
from solcx.exceptions import SolcError

from contract_scripts.exceptions import ArtifactNotFoundError, CompilationError
from contract_scripts.helpers.compiler import ARTIFACT_FORMAT, SolidityCompiler, load_artifact

COUNTER_SOURCE = "// SPDX-License-Identifier: MIT\npragma solidity ^0.8.0;\ncontract Counter {}\n"


def solc_output(source_name="contracts/Counter.sol", contract="Counter", errors=()):
    return {
        "errors": list(errors),
        "contracts": {
            source_name: {
                contract: {
                    "abi": [],
                    "evm": {
                        "bytecode": {"object": "6080", "linkReferences": {}},
                        "deployedBytecode": {"object": "6080", "linkReferences": {}},
                    },
                }
            }
        },
    }


@pytest.fixture
def compiler(settings, monkeypatch):
    (settings.contracts_dir / "Counter.sol").write_text(COUNTER_SOURCE)
    compiler = SolidityCompiler(settings)
    monkeypatch.setattr(compiler, "ensure_solc", lambda: settings.solc_version)
    return compiler


class TestSolcInput:
    def test_collects_project_sources(self, compiler):
        (compiler.settings.contracts_dir / "lib").mkdir()
        (compiler.settings.contracts_dir / "lib" / "Math.sol").write_text("library Math {}")
        assert sorted(compiler.collect_sources()) == ["contracts/Counter.sol", "contracts/lib/Math.sol"]

    def test_extra_source_included_once(self, compiler):
        sources = compiler.collect_sources(["contracts/Counter.sol"])
        assert list(sources) == ["contracts/Counter.sol"]

    def test_missing_extra_source(self, compiler):
        with pytest.raises(ArtifactNotFoundError):
            compiler.collect_sources(["contracts/Missing.sol"])

    def test_optimizer_settings(self, compiler):
        data = compiler.build_input(compiler.collect_sources())
        assert data["language"] == "Solidity"
        assert data["settings"]["optimizer"] == {"enabled": True, "runs": 200}
        assert "evmVersion" not in data["settings"]

    def test_artifact_path_inside_project(self, compiler):
        path = compiler.artifact_path("contracts/Counter.sol", "Counter")
        assert path == compiler.settings.artifacts_dir / "contracts" / "Counter.sol" / "Counter.json"

    def test_artifact_path_outside_project(self, compiler, tmp_path):
        path = compiler.artifact_path(str(tmp_path / "vendor" / "Token.sol"), "Token")
        assert path == compiler.settings.artifacts_dir / "external" / "Token.sol" / "Token.json"


class TestCompileProject:
    def test_writes_artifacts(self, compiler, monkeypatch):
        captured = {}

        def fake_compile_standard(input_data, **kwargs):
            captured.update(kwargs)
            return solc_output()

        monkeypatch.setattr(solcx, "compile_standard", fake_compile_standard)
        result = compiler.compile_project()

        assert result.fully_qualified_names() == ["contracts/Counter.sol:Counter"]
        artifact = result.get("contracts/Counter.sol", "Counter")
        assert artifact["_format"] == ARTIFACT_FORMAT
        assert artifact["bytecode"] == "0x6080"
        on_disk = load_artifact(result.artifact_paths["contracts/Counter.sol:Counter"])
        assert on_disk == artifact
        assert captured["solc_version"] == compiler.settings.solc_version

    def test_solc_errors_raise(self, compiler, monkeypatch):
        error = {"severity": "error", "formattedMessage": "ParserError: Expected ';'"}
        monkeypatch.setattr(solcx, "compile_standard", lambda *a, **k: solc_output(errors=[error]))
        with pytest.raises(CompilationError, match="ParserError"):
            compiler.compile_project()

    def test_warnings_do_not_fail(self, compiler, monkeypatch):
        warning = {"severity": "warning", "formattedMessage": "Warning: unused variable"}
        monkeypatch.setattr(solcx, "compile_standard", lambda *a, **k: solc_output(errors=[warning]))
        assert compiler.compile_project().fully_qualified_names() == ["contracts/Counter.sol:Counter"]

    def test_solc_failure_wrapped(self, compiler, monkeypatch):
        def boom(*args, **kwargs):
            raise SolcError("solc crashed", command=["solc"], return_code=1, stdin_data="", stdout_data="", stderr_data="")

        monkeypatch.setattr(solcx, "compile_standard", boom)
        with pytest.raises(CompilationError, match="Compilation failed"):
            compiler.compile_project()

    def test_no_sources(self, settings):
        with pytest.raises(CompilationError, match="No Solidity sources"):
            SolidityCompiler(settings).compile_project()

    def test_load_missing_artifact(self, tmp_path):
        with pytest.raises(ArtifactNotFoundError):
            load_artifact(tmp_path / "nope.json")

    def test_artifact_json_is_indented(self, compiler, monkeypatch):
        monkeypatch.setattr(solcx, "compile_standard", lambda *a, **k: solc_output())
        result = compiler.compile_project()
        text = result.artifact_paths["contracts/Counter.sol:Counter"].read_text()
        assert json.loads(text)["contractName"] == "Counter"
        assert text.startswith('{\n  "_format"')
