#!/usr/bin/env python3
"""
Compile every Solidity source in the project and write artifacts.

Usage:
    python -m scripts compile [--solc-version 0.8.28] [--optimizer-runs 200] [--source extra.sol ...]

Prints a JSON array of the fully-qualified contract names that were written,
e.g. ``["contracts/Counter.sol:Counter"]``.
"""

from __future__ import annotations

import argparse
import json

from dotenv import load_dotenv

from contract_scripts.config.logging_config import get_script_logger
from contract_scripts.config.settings import load_settings
from contract_scripts.helpers.compiler import SolidityCompiler


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Compile all Solidity contracts into Hardhat-style artifacts",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Compile the contracts directory
  python -m scripts compile

  # Include a source that lives outside the contracts directory
  python -m scripts compile --source external_sources/GovToken.sol
        """,
    )
    parser.add_argument("--solc-version", default=None, help="Override SOLC_VERSION")
    parser.add_argument("--optimizer-runs", type=int, default=None, help="Override SOLC_OPTIMIZER_RUNS")
    parser.add_argument("--source", action="append", default=[], help="Extra .sol file to include (repeatable)")
    parser.add_argument("--debug", action="store_true", help="Verbose logging")
    return parser


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)
    log = get_script_logger(debug=args.debug)

    try:
        settings = load_settings()
        if args.solc_version:
            settings.solc_version = args.solc_version
        if args.optimizer_runs is not None:
            settings.optimizer_runs = args.optimizer_runs
        result = SolidityCompiler(settings).compile_project(extra_sources=args.source)
    except Exception as e:
        log.error(f"❌ Compilation failed: {e}", exc_info=args.debug)
        return 1

    for fqn in result.fully_qualified_names():
        log.info(f"  {fqn} -> {settings.relative(result.artifact_paths[fqn])}")
    print(json.dumps(result.fully_qualified_names(), indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
