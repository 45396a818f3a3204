#!/usr/bin/env python3
"""
Entry point for running scripts as a module.

Usage:
    python -m scripts                          # Show available commands
    python -m scripts deploy --network localhost
    python -m scripts interact --network localhost <address> <functionName> [args...]
"""
import sys


AVAILABLE_COMMANDS = {
    "deploy": "Compile and deploy a contract, recording it in deployments.json",
    "interact": "Call a function on a recorded contract",
    "add-using-abi": "Register an external contract from its ABI file",
    "add-using-code": "Register an external contract from its Solidity source",
    "add-external": "Register an external contract and write a stub artifact",
    "compile": "Compile all Solidity contracts",
}


def main(argv=None):
    """Main entry point for scripts module."""
    argv = list(sys.argv[1:] if argv is None else argv)

    if not argv:
        print("Usage: python -m scripts <command> [options]")
        print("\nAvailable commands:")
        for cmd, desc in AVAILABLE_COMMANDS.items():
            print(f"  {cmd:20} - {desc}")
        print("\nExample: python -m scripts deploy --network localhost")
        return 0

    command, rest = argv[0], argv[1:]

    if command == "deploy":
        from contract_scripts.setup.deploy import main as run
    elif command == "interact":
        from contract_scripts.commands.interact import main as run
    elif command == "add-using-abi":
        from contract_scripts.setup.import_contract import main_abi as run
    elif command == "add-using-code":
        from contract_scripts.setup.import_contract import main_code as run
    elif command == "add-external":
        from contract_scripts.setup.import_contract import main_external as run
    elif command == "compile":
        from contract_scripts.setup.compile import main as run
    else:
        print(f"Unknown command: {command}")
        print("Run 'python -m scripts' to see available commands.")
        return 1

    return run(rest)


if __name__ == "__main__":
    sys.exit(main())
