"""Exception classes for the contract deployment and interaction scripts."""


class ContractScriptError(Exception):
    """Base exception for all script failures."""

    pass


class ConfigurationError(ContractScriptError, ValueError):
    """Raised when a required parameter, env var or network setting is missing."""

    pass


class InvalidAddressError(ContractScriptError, ValueError):
    """Raised when an address is not a valid 20-byte hex address."""

    pass


class InvalidAbiError(ContractScriptError, ValueError):
    """Raised when ABI content is not a list of typed entries."""

    pass


class ArgumentError(ContractScriptError, ValueError):
    """Raised when call or constructor arguments do not match the ABI."""

    pass


class DeploymentNotFoundError(ContractScriptError, LookupError):
    """Raised when an address has no entry in the deployment ledger."""

    pass


class FunctionNotFoundError(ContractScriptError, LookupError):
    """Raised when a function is not present in a contract ABI."""

    pass


class ArtifactNotFoundError(ContractScriptError, FileNotFoundError):
    """Raised when a compiled contract or a referenced file cannot be found."""

    pass


class CompilationError(ContractScriptError, RuntimeError):
    """Raised when the Solidity compiler reports errors."""

    pass


class LedgerError(ContractScriptError, ValueError):
    """Raised when the ledger file exists but is not a JSON object."""

    pass


class TransactionFailedError(ContractScriptError, RuntimeError):
    """Raised when a mined transaction has a failed status."""

    pass
