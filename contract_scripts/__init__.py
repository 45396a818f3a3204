"""
Deploy, import and interact with Solidity contracts from the command line.

Every script records contracts in ``deployments.json`` keyed by address; see
:mod:`contract_scripts.ledger`.
"""

__version__ = "0.1.0"
