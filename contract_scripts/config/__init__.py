"""
Configuration package for the contract scripts.
"""

from contract_scripts.config.network import (
    DEFAULT_NETWORK,
    NETWORKS,
    NetworkConfig,
    get_network_config,
    is_network_configured,
    resolve_network_name,
)

from contract_scripts.config.settings import (
    Settings,
    load_settings,
)

from contract_scripts.config.logging_config import (
    setup_logger,
    get_script_logger,
)

__all__ = [
    # Network
    'DEFAULT_NETWORK',
    'NETWORKS',
    'NetworkConfig',
    'get_network_config',
    'is_network_configured',
    'resolve_network_name',

    # Settings
    'Settings',
    'load_settings',

    # Logging
    'setup_logger',
    'get_script_logger',
]
