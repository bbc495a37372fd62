"""
Configuration package for the PTB builder.
"""

from sui_ptb.config.network import (
    NETWORKS,
    CLOCK_OBJECT_ID,
    RPC_TIMEOUT,
    get_network_config,
    get_rpc_url,
    get_explorer_url,
)

from sui_ptb.config.settings import (
    BuilderSettings,
    load_settings,
)

from sui_ptb.config.templates import TemplateStore

from sui_ptb.config.logging_config import (
    setup_logger,
    get_builder_logger,
    log_build,
)

__all__ = [
    # Network
    'NETWORKS',
    'CLOCK_OBJECT_ID',
    'RPC_TIMEOUT',
    'get_network_config',
    'get_rpc_url',
    'get_explorer_url',

    # Settings
    'BuilderSettings',
    'load_settings',

    # Templates
    'TemplateStore',

    # Logging
    'setup_logger',
    'get_builder_logger',
    'log_build',
]
