"""
Network configuration for the PTB builder.

Contains fullnode RPC URLs and explorer endpoints for the Sui networks.
"""

import os
from typing import Any


# =============================================================================
# NETWORK CONFIGURATIONS
# =============================================================================

NETWORKS: dict[str, dict[str, Any]] = {
    "mainnet": {
        "chain_id": "35834a8a",
        "name": "Sui Mainnet",
        "currency": "SUI",
        "rpc_urls": [
            "https://fullnode.mainnet.sui.io:443",
        ],
        "explorer": {
            "name": "Suiscan",
            "url": "https://suiscan.xyz/mainnet",
        },
    },
    "testnet": {
        "chain_id": "4c78adac",
        "name": "Sui Testnet",
        "currency": "SUI",
        "rpc_urls": [
            "https://fullnode.testnet.sui.io:443",
        ],
        "explorer": {
            "name": "Suiscan Testnet",
            "url": "https://suiscan.xyz/testnet",
        },
    },
    "devnet": {
        "chain_id": None,  # Reset on every devnet wipe
        "name": "Sui Devnet",
        "currency": "SUI",
        "rpc_urls": [
            "https://fullnode.devnet.sui.io:443",
        ],
        "explorer": {
            "name": "Suiscan Devnet",
            "url": "https://suiscan.xyz/devnet",
        },
    },
    "localnet": {
        "chain_id": None,
        "name": "Sui Localnet",
        "currency": "SUI",
        "rpc_urls": [
            "http://127.0.0.1:9000",
        ],
        "explorer": {
            "name": "Local Explorer",
            "url": "http://127.0.0.1:9001",
        },
    },
}

# Well-known system objects
CLOCK_OBJECT_ID = "0x6"

RPC_TIMEOUT: int = 30  # seconds


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def get_network_config(network: str | None = None) -> dict[str, Any]:
    """Get configuration for a specific network.

    Args:
        network: Network name (e.g., 'mainnet', 'testnet').
                 If None, uses SUI_NETWORK environment variable or defaults to 'testnet'.

    Returns:
        Network configuration dictionary.

    Raises:
        ValueError: If network is not supported.
    """
    if network is None:
        network = os.getenv("SUI_NETWORK", "testnet")

    network = network.lower()
    if network not in NETWORKS:
        raise ValueError(f"Unsupported network: {network}. Supported: {list(NETWORKS.keys())}")

    return NETWORKS[network]


def get_rpc_url(network: str | None = None) -> str:
    """Get the fullnode RPC URL for a network.

    Uses SUI_RPC_URL environment variable if set, otherwise returns first default.
    """
    env_rpc = os.getenv("SUI_RPC_URL")
    if env_rpc:
        return env_rpc

    config = get_network_config(network)
    return config["rpc_urls"][0]


def get_explorer_url(network: str | None = None) -> str:
    """Get the block explorer URL for a network."""
    config = get_network_config(network)
    return config["explorer"]["url"]
