"""
Runtime settings for the PTB builder, read from the environment.

A ``.env`` file in the working directory is loaded first when present.
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from sui_ptb.config.network import RPC_TIMEOUT, get_rpc_url

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BuilderSettings:
    network: str = "testnet"
    rpc_url: str = ""
    rpc_timeout: float = RPC_TIMEOUT
    templates_path: Optional[str] = None
    log_level: str = "INFO"
    log_dir: Optional[str] = None

    @property
    def log_level_value(self) -> int:
        return getattr(logging, self.log_level.upper(), logging.INFO)


def load_settings(env_file: str | None = None) -> BuilderSettings:
    """
    Load builder settings from environment variables.

    Args:
        env_file: Optional path to a .env file (defaults to .env lookup)

    Returns:
        BuilderSettings instance

    Raises:
        ValueError: If SUI_RPC_TIMEOUT is not a number or SUI_NETWORK is unknown
    """
    load_dotenv(env_file)

    network = os.getenv("SUI_NETWORK", "testnet").lower()
    timeout_raw = os.getenv("SUI_RPC_TIMEOUT", str(RPC_TIMEOUT))
    try:
        timeout = float(timeout_raw)
    except ValueError:
        raise ValueError(f"SUI_RPC_TIMEOUT must be a number, got {timeout_raw!r}") from None

    settings = BuilderSettings(
        network=network,
        rpc_url=get_rpc_url(network),
        rpc_timeout=timeout,
        templates_path=os.getenv("PTB_TEMPLATES_PATH") or None,
        log_level=os.getenv("PTB_LOG_LEVEL", "INFO"),
        log_dir=os.getenv("PTB_LOG_DIR") or None,
    )
    logger.debug(f"Loaded settings: network={settings.network} rpc={settings.rpc_url}")
    return settings
