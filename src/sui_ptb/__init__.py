"""
Programmable Transaction Block construction for Sui.

Public API
----------
build_ptb(ctx, client, store, template_name, operation_name, arguments, destination_address)
    Build the transaction of one configured operation.
"""

from typing import Any, Optional

from sui_ptb.commands.ptb_constructor import PTBConstructor
from sui_ptb.config.templates import TemplateStore
from sui_ptb.context import Context
from sui_ptb.errors import PTBError
from sui_ptb.helpers.sui_client import SuiClient, SuiRpcClient, get_sui_client
from sui_ptb.helpers.transaction_builder import Transaction
from sui_ptb.models import Arguments, FunctionDescriptor

__version__ = "0.1.0"

__all__ = [
    "Arguments",
    "Context",
    "FunctionDescriptor",
    "PTBConstructor",
    "PTBError",
    "SuiClient",
    "SuiRpcClient",
    "TemplateStore",
    "Transaction",
    "build_ptb",
    "get_sui_client",
]


def build_ptb(
    ctx: Context,
    client: SuiClient,
    store: Optional[TemplateStore],
    template_name: str,
    operation_name: str,
    arguments: Arguments | dict[str, Any] | None,
    destination_address: Optional[str],
    function_descriptor: Optional[FunctionDescriptor] = None,
) -> Transaction:
    """One-shot build with a fresh PTBConstructor."""
    constructor = PTBConstructor(client, store)
    return constructor.build(
        ctx, template_name, operation_name, arguments, destination_address, function_descriptor
    )
