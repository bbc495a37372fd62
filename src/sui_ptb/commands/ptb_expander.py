"""
PTB expansion for off-ramp execution.

The execute operation is configured as two fixed commands, ``init_execute``
and ``finish_execute``. The number of commands between them depends on the
report being executed: one ``release_or_mint`` per token transfer, then one
receiver call per message that carries data for a registered receiver. Each
inserted command consumes the receiver-params value produced by the command
before it, and ``finish_execute`` consumes the value of the last one.
"""

import base64
import binascii
import logging
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

from sui_ptb.commands.offramp import AddressMappings
from sui_ptb.context import Context
from sui_ptb.errors import (
    ExternalLookupError,
    InvalidParameterShape,
    MalformedReceiverError,
    PTBError,
    TemplateShapeError,
)
from sui_ptb.helpers.addresses import decode_address_value, normalize_address
from sui_ptb.helpers.bcs import Deserializer
from sui_ptb.helpers.sui_client import SuiClient
from sui_ptb.models import (
    CommandKind,
    CommandTemplate,
    Dependency,
    ExecuteReportInfo,
    Message,
    MoveTarget,
    ParamSpec,
    RampTokenAmount,
    TokenPoolDescriptor,
)

logger = logging.getLogger(__name__)

FIXED_TEMPLATE_SIZE = 2
RECEIVER_PATH_COMPONENTS = 3
TOKEN_POOL_FUNCTION = "release_or_mint"
TOKEN_ADMIN_REGISTRY = "token_admin_registry"
RECEIVER_REGISTRY = "receiver_registry"


@dataclass
class ExpansionResult:
    commands: list[CommandTemplate]
    values: dict[str, Any] = field(default_factory=dict)
    type_hints: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class ReceiverCall:
    package: str
    module: str
    function: str


def parse_receiver(message: Message) -> ReceiverCall:
    """Split a receiver of the form ``package::module::function``."""
    try:
        receiver = message.receiver_str
    except UnicodeDecodeError as e:
        raise MalformedReceiverError(f"Receiver is not valid UTF-8: {e}") from e
    parts = receiver.split("::")
    if len(parts) != RECEIVER_PATH_COMPONENTS or not all(parts):
        raise MalformedReceiverError(
            f"Invalid receiver format, expected package::module::function, got {receiver!r}"
        )
    return ReceiverCall(*parts)


def _as_bytes(value: Any) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if isinstance(value, list):
        return bytes(value)
    if isinstance(value, str):
        if value.startswith("0x"):
            return bytes.fromhex(value[2:])
        return base64.b64decode(value, validate=True)
    raise ValueError(f"Cannot read bytes from {type(value).__name__}")


def _coin_metadata_address(token: RampTokenAmount) -> str:
    try:
        return decode_address_value(token.dest_token_address)
    except (ValueError, binascii.Error) as e:
        raise InvalidParameterShape(
            f"Invalid dest_token_address {token.dest_token_address!r}: {e}", param_name="info"
        ) from e


def _with_0x(value: str) -> str:
    return value if value.startswith("0x") else "0x" + value


def decode_pool_infos(raw: Any) -> dict[str, list]:
    """
    Decode the result of ``get_pool_infos``.

    The result is either already a mapping of the four result vectors or the
    raw BCS bytes of the result struct.
    """
    if isinstance(raw, dict):
        infos = {
            "token_pool_package_ids": [decode_address_value(a) for a in raw.get("token_pool_package_ids", [])],
            "token_pool_state_addresses": [
                decode_address_value(a) for a in raw.get("token_pool_state_addresses", [])
            ],
            "token_pool_modules": list(raw.get("token_pool_modules", [])),
            "token_types": list(raw.get("token_types", [])),
        }
        return infos

    de = Deserializer(_as_bytes(raw))
    return {
        "token_pool_package_ids": de.sequence(_read_address),
        "token_pool_state_addresses": de.sequence(_read_address),
        "token_pool_modules": de.sequence(Deserializer.str),
        "token_types": de.sequence(Deserializer.str),
    }


def _read_address(de: Deserializer) -> str:
    return normalize_address(de.fixed_bytes(32))


def decode_bool(raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, int):
        return raw == 1
    data = _as_bytes(raw)
    if len(data) != 1 or data[0] not in (0, 1):
        raise ValueError(f"Not a BCS bool: {raw!r}")
    return data[0] == 1


def token_pool_command(descriptor: TokenPoolDescriptor, position: int) -> CommandTemplate:
    """
    ``release_or_mint`` command for the token at 1-based ``position``.

    It sits at command index ``position`` and consumes the result of the
    command before it.
    """
    return CommandTemplate(
        kind=CommandKind.MOVE_CALL,
        target=MoveTarget(
            package=_with_0x(descriptor.package),
            module=descriptor.module,
            function=descriptor.function,
        ),
        params=(
            ParamSpec(name="ccip_object_ref", type="object_id", required=True, mutable=False),
            ParamSpec(name="clock", type="object_id", required=True, mutable=False),
            ParamSpec(name=f"pool_{position}", type="object_id", required=True, mutable=True, is_generic=True),
            ParamSpec(name="remote_chain_selector", type="u64", required=True),
            ParamSpec(
                name="receiver_params",
                type="ptb_dependency",
                required=True,
                dependency=Dependency(command_index=position - 1),
            ),
            ParamSpec(name=f"index_{position}", type="u64", required=True),
        ),
    )


def receiver_command(receiver: ReceiverCall, command_index: int) -> CommandTemplate:
    return CommandTemplate(
        kind=CommandKind.MOVE_CALL,
        target=MoveTarget(package=receiver.package, module=receiver.module, function=receiver.function),
        params=(
            ParamSpec(name="ccip_object_ref", type="object_id", required=True),
            ParamSpec(name=f"package_id_{command_index}", type="address", required=True),
            ParamSpec(
                name=f"receiver_params_{command_index}",
                type="ptb_dependency",
                required=True,
                dependency=Dependency(command_index=command_index - 1),
            ),
        ),
    )


class PTBExpander:
    """Expands the two-command execute template for one report."""

    def __init__(self, client: SuiClient, address_mappings: AddressMappings):
        self.client = client
        self.address_mappings = address_mappings

    def _read(self, ctx: Context, signer: str, module: str, function: str, args: list, arg_types: list) -> list:
        ctx.check(f"{module}::{function}")
        try:
            return self.client.read_function(
                ctx, signer, self.address_mappings.ccip_package_id, module, function, args, arg_types
            )
        except PTBError:
            raise
        except Exception as e:
            raise ExternalLookupError(f"{module}::{function} failed: {e}") from e

    def get_token_pools(
        self,
        ctx: Context,
        token_amounts: Sequence[RampTokenAmount],
        signer_address: str,
    ) -> list[TokenPoolDescriptor]:
        """Look up the destination pool of every token with one batched read."""
        if not token_amounts:
            return []

        coin_metadata = [_coin_metadata_address(t) for t in token_amounts]
        logger.debug(f"Getting token pool infos for {len(coin_metadata)} token(s)")
        result = self._read(
            ctx,
            signer_address,
            TOKEN_ADMIN_REGISTRY,
            "get_pool_infos",
            [self.address_mappings.ccip_object_ref, coin_metadata],
            ["object_id", "vector<address>"],
        )
        if not result:
            raise ExternalLookupError("get_pool_infos returned no value")

        try:
            infos = decode_pool_infos(result[0])
        except (ValueError, binascii.Error) as e:
            raise ExternalLookupError(f"Cannot decode pool infos: {e}") from e

        count = len(coin_metadata)
        for key, values in infos.items():
            if len(values) < count:
                raise ExternalLookupError(f"get_pool_infos returned {len(values)} {key} for {count} token(s)")

        pools = []
        for i, metadata in enumerate(coin_metadata):
            pools.append(
                TokenPoolDescriptor(
                    coin_metadata=metadata,
                    token_type=_with_0x(infos["token_types"][i]),
                    package=infos["token_pool_package_ids"][i],
                    module=infos["token_pool_modules"][i],
                    function=TOKEN_POOL_FUNCTION,
                    pool_state_address=infos["token_pool_state_addresses"][i],
                    index=i,
                )
            )
        return pools

    def filter_registered_receivers(
        self,
        ctx: Context,
        messages: Sequence[Message],
        signer_address: str,
    ) -> list[ReceiverCall]:
        """Receivers of messages carrying data, keeping only registered ones."""
        receivers = []
        for message in messages:
            if not message.has_receiver_call:
                continue
            receiver = parse_receiver(message)
            result = self._read(
                ctx,
                signer_address,
                RECEIVER_REGISTRY,
                "is_registered_receiver",
                [self.address_mappings.ccip_object_ref, receiver.package],
                ["object_id", "address"],
            )
            if not result:
                raise ExternalLookupError("is_registered_receiver returned no value")
            try:
                registered = decode_bool(result[0])
            except (ValueError, binascii.Error) as e:
                raise ExternalLookupError(f"Cannot decode registration of {receiver.package}: {e}") from e

            if registered:
                receivers.append(receiver)
            else:
                logger.debug(f"Skipping unregistered receiver {receiver.package}::{receiver.module}")
        return receivers

    def expand(
        self,
        ctx: Context,
        report: ExecuteReportInfo,
        fixed_template: Sequence[CommandTemplate],
        signer_address: str,
        remote_chain_selector: Optional[int] = None,
    ) -> ExpansionResult:
        """
        Build the full command sequence for executing ``report``.

        Args:
            ctx: Build context
            report: Execution report
            fixed_template: The ``[init_execute, finish_execute]`` commands
            signer_address: Sender used for read-only lookups
            remote_chain_selector: Source chain selector, 0 when not known yet

        Returns:
            ExpansionResult with commands, argument values and type hints

        Raises:
            TemplateShapeError: If the template does not have exactly two commands
            MalformedReceiverError: If a receiver is not package::module::function
            ExternalLookupError: If a registry read fails
        """
        if len(fixed_template) != FIXED_TEMPLATE_SIZE:
            raise TemplateShapeError(
                f"Expected {FIXED_TEMPLATE_SIZE} commands in the execute template, got {len(fixed_template)}"
            )
        begin, end = fixed_template

        messages = report.messages()
        token_amounts = report.token_amounts()
        pools = self.get_token_pools(ctx, token_amounts, signer_address)
        receivers = self.filter_registered_receivers(ctx, messages, signer_address)

        values: dict[str, Any] = {
            "ccip_object_ref": self.address_mappings.ccip_object_ref,
            "clock": self.address_mappings.clock_object,
            "remote_chain_selector": remote_chain_selector or 0,
        }
        type_hints: dict[str, str] = {}

        commands = [begin]
        for position, pool in enumerate(pools, start=1):
            logger.debug(f"Adding {pool.module}::{pool.function} for token {pool.coin_metadata}")
            commands.append(token_pool_command(pool, position))
            values[f"pool_{position}"] = pool.pool_state_address
            values[f"index_{position}"] = pool.index
            type_hints[f"pool_{position}"] = pool.token_type

        for receiver in receivers:
            command_index = len(commands)
            commands.append(receiver_command(receiver, command_index))
            values[f"package_id_{command_index}"] = receiver.package

        commands.append(end.with_dependency_index(len(commands) - 1))

        logger.info(
            f"Expanded execute template to {len(commands)} commands "
            f"({len(pools)} token pool(s), {len(receivers)} receiver(s))"
        )
        return ExpansionResult(commands=commands, values=values, type_hints=type_hints)
