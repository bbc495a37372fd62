"""
PTB Constructor
===============

Builds a programmable transaction block from a configured operation.

Most operations are driven entirely by their command templates. The off-ramp
``execute`` operation is first expanded from the report being executed, and
``commit`` gets the discovered CCIP object addresses injected before the
generic path runs.
"""

import logging
from typing import Any, MutableMapping, Optional

from sui_ptb.commands.arguments import ArgumentResolver
from sui_ptb.commands.offramp import AddressMappings, discover_address_mappings
from sui_ptb.commands.prerequisites import PrerequisiteObjectResolver
from sui_ptb.commands.ptb_expander import PTBExpander
from sui_ptb.config.logging_config import get_builder_logger, log_build
from sui_ptb.config.settings import BuilderSettings, load_settings
from sui_ptb.config.templates import TemplateStore
from sui_ptb.context import Context
from sui_ptb.errors import (
    ConfigNotFound,
    InvalidParameterShape,
    MissingRequiredParameter,
    PTBError,
    UnsupportedCommandKind,
)
from sui_ptb.helpers.addresses import address_from_public_key
from sui_ptb.helpers.sui_client import SuiClient, SuiRpcClient
from sui_ptb.helpers.transaction_builder import Argument, Transaction
from sui_ptb.helpers.type_tags import resolve_generics
from sui_ptb.models import Arguments, CommandKind, CommandTemplate, ExecuteReportInfo, FunctionDescriptor

logger = logging.getLogger(__name__)

EXECUTE_OPERATION = "execute"
COMMIT_OPERATION = "commit"
REPORT_ARGUMENT = "info"


def signer_address_of(descriptor: FunctionDescriptor) -> Optional[str]:
    """Sender of the operation: its configured address, else derived from its public key."""
    if descriptor.from_address:
        return descriptor.from_address
    if descriptor.public_key:
        try:
            return address_from_public_key(descriptor.public_key)
        except ValueError as e:
            raise InvalidParameterShape(f"Cannot derive signer of {descriptor.name}: {e}") from e
    return None


class PTBConstructor:
    """Turns configured operations plus runtime arguments into transactions."""

    def __init__(
        self,
        client: SuiClient,
        store: Optional[TemplateStore] = None,
        address_mappings: Optional[AddressMappings] = None,
    ):
        """
        Initialize the constructor.

        Args:
            client: RPC collaborator used for argument encoding and lookups
            store: Template store operations are looked up in
            address_mappings: Fixed off-ramp addresses (discovered on every build if None)
        """
        self.client = client
        self.store = store
        self.address_mappings = address_mappings
        self.argument_resolver = ArgumentResolver(client)
        self.prerequisite_resolver = PrerequisiteObjectResolver(client)

    @classmethod
    def from_settings(cls, settings: Optional[BuilderSettings] = None) -> "PTBConstructor":
        """
        Create a constructor from environment settings.

        Sets up the package logger, the RPC client and, when PTB_TEMPLATES_PATH
        is set, the template store.
        """
        settings = settings or load_settings()
        get_builder_logger(level=settings.log_level_value, log_dir=settings.log_dir)
        client = SuiRpcClient(settings.rpc_url, timeout=settings.rpc_timeout)
        store = TemplateStore.from_settings(settings) if settings.templates_path else None
        logger.info(f"PTB constructor ready on {settings.network} ({settings.rpc_url})")
        return cls(client, store)

    def get_descriptor(self, template_name: str, operation_name: str) -> FunctionDescriptor:
        if self.store is None:
            raise ConfigNotFound(f"No template store configured for {template_name}.{operation_name}")
        return self.store.get(template_name, operation_name)

    def get_address_mappings(self, ctx: Context, offramp_package_id: str, signer_address: str) -> AddressMappings:
        if self.address_mappings is not None:
            return self.address_mappings
        return discover_address_mappings(ctx, self.client, offramp_package_id, signer_address)

    def build(
        self,
        ctx: Context,
        template_name: str,
        operation_name: str,
        arguments: Arguments | dict[str, Any] | None,
        destination_address: Optional[str],
        function_descriptor: Optional[FunctionDescriptor] = None,
    ) -> Transaction:
        """
        Build the transaction for one operation.

        Optional parameters without a value are left as EMPTY placeholders.
        Such a transaction can be inspected with ``to_dict`` but not
        serialized until the placeholders are filled.

        Args:
            ctx: Build context (deadline and cancellation)
            template_name: Template the operation belongs to
            operation_name: Operation to build
            arguments: Runtime argument values (and type hints)
            destination_address: Package used when a command names none
            function_descriptor: Operation config, looked up in the store if None

        Returns:
            The finished Transaction

        Raises:
            PTBError: Any build failure; no partial transaction is returned
        """
        descriptor = function_descriptor or self.get_descriptor(template_name, operation_name)
        args = Arguments.coerce(arguments)
        logger.debug(f"Building PTB for {template_name}.{operation_name}")

        try:
            commands = self._prepare(ctx, operation_name, descriptor, args, destination_address)
            tx = Transaction()
            cache: dict[str, Argument] = {}
            for index, command in enumerate(commands):
                ctx.check(f"command {index}")
                self.process_command(ctx, tx, command, args, cache, index, destination_address)
        except PTBError as e:
            logger.error(f"PTB build {template_name}.{operation_name} aborted: {e}")
            log_build(logger, template_name, operation_name, 0, 0, success=False, error=str(e))
            raise

        if not tx.is_complete:
            logger.warning(f"PTB {template_name}.{operation_name} has unfilled optional arguments")
        log_build(logger, template_name, operation_name, len(tx.commands), len(tx.inputs))
        return tx

    def _prepare(
        self,
        ctx: Context,
        operation_name: str,
        descriptor: FunctionDescriptor,
        args: Arguments,
        destination_address: Optional[str],
    ) -> list[CommandTemplate]:
        """Resolve prerequisites and return the commands to build."""
        signer = signer_address_of(descriptor)

        if descriptor.prerequisite_objects:
            self.prerequisite_resolver.resolve(ctx, descriptor.prerequisite_objects, args.values, owner_fallback=signer)

        if operation_name not in (EXECUTE_OPERATION, COMMIT_OPERATION):
            return list(descriptor.commands)

        if not signer:
            raise InvalidParameterShape(f"Operation {operation_name} needs a signer address or public key")
        if not destination_address:
            raise InvalidParameterShape(f"Operation {operation_name} needs the off-ramp package as destination")
        mappings = self.get_address_mappings(ctx, destination_address, signer)
        args.values["ccip_object_ref"] = mappings.ccip_object_ref
        args.values["state"] = mappings.offramp_state
        args.values["clock"] = mappings.clock_object

        if operation_name == COMMIT_OPERATION:
            return list(descriptor.commands)

        raw_report = args.values.get(REPORT_ARGUMENT)
        if raw_report is None:
            raise MissingRequiredParameter("Execute needs the report being executed", param_name=REPORT_ARGUMENT)
        try:
            report = ExecuteReportInfo.coerce(raw_report)
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidParameterShape(f"Malformed execute report: {e}", param_name=REPORT_ARGUMENT) from e

        expander = PTBExpander(self.client, mappings)
        expansion = expander.expand(
            ctx,
            report,
            descriptor.commands,
            signer,
            remote_chain_selector=args.values.get("remote_chain_selector"),
        )
        args.values.update(expansion.values)
        args.type_hints.update(expansion.type_hints)
        return expansion.commands

    def process_command(
        self,
        ctx: Context,
        tx: Transaction,
        command: CommandTemplate,
        args: Arguments,
        cache: MutableMapping[str, Argument],
        index: int,
        destination_address: Optional[str] = None,
    ) -> Argument:
        """Resolve one command and append it to ``tx``."""
        if command.kind is not CommandKind.MOVE_CALL:
            raise UnsupportedCommandKind(f"{command.kind.value} commands are not supported", command_index=index)

        target = command.target
        package = target.package or destination_address
        for field_name, value in (("package", package), ("module", target.module), ("function", target.function)):
            if not value:
                raise InvalidParameterShape(f"Move call is missing {field_name}", command_index=index)

        logger.debug(f"Processing move call {index}: {package}::{target.module}::{target.function}")
        call_args = self.argument_resolver.resolve(ctx, tx, command.params, args, cache, index)
        try:
            type_args = resolve_generics(command.params, args.type_hints)
        except PTBError as e:
            e.command_index = index
            raise
        try:
            return tx.move_call(package, target.module, target.function, call_args, type_args)
        except ValueError as e:
            raise InvalidParameterShape(f"Invalid package {package}: {e}", command_index=index) from e
