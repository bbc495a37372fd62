"""
Argument resolution for a single PTB command.

Each parameter of a command is turned into a transaction argument from, in
order of precedence: a dependency on an earlier command's result, a caller
supplied value, or the parameter's default. Values are encoded once per build
and reused through the build's argument cache.
"""

import logging
from typing import Any, MutableMapping, Sequence

from sui_ptb.context import Context
from sui_ptb.errors import (
    DependencyResolutionError,
    ExternalLookupError,
    InvalidParameterShape,
    MissingRequiredParameter,
    PTBError,
)
from sui_ptb.helpers.sui_client import SuiClient
from sui_ptb.helpers.transaction_builder import EMPTY, Argument, Input, NestedResult, Result, Transaction
from sui_ptb.models import Arguments, ParamSpec

logger = logging.getLogger(__name__)


def dependency_argument(param: ParamSpec, command_index: int) -> Argument:
    """Result reference for a parameter that consumes an earlier command's output."""
    dep = param.dependency
    if dep.command_index < 0 or dep.command_index >= command_index:
        raise DependencyResolutionError(
            f"Dependency on command {dep.command_index} does not precede command {command_index}",
            param_name=param.name,
            command_index=command_index,
        )
    if dep.result_index is None:
        return Result(dep.command_index)
    return NestedResult(dep.command_index, dep.result_index)


class ArgumentResolver:
    """Turns parameter specs plus runtime values into transaction arguments."""

    def __init__(self, client: SuiClient):
        self.client = client

    def resolve(
        self,
        ctx: Context,
        tx: Transaction,
        params: Sequence[ParamSpec],
        arguments: Arguments,
        cache: MutableMapping[str, Argument],
        command_index: int,
    ) -> list[Argument]:
        """
        Resolve the arguments of one command.

        Args:
            ctx: Build context
            tx: Transaction inputs are registered on
            params: Parameter specs of the command, in call order
            arguments: Runtime values and type hints of the build
            cache: Per-build cache of already encoded arguments by name
            command_index: Position of the command in the transaction

        Returns:
            One argument per parameter, in order

        Raises:
            DependencyResolutionError: If a dependency does not point backwards
            InvalidParameterShape: If an object id is not a string
            MissingRequiredParameter: If a required parameter has no value
            ExternalLookupError: If encoding through the client fails
        """
        resolved: list[Argument] = []
        for param in params:
            logger.debug(f"Processing parameter {param.name} of command {command_index}")

            if param.dependency is not None:
                resolved.append(dependency_argument(param, command_index))
                continue

            if param.name in arguments.values:
                cached = cache.get(param.name)
                if cached is not None:
                    # a later &mut use upgrades the shared input in place
                    if param.is_object and param.effective_mutable and isinstance(cached, Input):
                        tx.require_mutable(cached)
                    resolved.append(cached)
                    continue
                argument = self._encode(ctx, tx, param, arguments.values[param.name], command_index)
                cache[param.name] = argument
                resolved.append(argument)
                continue

            if param.default is not None:
                resolved.append(self._encode(ctx, tx, param, param.default, command_index))
                continue

            if param.required:
                raise MissingRequiredParameter(
                    "Required parameter has no value",
                    param_name=param.name,
                    command_index=command_index,
                )

            resolved.append(EMPTY)

        return resolved

    def _encode(self, ctx: Context, tx: Transaction, param: ParamSpec, raw: Any, command_index: int) -> Argument:
        if param.is_object and not isinstance(raw, str):
            raise InvalidParameterShape(
                f"Expected string object id, got {type(raw).__name__}",
                param_name=param.name,
                command_index=command_index,
            )

        ctx.check(f"encoding {param.name}")
        try:
            return self.client.transform_argument(ctx, tx, raw, param.type, param.effective_mutable)
        except PTBError as e:
            if e.param_name is None:
                e.param_name = param.name
            if e.command_index is None:
                e.command_index = command_index
            raise
        except Exception as e:
            raise ExternalLookupError(
                f"Failed to build argument: {e}",
                param_name=param.name,
                command_index=command_index,
            ) from e
