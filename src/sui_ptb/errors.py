"""
Error types raised while building programmable transaction blocks.

Every error aborts the current build. Errors carry the parameter name and the
command index where they were raised (when known) so callers can tell which
step of a multi-command transaction failed.
"""

from typing import Optional


class PTBError(Exception):
    """Base class for all PTB build errors."""

    def __init__(
        self,
        message: str,
        param_name: Optional[str] = None,
        command_index: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.param_name = param_name
        self.command_index = command_index

    def __str__(self) -> str:
        context = []
        if self.command_index is not None:
            context.append(f"command={self.command_index}")
        if self.param_name is not None:
            context.append(f"param={self.param_name}")
        if context:
            return f"{self.message} ({', '.join(context)})"
        return self.message


class ConfigNotFound(PTBError, KeyError):
    """Unknown template or operation name."""


class MissingRequiredParameter(PTBError):
    """A required parameter has no value, default or dependency."""


class InvalidParameterShape(PTBError, ValueError):
    """A raw value does not match the declared parameter type."""


class MalformedReceiverError(InvalidParameterShape):
    """A message receiver is not of the form package::module::function."""


class TypeResolutionError(PTBError, ValueError):
    """A generic type string could not be turned into a type tag."""


class DependencyResolutionError(PTBError):
    """A dependency points at a command that does not precede it."""


class ExternalLookupError(PTBError):
    """The RPC collaborator failed or returned an unusable value."""


class UnsupportedCommandKind(PTBError):
    """The command kind is known but building it is not implemented."""


class TemplateShapeError(PTBError):
    """Expansion was requested on a template of the wrong shape."""


class AmbiguousPrerequisiteObject(PTBError):
    """More than one owned object matched a prerequisite tag."""


class BuildCancelled(PTBError):
    """The build context was cancelled or its deadline passed."""


class SerializationError(PTBError):
    """The transaction could not be BCS encoded."""
