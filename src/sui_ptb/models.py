"""
Data model for declarative PTB templates, build arguments and execution reports.

Templates (CommandTemplate / ParamSpec / FunctionDescriptor) are loaded once
and treated as read-only. Arguments are created per build call.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Optional


class CommandKind(str, Enum):
    MOVE_CALL = "move_call"
    PUBLISH = "publish"
    TRANSFER = "transfer"

    @classmethod
    def parse(cls, value: Any) -> "CommandKind":
        if isinstance(value, CommandKind):
            return value
        normalized = str(value).strip().lower().replace("-", "_")
        aliases = {"movecall": "move_call", "transfer_objects": "transfer"}
        normalized = aliases.get(normalized, normalized)
        try:
            return cls(normalized)
        except ValueError:
            raise ValueError(f"Unknown command kind: {value!r}") from None


@dataclass(frozen=True)
class Dependency:
    """Reference to the result of an earlier command in the same PTB.

    ``result_index`` of None means the whole result of the command, which is
    how multi-value (hot potato) results are passed along.
    """

    command_index: int
    result_index: Optional[int] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Dependency":
        result_index = data.get("result_index")
        return cls(
            command_index=int(data["command_index"]),
            result_index=None if result_index is None else int(result_index),
        )


@dataclass(frozen=True)
class ParamSpec:
    name: str
    type: str
    required: bool = False
    default: Any = None
    mutable: Optional[bool] = None
    generic_type: Optional[str] = None
    is_generic: bool = False
    dependency: Optional[Dependency] = None

    @property
    def is_object(self) -> bool:
        return self.type in ("object_id", "objectId")

    @property
    def effective_mutable(self) -> bool:
        # Object params are mutable unless the template says otherwise
        return True if self.mutable is None else self.mutable

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ParamSpec":
        dependency = data.get("dependency")
        mutable = data.get("mutable")
        return cls(
            name=data["name"],
            type=data.get("type", ""),
            required=bool(data.get("required", False)),
            default=data.get("default"),
            mutable=None if mutable is None else bool(mutable),
            generic_type=data.get("generic_type"),
            is_generic=bool(data.get("is_generic", False)),
            dependency=Dependency.from_dict(dependency) if dependency is not None else None,
        )


@dataclass(frozen=True)
class MoveTarget:
    package: Optional[str] = None
    module: Optional[str] = None
    function: Optional[str] = None

    def __str__(self) -> str:
        return f"{self.package}::{self.module}::{self.function}"


@dataclass(frozen=True)
class CommandTemplate:
    kind: CommandKind = CommandKind.MOVE_CALL
    target: MoveTarget = field(default_factory=MoveTarget)
    params: tuple[ParamSpec, ...] = ()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CommandTemplate":
        target = data.get("target") or {}
        return cls(
            kind=CommandKind.parse(data.get("kind", CommandKind.MOVE_CALL)),
            target=MoveTarget(
                package=target.get("package"),
                module=target.get("module"),
                function=target.get("function"),
            ),
            params=tuple(ParamSpec.from_dict(p) for p in data.get("params", [])),
        )

    def with_dependency_index(self, command_index: int) -> "CommandTemplate":
        """Copy of this command with every dependency re-pointed at ``command_index``."""
        params = tuple(
            replace(p, dependency=replace(p.dependency, command_index=command_index))
            if p.dependency is not None
            else p
            for p in self.params
        )
        return replace(self, params=params)


@dataclass(frozen=True)
class PrerequisiteObjectSpec:
    match_tag: str
    target_name: str = ""
    owner: Optional[str] = None
    explode_fields: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PrerequisiteObjectSpec":
        return cls(
            match_tag=data["match_tag"],
            target_name=data.get("target_name", ""),
            owner=data.get("owner"),
            explode_fields=bool(data.get("explode_fields", False)),
        )


@dataclass(frozen=True)
class FunctionDescriptor:
    """Configuration of one operation: its command template and signer."""

    name: str
    commands: tuple[CommandTemplate, ...] = ()
    from_address: Optional[str] = None
    public_key: Optional[bytes] = None
    prerequisite_objects: tuple[PrerequisiteObjectSpec, ...] = ()

    @classmethod
    def from_dict(cls, name: str, data: dict[str, Any]) -> "FunctionDescriptor":
        public_key = data.get("public_key")
        if isinstance(public_key, str):
            public_key = bytes.fromhex(public_key.removeprefix("0x"))
        return cls(
            name=data.get("name", name),
            commands=tuple(CommandTemplate.from_dict(c) for c in data.get("commands", [])),
            from_address=data.get("from_address"),
            public_key=public_key,
            prerequisite_objects=tuple(
                PrerequisiteObjectSpec.from_dict(p) for p in data.get("prerequisite_objects", [])
            ),
        )


@dataclass
class Arguments:
    """Runtime argument bag for one build call."""

    values: dict[str, Any] = field(default_factory=dict)
    type_hints: dict[str, str] = field(default_factory=dict)

    @classmethod
    def coerce(cls, raw: "Arguments | dict[str, Any] | None") -> "Arguments":
        """Accept an Arguments, a plain value dict, or the wrapped {"Args", "ArgTypes"} form.

        Always returns a new object so a build never mutates the caller's bag.
        """
        if raw is None:
            return cls()
        if isinstance(raw, Arguments):
            return cls(values=dict(raw.values), type_hints=dict(raw.type_hints))
        if isinstance(raw.get("Args"), dict):
            hints = raw.get("ArgTypes") or {}
            return cls(
                values=dict(raw["Args"]),
                type_hints={k: v for k, v in hints.items() if isinstance(v, str)},
            )
        return cls(values=dict(raw))


@dataclass(frozen=True)
class TokenPoolDescriptor:
    coin_metadata: str
    token_type: str
    package: str
    module: str
    function: str
    pool_state_address: str
    index: int


# ---------------------------------------------------------------------------
# Execution report
# ---------------------------------------------------------------------------

def _bytes_field(value: Any) -> bytes:
    if value is None:
        return b""
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if isinstance(value, list):
        return bytes(value)
    if isinstance(value, str) and value.startswith("0x"):
        return bytes.fromhex(value[2:])
    raise ValueError(f"Expected bytes, 0x-hex or a list of ints, got {value!r}")


@dataclass
class RampTokenAmount:
    dest_token_address: bytes | str
    amount: int = 0
    source_pool_address: bytes = b""
    extra_data: bytes = b""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RampTokenAmount":
        dest = data["dest_token_address"]
        return cls(
            dest_token_address=dest if isinstance(dest, str) else _bytes_field(dest),
            amount=int(data.get("amount", 0)),
            source_pool_address=_bytes_field(data.get("source_pool_address")),
            extra_data=_bytes_field(data.get("extra_data")),
        )


@dataclass
class Message:
    receiver: bytes | str = b""
    data: bytes = b""
    token_amounts: list[RampTokenAmount] = field(default_factory=list)
    message_id: bytes = b""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Message":
        receiver = data.get("receiver") or b""
        payload = data.get("data")
        if isinstance(payload, str) and not payload.startswith("0x"):
            payload = payload.encode("utf-8")
        return cls(
            receiver=receiver if isinstance(receiver, str) else _bytes_field(receiver),
            data=_bytes_field(payload),
            token_amounts=[RampTokenAmount.from_dict(t) for t in data.get("token_amounts", [])],
            message_id=_bytes_field(data.get("message_id")),
        )

    @property
    def receiver_str(self) -> str:
        if isinstance(self.receiver, (bytes, bytearray)):
            return bytes(self.receiver).decode("utf-8")
        return self.receiver

    @property
    def has_receiver_call(self) -> bool:
        return len(self.receiver) > 0 and len(self.data) > 0


@dataclass
class AbstractReport:
    messages: list[Message] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AbstractReport":
        return cls(messages=[Message.from_dict(m) for m in data.get("messages", [])])


@dataclass
class ExecuteReportInfo:
    abstract_reports: list[AbstractReport] = field(default_factory=list)

    @classmethod
    def coerce(cls, raw: "ExecuteReportInfo | dict[str, Any]") -> "ExecuteReportInfo":
        if isinstance(raw, ExecuteReportInfo):
            return raw
        if not isinstance(raw, dict):
            raise ValueError(f"Expected an execute report, got {type(raw).__name__}")
        return cls(abstract_reports=[AbstractReport.from_dict(r) for r in raw.get("abstract_reports", [])])

    def messages(self) -> list[Message]:
        return [m for report in self.abstract_reports for m in report.messages]

    def token_amounts(self) -> list[RampTokenAmount]:
        """All token amounts in report, then message, then token order."""
        return [t for m in self.messages() for t in m.token_amounts]


# ---------------------------------------------------------------------------
# On-chain objects
# ---------------------------------------------------------------------------

@dataclass
class SuiObject:
    object_id: str
    type: str = ""
    version: Optional[int] = None
    digest: Optional[str] = None
    owner: Any = None
    fields: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_rpc(cls, raw: dict[str, Any]) -> Optional["SuiObject"]:
        """Build from a SuiObjectResponse (or its ``data`` member). None when there is no data."""
        data = raw.get("data", raw) if isinstance(raw, dict) else None
        if not data or "objectId" not in data:
            return None
        content = data.get("content") or {}
        version = data.get("version")
        return cls(
            object_id=data["objectId"],
            type=data.get("type") or content.get("type") or "",
            version=int(version) if version is not None else None,
            digest=data.get("digest"),
            owner=data.get("owner"),
            fields=copy.deepcopy(content.get("fields") or {}),
        )


@dataclass
class ObjectPage:
    data: list[SuiObject] = field(default_factory=list)
    next_cursor: Optional[str] = None
    has_next_page: bool = False
