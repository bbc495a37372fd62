"""
Sui RPC collaborator.

``SuiClient`` is the interface the builder consumes. ``SuiRpcClient`` implements
it over Sui JSON-RPC with ``requests``; builds never sign or submit anything.

Public API
----------
get_sui_client(rpc_url=None)
    Return a cached SuiRpcClient for the given (or configured) RPC URL.
"""

from __future__ import annotations

import base64
import itertools
import logging
from typing import Any, Optional, Protocol, Sequence

import requests

from sui_ptb.context import Context
from sui_ptb.errors import ExternalLookupError, InvalidParameterShape
from sui_ptb.helpers.addresses import normalize_address
from sui_ptb.helpers.bcs import Deserializer, UINT_BITS, encode_pure, unwrap_vector
from sui_ptb.helpers.transaction_builder import (
    Argument,
    ImmOrOwnedObject,
    SharedObject,
    Transaction,
)
from sui_ptb.models import ObjectPage, SuiObject

__all__ = ["SuiClient", "SuiRpcClient", "get_sui_client", "decode_return_value"]

logger = logging.getLogger(__name__)

OBJECT_TYPES = ("object_id", "objectId")
OBJECT_OPTIONS = {"showType": True, "showOwner": True, "showContent": True}


class SuiClient(Protocol):
    def read_function(
        self,
        ctx: Context,
        signer: str,
        package_id: str,
        module: str,
        function: str,
        args: Sequence[Any],
        arg_types: Sequence[str],
    ) -> list[Any]: ...

    def transform_argument(
        self,
        ctx: Context,
        tx: Transaction,
        raw_value: Any,
        declared_type: str,
        mutable: bool,
    ) -> Argument: ...

    def list_owned_objects(self, ctx: Context, owner: str, cursor: Optional[str] = None) -> ObjectPage: ...


def _is_string_type(move_type: str) -> bool:
    if move_type == "string":
        return True
    parts = move_type.split("::")
    if len(parts) != 3 or parts[2] != "String" or parts[1] not in ("string", "ascii"):
        return False
    try:
        return normalize_address(parts[0]) == normalize_address("0x1")
    except ValueError:
        return False


def _decode_value(de: Deserializer, move_type: str) -> Any:
    move_type = move_type.strip()
    if move_type == "bool":
        return de.bool()
    if move_type in UINT_BITS:
        return getattr(de, move_type)()
    if move_type == "address":
        return normalize_address(de.fixed_bytes(32))
    if _is_string_type(move_type):
        return de.str()
    inner = unwrap_vector(move_type)
    if inner is not None:
        if inner == "u8":
            return de.to_bytes()
        return de.sequence(lambda d: _decode_value(d, inner))
    raise ValueError(f"Cannot decode Move type {move_type}")


def decode_return_value(data: bytes, move_type: str) -> Any:
    """Decode a devInspect return value by its Move type.

    Struct types other than strings are returned as the raw BCS bytes.
    """
    try:
        de = Deserializer(data)
        value = _decode_value(de, move_type)
    except ValueError:
        return data
    if de.remaining():
        return data
    return value


def object_arg_for(obj: SuiObject, mutable: bool):
    """Pick the object argument kind from the object's owner."""
    owner = obj.owner
    if isinstance(owner, dict) and "Shared" in owner:
        return SharedObject(
            object_id=obj.object_id,
            initial_shared_version=int(owner["Shared"]["initial_shared_version"]),
            mutable=mutable,
        )
    if obj.version is None or obj.digest is None:
        raise ExternalLookupError(f"Object {obj.object_id} has no version or digest")
    return ImmOrOwnedObject(object_id=obj.object_id, version=obj.version, digest=obj.digest)


class SuiRpcClient:
    """JSON-RPC 2.0 client for the reads a PTB build needs."""

    def __init__(self, rpc_url: str, timeout: float = 30, session: Optional[requests.Session] = None):
        self.rpc_url = rpc_url
        self.timeout = timeout
        self.session = session or requests.Session()
        self._ids = itertools.count(1)

    # ---------- transport ----------

    def _timeout(self, ctx: Context) -> float:
        remaining = ctx.remaining()
        if remaining is None:
            return self.timeout
        return min(self.timeout, remaining)

    def request(self, ctx: Context, method: str, params: list[Any]) -> Any:
        """Send one JSON-RPC call and return its ``result``.

        Raises:
            BuildCancelled: If the context is done before sending
            ExternalLookupError: On transport, HTTP or RPC errors
        """
        ctx.check(method)
        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params}
        logger.debug(f"RPC {method} params={params}")
        try:
            response = self.session.post(self.rpc_url, json=payload, timeout=self._timeout(ctx))
            response.raise_for_status()
            body = response.json()
        except requests.exceptions.RequestException as e:
            raise ExternalLookupError(f"{method} request failed: {e}") from e
        except ValueError as e:
            raise ExternalLookupError(f"{method} returned invalid JSON: {e}") from e

        if body.get("error"):
            error = body["error"]
            message = error.get("message", error) if isinstance(error, dict) else error
            raise ExternalLookupError(f"{method} failed: {message}")
        return body.get("result")

    # ---------- reads ----------

    def get_object(self, ctx: Context, object_id: str) -> SuiObject:
        result = self.request(ctx, "sui_getObject", [object_id, OBJECT_OPTIONS])
        if result and result.get("error"):
            raise ExternalLookupError(f"sui_getObject {object_id}: {result['error']}")
        obj = SuiObject.from_rpc(result or {})
        if obj is None:
            raise ExternalLookupError(f"Object {object_id} not found")
        return obj

    def list_owned_objects(
        self,
        ctx: Context,
        owner: str,
        cursor: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> ObjectPage:
        query = {"filter": None, "options": OBJECT_OPTIONS}
        result = self.request(ctx, "suix_getOwnedObjects", [owner, query, cursor, limit]) or {}
        objects = []
        for item in result.get("data", []):
            obj = SuiObject.from_rpc(item)
            if obj is not None:
                objects.append(obj)
        return ObjectPage(
            data=objects,
            next_cursor=result.get("nextCursor"),
            has_next_page=bool(result.get("hasNextPage")),
        )

    # ---------- argument encoding ----------

    def transform_argument(
        self,
        ctx: Context,
        tx: Transaction,
        raw_value: Any,
        declared_type: str,
        mutable: bool,
    ) -> Argument:
        """Register ``raw_value`` as an input of ``tx``.

        Object ids are looked up to pick owned, immutable or shared inputs.
        Everything else is BCS encoded as a pure input.
        """
        if declared_type in OBJECT_TYPES:
            if not isinstance(raw_value, str):
                raise InvalidParameterShape(f"Object id must be a string, got {type(raw_value).__name__}")
            obj = self.get_object(ctx, raw_value)
            return tx.object(object_arg_for(obj, mutable))
        return tx.pure(encode_pure(raw_value, declared_type))

    def read_function(
        self,
        ctx: Context,
        signer: str,
        package_id: str,
        module: str,
        function: str,
        args: Sequence[Any],
        arg_types: Sequence[str],
    ) -> list[Any]:
        """
        Call a Move function through devInspect and decode its return values.

        Args:
            ctx: Build context
            signer: Sender address used for the inspection
            package_id: Package containing the module
            module: Module name
            function: Function name
            args: Raw argument values
            arg_types: Declared type of each argument

        Returns:
            Decoded return values of the call
        """
        if len(args) != len(arg_types):
            raise InvalidParameterShape(f"{module}::{function}: {len(args)} args but {len(arg_types)} types")

        tx = Transaction()
        call_args = [
            self.transform_argument(ctx, tx, value, arg_type, mutable=False)
            for value, arg_type in zip(args, arg_types)
        ]
        tx.move_call(package_id, module, function, call_args)
        tx_bytes = base64.b64encode(tx.serialize_kind()).decode("ascii")

        result = self.request(ctx, "sui_devInspectTransactionBlock", [signer, tx_bytes, None, None]) or {}
        if result.get("error"):
            raise ExternalLookupError(f"{module}::{function} inspection failed: {result['error']}")

        results = result.get("results") or []
        if not results:
            return []
        values = []
        for raw, move_type in results[-1].get("returnValues") or []:
            values.append(decode_return_value(bytes(raw), move_type))
        logger.debug(f"{module}::{function} returned {len(values)} value(s)")
        return values


# Cached client instance
_client_instance: Optional[SuiRpcClient] = None


def get_sui_client(rpc_url: str | None = None) -> SuiRpcClient:
    """
    Get a SuiRpcClient for the given RPC URL.

    Falls back to the configured network's RPC URL when none is given.
    """
    global _client_instance

    if rpc_url is None:
        from sui_ptb.config.settings import load_settings

        settings = load_settings()
        rpc_url = settings.rpc_url
        timeout = settings.rpc_timeout
    else:
        timeout = 30

    if _client_instance is not None and _client_instance.rpc_url == rpc_url:
        return _client_instance

    _client_instance = SuiRpcClient(rpc_url, timeout=timeout)
    return _client_instance
