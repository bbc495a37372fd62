import base64
from unittest.mock import MagicMock

import pytest
import requests

from conftest import SIGNER, addr
from sui_ptb.context import Context
from sui_ptb.errors import BuildCancelled, ExternalLookupError, InvalidParameterShape
from sui_ptb.helpers.bcs import Serializer
from sui_ptb.helpers.sui_client import SuiRpcClient, decode_return_value
from sui_ptb.helpers.transaction_builder import ImmOrOwnedObject, SharedObject, Transaction

RPC_URL = "http://127.0.0.1:9000"
DIGEST = "11111111111111111111111111111111"


def rpc_response(result=None, error=None):
    response = MagicMock()
    body = {"jsonrpc": "2.0", "id": 1}
    if error is not None:
        body["error"] = error
    else:
        body["result"] = result
    response.json.return_value = body
    return response


def client_with(*responses) -> SuiRpcClient:
    session = MagicMock()
    session.post.side_effect = list(responses)
    return SuiRpcClient(RPC_URL, timeout=10, session=session)


def object_data(object_id, owner, type_="0x2::counter::Counter", fields=None):
    return {
        "data": {
            "objectId": object_id,
            "version": "12",
            "digest": DIGEST,
            "type": type_,
            "owner": owner,
            "content": {"dataType": "moveObject", "type": type_, "fields": fields or {}},
        }
    }


def u64_bytes(value: int) -> list[int]:
    ser = Serializer()
    ser.u64(value)
    return list(ser.output())


def test_request_posts_json_rpc(ctx):
    client = client_with(rpc_response(result={"ok": True}))

    assert client.request(ctx, "sui_getObject", ["0x1"]) == {"ok": True}

    _, kwargs = client.session.post.call_args
    assert kwargs["json"]["method"] == "sui_getObject"
    assert kwargs["json"]["params"] == ["0x1"]
    assert kwargs["timeout"] == 10


def test_request_timeout_bounded_by_deadline():
    client = client_with(rpc_response(result=1))
    client.request(Context.with_timeout(2), "sui_getObject", [])

    _, kwargs = client.session.post.call_args
    assert 0 < kwargs["timeout"] <= 2


def test_rpc_error_raises(ctx):
    client = client_with(rpc_response(error={"code": -32602, "message": "bad params"}))
    with pytest.raises(ExternalLookupError, match="bad params"):
        client.request(ctx, "sui_getObject", [])


def test_transport_error_raises(ctx):
    session = MagicMock()
    session.post.side_effect = requests.exceptions.ConnectionError("refused")
    client = SuiRpcClient(RPC_URL, session=session)
    with pytest.raises(ExternalLookupError, match="refused"):
        client.request(ctx, "sui_getObject", [])


def test_cancelled_request_not_sent():
    ctx = Context.background()
    ctx.cancel()
    client = client_with(rpc_response(result=1))
    with pytest.raises(BuildCancelled):
        client.request(ctx, "sui_getObject", [])
    client.session.post.assert_not_called()


def test_get_object_not_found(ctx):
    client = client_with(rpc_response(result={"error": {"code": "notExists"}}))
    with pytest.raises(ExternalLookupError):
        client.get_object(ctx, addr(0x01))


def test_list_owned_objects_parses_page(ctx):
    page = {
        "data": [object_data(addr(0x01), {"AddressOwner": SIGNER}, fields={"value": "3"}), {"error": {}}],
        "nextCursor": "abc",
        "hasNextPage": True,
    }
    client = client_with(rpc_response(result=page))

    result = client.list_owned_objects(ctx, SIGNER, cursor="prev")

    assert [o.object_id for o in result.data] == [addr(0x01)]
    assert result.data[0].fields == {"value": "3"}
    assert result.data[0].version == 12
    assert (result.next_cursor, result.has_next_page) == ("abc", True)
    _, kwargs = client.session.post.call_args
    assert kwargs["json"]["params"][0] == SIGNER
    assert kwargs["json"]["params"][2] == "prev"


def test_transform_shared_object(ctx):
    shared = {"Shared": {"initial_shared_version": 7}}
    client = client_with(rpc_response(result=object_data(addr(0x01), shared)))
    tx = Transaction()

    argument = client.transform_argument(ctx, tx, addr(0x01), "object_id", mutable=False)

    assert tx.inputs[argument.index].arg == SharedObject(addr(0x01), 7, False)


def test_transform_owned_and_immutable_objects(ctx):
    client = client_with(
        rpc_response(result=object_data(addr(0x01), {"AddressOwner": SIGNER})),
        rpc_response(result=object_data(addr(0x02), "Immutable")),
    )
    tx = Transaction()

    client.transform_argument(ctx, tx, addr(0x01), "object_id", mutable=True)
    client.transform_argument(ctx, tx, addr(0x02), "object_id", mutable=False)

    assert tx.inputs[0].arg == ImmOrOwnedObject(addr(0x01), 12, DIGEST)
    assert tx.inputs[1].arg == ImmOrOwnedObject(addr(0x02), 12, DIGEST)


def test_transform_pure_value_makes_no_request(ctx):
    client = client_with()
    tx = Transaction()

    client.transform_argument(ctx, tx, 5, "u64", mutable=True)

    assert tx.inputs[0].value == bytes(u64_bytes(5))
    client.session.post.assert_not_called()


def test_transform_rejects_non_string_object_id(ctx):
    with pytest.raises(InvalidParameterShape):
        client_with().transform_argument(ctx, Transaction(), 5, "object_id", mutable=True)


def test_read_function_uses_dev_inspect(ctx):
    inspect = {
        "results": [{"returnValues": [[u64_bytes(42), "u64"], [[1], "bool"]]}],
    }
    client = client_with(rpc_response(result=inspect))

    values = client.read_function(ctx, SIGNER, addr(0x0F), "offramp", "get_count", [3], ["u64"])

    assert values == [42, True]
    _, kwargs = client.session.post.call_args
    method, params = kwargs["json"]["method"], kwargs["json"]["params"]
    assert method == "sui_devInspectTransactionBlock"
    assert params[0] == SIGNER
    assert base64.b64decode(params[1])


def test_read_function_argument_count_mismatch(ctx):
    with pytest.raises(InvalidParameterShape):
        client_with().read_function(ctx, SIGNER, addr(0x0F), "m", "f", [1, 2], ["u64"])


def test_read_function_without_results(ctx):
    client = client_with(rpc_response(result={"results": None}))
    assert client.read_function(ctx, SIGNER, addr(0x0F), "m", "f", [], []) == []


def test_decode_return_values():
    ser = Serializer()
    ser.str("burn_mint")
    assert decode_return_value(ser.output(), "0x1::string::String") == "burn_mint"

    ser = Serializer()
    ser.sequence([bytes([0x10]) * 32], Serializer.fixed_bytes)
    assert decode_return_value(ser.output(), "vector<address>") == [addr(0x10)]

    assert decode_return_value(bytes([0xCC]) * 32, "address") == addr(0xCC)

    raw = b"\x01\x02\x03"
    assert decode_return_value(raw, "0xabc::pool::PoolInfos") == raw
    # trailing bytes mean the declared type did not describe the value
    assert decode_return_value(b"\x01\x00", "bool") == b"\x01\x00"
