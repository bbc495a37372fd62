import pytest

from conftest import SIGNER, FakeSuiClient, addr
from sui_ptb.commands.prerequisites import PrerequisiteObjectResolver
from sui_ptb.context import Context
from sui_ptb.errors import AmbiguousPrerequisiteObject, BuildCancelled, InvalidParameterShape
from sui_ptb.models import PrerequisiteObjectSpec, SuiObject

OWNER = addr(0x0A)
CAP_TYPE = "0xabc::counter::AdminCap"


def cap(byte: int, type_: str = CAP_TYPE, fields=None) -> SuiObject:
    return SuiObject(object_id=addr(byte), type=type_, fields=fields or {})


def test_object_id_injected_under_target_name(ctx):
    client = FakeSuiClient(owned={OWNER: [[cap(0x01, type_="0x2::coin::Coin<0x2::sui::SUI>"), cap(0x02)]]})
    values = {}
    spec = PrerequisiteObjectSpec(match_tag="counter::AdminCap", target_name="admin_cap", owner=OWNER)

    PrerequisiteObjectResolver(client).resolve(ctx, [spec], values)

    assert values == {"admin_cap": addr(0x02)}


def test_explode_fields_copies_decoded_fields(ctx):
    pointer = cap(0x03, type_="0xabc::state::Pointer", fields={"state_id": addr(0x04), "version": "7"})
    client = FakeSuiClient(owned={OWNER: [[pointer]]})
    values = {"existing": 1}
    spec = PrerequisiteObjectSpec(match_tag="state::Pointer", owner=OWNER, explode_fields=True)

    PrerequisiteObjectResolver(client).resolve(ctx, [spec], values)

    assert values == {"existing": 1, "state_id": addr(0x04), "version": "7"}


def test_owner_fallback_used_when_spec_has_no_owner(ctx):
    client = FakeSuiClient(owned={SIGNER: [[cap(0x05)]]})
    values = {}
    spec = PrerequisiteObjectSpec(match_tag="AdminCap", target_name="cap")

    PrerequisiteObjectResolver(client).resolve(ctx, [spec], values, owner_fallback=SIGNER)

    assert values["cap"] == addr(0x05)
    assert client.list_calls == [(SIGNER, None)]


def test_missing_owner_and_fallback_rejected(ctx, fake_client):
    spec = PrerequisiteObjectSpec(match_tag="AdminCap", target_name="cap")
    with pytest.raises(InvalidParameterShape):
        PrerequisiteObjectResolver(fake_client).resolve(ctx, [spec], {})


def test_all_pages_are_searched(ctx):
    client = FakeSuiClient(owned={OWNER: [[cap(0x06, type_="0x2::coin::Coin")], [cap(0x07)]]})
    values = {}
    spec = PrerequisiteObjectSpec(match_tag="AdminCap", target_name="cap", owner=OWNER)

    PrerequisiteObjectResolver(client).resolve(ctx, [spec], values)

    assert values["cap"] == addr(0x07)
    assert client.list_calls == [(OWNER, None), (OWNER, "1")]


def test_ambiguous_match_rejected(ctx):
    client = FakeSuiClient(owned={OWNER: [[cap(0x08)], [cap(0x09)]]})
    spec = PrerequisiteObjectSpec(match_tag="AdminCap", target_name="cap", owner=OWNER)

    with pytest.raises(AmbiguousPrerequisiteObject) as exc_info:
        PrerequisiteObjectResolver(client).resolve(ctx, [spec], {})
    assert exc_info.value.param_name == "cap"


def test_no_match_leaves_values_untouched(ctx):
    client = FakeSuiClient(owned={OWNER: [[cap(0x0B, type_="0x2::coin::Coin")]]})
    values = {}
    spec = PrerequisiteObjectSpec(match_tag="AdminCap", target_name="cap", owner=OWNER)

    PrerequisiteObjectResolver(client).resolve(ctx, [spec], values)

    assert values == {}


def test_objects_without_type_are_skipped(ctx):
    client = FakeSuiClient(owned={OWNER: [[SuiObject(object_id=addr(0x0C)), cap(0x0D)]]})
    values = {}
    spec = PrerequisiteObjectSpec(match_tag="AdminCap", target_name="cap", owner=OWNER)

    PrerequisiteObjectResolver(client).resolve(ctx, [spec], values)

    assert values == {"cap": addr(0x0D)}


def test_cancelled_context_stops_lookup():
    client = FakeSuiClient(owned={OWNER: [[cap(0x0E)]]})
    ctx = Context.background()
    ctx.cancel()
    spec = PrerequisiteObjectSpec(match_tag="AdminCap", target_name="cap", owner=OWNER)

    with pytest.raises(BuildCancelled):
        PrerequisiteObjectResolver(client).resolve(ctx, [spec], {})
    assert client.list_calls == []
