import pytest

from sui_ptb.commands.offramp import AddressMappings
from sui_ptb.context import Context
from sui_ptb.helpers.bcs import encode_pure
from sui_ptb.helpers.transaction_builder import SharedObject
from sui_ptb.models import (
    AbstractReport,
    CommandTemplate,
    Dependency,
    ExecuteReportInfo,
    Message,
    MoveTarget,
    ObjectPage,
    ParamSpec,
    RampTokenAmount,
    SuiObject,
)

OFFRAMP_PACKAGE = "0x" + "0f" * 32
CCIP_PACKAGE = "0x" + "cc" * 32
CCIP_OBJECT_REF = "0x" + "c1" * 32
OWNER_CAP = "0x" + "c2" * 32
OFFRAMP_STATE = "0x" + "0e" * 32
SIGNER = "0x" + "5e" * 32


def addr(byte: int) -> str:
    return "0x" + f"{byte:02x}" * 32


class FakeSuiClient:
    """In-memory collaborator that records every call.

    ``owned`` maps an owner to a list of pages (each a list of SuiObject).
    ``reads`` maps (module, function) to a return list or a callable(args).
    """

    def __init__(self, owned=None, reads=None):
        self.owned = owned or {}
        self.reads = reads or {}
        self.transform_calls = []
        self.read_calls = []
        self.list_calls = []

    def transform_argument(self, ctx, tx, raw_value, declared_type, mutable):
        self.transform_calls.append((raw_value, declared_type, mutable))
        if declared_type == "object_id":
            return tx.object(SharedObject(object_id=raw_value, initial_shared_version=1, mutable=mutable))
        return tx.pure(encode_pure(raw_value, declared_type))

    def read_function(self, ctx, signer, package_id, module, function, args, arg_types):
        self.read_calls.append((signer, package_id, module, function, list(args), list(arg_types)))
        response = self.reads[(module, function)]
        if callable(response):
            return response(args)
        return response

    def list_owned_objects(self, ctx, owner, cursor=None):
        self.list_calls.append((owner, cursor))
        pages = self.owned.get(owner, [])
        if not pages:
            return ObjectPage()
        index = int(cursor) if cursor else 0
        has_next = index + 1 < len(pages)
        return ObjectPage(
            data=list(pages[index]),
            next_cursor=str(index + 1) if has_next else None,
            has_next_page=has_next,
        )


def pool_infos(count: int) -> dict:
    return {
        "token_pool_package_ids": [addr(0x10 + i) for i in range(count)],
        "token_pool_state_addresses": [addr(0x20 + i) for i in range(count)],
        "token_pool_modules": [f"pool_{i}" for i in range(count)],
        "token_types": [f"{'ab' * 32}::coin{i}::COIN{i}" for i in range(count)],
    }


def make_report(*messages: Message) -> ExecuteReportInfo:
    return ExecuteReportInfo(abstract_reports=[AbstractReport(messages=list(messages))])


def token(byte: int, amount: int = 100) -> RampTokenAmount:
    return RampTokenAmount(dest_token_address=bytes([byte]) * 32, amount=amount)


@pytest.fixture
def ctx():
    return Context.background()


@pytest.fixture
def fake_client():
    return FakeSuiClient()


@pytest.fixture
def mappings():
    return AddressMappings(
        ccip_package_id=CCIP_PACKAGE,
        ccip_object_ref=CCIP_OBJECT_REF,
        ccip_owner_cap=OWNER_CAP,
        offramp_package_id=OFFRAMP_PACKAGE,
        offramp_state=OFFRAMP_STATE,
    )


@pytest.fixture
def execute_template():
    init_execute = CommandTemplate(
        target=MoveTarget(package=OFFRAMP_PACKAGE, module="offramp", function="init_execute"),
        params=(
            ParamSpec(name="ccip_object_ref", type="object_id", required=True),
            ParamSpec(name="state", type="object_id", required=True),
            ParamSpec(name="clock", type="object_id", required=True, mutable=False),
            ParamSpec(name="report", type="vector<u8>", required=True),
        ),
    )
    finish_execute = CommandTemplate(
        target=MoveTarget(package=OFFRAMP_PACKAGE, module="offramp", function="finish_execute"),
        params=(
            ParamSpec(name="state", type="object_id", required=True),
            ParamSpec(
                name="receiver_params",
                type="ptb_dependency",
                required=True,
                dependency=Dependency(command_index=0),
            ),
        ),
    )
    return (init_execute, finish_execute)


@pytest.fixture
def pointer_objects():
    """Owned objects needed to discover the off-ramp address mappings."""
    return {
        OFFRAMP_PACKAGE: [[
            SuiObject(
                object_id=addr(0x91),
                type=f"{OFFRAMP_PACKAGE}::offramp::OffRampStatePointer",
                fields={"off_ramp_state_id": OFFRAMP_STATE},
            )
        ]],
        CCIP_PACKAGE: [[
            SuiObject(
                object_id=addr(0x92),
                type=f"{CCIP_PACKAGE}::state_object::CCIPObjectRefPointer",
                fields={"object_ref_id": CCIP_OBJECT_REF, "owner_cap_id": OWNER_CAP},
            )
        ]],
    }
