"""
Off-ramp address discovery.

Starting from the off-ramp package id, finds the CCIP package and the shared
objects every off-ramp transaction needs: the CCIP object ref, its owner
capability and the off-ramp state.
"""

import logging
from dataclasses import asdict, dataclass

from sui_ptb.config.network import CLOCK_OBJECT_ID
from sui_ptb.context import Context
from sui_ptb.errors import ExternalLookupError, PTBError
from sui_ptb.commands.prerequisites import iter_owned_objects
from sui_ptb.helpers.addresses import decode_address_value
from sui_ptb.helpers.sui_client import SuiClient

logger = logging.getLogger(__name__)

OFFRAMP_MODULE = "offramp"
OFFRAMP_STATE_POINTER_TAG = "offramp::OffRampStatePointer"
CCIP_OBJECT_REF_POINTER_TAG = "state_object::CCIPObjectRefPointer"


@dataclass(frozen=True)
class AddressMappings:
    ccip_package_id: str
    ccip_object_ref: str
    ccip_owner_cap: str
    offramp_package_id: str
    offramp_state: str
    clock_object: str = CLOCK_OBJECT_ID

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


def _pointer_fields(ctx: Context, client: SuiClient, owner: str, tag: str) -> dict:
    for obj in iter_owned_objects(ctx, client, owner):
        if obj.type and tag in obj.type:
            logger.debug(f"Found {tag} {obj.object_id}: {obj.fields}")
            return obj.fields
    raise ExternalLookupError(f"No {tag} owned by {owner}")


def _required_field(fields: dict, name: str, tag: str) -> str:
    value = fields.get(name)
    if not isinstance(value, str) or not value:
        raise ExternalLookupError(f"{tag} is missing field {name}")
    return value


def discover_address_mappings(
    ctx: Context,
    client: SuiClient,
    offramp_package_id: str,
    signer_address: str,
) -> AddressMappings:
    """
    Discover the CCIP addresses an off-ramp transaction refers to.

    Args:
        ctx: Build context
        client: RPC collaborator
        offramp_package_id: Package id of the off-ramp
        signer_address: Sender used for read-only calls

    Returns:
        AddressMappings for the off-ramp

    Raises:
        ExternalLookupError: If a read fails or a pointer object is missing
    """
    ctx.check("reading ccip package id")
    try:
        response = client.read_function(
            ctx, signer_address, offramp_package_id, OFFRAMP_MODULE, "get_ccip_package_id", [], []
        )
    except PTBError:
        raise
    except Exception as e:
        raise ExternalLookupError(f"Failed to read ccip package id: {e}") from e

    if not response:
        raise ExternalLookupError("get_ccip_package_id returned no value")
    try:
        ccip_package_id = decode_address_value(response[0])
    except ValueError as e:
        raise ExternalLookupError(f"Unexpected ccip package id {response[0]!r}: {e}") from e
    logger.debug(f"ccip package id: {ccip_package_id}")

    state_pointer = _pointer_fields(ctx, client, offramp_package_id, OFFRAMP_STATE_POINTER_TAG)
    offramp_state = _required_field(state_pointer, "off_ramp_state_id", OFFRAMP_STATE_POINTER_TAG)

    ref_pointer = _pointer_fields(ctx, client, ccip_package_id, CCIP_OBJECT_REF_POINTER_TAG)
    mappings = AddressMappings(
        ccip_package_id=ccip_package_id,
        ccip_object_ref=_required_field(ref_pointer, "object_ref_id", CCIP_OBJECT_REF_POINTER_TAG),
        ccip_owner_cap=_required_field(ref_pointer, "owner_cap_id", CCIP_OBJECT_REF_POINTER_TAG),
        offramp_package_id=offramp_package_id,
        offramp_state=offramp_state,
    )
    logger.info(f"Discovered off-ramp address mappings for {offramp_package_id}")
    return mappings
