"""
Prerequisite object lookup.

Some operations need objects the caller does not pass in, such as a
capability owned by the signer. They are found by listing the owner's objects
and matching on a type tag fragment.
"""

import logging
from typing import Any, Iterator, MutableMapping, Optional, Sequence

from sui_ptb.context import Context
from sui_ptb.errors import AmbiguousPrerequisiteObject, ExternalLookupError, InvalidParameterShape, PTBError
from sui_ptb.helpers.sui_client import SuiClient
from sui_ptb.models import PrerequisiteObjectSpec, SuiObject

logger = logging.getLogger(__name__)


def iter_owned_objects(ctx: Context, client: SuiClient, owner: str) -> Iterator[SuiObject]:
    """Yield every object owned by ``owner``, following pagination cursors."""
    cursor: Optional[str] = None
    while True:
        ctx.check(f"listing objects of {owner}")
        try:
            page = client.list_owned_objects(ctx, owner, cursor)
        except PTBError:
            raise
        except Exception as e:
            raise ExternalLookupError(f"Failed to list objects owned by {owner}: {e}") from e
        yield from page.data
        if not page.has_next_page or page.next_cursor is None:
            return
        cursor = page.next_cursor


def find_owned_object(ctx: Context, client: SuiClient, owner: str, match_tag: str) -> list[SuiObject]:
    """All objects of ``owner`` whose type contains ``match_tag``."""
    return [obj for obj in iter_owned_objects(ctx, client, owner) if obj.type and match_tag in obj.type]


class PrerequisiteObjectResolver:
    def __init__(self, client: SuiClient):
        self.client = client

    def resolve(
        self,
        ctx: Context,
        specs: Sequence[PrerequisiteObjectSpec],
        values: MutableMapping[str, Any],
        owner_fallback: Optional[str] = None,
    ) -> MutableMapping[str, Any]:
        """
        Find each prerequisite object and write it into ``values``.

        Args:
            ctx: Build context
            specs: Objects to look up
            values: Argument values, updated in place
            owner_fallback: Owner to search when a spec names none (the signer)

        Returns:
            The updated ``values``

        Raises:
            InvalidParameterShape: If a spec has no owner and there is no fallback
            AmbiguousPrerequisiteObject: If more than one object matches a spec
        """
        for spec in specs:
            owner = spec.owner or owner_fallback
            if not owner:
                raise InvalidParameterShape(
                    f"Owner or owner fallback required for prerequisite object {spec.match_tag}",
                    param_name=spec.target_name or None,
                )

            matches = find_owned_object(ctx, self.client, owner, spec.match_tag)
            if not matches:
                logger.debug(f"No object of {owner} matches {spec.match_tag}")
                continue
            if len(matches) > 1:
                ids = ", ".join(m.object_id for m in matches)
                raise AmbiguousPrerequisiteObject(
                    f"{len(matches)} objects of {owner} match {spec.match_tag}: {ids}",
                    param_name=spec.target_name or None,
                )

            obj = matches[0]
            logger.debug(f"Found prerequisite object {obj.object_id} ({obj.type})")
            if spec.explode_fields:
                values.update(obj.fields)
            else:
                values[spec.target_name] = obj.object_id
        return values
