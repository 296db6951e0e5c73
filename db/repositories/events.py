"""Event repository — eligibility resolution.

An event is eligible when at least one metadata record shares its metadata key
and no processed marker exists for its dedup key. Both checks, plus the group
tag projection, are expressed in a single statement so the database plans them
together; nothing is re-checked per record afterwards.
"""
import logging
from typing import TYPE_CHECKING, Any, AsyncIterator, Callable, Dict, Optional, Sequence

from sqlalchemy import Select, exists, inspect, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased
from sqlalchemy.sql.elements import ColumnElement

from db.models import EmailGroup, EventMetadata

if TYPE_CHECKING:
    from pipeline.kinds import EventKind

logger = logging.getLogger(__name__)

EligibilityFilter = Callable[["EventKind"], ColumnElement[bool]]


def has_metadata(kind: "EventKind") -> ColumnElement[bool]:
    """At least one metadata record joins the event."""
    # Aliased: the enclosing query already joins metadata and would correlate it away.
    meta = aliased(EventMetadata)
    return exists().where(meta.meta_id == kind.source_column(kind.metadata_field))


def not_processed(kind: "EventKind") -> ColumnElement[bool]:
    """Anti-join against the kind's marker collection on the dedup key."""
    return ~exists().where(kind.marker_column() == kind.source_column(kind.dedup_field))


DEFAULT_FILTERS: Sequence[EligibilityFilter] = (has_metadata, not_processed)


def eligible_events_query(
    kind: "EventKind",
    filters: Sequence[EligibilityFilter] = DEFAULT_FILTERS,
) -> Select:
    """Build the joined select for one event kind.

    Each result row is (event, metadata record or None, group association or None);
    one event spans several consecutive rows when it has several metadata records
    or group tags. Rows are ordered so that stream_eligible() can fold them.
    """
    source = kind.source
    return (
        select(source, EventMetadata, EmailGroup)
        .select_from(source)
        .outerjoin(
            EventMetadata,
            EventMetadata.meta_id == kind.source_column(kind.metadata_field),
        )
        .outerjoin(
            EmailGroup,
            EmailGroup.tx_id == kind.source_column(kind.group_field),
        )
        .where(*(f(kind) for f in filters))
        .order_by(source.id, EventMetadata.id, EmailGroup.id)
    )


def _columns(obj: Any) -> Dict[str, Any]:
    """Column values of an ORM row, without the surrogate primary key."""
    return {
        attr.key: getattr(obj, attr.key)
        for attr in inspect(obj).mapper.column_attrs
        if attr.key != "id"
    }


async def stream_eligible(
    session: AsyncSession,
    kind: "EventKind",
    filters: Sequence[EligibilityFilter] = DEFAULT_FILTERS,
) -> AsyncIterator[Dict[str, Any]]:
    """Yield one raw joined document per eligible event.

    Documents carry the source columns plus 'metadata' (list of dicts in storage
    order) and 'group_tags' (list of tags in association order). Decoding them is
    the caller's job.
    """
    result = await session.stream(eligible_events_query(kind, filters))
    doc: Optional[Dict[str, Any]] = None
    current_id = None
    seen_metadata: set[int] = set()
    seen_groups: set[int] = set()
    try:
        async for event, metadata, group in result:
            if event.id != current_id:
                if doc is not None:
                    yield doc
                current_id = event.id
                doc = {**_columns(event), "metadata": [], "group_tags": []}
                seen_metadata, seen_groups = set(), set()

            if metadata is not None and metadata.id not in seen_metadata:
                seen_metadata.add(metadata.id)
                doc["metadata"].append(_columns(metadata))
            if group is not None and group.id not in seen_groups:
                seen_groups.add(group.id)
                doc["group_tags"].append(group.group)

        if doc is not None:
            yield doc
    finally:
        await result.close()
