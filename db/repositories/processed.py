"""Processed-marker repository — the per-kind blacklist."""
import logging
from typing import TYPE_CHECKING, Iterable

from sqlalchemy import insert, select
from sqlalchemy.ext.asyncio import AsyncSession

if TYPE_CHECKING:
    from pipeline.kinds import EventKind

logger = logging.getLogger(__name__)


async def record_processed(
    session: AsyncSession, kind: "EventKind", keys: Iterable[str]
) -> int:
    """Insert one marker per distinct dedup key in a single bulk statement.

    Keys are deduplicated in first-seen order. An empty key list issues no
    statement. Returns the number of markers written.
    """
    unique_keys = list(dict.fromkeys(keys))
    if not unique_keys:
        return 0
    await session.execute(
        insert(kind.marker),
        [{kind.dedup_field: key} for key in unique_keys],
    )
    await session.flush()
    return len(unique_keys)


async def get_processed_keys(session: AsyncSession, kind: "EventKind") -> set[str]:
    """Return every dedup key already marked for this kind."""
    result = await session.execute(select(kind.marker_column()))
    return {row[0] for row in result.all()}
