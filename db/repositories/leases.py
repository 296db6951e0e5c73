"""Pass lease repository — single-flight guard across notifier processes.

A lease row per pass name means "a pass of this name is running". Overlapping
invocations fail to insert the row and skip their pass, which closes the window
where two passes resolve the same event before either writes its marker.
Leases carry an expiry so a crashed holder does not block passes forever.
"""
import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy import delete, insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from db.models import PassLease

logger = logging.getLogger(__name__)


async def try_acquire(
    session: AsyncSession, name: str, holder: str, ttl: timedelta
) -> bool:
    """Take the lease for `name`, returning False if a live holder exists.

    Expired leases are cleared first. Commits on its own so the lease is visible
    to other processes before the pass starts.
    """
    now = datetime.now(timezone.utc)
    await session.execute(
        delete(PassLease)
        .where(PassLease.name == name)
        .where(PassLease.expires_at < now)
    )
    try:
        await session.execute(
            insert(PassLease).values(
                name=name,
                holder=holder,
                acquired_at=now,
                expires_at=now + ttl,
            )
        )
        await session.commit()
    except IntegrityError:
        await session.rollback()
        logger.info("lease %s is held by another pass", name)
        return False
    return True


async def release(session: AsyncSession, name: str, holder: str) -> bool:
    """Drop the lease if `holder` still owns it. Returns True if a row was removed."""
    result = await session.execute(
        delete(PassLease)
        .where(PassLease.name == name)
        .where(PassLease.holder == holder)
    )
    await session.commit()
    return result.rowcount > 0
