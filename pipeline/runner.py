"""Notification pass runner.

One pass over one event kind:
  1. take the kind's pass lease (skip the pass if another holder is live)
  2. stream eligible events from the store
  3. decode, build and deliver one request per event, collecting dedup keys
  4. record every visited key as processed in one bulk insert
  5. release the lease

Visited means decoded: invalid contact addresses and failed deliveries are
marked too, so an event is attempted at most once. Records that fail to decode
are not marked and come back on the next pass.
"""
import asyncio
import logging
import os
import socket
import uuid
from contextlib import aclosing
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Iterable, List

from pydantic import BaseModel, ValidationError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

import db.repositories.events as events_repo
import db.repositories.leases as lease_repo
import db.repositories.processed as processed_repo
from app_config import Config
from db.connection import get_db
from pipeline.kinds import EventKind
from tools.email_api import InvalidContactError, build_request, deliver

logger = logging.getLogger(__name__)


@dataclass
class PassReport:
    kind: str
    visited: List[str] = field(default_factory=list)
    delivered: int = 0
    rejected: int = 0
    failed: int = 0
    decode_errors: int = 0
    marked: int = 0
    skipped: bool = False


def _holder_id() -> str:
    return f"{socket.gethostname()}:{os.getpid()}:{uuid.uuid4().hex[:8]}"


async def _notify(event: BaseModel, kind: EventKind, conf: Config, report: PassReport) -> None:
    try:
        request = build_request(
            event, kind.fields(event), conf.email.base_url, conf.email.api_key
        )
    except InvalidContactError as exc:
        logger.warning("%s", exc)
        report.rejected += 1
        return

    # requests is blocking; keep the event loop free while the POST is in flight.
    if await asyncio.to_thread(deliver, request, conf.email.timeout):
        report.delivered += 1
    else:
        report.failed += 1


async def _resolve_and_notify(
    session_factory: async_sessionmaker[AsyncSession],
    kind: EventKind,
    conf: Config,
    report: PassReport,
) -> None:
    try:
        async with get_db(session_factory) as session:
            async with aclosing(events_repo.stream_eligible(session, kind)) as docs:
                async for doc in docs:
                    try:
                        event = kind.decode(doc)
                    except ValidationError as exc:
                        report.decode_errors += 1
                        logger.error(
                            "Error parsing %s doc %s: %s",
                            kind.name,
                            doc.get(kind.dedup_field),
                            exc,
                        )
                        continue
                    await _notify(event, kind, conf, report)
                    report.visited.append(kind.dedup_key(event))
    except Exception as exc:
        # get_db already logged the traceback. Keys visited so far are still recorded.
        logger.error(
            "Error while processing %s, %d events visited before the failure: %s",
            kind.name,
            len(report.visited),
            exc,
        )


async def _record(
    session_factory: async_sessionmaker[AsyncSession],
    kind: EventKind,
    keys: Iterable[str],
) -> int:
    try:
        async with get_db(session_factory) as session:
            return await processed_repo.record_processed(session, kind, keys)
    except Exception as exc:
        logger.error(
            "Error inserting into '%s' collection: %s", kind.marker.__tablename__, exc
        )
        return 0


async def run_pass(
    session_factory: async_sessionmaker[AsyncSession],
    kind: EventKind,
    conf: Config,
) -> PassReport:
    """Run one notification pass for `kind`. Never raises; see PassReport."""
    report = PassReport(kind=kind.name)
    lease_name = f"notify:{kind.name}"
    holder = _holder_id()

    try:
        async with get_db(session_factory) as session:
            acquired = await lease_repo.try_acquire(
                session, lease_name, holder, timedelta(seconds=conf.scheduler.lease_ttl)
            )
    except Exception as exc:
        logger.error("Could not take lease %s, skipping %s pass: %s", lease_name, kind.name, exc)
        acquired = False
    if not acquired:
        report.skipped = True
        return report

    try:
        await _resolve_and_notify(session_factory, kind, conf, report)
        report.marked = await _record(session_factory, kind, report.visited)
    finally:
        try:
            async with get_db(session_factory) as session:
                await lease_repo.release(session, lease_name, holder)
        except Exception as exc:
            logger.error("Could not release lease %s: %s", lease_name, exc)

    logger.info(
        "%s pass: visited=%d delivered=%d rejected=%d failed=%d decode_errors=%d marked=%d",
        kind.name,
        len(report.visited),
        report.delivered,
        report.rejected,
        report.failed,
        report.decode_errors,
        report.marked,
    )
    return report


async def run_all(
    session_factory: async_sessionmaker[AsyncSession],
    kinds: Iterable[EventKind],
    conf: Config,
) -> List[PassReport]:
    """Run one pass per kind, one after the other."""
    return [await run_pass(session_factory, kind, conf) for kind in kinds]
