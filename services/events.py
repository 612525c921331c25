"""
Domain events via a transactional outbox.

Services call `emit_event` in the same session as the write that caused the
event, so the event is committed (or rolled back) with it. The worker later
forwards pending events to the chat service; delivery is best-effort and never
affects the originating write.
"""
from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

import httpx
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from models.event import Event

logger = logging.getLogger(__name__)

DELIVERY_LEASE = timedelta(seconds=60)
MAX_BACKOFF_SECONDS = 300


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


async def emit_event(
    db: AsyncSession,
    event_type: str,
    entity_kind: str,
    entity_id: uuid.UUID,
    payload: dict | None = None,
) -> Event:
    """Add an outbox row to the caller's transaction."""
    event = Event(
        id=uuid.uuid4(),
        event_type=event_type,
        entity_kind=entity_kind,
        entity_id=entity_id,
        payload=payload or {},
        attempts=0,
    )
    db.add(event)
    await db.flush()
    logger.info("[%s] %s %s", event_type, entity_kind, entity_id)
    return event


async def claim_pending_events(
    db: AsyncSession,
    *,
    limit: int,
    max_attempts: int,
    now: datetime,
) -> list[Event]:
    """
    Leases a batch of undelivered events that are not backing off.

    The lease is written in the caller's transaction; once it commits the row
    locks are gone and other dispatchers skip these rows until the lease ends.
    """
    stmt = (
        select(Event)
        .where(
            Event.dispatched_at.is_(None),
            Event.attempts < max_attempts,
            or_(Event.next_attempt_at.is_(None), Event.next_attempt_at <= now),
        )
        .order_by(Event.created_at.asc())
        .limit(limit)
        .with_for_update(skip_locked=True)
    )
    result = await db.execute(stmt)
    events = list(result.scalars().all())

    for event in events:
        event.next_attempt_at = now + DELIVERY_LEASE
    await db.flush()
    return events


async def deliver_event(client: httpx.AsyncClient, url: str, event: Event) -> None:
    response = await client.put(url, json=event.payload)
    response.raise_for_status()


def retry_delay(attempts: int) -> timedelta:
    return timedelta(seconds=min(2 ** attempts, MAX_BACKOFF_SECONDS))


async def dispatch_pending_events(
    session_factory: async_sessionmaker[AsyncSession],
    client: httpx.AsyncClient,
    url: str,
    *,
    batch_size: int = 50,
    max_attempts: int = 5,
    clock: Callable[[], datetime] = utcnow,
) -> int:
    """Forward a batch of pending events. Returns how many were delivered."""
    async with session_factory() as db:
        events = await claim_pending_events(db, limit=batch_size, max_attempts=max_attempts, now=clock())
        await db.commit()

    if not events:
        return 0

    # No transaction is open while the chat service is called.
    delivered = 0
    for event in events:
        event.attempts += 1
        try:
            await deliver_event(client, url, event)
        except httpx.HTTPError as exc:
            event.error = str(exc)
            if event.attempts >= max_attempts:
                event.next_attempt_at = None
                logger.error(
                    "Giving up on event %s [%s] after %d attempts: %s",
                    event.id,
                    event.event_type,
                    event.attempts,
                    exc,
                )
            else:
                event.next_attempt_at = clock() + retry_delay(event.attempts)
                logger.warning(
                    "Event %s [%s] delivery failed, retry at %s: %s",
                    event.id,
                    event.event_type,
                    event.next_attempt_at.isoformat(),
                    exc,
                )
            continue

        event.dispatched_at = clock()
        event.next_attempt_at = None
        event.error = None
        delivered += 1

    async with session_factory() as db:
        db.add_all(events)
        await db.commit()

    logger.info("Dispatched %d/%d outbox events", delivered, len(events))
    return delivered
