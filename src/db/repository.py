"""Repository for the append-only call-event log."""

from __future__ import annotations

from sqlalchemy import desc, select

from calls.events import CallStatusEvent
from db.base import AsyncSessionFactory
from db.models import CallEvent


class CallEventRepository:
    """Async repository encapsulating storage operations."""

    async def add_event(self, event: CallStatusEvent) -> CallEvent:
        async with AsyncSessionFactory() as session:
            record = CallEvent(
                call_sid=event.call_sid,
                kind=event.kind,
                status=event.status,
                to_number=event.to_number,
                from_number=event.from_number,
                direction=event.direction,
                duration_seconds=event.duration_seconds,
            )
            session.add(record)
            await session.commit()
            await session.refresh(record)
            return record

    async def list_events(self, call_sid: str) -> list[CallEvent]:
        async with AsyncSessionFactory() as session:
            query = (
                select(CallEvent)
                .where(CallEvent.call_sid == call_sid)
                .order_by(CallEvent.created_at, CallEvent.id)
            )
            result = await session.execute(query)
            return list(result.scalars().all())

    async def list_recent(self, *, limit: int = 50) -> list[CallEvent]:
        async with AsyncSessionFactory() as session:
            query = (
                select(CallEvent)
                .order_by(desc(CallEvent.created_at), desc(CallEvent.id))
                .limit(limit)
            )
            result = await session.execute(query)
            return list(result.scalars().all())
