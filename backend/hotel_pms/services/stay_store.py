"""
Persistenza di Soggiorni e Camere
Progetto: Hotel Manager (Gestionale Albergo)
"""

import datetime
import uuid
from typing import Optional, Protocol

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from hotel_pms.models import Room, Stay
from hotel_pms.schemas.stay import OPEN_STAY_STATUSES, StayStatus


class StayStore(Protocol):
    """Interfaccia di persistenza dei soggiorni."""

    async def get(self, db: AsyncSession, stay_id: uuid.UUID) -> Optional[Stay]:
        ...

    async def list_open(self, db: AsyncSession) -> list[Stay]:
        ...

    async def mark_checked_out(
        self,
        db: AsyncSession,
        stay: Stay,
        operator_id: Optional[uuid.UUID],
        at: datetime.datetime,
    ) -> Stay:
        ...


class RoomStore(Protocol):
    """Interfaccia di persistenza delle camere."""

    async def set_status(
        self,
        db: AsyncSession,
        room_id: uuid.UUID,
        status: str,
        at: datetime.datetime,
    ) -> None:
        ...


class SQLStayStore:
    """Implementazione SQLAlchemy di StayStore."""

    async def get(self, db: AsyncSession, stay_id: uuid.UUID) -> Optional[Stay]:
        """Soggiorno con ospite, camera e tipologia camera."""
        stmt = (
            select(Stay)
            .where(Stay.id == stay_id)
            .execution_options(populate_existing=True)
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    async def list_open(self, db: AsyncSession) -> list[Stay]:
        """Soggiorni in attesa di check-out, più recenti prima."""
        stmt = (
            select(Stay)
            .where(Stay.status.in_(OPEN_STAY_STATUSES))
            .order_by(Stay.arrival_at.desc())
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())

    async def mark_checked_out(
        self,
        db: AsyncSession,
        stay: Stay,
        operator_id: Optional[uuid.UUID],
        at: datetime.datetime,
    ) -> Stay:
        stay.status = StayStatus.CHECKED_OUT.value
        stay.actual_departure_at = at
        stay.checked_out_by = operator_id
        await db.flush()
        return stay


class SQLRoomStore:
    """Implementazione SQLAlchemy di RoomStore."""

    async def set_status(
        self,
        db: AsyncSession,
        room_id: uuid.UUID,
        status: str,
        at: datetime.datetime,
    ) -> None:
        stmt = (
            update(Room)
            .where(Room.id == room_id)
            .values(
                status=status,
                updated_at=at,
            )
        )
        await db.execute(stmt)
