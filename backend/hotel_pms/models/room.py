"""
Modelli SQLAlchemy per Camere e Tipologie
Progetto: Hotel Manager (Gestionale Albergo)

Contiene:
- RoomType: Tipologia camera con tariffa notte
- Room: Camera fisica con stato operativo
"""

from __future__ import annotations

import uuid
from decimal import Decimal
from typing import List

from sqlalchemy import CheckConstraint, ForeignKey, Integer, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hotel_pms.models import Base
from hotel_pms.models.mixins import TimestampMixin, UUIDMixin


ROOM_STATUSES = ("available", "occupied", "cleaning", "maintenance")


class RoomType(Base, UUIDMixin, TimestampMixin):
    """
    Tipologia di camera.

    La tariffa base notte (base_price) prezza sia la riga camera del conto
    sia l'adeguamento per partenza anticipata/posticipata.
    """

    __tablename__ = "room_types"

    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        unique=True,
        doc="Nome tipologia (es. Deluxe, Suite)",
    )

    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    base_price: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        nullable=False,
        default=Decimal("0.00"),
        doc="Tariffa base per notte",
    )

    max_occupancy: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=2,
        doc="Numero massimo di ospiti",
    )

    rooms: Mapped[List["Room"]] = relationship(
        "Room",
        back_populates="room_type",
    )

    __table_args__ = (
        CheckConstraint("base_price >= 0", name="ck_room_types_base_price_positive"),
    )

    def __repr__(self) -> str:
        return f"<RoomType(id={self.id}, name={self.name}, base_price={self.base_price})>"


class Room(Base, UUIDMixin, TimestampMixin):
    """
    Camera fisica.

    Attributes:
        room_number: Numero camera
        room_type_id: UUID tipologia
        status: available | occupied | cleaning | maintenance
    """

    __tablename__ = "rooms"

    room_number: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        unique=True,
        doc="Numero camera",
    )

    room_type_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("room_types.id", ondelete="SET NULL"),
        nullable=True,
        doc="UUID della tipologia camera",
    )

    floor: Mapped[int | None] = mapped_column(Integer, nullable=True)

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="available",
        doc="Stato operativo della camera",
    )

    room_type: Mapped["RoomType | None"] = relationship(
        "RoomType",
        back_populates="rooms",
        lazy="selectin",
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('available', 'occupied', 'cleaning', 'maintenance')",
            name="ck_rooms_status",
        ),
    )

    def __repr__(self) -> str:
        return f"<Room(id={self.id}, number={self.room_number}, status={self.status})>"
