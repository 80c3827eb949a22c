"""
Modello SQLAlchemy per i Soggiorni
Progetto: Hotel Manager (Gestionale Albergo)

Un soggiorno nasce al check-in e passa a `checked_out` una sola volta,
al salvataggio del conto finale.
"""

from __future__ import annotations

import datetime
import uuid
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hotel_pms.models import Base
from hotel_pms.models.mixins import TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from hotel_pms.models.guest import Guest
    from hotel_pms.models.room import Room


class Stay(Base, UUIDMixin, TimestampMixin):
    """
    Modello per i soggiorni in corso e conclusi.

    Attributes:
        guest_id: UUID dell'ospite
        room_id: UUID della camera
        arrival_at: Data/ora di check-in
        expected_departure_at: Data/ora di partenza prevista (nullable)
        actual_departure_at: Data/ora di partenza effettiva (valorizzata al check-out)
        num_guests: Numero di occupanti
        status: checked_in | active | checked_out
        checked_out_by: UUID dell'operatore che ha eseguito il check-out
        notes: Note libere
    """

    __tablename__ = "stays"

    guest_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("guests.id", ondelete="RESTRICT"),
        nullable=False,
        doc="UUID dell'ospite",
    )

    room_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("rooms.id", ondelete="RESTRICT"),
        nullable=False,
        doc="UUID della camera",
    )

    arrival_at: Mapped[datetime.datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        doc="Data/ora di check-in",
    )

    expected_departure_at: Mapped[datetime.datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        doc="Data/ora di partenza prevista",
    )

    actual_departure_at: Mapped[datetime.datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        doc="Data/ora di partenza effettiva",
    )

    num_guests: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=1,
        doc="Numero di occupanti",
    )

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="checked_in",
        doc="Stato soggiorno: checked_in, active, checked_out",
    )

    checked_out_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        nullable=True,
        doc="UUID dell'operatore che ha eseguito il check-out",
    )

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    guest: Mapped["Guest"] = relationship(
        "Guest",
        back_populates="stays",
        lazy="selectin",
    )

    room: Mapped["Room"] = relationship(
        "Room",
        lazy="selectin",
    )

    @property
    def is_open(self) -> bool:
        """True se il soggiorno è ancora in corso."""
        return self.status in ("checked_in", "active")

    __table_args__ = (
        Index("ix_stays_guest_id", "guest_id"),
        Index("ix_stays_status", "status"),
        CheckConstraint(
            "status IN ('checked_in', 'active', 'checked_out')",
            name="ck_stays_status",
        ),
        CheckConstraint("num_guests >= 1", name="ck_stays_num_guests_positive"),
    )

    def __repr__(self) -> str:
        return f"<Stay(id={self.id}, guest={self.guest_id}, status={self.status})>"
