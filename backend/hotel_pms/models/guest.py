"""
Modello SQLAlchemy per gli Ospiti
Progetto: Hotel Manager (Gestionale Albergo)

L'anagrafica ospiti è gestita dal check-in; il motore di chiusura
conto la legge soltanto.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List

from sqlalchemy import Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hotel_pms.models import Base
from hotel_pms.models.mixins import TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from hotel_pms.models.folio import Folio
    from hotel_pms.models.stay import Stay


class Guest(Base, UUIDMixin, TimestampMixin):
    """
    Modello per gli ospiti dell'albergo.

    Attributes:
        id: UUID primary key
        full_name: Nome completo
        phone: Telefono
        email: Email (usata per l'invio del conto)
        address: Indirizzo
        id_type: Tipo documento d'identità
        id_number: Numero documento d'identità

    Relationships:
        stays: Soggiorni dell'ospite
        folios: Conti intestati all'ospite
    """

    __tablename__ = "guests"

    full_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        doc="Nome completo dell'ospite",
    )

    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    id_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    id_number: Mapped[str | None] = mapped_column(String(100), nullable=True)

    stays: Mapped[List["Stay"]] = relationship(
        "Stay",
        back_populates="guest",
        doc="Soggiorni dell'ospite",
    )

    folios: Mapped[List["Folio"]] = relationship(
        "Folio",
        back_populates="guest",
        doc="Conti intestati all'ospite",
    )

    __table_args__ = (
        Index("ix_guests_full_name", "full_name"),
    )

    def __repr__(self) -> str:
        return f"<Guest(id={self.id}, name={self.full_name})>"
