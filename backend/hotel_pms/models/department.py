"""
Modelli SQLAlchemy per gli addebiti dei Reparti
Progetto: Hotel Manager (Gestionale Albergo)

Contiene:
- DepartmentOrder: Ordine di bar, ristorante o cucina intestato a un ospite
- DepartmentOrderItem: Righe dell'ordine
- SpaService: Catalogo servizi spa
- SpaBooking: Prenotazione spa intestata a un ospite

Gli ordini appartengono ai rispettivi reparti: il motore di chiusura conto
li legge e, al check-out, li segna come pagati (payment_status = 'paid')
registrando il conto che li ha saldati.
"""

from __future__ import annotations

import uuid
from decimal import Decimal
from typing import List

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, Numeric, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hotel_pms.models import Base
from hotel_pms.models.mixins import TimestampMixin, UUIDMixin


# Stati di pagamento che rendono un ordine ancora da addebitare
OUTSTANDING_PAYMENT_STATUSES = ("pending", "partial", "unpaid")


class DepartmentOrder(Base, UUIDMixin, TimestampMixin):
    """
    Ordine di un reparto food & beverage.

    Attributes:
        department: bar | restaurant | kitchen
        order_number: Numero ordine del reparto
        guest_id: UUID dell'ospite (nullable per clienti esterni)
        total_amount: Totale ordine
        payment_status: pending | partial | unpaid | paid
        folio_id: UUID del conto che ha saldato l'ordine
    """

    __tablename__ = "department_orders"

    department: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        doc="Reparto di origine: bar, restaurant, kitchen",
    )

    order_number: Mapped[str] = mapped_column(String(30), nullable=False)

    guest_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("guests.id", ondelete="SET NULL"),
        nullable=True,
    )

    total_amount: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        nullable=False,
        default=Decimal("0.00"),
    )

    payment_status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="pending",
        doc="Stato pagamento: pending, partial, unpaid, paid",
    )

    folio_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("folios.id", ondelete="SET NULL"),
        nullable=True,
        doc="Conto che ha saldato l'ordine",
    )

    items: Mapped[List["DepartmentOrderItem"]] = relationship(
        "DepartmentOrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="DepartmentOrderItem.line_number",
    )

    __table_args__ = (
        Index("ix_department_orders_guest_department", "guest_id", "department"),
        Index("ix_department_orders_number", "department", "order_number", unique=True),
        CheckConstraint(
            "department IN ('bar', 'restaurant', 'kitchen')",
            name="ck_department_orders_department",
        ),
        CheckConstraint(
            "payment_status IN ('pending', 'partial', 'unpaid', 'paid')",
            name="ck_department_orders_payment_status",
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<DepartmentOrder(id={self.id}, department={self.department}, "
            f"number={self.order_number}, status={self.payment_status})>"
        )


class DepartmentOrderItem(Base, UUIDMixin, TimestampMixin):
    """Riga di un ordine di reparto."""

    __tablename__ = "department_order_items"

    order_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("department_orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    line_number: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    item_name: Mapped[str] = mapped_column(String(255), nullable=False)
    quantity: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("1"))
    unit_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    total_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)

    order: Mapped["DepartmentOrder"] = relationship(
        "DepartmentOrder",
        back_populates="items",
    )

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_department_order_items_quantity_positive"),
        CheckConstraint("total_price >= 0", name="ck_department_order_items_total_positive"),
    )


class SpaService(Base, UUIDMixin, TimestampMixin):
    """Servizio offerto dalla spa."""

    __tablename__ = "spa_services"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    duration_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True)


class SpaBooking(Base, UUIDMixin, TimestampMixin):
    """
    Prenotazione spa.

    A differenza degli ordini F&B, una prenotazione genera una sola riga
    di conto (quantità 1, tariffa = totale prenotazione). Un payment_status
    nullo equivale a "da pagare".
    """

    __tablename__ = "spa_bookings"

    booking_number: Mapped[str] = mapped_column(String(30), nullable=False, unique=True)

    guest_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("guests.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    spa_service_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("spa_services.id", ondelete="SET NULL"),
        nullable=True,
    )

    total_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="scheduled",
        doc="Stato operativo: scheduled, completed, cancelled",
    )

    payment_status: Mapped[str | None] = mapped_column(
        String(20),
        nullable=True,
        doc="Stato pagamento: pending, partial, unpaid, paid (NULL = da pagare)",
    )

    folio_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("folios.id", ondelete="SET NULL"),
        nullable=True,
    )

    spa_service: Mapped["SpaService | None"] = relationship(
        "SpaService",
        lazy="selectin",
    )

    __table_args__ = (
        CheckConstraint("total_amount >= 0", name="ck_spa_bookings_total_positive"),
    )
