"""
Modello SQLAlchemy per le Regole Fiscali
Progetto: Hotel Manager (Gestionale Albergo)

Le regole sono configurate dall'amministrazione; il motore le legge
(solo quelle attive) per costruire il valutatore fiscale di default.
"""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import JSON, Boolean, CheckConstraint, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from hotel_pms.models import Base
from hotel_pms.models.mixins import TimestampMixin, UUIDMixin


class TaxRule(Base, UUIDMixin, TimestampMixin):
    """
    Regola fiscale.

    Attributes:
        name: Nome dell'imposta (es. CGST, SGST, Tassa di soggiorno)
        percentage: Aliquota percentuale
        applies_to: Categorie fiscali a cui si applica (lista vuota = tutte)
        is_active: Flag regola attiva
    """

    __tablename__ = "tax_rules"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    percentage: Mapped[Decimal] = mapped_column(
        Numeric(5, 2),
        nullable=False,
        doc="Aliquota percentuale",
    )

    applies_to: Mapped[list[str]] = mapped_column(
        JSON,
        nullable=False,
        default=list,
        doc="Categorie fiscali (room_charges, food_beverage, spa, ...)",
    )

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (
        CheckConstraint(
            "percentage >= 0 AND percentage <= 100",
            name="ck_tax_rules_percentage",
        ),
    )

    def __repr__(self) -> str:
        return f"<TaxRule(name={self.name}, percentage={self.percentage})>"
