"""
Modelli SQLAlchemy per i Conti (Folio)
Progetto: Hotel Manager (Gestionale Albergo)

Contiene:
- Folio: Conto/fattura finale di un soggiorno (o acconto pre-creato)
- FolioLineItem: Righe del conto
"""

from __future__ import annotations

import uuid
from decimal import Decimal
from typing import TYPE_CHECKING, List

from sqlalchemy import (
    CheckConstraint,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hotel_pms.models import Base
from hotel_pms.models.mixins import TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from hotel_pms.models.guest import Guest
    from hotel_pms.models.stay import Stay


class Folio(Base, UUIDMixin, TimestampMixin):
    """
    Modello per i conti ospite.

    Un conto viene creato una sola volta per soggiorno concluso. Può essere
    pre-creato da un acconto versato al check-in (collegato al soggiorno
    se noto) e viene poi finalizzato, NON ricreato, al check-out: il numero
    fattura resta quello assegnato all'acconto.

    Attributes:
        invoice_number: Numero progressivo annuale (YYYY/NNNN), mai riassegnato
        guest_id: UUID dell'ospite intestatario
        stay_id: UUID del soggiorno (NULL per acconto non ancora collegato)
        subtotal: Somma delle righe del conto
        tax_amount: Totale imposte
        discount_amount: Sconto applicato
        total_amount: Totale conto (subtotal + tax_amount - discount_amount)
        paid_amount: Importo incassato (acconto + saldo)
        advance_amount: Quota di paid_amount versata prima del check-out
        status: pending | partial | paid | refunded
        payment_method: Metodo dell'ultimo incasso
        notes: Note libere (es. causale addebito extra)

    Relationships:
        guest: Ospite intestatario
        stay: Soggiorno saldato
        lines: Righe del conto
    """

    __tablename__ = "folios"

    # ------------------------------------------------------------
    # Colonne Relazioni
    # ------------------------------------------------------------
    guest_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("guests.id", ondelete="RESTRICT"),
        nullable=False,
        doc="UUID dell'ospite intestatario",
    )

    stay_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("stays.id", ondelete="RESTRICT"),
        nullable=True,
        unique=True,
        doc="UUID del soggiorno (un conto per soggiorno)",
    )

    # ------------------------------------------------------------
    # Colonne Identificazione
    # ------------------------------------------------------------
    invoice_number: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        unique=True,
        doc="Numero fattura progressivo annuale (formato: YYYY/NNNN)",
    )

    # ------------------------------------------------------------
    # Colonne Importi
    # ------------------------------------------------------------
    subtotal: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        default=Decimal("0.00"),
        doc="Somma delle righe del conto",
    )

    tax_amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        default=Decimal("0.00"),
        doc="Totale imposte",
    )

    discount_amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        default=Decimal("0.00"),
        doc="Sconto applicato",
    )

    total_amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        doc="Totale conto",
    )

    paid_amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        default=Decimal("0.00"),
        doc="Importo incassato",
    )

    advance_amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        default=Decimal("0.00"),
        doc="Parte dell'incassato versata prima del check-out (acconto)",
    )

    # ------------------------------------------------------------
    # Colonne Stato e Pagamento
    # ------------------------------------------------------------
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="pending",
        doc="Stato: pending, partial, paid, refunded",
    )

    payment_method: Mapped[str | None] = mapped_column(
        String(20),
        nullable=True,
        doc="Metodo di pagamento",
    )

    notes: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        doc="Note libere",
    )

    # ------------------------------------------------------------
    # Relationships
    # ------------------------------------------------------------
    guest: Mapped["Guest"] = relationship(
        "Guest",
        back_populates="folios",
        lazy="selectin",
    )

    stay: Mapped["Stay | None"] = relationship(
        "Stay",
        lazy="selectin",
    )

    lines: Mapped[List["FolioLineItem"]] = relationship(
        "FolioLineItem",
        back_populates="folio",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="FolioLineItem.line_number",
    )

    # ------------------------------------------------------------
    # Properties Calcolate
    # ------------------------------------------------------------
    @property
    def balance(self) -> Decimal:
        """Saldo residuo (negativo = da rimborsare)."""
        return self.total_amount - self.paid_amount

    @property
    def balance_due(self) -> Decimal:
        """Importo ancora da incassare, mai negativo."""
        return max(self.balance, Decimal("0.00"))

    @property
    def refund_due(self) -> Decimal:
        """Importo da restituire all'ospite, mai negativo."""
        return max(-self.balance, Decimal("0.00"))

    # ------------------------------------------------------------
    # Indici e Vincoli
    # ------------------------------------------------------------
    __table_args__ = (
        Index("ix_folios_guest_status", "guest_id", "status"),
        Index("ix_folios_created_at", "created_at"),
        CheckConstraint(
            "status IN ('pending', 'partial', 'paid', 'refunded')",
            name="ck_folios_status",
        ),
        CheckConstraint("tax_amount >= 0", name="ck_folios_tax_amount_positive"),
        CheckConstraint("discount_amount >= 0", name="ck_folios_discount_positive"),
        CheckConstraint("paid_amount >= 0", name="ck_folios_paid_amount_positive"),
        CheckConstraint("advance_amount >= 0", name="ck_folios_advance_amount_positive"),
    )

    def __repr__(self) -> str:
        return (
            f"<Folio(id={self.id}, number={self.invoice_number}, "
            f"total={self.total_amount}, status={self.status})>"
        )


class FolioLineItem(Base, UUIDMixin, TimestampMixin):
    """
    Riga del conto.

    La descrizione è prefissata dalla categoria di addebito
    (es. "Bar: Mojito"). Le righe vengono sostituite in blocco quando
    un conto di acconto viene finalizzato.
    """

    __tablename__ = "folio_line_items"

    folio_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("folios.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        doc="UUID del conto padre",
    )

    line_number: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        doc="Numero progressivo riga nel conto",
    )

    description: Mapped[str] = mapped_column(String(500), nullable=False)

    quantity: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        nullable=False,
        default=Decimal("1"),
    )

    unit_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    total_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    folio: Mapped["Folio"] = relationship(
        "Folio",
        back_populates="lines",
    )

    __table_args__ = (
        Index("ix_folio_line_items_folio_number", "folio_id", "line_number"),
    )

    def __repr__(self) -> str:
        return f"<FolioLineItem(folio={self.folio_id}, description={self.description[:30]})>"
