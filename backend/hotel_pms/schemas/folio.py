"""
Schemas Pydantic per Conti e Check-out
Progetto: Hotel Manager (Gestionale Albergo)

Contiene:
- Schemas per FolioLineItem e Folio (lettura, lista paginata)
- Schemas per la richiesta di check-out, anteprima ed esito
- Schemas per acconti e pagamenti su conto
"""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field

from hotel_pms.schemas.settlement import (
    AdvancePayment,
    ChargeLine,
    DepartmentCharge,
    FolioStatus,
    PaymentMethod,
    SettlementSummary,
    StayAdjustment,
    TaxLine,
)
from hotel_pms.schemas.stay import StayRead


# -------------------------------------------------------------------
# Schemas per FolioLineItem
# -------------------------------------------------------------------

class FolioLineItemRead(BaseModel):
    """Schema per la lettura di una riga di conto."""

    id: uuid.UUID = Field(..., description="UUID della riga")
    line_number: int = Field(
        ...,
        ge=1,
        description="Numero progressivo riga nel conto",
        serialization_alias="lineNumber",
    )
    description: str = Field(..., description="Descrizione (categoria: voce)")
    quantity: Decimal = Field(..., description="Quantità")
    unit_price: Decimal = Field(
        ...,
        description="Prezzo unitario",
        serialization_alias="unitPrice",
    )
    total_price: Decimal = Field(
        ...,
        description="Totale riga",
        serialization_alias="totalPrice",
    )

    model_config = ConfigDict(from_attributes=True)


# -------------------------------------------------------------------
# Schemas per Folio
# -------------------------------------------------------------------

class FolioRead(BaseModel):
    """Schema per la lettura di un conto."""

    id: uuid.UUID = Field(..., description="UUID del conto")
    invoice_number: str = Field(
        ...,
        description="Numero fattura progressivo annuale",
        serialization_alias="invoiceNumber",
    )
    guest_id: uuid.UUID = Field(..., serialization_alias="guestId")
    stay_id: Optional[uuid.UUID] = Field(None, serialization_alias="stayId")
    subtotal: Decimal = Field(..., description="Somma delle righe")
    tax_amount: Decimal = Field(..., serialization_alias="taxAmount")
    discount_amount: Decimal = Field(..., serialization_alias="discountAmount")
    total_amount: Decimal = Field(..., serialization_alias="totalAmount")
    paid_amount: Decimal = Field(..., serialization_alias="paidAmount")
    advance_amount: Decimal = Field(Decimal("0.00"), serialization_alias="advanceAmount")
    status: FolioStatus = Field(..., description="Stato del conto")
    payment_method: Optional[str] = Field(None, serialization_alias="paymentMethod")
    notes: Optional[str] = Field(None, description="Note libere")
    created_at: datetime = Field(..., serialization_alias="createdAt")
    updated_at: datetime = Field(..., serialization_alias="updatedAt")

    lines: list[FolioLineItemRead] = Field(
        default_factory=list,
        description="Righe del conto",
    )

    @computed_field(alias="balanceDue")
    @property
    def balance_due(self) -> Decimal:
        """Importo ancora da incassare."""
        return max(self.total_amount - self.paid_amount, Decimal("0.00"))

    @computed_field(alias="refundDue")
    @property
    def refund_due(self) -> Decimal:
        """Importo da restituire all'ospite."""
        return max(self.paid_amount - self.total_amount, Decimal("0.00"))

    model_config = ConfigDict(from_attributes=True)


class FolioList(BaseModel):
    """Schema per la lista paginata dei conti."""

    items: list[FolioRead] = Field(default_factory=list)
    total: int = Field(..., serialization_alias="totalItems")
    page: int = Field(..., serialization_alias="currentPage")
    per_page: int = Field(..., serialization_alias="itemsPerPage")
    total_pages: int = Field(..., serialization_alias="totalPages")

    model_config = ConfigDict(from_attributes=True)


# -------------------------------------------------------------------
# Schemas per Check-out
# -------------------------------------------------------------------

class CheckoutRequest(BaseModel):
    """Dati inseriti dall'operatore al momento del check-out."""

    additional_charges: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        description="Addebito extra manuale",
        serialization_alias="additionalCharges",
    )
    additional_charges_note: Optional[str] = Field(
        None,
        max_length=500,
        description="Causale dell'addebito extra (anche nota del conto)",
        serialization_alias="additionalChargesNote",
    )
    discount: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        description="Sconto in valore assoluto",
    )
    payment_method: PaymentMethod = Field(
        default=PaymentMethod.CASH,
        description="Metodo di pagamento del saldo",
        serialization_alias="paymentMethod",
    )
    amount_paid: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        description="Importo incassato ora",
        serialization_alias="amountPaid",
    )

    model_config = ConfigDict(from_attributes=True)


class CheckoutPreview(BaseModel):
    """Anteprima del conto di chiusura, senza alcuna scrittura."""

    stay: StayRead
    currency_symbol: str = Field(..., serialization_alias="currencySymbol")
    charges: list[ChargeLine] = Field(default_factory=list)
    settled_charges: list[DepartmentCharge] = Field(
        default_factory=list,
        description="Addebiti già saldati presso il reparto (solo visualizzazione)",
        serialization_alias="settledCharges",
    )
    stay_adjustment: StayAdjustment = Field(..., serialization_alias="stayAdjustment")
    tax_lines: list[TaxLine] = Field(default_factory=list, serialization_alias="taxLines")
    advance_payment: Optional[AdvancePayment] = Field(None, serialization_alias="advancePayment")
    summary: SettlementSummary


class CheckoutResult(BaseModel):
    """Esito del check-out: conto finalizzato e stato risultante."""

    folio: FolioRead
    charges: list[ChargeLine] = Field(default_factory=list)
    tax_lines: list[TaxLine] = Field(default_factory=list, serialization_alias="taxLines")
    stay_adjustment: StayAdjustment = Field(..., serialization_alias="stayAdjustment")
    summary: SettlementSummary
    stay_status: str = Field(..., serialization_alias="stayStatus")
    room_status: str = Field(..., serialization_alias="roomStatus")
    settled_orders: int = Field(
        default=0,
        description="Numero di ordini/prenotazioni di reparto saldati",
        serialization_alias="settledOrders",
    )


# -------------------------------------------------------------------
# Schemas per acconti e pagamenti
# -------------------------------------------------------------------

class AdvancePaymentCreate(BaseModel):
    """Registrazione di un acconto (tipicamente al check-in)."""

    guest_id: uuid.UUID = Field(..., description="UUID dell'ospite")
    stay_id: Optional[uuid.UUID] = Field(
        None,
        description="UUID del soggiorno, se già noto (stima il totale camera)",
    )
    amount: Decimal = Field(..., gt=0, description="Importo versato")
    payment_method: PaymentMethod = Field(default=PaymentMethod.CASH)
    notes: Optional[str] = Field(None, max_length=500)


class FolioPaymentCreate(BaseModel):
    """Incasso aggiuntivo su un conto esistente."""

    amount: Decimal = Field(..., gt=0, description="Importo incassato")
    payment_method: PaymentMethod = Field(default=PaymentMethod.CASH)
