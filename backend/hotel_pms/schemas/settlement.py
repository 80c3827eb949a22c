"""
Schemas Pydantic per la Chiusura Conto
Progetto: Hotel Manager (Gestionale Albergo)

Contiene:
- Enums: Department, ChargeCategory, SettlementState, AdjustmentType,
  FolioStatus, PaymentMethod
- DTO addebiti di reparto (DepartmentCharge, DepartmentChargeSet)
- DTO transitori del calcolo (ChargeLine, TaxLine, StayAdjustment,
  SettlementSummary)
- TaxRuleConfig: regola fiscale validata, parte della configurazione

Ogni lettura dai reparti o dal database passa da questi DTO tipizzati:
il motore non lavora mai su dizionari non validati.
"""

import uuid
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field


TWO_PLACES = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value) -> Decimal:
    """Converte un importo in Decimal arrotondato a 2 decimali (ROUND_HALF_UP)."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


# -------------------------------------------------------------------
# Enum
# -------------------------------------------------------------------

class ChargeCategory(str, Enum):
    """Categorie delle righe di conto (prefisso della descrizione)."""
    ROOM = "Room"
    BAR = "Bar"
    RESTAURANT = "Restaurant"
    KITCHEN = "Kitchen"
    SPA = "Spa"
    STAY_ADJUSTMENT = "Stay Adjustment"
    ADDITIONAL = "Additional"


class Department(str, Enum):
    """Reparti che generano addebiti sul conto ospite."""
    BAR = "bar"
    RESTAURANT = "restaurant"
    KITCHEN = "kitchen"
    SPA = "spa"

    @property
    def category(self) -> ChargeCategory:
        """Categoria di conto corrispondente al reparto."""
        return _DEPARTMENT_CATEGORIES[self]


_DEPARTMENT_CATEGORIES = {
    Department.BAR: ChargeCategory.BAR,
    Department.RESTAURANT: ChargeCategory.RESTAURANT,
    Department.KITCHEN: ChargeCategory.KITCHEN,
    Department.SPA: ChargeCategory.SPA,
}

# Ordine di consolidamento degli addebiti sul conto
DEPARTMENT_ORDER: tuple[Department, ...] = (
    Department.BAR,
    Department.RESTAURANT,
    Department.KITCHEN,
    Department.SPA,
)


class SettlementState(str, Enum):
    """Stato di saldo di un addebito di reparto."""
    OUTSTANDING = "outstanding"
    SETTLED = "settled"


class AdjustmentType(str, Enum):
    """Classificazione della partenza rispetto alle notti prenotate."""
    EARLY = "early"
    LATE = "late"
    ON_TIME = "on_time"


class FolioStatus(str, Enum):
    """Stato del conto."""
    PENDING = "pending"
    PARTIAL = "partial"
    PAID = "paid"
    REFUNDED = "refunded"


class PaymentMethod(str, Enum):
    """Metodi di pagamento supportati."""
    CASH = "cash"
    CARD = "card"
    UPI = "upi"
    BANK_TRANSFER = "bank_transfer"
    OTHER = "other"


# -------------------------------------------------------------------
# Addebiti di reparto
# -------------------------------------------------------------------

class DepartmentCharge(BaseModel):
    """
    Singolo addebito proveniente da un ordine/prenotazione di reparto.

    Più addebiti possono condividere lo stesso source_id (righe dello
    stesso ordine): il saldo avviene per source_id.
    """

    model_config = ConfigDict(frozen=True, from_attributes=True)

    source_id: uuid.UUID = Field(..., description="UUID dell'ordine o prenotazione di origine")
    department: Department
    description: str = Field(..., min_length=1)
    quantity: Decimal = Field(..., gt=0)
    unit_rate: Decimal = Field(..., ge=0)
    line_total: Decimal = Field(..., ge=0)
    state: SettlementState = SettlementState.OUTSTANDING

    @property
    def category(self) -> ChargeCategory:
        return self.department.category


class DepartmentChargeSet(BaseModel):
    """Addebiti di un reparto per un ospite, separati per stato di saldo."""

    model_config = ConfigDict(frozen=True)

    department: Department
    outstanding: tuple[DepartmentCharge, ...] = ()
    settled: tuple[DepartmentCharge, ...] = ()

    @property
    def outstanding_source_ids(self) -> list[uuid.UUID]:
        """UUID degli ordini ancora da saldare, senza duplicati, in ordine di lettura."""
        return list(dict.fromkeys(charge.source_id for charge in self.outstanding))


# -------------------------------------------------------------------
# Righe di calcolo
# -------------------------------------------------------------------

class ChargeLine(BaseModel):
    """Riga di addebito transitoria del conto (non persistita direttamente)."""

    model_config = ConfigDict(frozen=True)

    category: ChargeCategory
    description: str
    quantity: Decimal
    rate: Decimal
    total: Decimal

    @property
    def folio_description(self) -> str:
        """Descrizione della riga di conto, prefissata dalla categoria."""
        return f"{self.category.value}: {self.description}"


class TaxLine(BaseModel):
    """Imposta calcolata: nome, aliquota e importo."""

    model_config = ConfigDict(frozen=True)

    name: str
    percentage: Decimal
    amount: Decimal


class TaxRuleConfig(BaseModel):
    """Regola fiscale attiva, come letta dalla configurazione."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    name: str = Field(..., min_length=1)
    percentage: Decimal = Field(..., ge=0, le=100)
    applies_to: tuple[str, ...] = Field(
        default=(),
        description="Categorie fiscali a cui si applica (vuoto = tutte)",
    )


class StayAdjustment(BaseModel):
    """Adeguamento per partenza anticipata o posticipata."""

    model_config = ConfigDict(frozen=True)

    type: AdjustmentType
    nights_diff: int = Field(..., ge=0)
    amount: Decimal = Field(..., ge=0)
    booked_nights: int = Field(..., ge=1)
    stayed_nights: int = Field(..., ge=1)
    nightly_rate: Decimal

    @property
    def signed_amount(self) -> Decimal:
        """Importo con segno: positivo se extra, negativo se rimborso."""
        if self.type == AdjustmentType.EARLY:
            return -self.amount
        return self.amount


class SettlementSummary(BaseModel):
    """
    Risultato del calcolo di chiusura.

    Un saldo negativo non compare mai come importo dovuto: viene
    esposto come refund_due con balance_due a zero.
    """

    model_config = ConfigDict(frozen=True)

    subtotal: Decimal
    tax_total: Decimal
    discount: Decimal
    grand_total: Decimal
    advance_paid: Decimal
    amount_paid_now: Decimal
    balance_due: Decimal
    refund_due: Decimal
    status: FolioStatus

    @computed_field
    @property
    def total_paid(self) -> Decimal:
        """Acconto + incasso al check-out."""
        return self.advance_paid + self.amount_paid_now

    @computed_field
    @property
    def is_refund(self) -> bool:
        return self.refund_due > 0


class AdvancePayment(BaseModel):
    """Vista di un conto in stato partial usato come acconto."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: uuid.UUID
    guest_id: uuid.UUID
    stay_id: Optional[uuid.UUID] = None
    invoice_number: str
    paid_amount: Decimal
