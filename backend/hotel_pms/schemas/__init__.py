"""
Schemas Pydantic per il progetto Hotel Manager

Questo modulo contiene tutti gli schemi Pydantic utilizzati per la validazione
e serializzazione delle risposte API e dei DTO del motore di chiusura conto.
"""

# es: from hotel_pms.schemas import ChargeLine, FolioRead, etc.

from hotel_pms.schemas.settlement import (
    AdjustmentType,
    AdvancePayment,
    ChargeCategory,
    ChargeLine,
    DEPARTMENT_ORDER,
    Department,
    DepartmentCharge,
    DepartmentChargeSet,
    FolioStatus,
    PaymentMethod,
    SettlementState,
    SettlementSummary,
    StayAdjustment,
    TaxLine,
    TaxRuleConfig,
    to_money,
)
from hotel_pms.schemas.stay import GuestBrief, RoomBrief, StayRead, StayStatus
from hotel_pms.schemas.folio import (
    AdvancePaymentCreate,
    CheckoutPreview,
    CheckoutRequest,
    CheckoutResult,
    FolioLineItemRead,
    FolioList,
    FolioPaymentCreate,
    FolioRead,
)

__all__ = [
    "AdjustmentType",
    "AdvancePayment",
    "ChargeCategory",
    "ChargeLine",
    "DEPARTMENT_ORDER",
    "Department",
    "DepartmentCharge",
    "DepartmentChargeSet",
    "FolioStatus",
    "PaymentMethod",
    "SettlementState",
    "SettlementSummary",
    "StayAdjustment",
    "TaxLine",
    "TaxRuleConfig",
    "to_money",
    "GuestBrief",
    "RoomBrief",
    "StayRead",
    "StayStatus",
    "AdvancePaymentCreate",
    "CheckoutPreview",
    "CheckoutRequest",
    "CheckoutResult",
    "FolioLineItemRead",
    "FolioList",
    "FolioPaymentCreate",
    "FolioRead",
]
