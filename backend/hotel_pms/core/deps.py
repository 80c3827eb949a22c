"""
Dependency Injection per i servizi
Progetto: Hotel Manager (Gestionale Albergo)

Funzioni di dependency injection che costruiscono i servizi del motore
di chiusura conto con le implementazioni SQL di default. L'autenticazione
è esterna: l'operatore arriva nell'header `X-Operator-Id`.
"""

from typing import Annotated, Optional
from uuid import UUID
from zoneinfo import ZoneInfo

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from hotel_pms.core.config import Settings, SettlementConfig, get_settings
from hotel_pms.core.database import engine, get_db
from hotel_pms.services.charge_sources import default_charge_sources
from hotel_pms.services.checkout_service import CheckoutService
from hotel_pms.services.folio_service import FolioService
from hotel_pms.services.folio_store import SQLFolioStore
from hotel_pms.services.guest_lock import PostgresGuestLock
from hotel_pms.services.invoice_numbering import SQLInvoiceNumberGenerator
from hotel_pms.services.stay_store import SQLRoomStore, SQLStayStore
from hotel_pms.services.tax_service import RuleTableTaxEvaluator, load_active_tax_rules


async def get_operator_id(
    x_operator_id: Optional[UUID] = Header(
        None,
        alias="X-Operator-Id",
        description="UUID dell'operatore autenticato (fornito dal gateway di autenticazione)",
    ),
) -> Optional[UUID]:
    """Restituisce l'UUID dell'operatore che esegue la richiesta, se presente."""
    return x_operator_id


async def get_settlement_config(
    db: AsyncSession = Depends(get_db),
    app_settings: Settings = Depends(get_settings),
) -> SettlementConfig:
    """
    Costruisce la configurazione del motore: Settings + regole fiscali attive.

    Raises:
        SourceUnavailableError: regole fiscali non leggibili
    """
    tax_rules = await load_active_tax_rules(db)
    return SettlementConfig.from_settings(app_settings, tax_rules)


def get_checkout_service(
    config: SettlementConfig = Depends(get_settlement_config),
) -> CheckoutService:
    """Servizio di check-out con sorgenti, persistenza e lock SQL."""
    return CheckoutService(
        config=config,
        tax_evaluator=RuleTableTaxEvaluator(config.tax_rules),
        charge_sources=default_charge_sources(),
        folio_store=SQLFolioStore(),
        stay_store=SQLStayStore(),
        room_store=SQLRoomStore(),
        invoice_numbers=SQLInvoiceNumberGenerator(),
        guest_lock=PostgresGuestLock(engine),
    )


def get_folio_service(app_settings: Settings = Depends(get_settings)) -> FolioService:
    return FolioService(
        folio_store=SQLFolioStore(),
        stay_store=SQLStayStore(),
        invoice_numbers=SQLInvoiceNumberGenerator(),
        tz=ZoneInfo(app_settings.timezone),
    )


# Type aliases per uso comune
DbSession = Annotated[AsyncSession, Depends(get_db)]
OperatorId = Annotated[Optional[UUID], Depends(get_operator_id)]
CheckoutServiceDep = Annotated[CheckoutService, Depends(get_checkout_service)]
FolioServiceDep = Annotated[FolioService, Depends(get_folio_service)]


# Export
__all__ = [
    "get_operator_id",
    "get_settlement_config",
    "get_checkout_service",
    "get_folio_service",
    "DbSession",
    "OperatorId",
    "CheckoutServiceDep",
    "FolioServiceDep",
]
