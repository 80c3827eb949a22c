"""
Router FastAPI per i Conti
Progetto: Hotel Manager (Gestionale Albergo)

Definisce gli endpoint per acconti, incassi e consultazione dei conti.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Path, Query, status

from hotel_pms.core.deps import DbSession, FolioServiceDep
from hotel_pms.schemas.folio import (
    AdvancePaymentCreate,
    FolioList,
    FolioPaymentCreate,
    FolioRead,
)
from hotel_pms.schemas.settlement import FolioStatus

# Router con prefix e tag
router = APIRouter(
    prefix="/folios",
    tags=["Conti"],
)


# -------------------------------------------------------------------
# Endpoints per Conti
# -------------------------------------------------------------------

@router.get(
    "/",
    name="conti_lista",
    summary="Lista conti",
    description="Recupera la lista paginata dei conti, con filtro opzionale per stato.",
    response_model=FolioList,
    status_code=status.HTTP_200_OK,
)
async def get_folios(
    db: DbSession,
    service: FolioServiceDep,
    status_filter: Optional[FolioStatus] = Query(
        None,
        alias="status",
        description="Filtro per stato (pending, partial, paid, refunded)",
    ),
    page: int = Query(1, ge=1, description="Numero pagina"),
    per_page: int = Query(10, ge=1, le=100, description="Elementi per pagina"),
) -> FolioList:
    return await service.list_by_status(db, status_filter, page, per_page)


@router.post(
    "/advance-payments",
    name="conti_acconto",
    summary="Registra acconto",
    description=(
        "Registra un acconto (tipicamente al check-in) creando il conto "
        "dell'ospite con il suo numero fattura."
    ),
    response_model=FolioRead,
    status_code=status.HTTP_201_CREATED,
)
async def register_advance_payment(
    data: AdvancePaymentCreate,
    db: DbSession,
    service: FolioServiceDep,
) -> FolioRead:
    return await service.register_advance_payment(db, data)


@router.get(
    "/guest/{guest_id}",
    name="conti_ospite",
    summary="Conti di un ospite",
    description="Recupera tutti i conti intestati a un ospite, più recenti prima.",
    response_model=list[FolioRead],
    status_code=status.HTTP_200_OK,
)
async def get_guest_folios(
    db: DbSession,
    service: FolioServiceDep,
    guest_id: uuid.UUID = Path(..., description="UUID dell'ospite"),
) -> list[FolioRead]:
    return await service.list_for_guest(db, guest_id)


@router.get(
    "/{folio_id}",
    name="conti_dettaglio",
    summary="Dettaglio conto",
    description="Recupera un conto con le sue righe.",
    response_model=FolioRead,
    status_code=status.HTTP_200_OK,
)
async def get_folio(
    db: DbSession,
    service: FolioServiceDep,
    folio_id: uuid.UUID = Path(..., description="UUID del conto"),
) -> FolioRead:
    return await service.get(db, folio_id)


@router.post(
    "/{folio_id}/payments",
    name="conti_incasso",
    summary="Registra incasso",
    description="Aggiunge un incasso al conto e ne aggiorna lo stato (partial o paid).",
    response_model=FolioRead,
    status_code=status.HTTP_200_OK,
)
async def record_payment(
    data: FolioPaymentCreate,
    db: DbSession,
    service: FolioServiceDep,
    folio_id: uuid.UUID = Path(..., description="UUID del conto"),
) -> FolioRead:
    return await service.record_payment(db, folio_id, data)
