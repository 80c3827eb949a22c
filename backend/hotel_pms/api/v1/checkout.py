"""
Router FastAPI per il Check-out
Progetto: Hotel Manager (Gestionale Albergo)

Definisce gli endpoint per l'elenco dei soggiorni da chiudere,
l'anteprima del conto e il check-out.
"""

import logging
import uuid

from fastapi import APIRouter, Path, status

from hotel_pms.core.deps import CheckoutServiceDep, DbSession, OperatorId
from hotel_pms.schemas.folio import CheckoutPreview, CheckoutRequest, CheckoutResult
from hotel_pms.schemas.stay import StayRead

# Logger per questo modulo
logger = logging.getLogger(__name__)

# Router con prefix e tag
router = APIRouter(
    prefix="/checkout",
    tags=["Check-out"],
)


@router.get(
    "/stays",
    name="checkout_soggiorni_aperti",
    summary="Soggiorni da chiudere",
    description="Elenco dei soggiorni in stato checked_in o active, più recenti prima.",
    response_model=list[StayRead],
    status_code=status.HTTP_200_OK,
)
async def list_open_stays(
    db: DbSession,
    service: CheckoutServiceDep,
) -> list[StayRead]:
    stays = await service.list_open_stays(db)
    return [StayRead.model_validate(stay) for stay in stays]


@router.post(
    "/{stay_id}/preview",
    name="checkout_anteprima",
    summary="Anteprima conto",
    description=(
        "Calcola il conto di chiusura (addebiti, adeguamento soggiorno, imposte, "
        "acconto e saldo) senza salvare nulla."
    ),
    response_model=CheckoutPreview,
    status_code=status.HTTP_200_OK,
)
async def preview_checkout(
    data: CheckoutRequest,
    db: DbSession,
    service: CheckoutServiceDep,
    stay_id: uuid.UUID = Path(..., description="UUID del soggiorno"),
) -> CheckoutPreview:
    return await service.preview(db, stay_id, data)


@router.post(
    "/{stay_id}",
    name="checkout_esegui",
    summary="Esegui check-out",
    description=(
        "Salva il conto finale (o finalizza l'acconto esistente), salda gli "
        "ordini di reparto, chiude il soggiorno e manda la camera in pulizia."
    ),
    response_model=CheckoutResult,
    status_code=status.HTTP_200_OK,
)
async def complete_checkout(
    data: CheckoutRequest,
    db: DbSession,
    service: CheckoutServiceDep,
    operator_id: OperatorId,
    stay_id: uuid.UUID = Path(..., description="UUID del soggiorno"),
) -> CheckoutResult:
    """
    Esegue il check-out.

    In caso di errore 500 con codice PARTIAL_COMMIT il conto è già salvato:
    ripetere la richiesta completa la chiusura senza creare un secondo conto.
    """
    logger.info(f"Richiesta check-out soggiorno {stay_id} da operatore {operator_id}")
    return await service.complete(db, stay_id, data, operator_id)
