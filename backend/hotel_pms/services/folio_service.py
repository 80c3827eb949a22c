"""
Service Layer per i Conti
Progetto: Hotel Manager (Gestionale Albergo)

Definisce la logica di business per acconti, incassi e consultazione
dei conti ospite.
"""

import datetime
import logging
import uuid
from typing import Callable, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from hotel_pms.core.exceptions import (
    BusinessValidationError,
    ConflictError,
    NotFoundError,
)
from hotel_pms.models import Folio, Guest
from hotel_pms.schemas.folio import (
    AdvancePaymentCreate,
    FolioList,
    FolioPaymentCreate,
    FolioRead,
)
from hotel_pms.schemas.settlement import FolioStatus, ZERO, to_money
from hotel_pms.schemas.stay import StayStatus
from hotel_pms.services.folio_store import FolioStore
from hotel_pms.services.invoice_numbering import InvoiceNumberGenerator
from hotel_pms.services.settlement_calculator import resolve_status
from hotel_pms.services.stay_adjustment import booked_nights
from hotel_pms.services.stay_store import StayStore

# Logger per questo modulo
logger = logging.getLogger(__name__)


def utc_now() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


class FolioService:
    """
    Service per la gestione dei conti.

    Implementa:
    - Registrazione acconto al check-in (conto pre-creato)
    - Incassi successivi su un conto
    - Consultazione per id, per ospite e per stato (paginata)
    """

    def __init__(
        self,
        folio_store: FolioStore,
        stay_store: StayStore,
        invoice_numbers: InvoiceNumberGenerator,
        clock: Callable[[], datetime.datetime] = utc_now,
        tz: Optional[datetime.tzinfo] = None,
    ) -> None:
        self.folio_store = folio_store
        self.stay_store = stay_store
        self.invoice_numbers = invoice_numbers
        self.clock = clock
        self.tz = tz

    async def register_advance_payment(
        self,
        db: AsyncSession,
        data: AdvancePaymentCreate,
    ) -> FolioRead:
        """
        Registra un acconto creando il conto dell'ospite.

        Con un soggiorno il totale stimato è tariffa notte × notti prenotate
        e il conto viene collegato al soggiorno; senza soggiorno il totale
        stimato coincide con l'acconto.

        Raises:
            BusinessValidationError: importo non positivo o soggiorno di un altro ospite
            NotFoundError: ospite o soggiorno inesistente
            ConflictError: acconto già presente, soggiorno già chiuso o già fatturato
        """
        amount = to_money(data.amount)
        if amount <= ZERO:
            raise BusinessValidationError("L'importo dell'acconto deve essere positivo")

        guest = await db.get(Guest, data.guest_id)
        if guest is None:
            raise NotFoundError(f"Ospite {data.guest_id} non trovato")

        existing = await self.folio_store.find_partial(db, data.guest_id)
        if existing is not None:
            logger.warning(f"Acconto rifiutato, conto {existing.invoice_number} già aperto per ospite {data.guest_id}")
            raise ConflictError(
                "Esiste già un acconto per questo ospite",
                error_code="ADVANCE_PAYMENT_EXISTS",
                extra={"folio_id": str(existing.id), "invoice_number": existing.invoice_number},
            )

        estimated_total = amount
        status = FolioStatus.PARTIAL
        if data.stay_id is not None:
            stay = await self.stay_store.get(db, data.stay_id)
            if stay is None:
                raise NotFoundError(f"Soggiorno {data.stay_id} non trovato")
            if stay.guest_id != data.guest_id:
                raise BusinessValidationError("Il soggiorno appartiene a un altro ospite")
            if stay.status == StayStatus.CHECKED_OUT.value:
                raise ConflictError("Il soggiorno è già stato chiuso")
            if await self.folio_store.find_for_stay(db, stay.id) is not None:
                raise ConflictError("Esiste già un conto per questo soggiorno")

            room_type = stay.room.room_type if stay.room is not None else None
            rate = room_type.base_price if room_type is not None else ZERO
            nights = booked_nights(
                stay.arrival_at or self.clock(),
                stay.expected_departure_at,
                self.tz,
            )
            estimated_total = to_money(rate * nights)
            status = resolve_status(estimated_total, amount)

        try:
            invoice_number = await self.invoice_numbers.next(db, self.clock().date())
            folio = await self.folio_store.create(
                db,
                guest_id=data.guest_id,
                stay_id=data.stay_id,
                invoice_number=invoice_number,
                subtotal=estimated_total,
                tax_amount=ZERO,
                discount_amount=ZERO,
                total_amount=estimated_total,
                paid_amount=amount,
                advance_amount=amount,
                status=status.value,
                payment_method=data.payment_method.value,
                notes=data.notes,
            )
            await db.commit()
        except IntegrityError as e:
            await db.rollback()
            logger.error(f"Errore di integrità durante registrazione acconto: {e}")
            raise ConflictError("Errore durante la registrazione dell'acconto: conflitto di dati") from e

        logger.info(f"Acconto {amount} registrato sul conto {invoice_number} per ospite {data.guest_id}")
        return await self.get(db, folio.id)

    async def record_payment(
        self,
        db: AsyncSession,
        folio_id: uuid.UUID,
        data: FolioPaymentCreate,
    ) -> FolioRead:
        """
        Registra un incasso su un conto esistente.

        Lo stato diventa paid quando l'incassato copre il totale, altrimenti
        partial. Un incasso su un soggiorno non ancora chiuso conta come acconto.

        Raises:
            NotFoundError: conto inesistente
            BusinessValidationError: importo non positivo
            ConflictError: conto rimborsato
        """
        amount = to_money(data.amount)
        if amount <= ZERO:
            raise BusinessValidationError("L'importo del pagamento deve essere positivo")

        folio = await self._get_folio(db, folio_id)
        if folio.status == FolioStatus.REFUNDED.value:
            raise ConflictError(
                "Impossibile registrare pagamenti su un conto rimborsato",
                extra={"folio_id": str(folio.id)},
            )

        paid_amount = to_money(folio.paid_amount) + amount
        fields = dict(
            paid_amount=paid_amount,
            status=FolioStatus.PAID.value if paid_amount >= folio.total_amount else FolioStatus.PARTIAL.value,
            payment_method=data.payment_method.value,
            updated_at=self.clock(),
        )
        if folio.stay is None or folio.stay.status != StayStatus.CHECKED_OUT.value:
            fields["advance_amount"] = to_money(folio.advance_amount) + amount

        await self.folio_store.update(db, folio, **fields)
        await db.commit()

        logger.info(f"Incasso {amount} registrato sul conto {folio.invoice_number}")
        return await self.get(db, folio_id)

    async def get(self, db: AsyncSession, folio_id: uuid.UUID) -> FolioRead:
        """Conto con righe. Raises NotFoundError se inesistente."""
        return FolioRead.model_validate(await self._get_folio(db, folio_id))

    async def list_for_guest(self, db: AsyncSession, guest_id: uuid.UUID) -> list[FolioRead]:
        folios = await self.folio_store.list_for_guest(db, guest_id)
        return [FolioRead.model_validate(folio) for folio in folios]

    async def list_by_status(
        self,
        db: AsyncSession,
        status: Optional[FolioStatus] = None,
        page: int = 1,
        per_page: int = 10,
    ) -> FolioList:
        """Lista paginata dei conti, con filtro opzionale per stato."""
        folios, total = await self.folio_store.list_by_status(
            db,
            status.value if status is not None else None,
            page,
            per_page,
        )
        total_pages = (total + per_page - 1) // per_page if total > 0 else 1

        return FolioList(
            items=[FolioRead.model_validate(folio) for folio in folios],
            total=total,
            page=page,
            per_page=per_page,
            total_pages=total_pages,
        )

    async def _get_folio(self, db: AsyncSession, folio_id: uuid.UUID) -> Folio:
        folio = await self.folio_store.get(db, folio_id)
        if folio is None:
            logger.warning(f"Conto non trovato: {folio_id}")
            raise NotFoundError(f"Conto {folio_id} non trovato")
        return folio
