"""
Service Layer per il Check-out
Progetto: Hotel Manager (Gestionale Albergo)

Motore di chiusura conto: consolida gli addebiti di tutti i reparti,
applica adeguamento soggiorno e imposte, calcola il saldo e lo salva
come conto (Folio), riconciliando ordini di reparto, soggiorno e camera.
"""

import datetime
import logging
import uuid
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from hotel_pms.core.config import SettlementConfig
from hotel_pms.core.exceptions import (
    AppException,
    BusinessValidationError,
    ConflictError,
    NotFoundError,
    PartialCommitError,
    SourceUnavailableError,
)
from hotel_pms.models import Folio, Stay
from hotel_pms.schemas.folio import CheckoutPreview, CheckoutRequest, CheckoutResult, FolioRead
from hotel_pms.schemas.settlement import (
    AdvancePayment,
    ChargeLine,
    DepartmentChargeSet,
    SettlementSummary,
    StayAdjustment,
    TaxLine,
    ZERO,
    to_money,
)
from hotel_pms.schemas.stay import StayRead, StayStatus
from hotel_pms.services.charge_aggregator import build_charge_lines, settled_charges
from hotel_pms.services.charge_sources import DepartmentChargeSource
from hotel_pms.services.folio_store import FolioStore
from hotel_pms.services.guest_lock import GuestLock
from hotel_pms.services.invoice_numbering import InvoiceNumberGenerator
from hotel_pms.services.settlement_calculator import calculate_settlement
from hotel_pms.services.stay_adjustment import calculate_stay_adjustment
from hotel_pms.services.stay_store import RoomStore, StayStore
from hotel_pms.services.tax_service import TaxRuleEvaluator, compute_tax_lines

# Logger per questo modulo
logger = logging.getLogger(__name__)


def utc_now() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


@dataclass(frozen=True)
class SettlementDraft:
    """Calcolo completo di un check-out, prima di qualsiasi scrittura."""

    stay: Stay
    charge_sets: tuple[DepartmentChargeSet, ...]
    adjustment: StayAdjustment
    lines: list[ChargeLine]
    tax_lines: list[TaxLine]
    summary: SettlementSummary
    folio: Optional[Folio]


class CheckoutService:
    """
    Service per il check-out di un soggiorno.

    Tutte le dipendenze esterne (sorgenti addebiti, valutatore fiscale,
    persistenza, numerazione, lock) sono iniettate: il servizio non legge
    configurazioni globali.

    Implementa:
    - Anteprima del conto di chiusura (sola lettura)
    - Chiusura conto in due transazioni con ripetizione sicura
    - Elenco soggiorni in attesa di check-out
    """

    def __init__(
        self,
        config: SettlementConfig,
        tax_evaluator: TaxRuleEvaluator,
        charge_sources: Sequence[DepartmentChargeSource],
        folio_store: FolioStore,
        stay_store: StayStore,
        room_store: RoomStore,
        invoice_numbers: InvoiceNumberGenerator,
        guest_lock: GuestLock,
        clock: Callable[[], datetime.datetime] = utc_now,
    ) -> None:
        self.config = config
        self.tax_evaluator = tax_evaluator
        self.charge_sources = list(charge_sources)
        self.folio_store = folio_store
        self.stay_store = stay_store
        self.room_store = room_store
        self.invoice_numbers = invoice_numbers
        self.guest_lock = guest_lock
        self.clock = clock

    # ------------------------------------------------------------
    # Letture
    # ------------------------------------------------------------

    async def list_open_stays(self, db: AsyncSession) -> list[Stay]:
        """Soggiorni con stato checked_in o active, più recenti prima."""
        return await self.stay_store.list_open(db)

    async def preview(
        self,
        db: AsyncSession,
        stay_id: uuid.UUID,
        request: CheckoutRequest,
    ) -> CheckoutPreview:
        """
        Calcola il conto di chiusura senza scrivere nulla.

        Raises:
            NotFoundError: soggiorno inesistente
            ConflictError: soggiorno già chiuso
            BusinessValidationError: importi negativi o arrivo mancante
            SourceUnavailableError: una sorgente addebiti non risponde
        """
        stay = await self._get_open_stay(db, stay_id)
        draft = await self._prepare(db, stay, request, self.clock())

        advance = None
        if draft.folio is not None and draft.summary.advance_paid > ZERO:
            advance = AdvancePayment(
                id=draft.folio.id,
                guest_id=draft.folio.guest_id,
                stay_id=draft.folio.stay_id,
                invoice_number=draft.folio.invoice_number,
                paid_amount=draft.summary.advance_paid,
            )

        return CheckoutPreview(
            stay=StayRead.model_validate(stay),
            currency_symbol=self.config.currency_symbol,
            charges=draft.lines,
            settled_charges=settled_charges(draft.charge_sets),
            stay_adjustment=draft.adjustment,
            tax_lines=draft.tax_lines,
            advance_payment=advance,
            summary=draft.summary,
        )

    # ------------------------------------------------------------
    # Check-out
    # ------------------------------------------------------------

    async def complete(
        self,
        db: AsyncSession,
        stay_id: uuid.UUID,
        request: CheckoutRequest,
        operator_id: Optional[uuid.UUID] = None,
    ) -> CheckoutResult:
        """
        Esegue il check-out di un soggiorno.

        Steps:
        1. Verifica soggiorno e acquisisce il lock dell'ospite
        2. Calcola addebiti, imposte e saldo (nessuna scrittura)
        3. Transazione 1: finalizza il conto esistente (stesso soggiorno o
           acconto) oppure ne crea uno nuovo con numero fattura; commit
        4. Transazione 2: righe del conto, saldo ordini di reparto,
           soggiorno -> checked_out, camera -> stato post check-out; commit

        Se la transazione 2 fallisce il conto resta salvato e viene sollevata
        PartialCommitError. Ripetere il check-out ritrova lo stesso conto
        tramite il collegamento al soggiorno e completa i passi mancanti.

        Args:
            db: Sessione database
            stay_id: UUID del soggiorno
            request: Addebito extra, sconto, metodo e importo incassato
            operator_id: UUID dell'operatore che esegue il check-out

        Returns:
            CheckoutResult: conto finalizzato, riepilogo e stati risultanti

        Raises:
            NotFoundError: soggiorno inesistente
            ConflictError: soggiorno già chiuso, check-out concorrente,
                numerazione esaurita, errore di integrità
            BusinessValidationError: importi negativi o arrivo mancante
            SourceUnavailableError: una sorgente addebiti non risponde
            PartialCommitError: conto salvato ma riconciliazione fallita
        """
        stay = await self._get_open_stay(db, stay_id)

        async with self.guest_lock.hold(stay.guest_id):
            # Rilettura sotto lock: un check-out concorrente potrebbe averlo già chiuso
            stay = await self._get_open_stay(db, stay_id)
            now = self.clock()
            draft = await self._prepare(db, stay, request, now)

            folio = await self._save_folio(db, draft, request, now)
            settled_orders = await self._reconcile(db, draft, folio, operator_id, now)

        folio = await self.folio_store.get(db, folio.id)
        logger.info(
            f"Check-out completato: soggiorno {stay.id}, conto {folio.invoice_number}, "
            f"totale {draft.summary.grand_total}, stato {draft.summary.status.value}"
        )

        return CheckoutResult(
            folio=FolioRead.model_validate(folio),
            charges=draft.lines,
            tax_lines=draft.tax_lines,
            stay_adjustment=draft.adjustment,
            summary=draft.summary,
            stay_status=StayStatus.CHECKED_OUT.value,
            room_status=self.config.post_checkout_room_status,
            settled_orders=settled_orders,
        )

    # ------------------------------------------------------------
    # Metodi interni
    # ------------------------------------------------------------

    async def _get_open_stay(self, db: AsyncSession, stay_id: uuid.UUID) -> Stay:
        stay = await self.stay_store.get(db, stay_id)
        if stay is None:
            logger.warning(f"Soggiorno non trovato: {stay_id}")
            raise NotFoundError(f"Soggiorno {stay_id} non trovato")

        if stay.status == StayStatus.CHECKED_OUT.value:
            logger.warning(f"Check-out rifiutato, soggiorno già chiuso: {stay_id}")
            raise ConflictError(
                "Il soggiorno è già stato chiuso",
                error_code="STAY_ALREADY_CHECKED_OUT",
                extra={"stay_id": str(stay_id)},
            )
        return stay

    async def _load_charge_sets(
        self,
        db: AsyncSession,
        guest_id: uuid.UUID,
    ) -> tuple[DepartmentChargeSet, ...]:
        """Legge gli addebiti da tutte le sorgenti; una sola sorgente mancante blocca il check-out."""
        charge_sets = []
        for source in self.charge_sources:
            try:
                charge_sets.append(await source.for_guest(db, guest_id))
            except AppException:
                raise
            except Exception as exc:
                department = getattr(source, "department", None)
                logger.error(f"Sorgente addebiti {department} non disponibile: {exc}")
                raise SourceUnavailableError(
                    "Sorgente addebiti di reparto non disponibile",
                    extra={"department": getattr(department, "value", str(department))},
                ) from exc
        return tuple(charge_sets)

    async def _prepare(
        self,
        db: AsyncSession,
        stay: Stay,
        request: CheckoutRequest,
        now: datetime.datetime,
    ) -> SettlementDraft:
        """Calcolo completo del conto: tutte le letture, nessuna scrittura."""
        if request.additional_charges < 0:
            raise BusinessValidationError(
                "L'addebito extra non può essere negativo",
                extra={"field": "additional_charges", "value": str(request.additional_charges)},
            )

        room_type = stay.room.room_type if stay.room is not None else None
        nightly_rate = room_type.base_price if room_type is not None else ZERO

        adjustment = calculate_stay_adjustment(
            stay.arrival_at,
            stay.expected_departure_at,
            nightly_rate,
            now,
            self.config.tzinfo,
        )

        charge_sets = await self._load_charge_sets(db, stay.guest_id)

        lines = build_charge_lines(
            room_type_name=room_type.name if room_type is not None else None,
            adjustment=adjustment,
            charge_sets=charge_sets,
            config=self.config,
            additional_amount=request.additional_charges,
            additional_note=request.additional_charges_note,
        )
        tax_lines, _ = compute_tax_lines(lines, self.tax_evaluator)

        folio = await self.folio_store.find_for_stay(db, stay.id)
        if folio is None:
            folio = await self.folio_store.find_partial(db, stay.guest_id, stay.id)
        advance_paid = to_money(folio.advance_amount) if folio is not None else ZERO

        summary = calculate_settlement(
            lines,
            tax_lines,
            discount=request.discount,
            advance_paid=advance_paid,
            amount_paid_now=request.amount_paid,
        )

        return SettlementDraft(
            stay=stay,
            charge_sets=charge_sets,
            adjustment=adjustment,
            lines=lines,
            tax_lines=tax_lines,
            summary=summary,
            folio=folio,
        )

    async def _save_folio(
        self,
        db: AsyncSession,
        draft: SettlementDraft,
        request: CheckoutRequest,
        now: datetime.datetime,
    ) -> Folio:
        """Transazione 1: conto finalizzato o creato, con commit."""
        summary = draft.summary
        fields = dict(
            stay_id=draft.stay.id,
            subtotal=summary.subtotal,
            tax_amount=summary.tax_total,
            discount_amount=summary.discount,
            total_amount=summary.grand_total,
            paid_amount=summary.total_paid,
            advance_amount=summary.advance_paid,
            status=summary.status.value,
            payment_method=request.payment_method.value,
            notes=request.additional_charges_note or None,
        )

        try:
            if draft.folio is not None:
                folio = await self.folio_store.update(db, draft.folio, updated_at=now, **fields)
                logger.info(f"Conto {folio.invoice_number} finalizzato per soggiorno {draft.stay.id}")
            else:
                invoice_number = await self.invoice_numbers.next(db, now.date())
                folio = await self.folio_store.create(
                    db,
                    guest_id=draft.stay.guest_id,
                    invoice_number=invoice_number,
                    **fields,
                )
                logger.info(f"Conto {invoice_number} creato per soggiorno {draft.stay.id}")
            await db.commit()
        except IntegrityError as e:
            await db.rollback()
            logger.error(f"Errore di integrità durante salvataggio conto: {e}")
            raise ConflictError(
                "Errore durante il salvataggio del conto: conflitto di dati",
                error_code="FOLIO_INTEGRITY_ERROR",
            ) from e
        except AppException:
            await db.rollback()
            raise

        return folio

    async def _reconcile(
        self,
        db: AsyncSession,
        draft: SettlementDraft,
        folio: Folio,
        operator_id: Optional[uuid.UUID],
        now: datetime.datetime,
    ) -> int:
        """
        Transazione 2: righe del conto, saldo reparti, soggiorno e camera.

        Returns:
            int: numero di ordini/prenotazioni saldati in questa esecuzione
        """
        folio_id = folio.id
        invoice_number = folio.invoice_number
        settled_orders = 0

        try:
            await self.folio_store.replace_lines(db, folio_id, draft.lines)

            for charge_set in draft.charge_sets:
                source = self._source_for(charge_set)
                settled_orders += await source.mark_settled(
                    db,
                    charge_set.outstanding_source_ids,
                    folio_id,
                    now,
                )

            await self.stay_store.mark_checked_out(db, draft.stay, operator_id, now)
            await self.room_store.set_status(
                db,
                draft.stay.room_id,
                self.config.post_checkout_room_status,
                now,
            )
            await db.commit()
        except Exception as exc:
            await db.rollback()
            logger.error(
                f"Check-out parziale: conto {invoice_number} ({folio_id}) salvato, "
                f"riconciliazione fallita: {exc}"
            )
            raise PartialCommitError(
                "Conto salvato ma chiusura del soggiorno non completata: ripetere il check-out",
                extra={"folio_id": str(folio_id), "invoice_number": invoice_number},
            ) from exc

        return settled_orders

    def _source_for(self, charge_set: DepartmentChargeSet) -> DepartmentChargeSource:
        for source in self.charge_sources:
            if source.department == charge_set.department:
                return source
        raise KeyError(charge_set.department)
