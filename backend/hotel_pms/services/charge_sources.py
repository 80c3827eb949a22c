"""
Sorgenti addebiti di reparto
Progetto: Hotel Manager (Gestionale Albergo)

Una sorgente per reparto (Bar, Restaurant, Kitchen, Spa) espone:
- for_guest: addebiti dell'ospite separati in da saldare / già saldati
- mark_settled: saldo in blocco degli ordini consumati nel conto

Le letture vengono convertite subito nei DTO tipizzati di
`hotel_pms.schemas.settlement`. Qualsiasi errore del database viene
riportato come SourceUnavailableError.
"""

import datetime
import logging
import uuid
from typing import Protocol, Sequence

from sqlalchemy import or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from hotel_pms.core.exceptions import SourceUnavailableError
from hotel_pms.models import DepartmentOrder, SpaBooking
from hotel_pms.models.department import OUTSTANDING_PAYMENT_STATUSES
from hotel_pms.schemas.settlement import (
    DEPARTMENT_ORDER,
    Department,
    DepartmentCharge,
    DepartmentChargeSet,
    SettlementState,
)

# Logger per questo modulo
logger = logging.getLogger(__name__)

PAID = "paid"


class DepartmentChargeSource(Protocol):
    """Interfaccia di una sorgente addebiti di reparto."""

    department: Department

    async def for_guest(self, db: AsyncSession, guest_id: uuid.UUID) -> DepartmentChargeSet:
        ...

    async def mark_settled(
        self,
        db: AsyncSession,
        source_ids: Sequence[uuid.UUID],
        folio_id: uuid.UUID,
        at: datetime.datetime,
    ) -> int:
        ...


class FoodBeverageChargeSource:
    """
    Sorgente per gli ordini food & beverage (bar, ristorante, cucina).

    Ogni riga d'ordine diventa un addebito; il saldo avviene per ordine.
    """

    def __init__(self, department: Department) -> None:
        if department == Department.SPA:
            raise ValueError("La spa usa SpaChargeSource")
        self.department = department

    async def for_guest(self, db: AsyncSession, guest_id: uuid.UUID) -> DepartmentChargeSet:
        stmt = (
            select(DepartmentOrder)
            .where(
                DepartmentOrder.guest_id == guest_id,
                DepartmentOrder.department == self.department.value,
            )
            .order_by(DepartmentOrder.created_at, DepartmentOrder.order_number)
        )
        try:
            result = await db.execute(stmt)
            orders = result.scalars().all()
        except SQLAlchemyError as exc:
            logger.error(f"Lettura ordini {self.department.value} fallita per ospite {guest_id}: {exc}")
            raise SourceUnavailableError(
                f"Addebiti del reparto {self.department.value} non disponibili",
                extra={"department": self.department.value},
            ) from exc

        outstanding: list[DepartmentCharge] = []
        settled: list[DepartmentCharge] = []

        for order in orders:
            if order.payment_status == PAID:
                state, bucket = SettlementState.SETTLED, settled
            elif order.payment_status in OUTSTANDING_PAYMENT_STATUSES:
                state, bucket = SettlementState.OUTSTANDING, outstanding
            else:
                continue

            for item in order.items:
                bucket.append(
                    DepartmentCharge(
                        source_id=order.id,
                        department=self.department,
                        description=item.item_name,
                        quantity=item.quantity,
                        unit_rate=item.unit_price,
                        line_total=item.total_price,
                        state=state,
                    )
                )

        return DepartmentChargeSet(
            department=self.department,
            outstanding=tuple(outstanding),
            settled=tuple(settled),
        )

    async def mark_settled(
        self,
        db: AsyncSession,
        source_ids: Sequence[uuid.UUID],
        folio_id: uuid.UUID,
        at: datetime.datetime,
    ) -> int:
        """
        Segna come pagati gli ordini indicati.

        Gli ordini già pagati non vengono toccati: ripetere il saldo
        è un no-op. Il commit è a carico del chiamante.

        Returns:
            int: numero di ordini effettivamente aggiornati
        """
        if not source_ids:
            return 0

        stmt = (
            update(DepartmentOrder)
            .where(
                DepartmentOrder.id.in_(list(source_ids)),
                DepartmentOrder.department == self.department.value,
                DepartmentOrder.payment_status != PAID,
            )
            .values(
                payment_status=PAID,
                folio_id=folio_id,
                updated_at=at,
            )
            .execution_options(synchronize_session=False)
        )
        result = await db.execute(stmt)
        return result.rowcount or 0


class SpaChargeSource:
    """
    Sorgente per le prenotazioni spa.

    Una prenotazione = un addebito (quantità 1, tariffa = totale).
    Un payment_status nullo conta come da saldare.
    """

    department = Department.SPA
    default_description = "Spa Service"

    async def for_guest(self, db: AsyncSession, guest_id: uuid.UUID) -> DepartmentChargeSet:
        stmt = (
            select(SpaBooking)
            .where(SpaBooking.guest_id == guest_id)
            .order_by(SpaBooking.created_at, SpaBooking.booking_number)
        )
        try:
            result = await db.execute(stmt)
            bookings = result.scalars().all()
        except SQLAlchemyError as exc:
            logger.error(f"Lettura prenotazioni spa fallita per ospite {guest_id}: {exc}")
            raise SourceUnavailableError(
                "Addebiti del reparto spa non disponibili",
                extra={"department": self.department.value},
            ) from exc

        outstanding: list[DepartmentCharge] = []
        settled: list[DepartmentCharge] = []

        for booking in bookings:
            if booking.payment_status == PAID:
                state, bucket = SettlementState.SETTLED, settled
            elif booking.payment_status is None or booking.payment_status in OUTSTANDING_PAYMENT_STATUSES:
                state, bucket = SettlementState.OUTSTANDING, outstanding
            else:
                continue

            service_name = booking.spa_service.name if booking.spa_service else None
            bucket.append(
                DepartmentCharge(
                    source_id=booking.id,
                    department=self.department,
                    description=service_name or self.default_description,
                    quantity=1,
                    unit_rate=booking.total_amount,
                    line_total=booking.total_amount,
                    state=state,
                )
            )

        return DepartmentChargeSet(
            department=self.department,
            outstanding=tuple(outstanding),
            settled=tuple(settled),
        )

    async def mark_settled(
        self,
        db: AsyncSession,
        source_ids: Sequence[uuid.UUID],
        folio_id: uuid.UUID,
        at: datetime.datetime,
    ) -> int:
        """Segna come pagate le prenotazioni indicate (idempotente)."""
        if not source_ids:
            return 0

        stmt = (
            update(SpaBooking)
            .where(
                SpaBooking.id.in_(list(source_ids)),
                or_(SpaBooking.payment_status.is_(None), SpaBooking.payment_status != PAID),
            )
            .values(
                payment_status=PAID,
                folio_id=folio_id,
                updated_at=at,
            )
            .execution_options(synchronize_session=False)
        )
        result = await db.execute(stmt)
        return result.rowcount or 0


def default_charge_sources() -> list[DepartmentChargeSource]:
    """Sorgenti SQL di default, una per reparto, nell'ordine di consolidamento."""
    return [
        SpaChargeSource() if department == Department.SPA else FoodBeverageChargeSource(department)
        for department in DEPARTMENT_ORDER
    ]
