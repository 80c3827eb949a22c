"""
Persistenza dei Conti
Progetto: Hotel Manager (Gestionale Albergo)

Accesso al database per Folio e FolioLineItem. Nessun metodo esegue
commit: i confini di transazione sono decisi dal servizio chiamante.
"""

import uuid
from typing import Any, Optional, Protocol, Sequence

from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from hotel_pms.models import Folio, FolioLineItem, Stay
from hotel_pms.schemas.settlement import ChargeLine, FolioStatus
from hotel_pms.schemas.stay import StayStatus


class FolioStore(Protocol):
    """Interfaccia di persistenza dei conti."""

    async def find_for_stay(self, db: AsyncSession, stay_id: uuid.UUID) -> Optional[Folio]:
        ...

    async def find_partial(
        self,
        db: AsyncSession,
        guest_id: uuid.UUID,
        stay_id: Optional[uuid.UUID] = None,
    ) -> Optional[Folio]:
        ...

    async def create(self, db: AsyncSession, **fields: Any) -> Folio:
        ...

    async def update(self, db: AsyncSession, folio: Folio, **fields: Any) -> Folio:
        ...

    async def replace_lines(
        self,
        db: AsyncSession,
        folio_id: uuid.UUID,
        lines: Sequence[ChargeLine],
    ) -> int:
        ...

    async def get(self, db: AsyncSession, folio_id: uuid.UUID) -> Optional[Folio]:
        ...

    async def list_for_guest(self, db: AsyncSession, guest_id: uuid.UUID) -> list[Folio]:
        ...

    async def list_by_status(
        self,
        db: AsyncSession,
        status: Optional[str],
        page: int,
        per_page: int,
    ) -> tuple[list[Folio], int]:
        ...


class SQLFolioStore:
    """Implementazione SQLAlchemy di FolioStore."""

    async def find_for_stay(self, db: AsyncSession, stay_id: uuid.UUID) -> Optional[Folio]:
        """Conto già collegato al soggiorno (chiave di idempotenza del check-out)."""
        stmt = select(Folio).where(Folio.stay_id == stay_id)
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    async def find_partial(
        self,
        db: AsyncSession,
        guest_id: uuid.UUID,
        stay_id: Optional[uuid.UUID] = None,
    ) -> Optional[Folio]:
        """
        Conto di acconto (status partial) più recente dell'ospite.

        Con `stay_id` cerca solo conti collegati a quel soggiorno o non
        ancora collegati a nessun soggiorno; senza, qualunque conto partial.
        I conti di soggiorni già chiusi (saldo parziale al check-out) non
        sono acconti aperti e vengono sempre esclusi.
        """
        conditions = [
            Folio.guest_id == guest_id,
            Folio.status == FolioStatus.PARTIAL.value,
            or_(Folio.stay_id.is_(None), Stay.status != StayStatus.CHECKED_OUT.value),
        ]
        if stay_id is not None:
            conditions.append(or_(Folio.stay_id == stay_id, Folio.stay_id.is_(None)))

        stmt = (
            select(Folio)
            .outerjoin(Stay, Folio.stay_id == Stay.id)
            .where(*conditions)
            .order_by(Folio.created_at.desc())
            .limit(1)
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    async def create(self, db: AsyncSession, **fields: Any) -> Folio:
        folio = Folio(**fields)
        db.add(folio)
        await db.flush()
        return folio

    async def update(self, db: AsyncSession, folio: Folio, **fields: Any) -> Folio:
        for field, value in fields.items():
            setattr(folio, field, value)
        await db.flush()
        return folio

    async def replace_lines(
        self,
        db: AsyncSession,
        folio_id: uuid.UUID,
        lines: Sequence[ChargeLine],
    ) -> int:
        """
        Sostituisce in blocco le righe del conto.

        Le righe precedenti vengono eliminate; la descrizione di ogni nuova
        riga è prefissata dalla categoria (es. "Bar: Mojito").
        """
        await db.execute(delete(FolioLineItem).where(FolioLineItem.folio_id == folio_id))

        for line_number, line in enumerate(lines, start=1):
            db.add(
                FolioLineItem(
                    folio_id=folio_id,
                    line_number=line_number,
                    description=line.folio_description,
                    quantity=line.quantity,
                    unit_price=line.rate,
                    total_price=line.total,
                )
            )
        await db.flush()
        return len(lines)

    async def get(self, db: AsyncSession, folio_id: uuid.UUID) -> Optional[Folio]:
        """Conto con righe ricaricate dal database."""
        stmt = (
            select(Folio)
            .where(Folio.id == folio_id)
            .options(selectinload(Folio.lines))
            .execution_options(populate_existing=True)
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    async def list_for_guest(self, db: AsyncSession, guest_id: uuid.UUID) -> list[Folio]:
        stmt = (
            select(Folio)
            .where(Folio.guest_id == guest_id)
            .options(selectinload(Folio.lines))
            .order_by(Folio.created_at.desc())
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())

    async def list_by_status(
        self,
        db: AsyncSession,
        status: Optional[str],
        page: int,
        per_page: int,
    ) -> tuple[list[Folio], int]:
        """Lista paginata dei conti, più recenti prima. Restituisce (conti, totale)."""
        stmt = select(Folio).options(selectinload(Folio.lines))
        count_stmt = select(func.count(Folio.id))
        if status:
            stmt = stmt.where(Folio.status == status)
            count_stmt = count_stmt.where(Folio.status == status)

        total_result = await db.execute(count_stmt)
        total = total_result.scalar() or 0

        offset = (page - 1) * per_page
        stmt = stmt.order_by(Folio.created_at.desc()).offset(offset).limit(per_page)
        result = await db.execute(stmt)
        return list(result.scalars().all()), total
