"""
Numerazione progressiva dei conti
Progetto: Hotel Manager (Gestionale Albergo)
"""

import datetime
from typing import Protocol

from sqlalchemy import select, text
from sqlalchemy.ext.asyncio import AsyncSession

from hotel_pms.core.exceptions import ConflictError
from hotel_pms.models import Folio

MAX_YEARLY_NUMBER = 9999


class InvoiceNumberGenerator(Protocol):
    """Generatore del numero fattura: un numero assegnato non viene mai riusato."""

    async def next(self, db: AsyncSession, on: datetime.date) -> str:
        ...


class SQLInvoiceNumberGenerator:
    """Numerazione annuale YYYY/NNNN basata sull'ultimo conto dell'anno."""

    async def next(self, db: AsyncSession, on: datetime.date) -> str:
        """
        Genera il numero fattura progressivo annuale.

        Formato: YYYY/NNNN (es. 2025/0001)

        Logica:
        1. Acquisisce advisory lock di transazione sull'anno
        2. Cerca l'ultimo numero dell'anno
        3. Incrementa il progressivo con zero-padding

        Raises:
            ConflictError: Se si raggiunge il limite di 9999 conti annui
        """
        year = on.year
        year_prefix = f"{year}/"

        # Advisory lock di transazione sull'anno: serializza la numerazione anche prima del primo conto dell'anno
        await db.execute(text("SELECT pg_advisory_xact_lock(:lock_key)"), {"lock_key": year})

        stmt = (
            select(Folio.invoice_number)
            .where(Folio.invoice_number.like(f"{year_prefix}%"))
            .order_by(Folio.invoice_number.desc())
            .limit(1)
        )
        result = await db.execute(stmt)
        last_number = result.scalar_one_or_none()

        next_number = int(last_number.split("/")[1]) + 1 if last_number else 1

        if next_number > MAX_YEARLY_NUMBER:
            raise ConflictError(
                f"Limite numerazione conti raggiunto per l'anno {year}",
                error_code="INVOICE_NUMBERING_EXHAUSTED",
            )

        return f"{year_prefix}{next_number:04d}"
