"""
Lock per ospite
Progetto: Hotel Manager (Gestionale Albergo)

Serializza le operazioni di chiusura conto di uno stesso ospite con un
advisory lock PostgreSQL di sessione. Il lock vive su una connessione
dedicata, così resta valido attraverso i commit della sessione di lavoro.
"""

import logging
import uuid
from contextlib import asynccontextmanager
from typing import AsyncContextManager, AsyncIterator, Protocol

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine

from hotel_pms.core.exceptions import ConflictError

# Logger per questo modulo
logger = logging.getLogger(__name__)


def lock_key(guest_id: uuid.UUID) -> int:
    """Chiave bigint (con segno) derivata dall'UUID dell'ospite."""
    return int.from_bytes(guest_id.bytes[:8], "big", signed=True)


class GuestLock(Protocol):
    """Lock esclusivo e non bloccante per ospite."""

    def hold(self, guest_id: uuid.UUID) -> AsyncContextManager[None]:
        ...


class PostgresGuestLock:
    """GuestLock basato su pg_try_advisory_lock."""

    def __init__(self, engine: AsyncEngine) -> None:
        self.engine = engine

    @asynccontextmanager
    async def hold(self, guest_id: uuid.UUID) -> AsyncIterator[None]:
        """
        Acquisisce il lock dell'ospite per la durata del blocco `async with`.

        Raises:
            ConflictError: un'altra operazione sta già chiudendo il conto dell'ospite
        """
        key = lock_key(guest_id)
        async with self.engine.connect() as conn:
            result = await conn.execute(text("SELECT pg_try_advisory_lock(:key)"), {"key": key})
            if not result.scalar():
                logger.warning(f"Check-out concorrente rifiutato per ospite {guest_id}")
                raise ConflictError(
                    "Un altro check-out è in corso per questo ospite",
                    error_code="CHECKOUT_IN_PROGRESS",
                    extra={"guest_id": str(guest_id)},
                )
            try:
                yield
            finally:
                await conn.execute(text("SELECT pg_advisory_unlock(:key)"), {"key": key})
                await conn.commit()
