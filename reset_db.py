import asyncio
import sys
import os

# Aggiungi backend/ alla PYTHONPATH per importare hotel_pms.*
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "backend"))

from hotel_pms.core.database import engine
from hotel_pms.models import Base

async def reset():
    print("Connessione al database dell'albergo, eliminazione tabelle...")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        print(f"Tabelle eliminate. Creazione di {len(Base.metadata.tables)} tabelle (soggiorni, reparti, conti)...")
        await conn.run_sync(Base.metadata.create_all)
    await engine.dispose()
    print("Database resettato con successo!")

if __name__ == "__main__":
    asyncio.run(reset())
