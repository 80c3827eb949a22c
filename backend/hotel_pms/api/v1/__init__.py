"""
API v1 Routes
Progetto: Hotel Manager (Gestionale Albergo)

Router versione 1 dell'API.
"""

from fastapi import APIRouter

from hotel_pms.api.v1 import checkout, folios

# Router aggregato per v1
api_v1_router = APIRouter(prefix="/api/v1")

# Includi i router dei moduli
api_v1_router.include_router(checkout.router)
api_v1_router.include_router(folios.router)

# Esportazione
__all__ = ["api_v1_router"]
