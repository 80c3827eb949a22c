"""
API Routes
Progetto: Hotel Manager (Gestionale Albergo)

Modulo per l'aggregazione dei router versionati.
"""

from hotel_pms.api.v1 import api_v1_router

# Esportazione router
__all__ = ["api_v1_router"]
