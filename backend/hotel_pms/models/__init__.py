"""
Modelli Database SQLAlchemy
Progetto: Hotel Manager (Gestionale Albergo)

Import centralizzato di tutti i modelli per la creazione tabelle e usage generico.

Modelli:
- Guest: Anagrafica ospiti
- RoomType, Room: Tipologie camera e camere
- Stay: Soggiorni (check-in)
- DepartmentOrder, DepartmentOrderItem: Ordini di bar, ristorante e cucina
- SpaService, SpaBooking: Servizi e prenotazioni spa
- Folio, FolioLineItem: Conti (fatture) e relative righe
- TaxRule: Regole fiscali applicate al conto
"""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class per tutti i modelli SQLAlchemy."""
    pass


from hotel_pms.models.guest import Guest
from hotel_pms.models.room import Room, RoomType
from hotel_pms.models.stay import Stay
from hotel_pms.models.department import DepartmentOrder, DepartmentOrderItem, SpaBooking, SpaService
from hotel_pms.models.folio import Folio, FolioLineItem
from hotel_pms.models.tax_rule import TaxRule

__all__ = [
    "Base",
    "Guest",
    "RoomType",
    "Room",
    "Stay",
    "DepartmentOrder",
    "DepartmentOrderItem",
    "SpaService",
    "SpaBooking",
    "Folio",
    "FolioLineItem",
    "TaxRule",
]
