"""
Schemas Pydantic per i Soggiorni
Progetto: Hotel Manager (Gestionale Albergo)
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class StayStatus(str, Enum):
    """Ciclo di vita del soggiorno."""
    CHECKED_IN = "checked_in"
    ACTIVE = "active"
    CHECKED_OUT = "checked_out"


OPEN_STAY_STATUSES = (StayStatus.CHECKED_IN.value, StayStatus.ACTIVE.value)


class GuestBrief(BaseModel):
    """Dati essenziali dell'ospite."""

    id: uuid.UUID
    full_name: str = Field(..., serialization_alias="fullName")
    phone: Optional[str] = None
    email: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class RoomBrief(BaseModel):
    """Dati essenziali della camera."""

    id: uuid.UUID
    room_number: str = Field(..., serialization_alias="roomNumber")
    room_type_id: Optional[uuid.UUID] = Field(None, serialization_alias="roomTypeId")
    status: str

    model_config = ConfigDict(from_attributes=True)


class StayRead(BaseModel):
    """Schema per la lettura di un soggiorno."""

    id: uuid.UUID
    guest_id: uuid.UUID = Field(..., serialization_alias="guestId")
    room_id: uuid.UUID = Field(..., serialization_alias="roomId")
    arrival_at: Optional[datetime] = Field(None, serialization_alias="arrivalAt")
    expected_departure_at: Optional[datetime] = Field(
        None,
        serialization_alias="expectedDepartureAt",
    )
    actual_departure_at: Optional[datetime] = Field(
        None,
        serialization_alias="actualDepartureAt",
    )
    num_guests: int = Field(1, serialization_alias="numGuests")
    status: StayStatus
    guest: Optional[GuestBrief] = None
    room: Optional[RoomBrief] = None

    model_config = ConfigDict(from_attributes=True)
