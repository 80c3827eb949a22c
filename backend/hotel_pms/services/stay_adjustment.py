"""
Calcolo adeguamento soggiorno
Progetto: Hotel Manager (Gestionale Albergo)

Confronta le notti prenotate con quelle effettivamente trascorse e
classifica la partenza come anticipata, posticipata o puntuale.
"""

import datetime
from decimal import Decimal
from typing import Optional, Union

from hotel_pms.core.exceptions import BusinessValidationError
from hotel_pms.schemas.settlement import AdjustmentType, StayAdjustment, to_money

DateLike = Union[datetime.date, datetime.datetime]


def _as_date(value: DateLike, tz: Optional[datetime.tzinfo] = None) -> datetime.date:
    if isinstance(value, datetime.datetime):
        # Un istante con fuso va letto nel fuso dell'albergo prima di prenderne la data
        if tz is not None and value.tzinfo is not None:
            value = value.astimezone(tz)
        return value.date()
    return value


def calendar_days(
    start: DateLike,
    end: DateLike,
    tz: Optional[datetime.tzinfo] = None,
) -> int:
    """Giorni di calendario tra due date nel fuso `tz` (l'ora del giorno è ignorata)."""
    return (_as_date(end, tz) - _as_date(start, tz)).days


def booked_nights(
    arrival: DateLike,
    expected_departure: Optional[DateLike],
    tz: Optional[datetime.tzinfo] = None,
) -> int:
    """Notti prenotate: almeno 1, 1 se la partenza prevista manca."""
    if expected_departure is None:
        return 1
    return max(1, calendar_days(arrival, expected_departure, tz))


def calculate_stay_adjustment(
    arrival: Optional[DateLike],
    expected_departure: Optional[DateLike],
    nightly_rate: Decimal,
    now: DateLike,
    tz: Optional[datetime.tzinfo] = None,
) -> StayAdjustment:
    """
    Calcola l'adeguamento per partenza anticipata o posticipata.

    - notti prenotate = max(1, giorni tra arrivo e partenza prevista),
      1 se la partenza prevista manca
    - notti effettive = max(1, giorni tra arrivo e `now`)
    - differenza < 0: early, > 0: late, altrimenti on_time

    Args:
        arrival: Data/ora di check-in
        expected_departure: Data/ora di partenza prevista (opzionale)
        nightly_rate: Tariffa notte della tipologia camera
        now: Istante di riferimento (iniettato, mai letto dall'orologio qui)
        tz: Fuso orario dell'albergo in cui contare le date (None: fuso del valore)

    Returns:
        StayAdjustment: tipo, notti di differenza e importo (sempre >= 0)

    Raises:
        BusinessValidationError: data di arrivo mancante o tariffa negativa
    """
    if arrival is None:
        raise BusinessValidationError("Data di arrivo mancante per il soggiorno")

    rate = to_money(nightly_rate)
    if rate < 0:
        raise BusinessValidationError("La tariffa notte non può essere negativa")

    booked = booked_nights(arrival, expected_departure, tz)
    stayed_nights = max(1, calendar_days(arrival, now, tz))
    delta = stayed_nights - booked

    if delta < 0:
        adjustment_type = AdjustmentType.EARLY
    elif delta > 0:
        adjustment_type = AdjustmentType.LATE
    else:
        adjustment_type = AdjustmentType.ON_TIME

    nights_diff = abs(delta)

    return StayAdjustment(
        type=adjustment_type,
        nights_diff=nights_diff,
        amount=to_money(rate * nights_diff),
        booked_nights=booked,
        stayed_nights=stayed_nights,
        nightly_rate=rate,
    )
