"""
Aggregazione addebiti del conto
Progetto: Hotel Manager (Gestionale Albergo)

Costruisce la lista ordinata delle righe di addebito del conto finale:
1. camera (notti prenotate × tariffa)
2. addebiti di reparto ancora da saldare (Bar, Restaurant, Kitchen, Spa)
3. adeguamento soggiorno (solo con politica `charge_line`)
4. addebito extra manuale

Le funzioni sono pure: stessi input, stessa lista.
"""

from decimal import Decimal
from typing import Optional, Sequence

from hotel_pms.core.config import SettlementConfig
from hotel_pms.schemas.settlement import (
    DEPARTMENT_ORDER,
    AdjustmentType,
    ChargeCategory,
    ChargeLine,
    DepartmentCharge,
    DepartmentChargeSet,
    StayAdjustment,
    ZERO,
    to_money,
)


def _ordered(charge_sets: Sequence[DepartmentChargeSet]) -> list[DepartmentChargeSet]:
    """Ordina i set di addebiti secondo l'ordine fisso dei reparti."""
    position = {department: index for index, department in enumerate(DEPARTMENT_ORDER)}
    return sorted(charge_sets, key=lambda charge_set: position[charge_set.department])


def room_charge_line(
    room_type_name: Optional[str],
    adjustment: StayAdjustment,
    config: SettlementConfig,
) -> ChargeLine:
    """Riga camera: notti prenotate alla tariffa della tipologia."""
    nights = adjustment.booked_nights
    label = room_type_name or config.default_room_label
    return ChargeLine(
        category=ChargeCategory.ROOM,
        description=f"{label} - {nights} night(s)",
        quantity=Decimal(nights),
        rate=adjustment.nightly_rate,
        total=to_money(adjustment.nightly_rate * nights),
    )


def department_charge_line(charge: DepartmentCharge) -> ChargeLine:
    """Riga di conto per un addebito di reparto."""
    return ChargeLine(
        category=charge.category,
        description=charge.description,
        quantity=charge.quantity,
        rate=to_money(charge.line_total / charge.quantity),
        total=to_money(charge.line_total),
    )


def stay_adjustment_line(adjustment: StayAdjustment) -> Optional[ChargeLine]:
    """
    Riga di adeguamento soggiorno con segno.

    Partenza posticipata: importo positivo. Partenza anticipata: importo
    negativo (tariffa negativa). Nessuna riga se l'adeguamento è nullo.
    """
    if adjustment.type == AdjustmentType.ON_TIME or adjustment.amount == ZERO:
        return None

    if adjustment.type == AdjustmentType.LATE:
        description = f"Late checkout - {adjustment.nights_diff} extra night(s)"
        rate = adjustment.nightly_rate
    else:
        description = f"Early checkout - {adjustment.nights_diff} night(s) early"
        rate = -adjustment.nightly_rate

    return ChargeLine(
        category=ChargeCategory.STAY_ADJUSTMENT,
        description=description,
        quantity=Decimal(adjustment.nights_diff),
        rate=rate,
        total=adjustment.signed_amount,
    )


def additional_charge_line(
    amount: Decimal,
    note: Optional[str],
    config: SettlementConfig,
) -> Optional[ChargeLine]:
    """Riga addebito extra, solo se l'importo è positivo."""
    amount = to_money(amount)
    if amount <= ZERO:
        return None

    return ChargeLine(
        category=ChargeCategory.ADDITIONAL,
        description=(note or "").strip() or config.additional_charge_label,
        quantity=Decimal(1),
        rate=amount,
        total=amount,
    )


def build_charge_lines(
    *,
    room_type_name: Optional[str],
    adjustment: StayAdjustment,
    charge_sets: Sequence[DepartmentChargeSet],
    config: SettlementConfig,
    additional_amount: Decimal = ZERO,
    additional_note: Optional[str] = None,
) -> list[ChargeLine]:
    """
    Costruisce la lista completa delle righe di addebito del conto.

    Gli addebiti già saldati presso il reparto sono esclusi (vedi
    `settled_charges` per la sola visualizzazione).

    Args:
        room_type_name: Nome tipologia camera (None = etichetta di default)
        adjustment: Adeguamento soggiorno già calcolato
        charge_sets: Addebiti per reparto, in qualunque ordine
        config: Configurazione del motore
        additional_amount: Addebito extra manuale
        additional_note: Causale dell'addebito extra

    Returns:
        list[ChargeLine]: righe in ordine deterministico
    """
    lines = [room_charge_line(room_type_name, adjustment, config)]

    for charge_set in _ordered(charge_sets):
        lines.extend(department_charge_line(charge) for charge in charge_set.outstanding)

    if config.stay_adjustment_policy == "charge_line":
        adjustment_line = stay_adjustment_line(adjustment)
        if adjustment_line is not None:
            lines.append(adjustment_line)

    extra_line = additional_charge_line(additional_amount, additional_note, config)
    if extra_line is not None:
        lines.append(extra_line)

    return lines


def settled_charges(charge_sets: Sequence[DepartmentChargeSet]) -> list[DepartmentCharge]:
    """Addebiti già saldati presso il reparto, nello stesso ordine dei reparti."""
    return [
        charge
        for charge_set in _ordered(charge_sets)
        for charge in charge_set.settled
    ]
