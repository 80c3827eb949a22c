"""
Calcolo di chiusura del conto
Progetto: Hotel Manager (Gestionale Albergo)

Dati righe di addebito, imposte, sconto, acconto e incasso al check-out,
calcola totale, saldo residuo o importo da rimborsare e stato del conto.
"""

from decimal import Decimal
from typing import Sequence

from hotel_pms.core.exceptions import BusinessValidationError
from hotel_pms.schemas.settlement import (
    ChargeLine,
    FolioStatus,
    SettlementSummary,
    TaxLine,
    ZERO,
    to_money,
)


def resolve_status(grand_total: Decimal, total_paid: Decimal) -> FolioStatus:
    """paid se l'incassato copre il totale, partial se c'è un incasso, altrimenti pending."""
    if total_paid >= grand_total:
        return FolioStatus.PAID
    if total_paid > ZERO:
        return FolioStatus.PARTIAL
    return FolioStatus.PENDING


def calculate_settlement(
    lines: Sequence[ChargeLine],
    tax_lines: Sequence[TaxLine],
    discount: Decimal = ZERO,
    advance_paid: Decimal = ZERO,
    amount_paid_now: Decimal = ZERO,
) -> SettlementSummary:
    """
    Calcola il riepilogo di chiusura.

    - subtotal = somma dei totali riga
    - grand_total = subtotal + imposte - sconto
    - saldo = grand_total - acconto - incasso ora; se negativo è un rimborso

    Raises:
        BusinessValidationError: sconto, acconto o incasso negativi
    """
    for field, value, message in (
        ("discount", discount, "Lo sconto non può essere negativo"),
        ("advance_paid", advance_paid, "L'acconto non può essere negativo"),
        ("amount_paid", amount_paid_now, "L'importo incassato non può essere negativo"),
    ):
        if value < 0:
            raise BusinessValidationError(message, extra={"field": field, "value": str(value)})

    subtotal = to_money(sum((line.total for line in lines), ZERO))
    tax_total = to_money(sum((tax.amount for tax in tax_lines), ZERO))
    discount = to_money(discount)
    advance_paid = to_money(advance_paid)
    amount_paid_now = to_money(amount_paid_now)

    grand_total = subtotal + tax_total - discount
    total_paid = advance_paid + amount_paid_now
    balance = grand_total - total_paid

    return SettlementSummary(
        subtotal=subtotal,
        tax_total=tax_total,
        discount=discount,
        grand_total=grand_total,
        advance_paid=advance_paid,
        amount_paid_now=amount_paid_now,
        balance_due=max(balance, ZERO),
        refund_due=max(-balance, ZERO),
        status=resolve_status(grand_total, total_paid),
    )
