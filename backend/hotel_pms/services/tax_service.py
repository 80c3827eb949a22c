"""
Service Layer per le Imposte
Progetto: Hotel Manager (Gestionale Albergo)

Contiene:
- TaxRuleEvaluator: interfaccia del valutatore fiscale
- RuleTableTaxEvaluator: valutatore di default basato sulle regole attive
- compute_tax_lines: raggruppa gli addebiti per categoria, interroga il
  valutatore e consolida le imposte per (nome, aliquota)
- load_active_tax_rules: lettura delle regole attive dal database
"""

import logging
from decimal import Decimal
from typing import Iterable, Protocol, Sequence

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from hotel_pms.core.exceptions import AppException, SourceUnavailableError
from hotel_pms.models import TaxRule
from hotel_pms.schemas.settlement import (
    ChargeCategory,
    ChargeLine,
    TaxLine,
    TaxRuleConfig,
    ZERO,
    to_money,
)

# Logger per questo modulo
logger = logging.getLogger(__name__)


# Categorie fiscali configurabili sulle regole
ROOM_CHARGES = "room_charges"
FOOD_BEVERAGE = "food_beverage"
SPA = "spa"
OTHERS = "others"

CHARGE_TO_TAX_CATEGORY: dict[ChargeCategory, str] = {
    ChargeCategory.ROOM: ROOM_CHARGES,
    ChargeCategory.STAY_ADJUSTMENT: ROOM_CHARGES,
    ChargeCategory.BAR: FOOD_BEVERAGE,
    ChargeCategory.RESTAURANT: FOOD_BEVERAGE,
    ChargeCategory.KITCHEN: FOOD_BEVERAGE,
    ChargeCategory.SPA: SPA,
    ChargeCategory.ADDITIONAL: OTHERS,
}


def tax_category_for(category: ChargeCategory) -> str:
    """Categoria fiscale di una categoria di addebito (default: others)."""
    return CHARGE_TO_TAX_CATEGORY.get(category, OTHERS)


class TaxRuleEvaluator(Protocol):
    """Valutatore fiscale: dato un imponibile e la sua categoria restituisce le imposte."""

    def evaluate(self, amount: Decimal, category: ChargeCategory) -> list[TaxLine]:
        ...


class RuleTableTaxEvaluator:
    """
    Valutatore fiscale basato su una tabella di regole attive.

    Una regola si applica a una categoria quando `applies_to` è vuoto
    oppure contiene la categoria fiscale corrispondente. Gli importi
    restituiti non sono arrotondati: l'arrotondamento avviene dopo il
    consolidamento.
    """

    def __init__(self, rules: Iterable[TaxRuleConfig]) -> None:
        self.rules = tuple(rules)

    def rules_for(self, category: ChargeCategory) -> list[TaxRuleConfig]:
        tax_category = tax_category_for(category)
        return [
            rule for rule in self.rules
            if not rule.applies_to or tax_category in rule.applies_to
        ]

    def evaluate(self, amount: Decimal, category: ChargeCategory) -> list[TaxLine]:
        return [
            TaxLine(
                name=rule.name,
                percentage=rule.percentage,
                amount=amount * rule.percentage / Decimal("100"),
            )
            for rule in self.rules_for(category)
        ]


def compute_tax_lines(
    lines: Sequence[ChargeLine],
    evaluator: TaxRuleEvaluator,
) -> tuple[list[TaxLine], Decimal]:
    """
    Calcola le imposte del conto.

    Steps:
    1. Raggruppa i totali delle righe per categoria (ordine di prima comparsa)
    2. Interroga il valutatore una volta per categoria
    3. Consolida le imposte per (nome, aliquota)
    4. Arrotonda ogni importo consolidato a 2 decimali e somma

    Args:
        lines: Righe di addebito del conto
        evaluator: Valutatore fiscale

    Returns:
        tuple: (imposte consolidate, totale imposte)

    Raises:
        SourceUnavailableError: il valutatore fiscale ha sollevato un errore
    """
    totals_by_category: dict[ChargeCategory, Decimal] = {}
    for line in lines:
        totals_by_category[line.category] = (
            totals_by_category.get(line.category, ZERO) + line.total
        )

    consolidated: dict[tuple[str, Decimal], Decimal] = {}
    for category, amount in totals_by_category.items():
        try:
            category_taxes = evaluator.evaluate(amount, category)
        except AppException:
            raise
        except Exception as exc:
            logger.error(f"Valutatore fiscale non disponibile per '{category.value}': {exc}")
            raise SourceUnavailableError(
                "Valutatore fiscale non disponibile",
                extra={"category": category.value},
            ) from exc

        for tax in category_taxes:
            key = (tax.name, tax.percentage)
            consolidated[key] = consolidated.get(key, ZERO) + tax.amount

    tax_lines = [
        TaxLine(name=name, percentage=percentage, amount=to_money(amount))
        for (name, percentage), amount in consolidated.items()
    ]
    tax_total = to_money(sum((tax.amount for tax in tax_lines), ZERO))
    return tax_lines, tax_total


async def load_active_tax_rules(db: AsyncSession) -> list[TaxRuleConfig]:
    """
    Legge le regole fiscali attive, ordinate per nome.

    Raises:
        SourceUnavailableError: errore di lettura dal database
    """
    stmt = select(TaxRule).where(TaxRule.is_active.is_(True)).order_by(TaxRule.name)
    try:
        result = await db.execute(stmt)
    except SQLAlchemyError as exc:
        logger.error(f"Lettura regole fiscali fallita: {exc}")
        raise SourceUnavailableError("Regole fiscali non disponibili") from exc

    return [
        TaxRuleConfig(
            name=rule.name,
            percentage=rule.percentage,
            applies_to=tuple(rule.applies_to or ()),
        )
        for rule in result.scalars().all()
    ]
