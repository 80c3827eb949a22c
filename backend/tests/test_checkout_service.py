"""
Unit tests per CheckoutService.

Tutte le dipendenze sono le implementazioni in memoria di conftest.py:
il flusso completo (calcolo, due transazioni, ripetizione) viene
verificato senza database.
"""

import datetime
import uuid
from decimal import Decimal

import pytest

from hotel_pms.core.config import SettlementConfig
from hotel_pms.core.exceptions import (
    BusinessValidationError,
    ConflictError,
    NotFoundError,
    PartialCommitError,
    SourceUnavailableError,
)
from hotel_pms.schemas.folio import CheckoutRequest
from hotel_pms.schemas.settlement import (
    AdjustmentType,
    Department,
    FolioStatus,
    PaymentMethod,
    SettlementState,
)
from hotel_pms.services.checkout_service import CheckoutService
from hotel_pms.services.tax_service import RuleTableTaxEvaluator

from conftest import FIXED_NOW, FakeStayStore, MockFolio, MockStay, make_charge


def _advance_folio(guest, stay_id=None, amount="1000.00", invoice_number="2024/0007"):
    """Conto pre-creato al check-in con un acconto."""
    amount = Decimal(amount)
    return MockFolio(
        guest_id=guest.id,
        stay_id=stay_id,
        invoice_number=invoice_number,
        subtotal=Decimal("2000.00"),
        total_amount=Decimal("2000.00"),
        paid_amount=amount,
        advance_amount=amount,
        status="partial",
        created_at=FIXED_NOW - datetime.timedelta(days=1),
    )


# ============================================================
# Tests per il check-out completo
# ============================================================


class TestCompleteCheckout:
    """Tests per il check-out senza acconto."""

    async def test_creates_folio_with_invoice_number(
        self, checkout_service, mock_db, stay, folio_store, invoice_numbers
    ):
        result = await checkout_service.complete(mock_db, stay.id, CheckoutRequest())

        assert result.folio.invoice_number == "2024/0001"
        assert invoice_numbers.issued == ["2024/0001"]
        assert len(folio_store.folios) == 1
        assert result.folio.stay_id == stay.id
        assert result.folio.guest_id == stay.guest_id

    async def test_summary_and_folio_totals(self, checkout_service, mock_db, stay):
        """Test camera 2000 + bar 500 + spa 1200, GST 125 -> 3825."""
        result = await checkout_service.complete(
            mock_db,
            stay.id,
            CheckoutRequest(amount_paid=Decimal("3825"), payment_method=PaymentMethod.CARD),
        )

        assert result.summary.subtotal == Decimal("3700.00")
        assert result.summary.tax_total == Decimal("125.00")
        assert result.summary.grand_total == Decimal("3825.00")
        assert result.summary.status == FolioStatus.PAID

        assert result.folio.total_amount == Decimal("3825.00")
        assert result.folio.paid_amount == Decimal("3825.00")
        assert result.folio.status == FolioStatus.PAID
        assert result.folio.payment_method == "card"
        assert result.folio.balance_due == Decimal("0.00")

    async def test_folio_lines_prefixed_by_category(self, checkout_service, mock_db, stay):
        result = await checkout_service.complete(mock_db, stay.id, CheckoutRequest())

        assert [line.description for line in result.folio.lines] == [
            "Room: Deluxe - 1 night(s)",
            "Bar: Mojito",
            "Spa: Ayurvedic Massage",
        ]
        assert [line.line_number for line in result.folio.lines] == [1, 2, 3]

    async def test_department_orders_settled_into_folio(
        self, checkout_service, mock_db, stay, bar_source, spa_source
    ):
        result = await checkout_service.complete(mock_db, stay.id, CheckoutRequest())

        assert result.settled_orders == 2
        assert set(bar_source.settled_into.values()) == {result.folio.id}
        assert set(spa_source.settled_into.values()) == {result.folio.id}
        assert bar_source.outstanding == []

    async def test_stay_and_room_closed(
        self, checkout_service, mock_db, stay, room_store
    ):
        operator_id = uuid.uuid4()

        result = await checkout_service.complete(
            mock_db, stay.id, CheckoutRequest(), operator_id=operator_id
        )

        assert stay.status == "checked_out"
        assert stay.actual_departure_at == FIXED_NOW
        assert stay.checked_out_by == operator_id
        assert room_store.statuses[stay.room_id] == "cleaning"
        assert result.stay_status == "checked_out"
        assert result.room_status == "cleaning"

    async def test_reconciliation_stamped_with_checkout_time(
        self, checkout_service, mock_db, stay, room_store, bar_source, spa_source
    ):
        await checkout_service.complete(mock_db, stay.id, CheckoutRequest())

        assert room_store.updated_at[stay.room_id] == FIXED_NOW
        assert bar_source.settled_at == FIXED_NOW
        assert spa_source.settled_at == FIXED_NOW

    async def test_two_commits(self, checkout_service, mock_db, stay):
        """Test conto e riconciliazione in due transazioni distinte."""
        await checkout_service.complete(mock_db, stay.id, CheckoutRequest())

        assert mock_db.commit.await_count == 2
        mock_db.rollback.assert_not_awaited()

    async def test_additional_charge_note_on_folio(self, checkout_service, mock_db, stay):
        result = await checkout_service.complete(
            mock_db,
            stay.id,
            CheckoutRequest(additional_charges=Decimal("150"), additional_charges_note="Minibar"),
        )

        assert result.folio.lines[-1].description == "Additional: Minibar"
        assert result.folio.notes == "Minibar"
        assert result.summary.subtotal == Decimal("3850.00")

    async def test_lock_released_after_checkout(self, checkout_service, mock_db, stay, guest_lock):
        await checkout_service.complete(mock_db, stay.id, CheckoutRequest())

        assert guest_lock.held == set()

    async def test_second_checkout_rejected(self, checkout_service, mock_db, stay):
        await checkout_service.complete(mock_db, stay.id, CheckoutRequest())

        with pytest.raises(ConflictError) as exc_info:
            await checkout_service.complete(mock_db, stay.id, CheckoutRequest())

        assert exc_info.value.error_code == "STAY_ALREADY_CHECKED_OUT"


# ============================================================
# Tests per il check-out con acconto
# ============================================================


class TestCheckoutWithAdvance:
    """Tests per la finalizzazione di un conto pre-creato."""

    async def test_advance_folio_finalized(
        self, checkout_service, mock_db, stay, guest, folio_store, invoice_numbers
    ):
        advance = _advance_folio(guest, stay_id=stay.id)
        folio_store.folios[advance.id] = advance

        result = await checkout_service.complete(mock_db, stay.id, CheckoutRequest())

        assert result.folio.id == advance.id
        assert result.folio.invoice_number == "2024/0007"
        assert invoice_numbers.issued == []
        assert len(folio_store.folios) == 1

        assert result.summary.advance_paid == Decimal("1000.00")
        assert result.summary.balance_due == Decimal("2825.00")
        assert result.summary.status == FolioStatus.PARTIAL
        assert result.folio.total_amount == Decimal("3825.00")
        assert result.folio.paid_amount == Decimal("1000.00")

    async def test_unlinked_partial_folio_used_as_advance(
        self, checkout_service, mock_db, stay, guest, folio_store
    ):
        """Test acconto registrato senza soggiorno: ritrovato come conto partial dell'ospite."""
        advance = _advance_folio(guest)
        folio_store.folios[advance.id] = advance

        result = await checkout_service.complete(
            mock_db, stay.id, CheckoutRequest(amount_paid=Decimal("2825"))
        )

        assert result.folio.id == advance.id
        assert result.folio.stay_id == stay.id
        assert result.summary.total_paid == Decimal("3825.00")
        assert result.summary.status == FolioStatus.PAID

    async def test_advance_of_another_stay_ignored(
        self, checkout_service, mock_db, stay, guest, folio_store
    ):
        other = _advance_folio(guest, stay_id=uuid.uuid4())
        folio_store.folios[other.id] = other

        result = await checkout_service.complete(mock_db, stay.id, CheckoutRequest())

        assert result.folio.id != other.id
        assert result.summary.advance_paid == Decimal("0.00")

    async def test_advance_over_total_is_refund(
        self, checkout_service, mock_db, stay, guest, folio_store
    ):
        advance = _advance_folio(guest, stay_id=stay.id, amount="4000.00")
        folio_store.folios[advance.id] = advance

        result = await checkout_service.complete(mock_db, stay.id, CheckoutRequest())

        assert result.summary.refund_due == Decimal("175.00")
        assert result.summary.balance_due == Decimal("0.00")
        assert result.folio.refund_due == Decimal("175.00")
        assert result.folio.status == FolioStatus.PAID


# ============================================================
# Tests per errori e ripetizione
# ============================================================


class TestCheckoutFailures:
    """Tests per i casi di errore del check-out."""

    async def test_unknown_stay(self, checkout_service, mock_db):
        with pytest.raises(NotFoundError):
            await checkout_service.complete(mock_db, uuid.uuid4(), CheckoutRequest())

    async def test_checked_out_stay(self, checkout_service, mock_db, stay):
        stay.status = "checked_out"

        with pytest.raises(ConflictError) as exc_info:
            await checkout_service.complete(mock_db, stay.id, CheckoutRequest())

        assert exc_info.value.error_code == "STAY_ALREADY_CHECKED_OUT"

    async def test_concurrent_checkout_rejected(
        self, checkout_service, mock_db, stay, guest_lock, folio_store
    ):
        guest_lock.held.add(stay.guest_id)

        with pytest.raises(ConflictError):
            await checkout_service.complete(mock_db, stay.id, CheckoutRequest())

        assert folio_store.folios == {}

    async def test_source_unavailable_before_any_write(
        self, checkout_service, mock_db, stay, bar_source, spa_source, folio_store, invoice_numbers
    ):
        bar_source.fail = True

        with pytest.raises(SourceUnavailableError) as exc_info:
            await checkout_service.complete(mock_db, stay.id, CheckoutRequest())

        assert exc_info.value.extra == {"department": "bar"}
        assert folio_store.folios == {}
        assert invoice_numbers.issued == []
        assert spa_source.settled_into == {}
        assert stay.status == "checked_in"
        mock_db.commit.assert_not_awaited()

    async def test_negative_discount_rejected(self, checkout_service, mock_db, stay, folio_store):
        request = CheckoutRequest.model_construct(discount=Decimal("-5"))

        with pytest.raises(BusinessValidationError) as exc_info:
            await checkout_service.complete(mock_db, stay.id, request)

        assert exc_info.value.extra["field"] == "discount"
        assert folio_store.folios == {}
        mock_db.commit.assert_not_awaited()

    async def test_negative_additional_charge_rejected(self, checkout_service, mock_db, stay):
        request = CheckoutRequest.model_construct(additional_charges=Decimal("-1"))

        with pytest.raises(BusinessValidationError):
            await checkout_service.complete(mock_db, stay.id, request)

        mock_db.commit.assert_not_awaited()

    async def test_partial_commit_reports_saved_folio(
        self, checkout_service, mock_db, stay, folio_store, bar_source
    ):
        folio_store.fail_on_replace_lines = 1

        with pytest.raises(PartialCommitError) as exc_info:
            await checkout_service.complete(mock_db, stay.id, CheckoutRequest())

        [folio] = folio_store.folios.values()
        assert exc_info.value.extra == {
            "folio_id": str(folio.id),
            "invoice_number": "2024/0001",
        }
        assert exc_info.value.folio_id == str(folio.id)
        assert stay.status == "checked_in"
        assert bar_source.settled_into == {}
        mock_db.rollback.assert_awaited_once()

    async def test_retry_after_partial_commit_reuses_folio(
        self, checkout_service, mock_db, stay, folio_store, invoice_numbers, guest_lock
    ):
        """Test ripetizione: stesso conto, stesso numero, incasso non raddoppiato."""
        folio_store.fail_on_replace_lines = 1
        request = CheckoutRequest(amount_paid=Decimal("500"))

        with pytest.raises(PartialCommitError) as exc_info:
            await checkout_service.complete(mock_db, stay.id, request)
        assert guest_lock.held == set()

        result = await checkout_service.complete(mock_db, stay.id, request)

        assert str(result.folio.id) == exc_info.value.folio_id
        assert result.folio.invoice_number == "2024/0001"
        assert invoice_numbers.issued == ["2024/0001"]
        assert len(folio_store.folios) == 1
        assert result.folio.paid_amount == Decimal("500.00")
        assert len(result.folio.lines) == 3
        assert stay.status == "checked_out"


# ============================================================
# Tests per anteprima ed elenco
# ============================================================


class TestPreview:
    """Tests per l'anteprima del conto."""

    async def test_preview_writes_nothing(
        self, checkout_service, mock_db, stay, folio_store, bar_source, invoice_numbers, room_store
    ):
        preview = await checkout_service.preview(mock_db, stay.id, CheckoutRequest())

        assert preview.summary.grand_total == Decimal("3825.00")
        assert preview.currency_symbol == "₹"
        assert preview.advance_payment is None
        assert preview.stay.id == stay.id
        assert folio_store.folios == {}
        assert invoice_numbers.issued == []
        assert bar_source.settled_into == {}
        assert room_store.statuses == {}
        assert stay.status == "checked_in"
        mock_db.commit.assert_not_awaited()

    async def test_preview_reports_advance(self, checkout_service, mock_db, stay, guest, folio_store):
        advance = _advance_folio(guest, stay_id=stay.id)
        folio_store.folios[advance.id] = advance

        preview = await checkout_service.preview(mock_db, stay.id, CheckoutRequest())

        assert preview.advance_payment.id == advance.id
        assert preview.advance_payment.invoice_number == "2024/0007"
        assert preview.advance_payment.paid_amount == Decimal("1000.00")
        assert preview.summary.balance_due == Decimal("2825.00")

    async def test_preview_matches_checkout(self, checkout_service, mock_db, stay):
        request = CheckoutRequest(discount=Decimal("25"), amount_paid=Decimal("100"))

        preview = await checkout_service.preview(mock_db, stay.id, request)
        result = await checkout_service.complete(mock_db, stay.id, request)

        assert preview.summary == result.summary
        assert preview.charges == result.charges
        assert preview.tax_lines == result.tax_lines

    async def test_preview_lists_already_settled_charges(
        self, checkout_service, mock_db, stay, bar_source
    ):
        bar_source.settled.append(
            make_charge(Department.BAR, "Espresso", "80.00", state=SettlementState.SETTLED)
        )

        preview = await checkout_service.preview(mock_db, stay.id, CheckoutRequest())

        assert [charge.description for charge in preview.settled_charges] == ["Espresso"]
        assert preview.summary.subtotal == Decimal("3700.00")

    async def test_late_departure_reported(
        self,
        mock_db,
        stay,
        settlement_config,
        charge_sources,
        folio_store,
        stay_store,
        room_store,
        invoice_numbers,
        guest_lock,
    ):
        """Test partenza due giorni dopo il previsto, politica informational."""
        service = CheckoutService(
            config=settlement_config,
            tax_evaluator=RuleTableTaxEvaluator(settlement_config.tax_rules),
            charge_sources=charge_sources,
            folio_store=folio_store,
            stay_store=stay_store,
            room_store=room_store,
            invoice_numbers=invoice_numbers,
            guest_lock=guest_lock,
            clock=lambda: FIXED_NOW + datetime.timedelta(days=2),
        )

        preview = await service.preview(mock_db, stay.id, CheckoutRequest())

        assert preview.stay_adjustment.type == AdjustmentType.LATE
        assert preview.stay_adjustment.nights_diff == 2
        assert preview.stay_adjustment.amount == Decimal("4000.00")
        assert preview.summary.subtotal == Decimal("3700.00")

    async def test_late_departure_charged_as_line(
        self,
        mock_db,
        stay,
        tax_rules,
        charge_sources,
        folio_store,
        stay_store,
        room_store,
        invoice_numbers,
        guest_lock,
    ):
        config = SettlementConfig(tax_rules=tax_rules, stay_adjustment_policy="charge_line")
        service = CheckoutService(
            config=config,
            tax_evaluator=RuleTableTaxEvaluator(config.tax_rules),
            charge_sources=charge_sources,
            folio_store=folio_store,
            stay_store=stay_store,
            room_store=room_store,
            invoice_numbers=invoice_numbers,
            guest_lock=guest_lock,
            clock=lambda: FIXED_NOW + datetime.timedelta(days=1),
        )

        preview = await service.preview(mock_db, stay.id, CheckoutRequest())

        assert preview.charges[-1].description == "Late checkout - 1 extra night(s)"
        assert preview.summary.subtotal == Decimal("5700.00")
        # GST 5% su 2000 + 2000 + 500
        assert preview.summary.tax_total == Decimal("225.00")

    async def test_nights_counted_in_hotel_timezone(
        self,
        mock_db,
        guest,
        tax_rules,
        charge_sources,
        folio_store,
        room_store,
        invoice_numbers,
        guest_lock,
    ):
        """Test arrivo alle 02:00 IST (ancora il giorno prima in UTC): una sola notte."""
        utc = datetime.timezone.utc
        stay = MockStay(
            guest=guest,
            arrival_at=datetime.datetime(2024, 1, 1, 20, 30, tzinfo=utc),
            expected_departure_at=datetime.datetime(2024, 1, 3, 5, 30, tzinfo=utc),
        )
        config = SettlementConfig(tax_rules=tax_rules, timezone="Asia/Kolkata")
        service = CheckoutService(
            config=config,
            tax_evaluator=RuleTableTaxEvaluator(config.tax_rules),
            charge_sources=charge_sources,
            folio_store=folio_store,
            stay_store=FakeStayStore([stay]),
            room_store=room_store,
            invoice_numbers=invoice_numbers,
            guest_lock=guest_lock,
            clock=lambda: datetime.datetime(2024, 1, 3, 5, 30, tzinfo=utc),
        )

        preview = await service.preview(mock_db, stay.id, CheckoutRequest())

        assert preview.stay_adjustment.booked_nights == 1
        assert preview.stay_adjustment.stayed_nights == 1
        assert preview.stay_adjustment.type == AdjustmentType.ON_TIME
        assert preview.charges[0].total == Decimal("2000.00")


class TestListOpenStays:

    async def test_only_open_stays(self, checkout_service, mock_db, stay, stay_store):
        closed = MockStay(status="checked_out")
        stay_store.stays[closed.id] = closed

        stays = await checkout_service.list_open_stays(mock_db)

        assert stays == [stay]
