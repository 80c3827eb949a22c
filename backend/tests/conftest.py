"""
Pytest configuration and fixtures per il motore di chiusura conto.

I servizi ricevono tutte le dipendenze per iniezione: qui vengono
sostituite con implementazioni in memoria (store, sorgenti addebiti,
numerazione, lock) e con mock dei modelli, senza database.
"""

import datetime
import uuid
from contextlib import asynccontextmanager
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from hotel_pms.core.config import SettlementConfig
from hotel_pms.core.exceptions import ConflictError
from hotel_pms.schemas.settlement import (
    Department,
    DepartmentCharge,
    DepartmentChargeSet,
    SettlementState,
    TaxRuleConfig,
)
from hotel_pms.services.checkout_service import CheckoutService
from hotel_pms.services.folio_service import FolioService
from hotel_pms.services.tax_service import RuleTableTaxEvaluator


FIXED_NOW = datetime.datetime(2024, 1, 2, 11, 0, tzinfo=datetime.timezone.utc)


# ============================================================
# Fixtures per AsyncSession Mock
# ============================================================


@pytest.fixture
def mock_db():
    """Crea un mock di AsyncSession."""
    db = AsyncMock(spec=AsyncSession)
    db.execute = AsyncMock()
    db.get = AsyncMock()
    db.add = MagicMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    db.flush = AsyncMock()
    db.refresh = AsyncMock()
    return db


# ============================================================
# Mock dei modelli (senza sessione SQLAlchemy)
# ============================================================


class MockRoomType:
    """Mock di RoomType."""
    def __init__(self, **kwargs):
        self.id = kwargs.get('id', uuid.uuid4())
        self.name = kwargs.get('name', 'Deluxe')
        self.base_price = kwargs.get('base_price', Decimal("2000.00"))


class MockRoom:
    """Mock di Room."""
    def __init__(self, **kwargs):
        self.id = kwargs.get('id', uuid.uuid4())
        self.room_number = kwargs.get('room_number', '101')
        self.room_type = kwargs.get('room_type', MockRoomType())
        self.room_type_id = self.room_type.id if self.room_type else None
        self.status = kwargs.get('status', 'occupied')


class MockGuest:
    """Mock di Guest."""
    def __init__(self, **kwargs):
        self.id = kwargs.get('id', uuid.uuid4())
        self.full_name = kwargs.get('full_name', 'Asha Rao')
        self.phone = kwargs.get('phone', '+91 98450 00000')
        self.email = kwargs.get('email', 'asha@example.com')


class MockStay:
    """Mock di Stay."""
    def __init__(self, **kwargs):
        self.id = kwargs.get('id', uuid.uuid4())
        self.guest = kwargs.get('guest', MockGuest())
        self.guest_id = kwargs.get('guest_id', self.guest.id)
        self.room = kwargs.get('room', MockRoom())
        self.room_id = self.room.id if self.room else uuid.uuid4()
        self.arrival_at = kwargs.get(
            'arrival_at', datetime.datetime(2024, 1, 1, 14, 0, tzinfo=datetime.timezone.utc)
        )
        self.expected_departure_at = kwargs.get(
            'expected_departure_at', datetime.datetime(2024, 1, 2, 11, 0, tzinfo=datetime.timezone.utc)
        )
        self.actual_departure_at = kwargs.get('actual_departure_at', None)
        self.num_guests = kwargs.get('num_guests', 1)
        self.status = kwargs.get('status', 'checked_in')
        self.checked_out_by = kwargs.get('checked_out_by', None)


class MockFolioLineItem:
    """Mock di FolioLineItem."""
    def __init__(self, **kwargs):
        self.id = kwargs.get('id', uuid.uuid4())
        self.folio_id = kwargs.get('folio_id')
        self.line_number = kwargs.get('line_number', 1)
        self.description = kwargs.get('description', 'Room: Deluxe - 1 night(s)')
        self.quantity = kwargs.get('quantity', Decimal("1"))
        self.unit_price = kwargs.get('unit_price', Decimal("0.00"))
        self.total_price = kwargs.get('total_price', Decimal("0.00"))


class MockFolio:
    """Mock di Folio."""
    def __init__(self, **kwargs):
        self.id = kwargs.get('id', uuid.uuid4())
        self.guest_id = kwargs.get('guest_id', uuid.uuid4())
        self.stay_id = kwargs.get('stay_id', None)
        self.stay = kwargs.get('stay', None)
        self.invoice_number = kwargs.get('invoice_number', "2024/0001")
        self.subtotal = kwargs.get('subtotal', Decimal("0.00"))
        self.tax_amount = kwargs.get('tax_amount', Decimal("0.00"))
        self.discount_amount = kwargs.get('discount_amount', Decimal("0.00"))
        self.total_amount = kwargs.get('total_amount', Decimal("0.00"))
        self.paid_amount = kwargs.get('paid_amount', Decimal("0.00"))
        self.advance_amount = kwargs.get('advance_amount', Decimal("0.00"))
        self.status = kwargs.get('status', 'pending')
        self.payment_method = kwargs.get('payment_method', 'cash')
        self.notes = kwargs.get('notes', None)
        self.created_at = kwargs.get('created_at', FIXED_NOW)
        self.updated_at = kwargs.get('updated_at', FIXED_NOW)
        self.lines = kwargs.get('lines', [])


# ============================================================
# Implementazioni in memoria delle dipendenze
# ============================================================


class FakeFolioStore:
    """FolioStore in memoria."""

    def __init__(self, folios=None):
        self.folios = {folio.id: folio for folio in (folios or [])}
        self.fail_on_replace_lines = 0

    async def find_for_stay(self, db, stay_id):
        for folio in self.folios.values():
            if folio.stay_id == stay_id:
                return folio
        return None

    async def find_partial(self, db, guest_id, stay_id=None):
        candidates = [
            folio for folio in self.folios.values()
            if folio.guest_id == guest_id
            and folio.status == "partial"
            and (stay_id is None or folio.stay_id in (stay_id, None))
            and (folio.stay is None or folio.stay.status != "checked_out")
        ]
        candidates.sort(key=lambda folio: folio.created_at, reverse=True)
        return candidates[0] if candidates else None

    async def create(self, db, **fields):
        folio = MockFolio(**fields)
        self.folios[folio.id] = folio
        return folio

    async def update(self, db, folio, **fields):
        for field, value in fields.items():
            setattr(folio, field, value)
        return folio

    async def replace_lines(self, db, folio_id, lines):
        if self.fail_on_replace_lines:
            self.fail_on_replace_lines -= 1
            raise RuntimeError("connessione persa durante la scrittura delle righe")
        self.folios[folio_id].lines = [
            MockFolioLineItem(
                folio_id=folio_id,
                line_number=number,
                description=line.folio_description,
                quantity=line.quantity,
                unit_price=line.rate,
                total_price=line.total,
            )
            for number, line in enumerate(lines, start=1)
        ]
        return len(lines)

    async def get(self, db, folio_id):
        return self.folios.get(folio_id)

    async def list_for_guest(self, db, guest_id):
        return [folio for folio in self.folios.values() if folio.guest_id == guest_id]

    async def list_by_status(self, db, status, page, per_page):
        folios = [
            folio for folio in self.folios.values()
            if status is None or folio.status == status
        ]
        offset = (page - 1) * per_page
        return folios[offset:offset + per_page], len(folios)


class FakeStayStore:
    """StayStore in memoria."""

    def __init__(self, stays=None):
        self.stays = {stay.id: stay for stay in (stays or [])}

    async def get(self, db, stay_id):
        return self.stays.get(stay_id)

    async def list_open(self, db):
        return [stay for stay in self.stays.values() if stay.status in ("checked_in", "active")]

    async def mark_checked_out(self, db, stay, operator_id, at):
        stay.status = "checked_out"
        stay.actual_departure_at = at
        stay.checked_out_by = operator_id
        return stay


class FakeRoomStore:
    """RoomStore in memoria."""

    def __init__(self):
        self.statuses = {}
        self.updated_at = {}

    async def set_status(self, db, room_id, status, at):
        self.statuses[room_id] = status
        self.updated_at[room_id] = at


class FakeChargeSource:
    """Sorgente addebiti di reparto in memoria."""

    def __init__(self, department, outstanding=(), settled=(), fail=False):
        self.department = department
        self.outstanding = list(outstanding)
        self.settled = list(settled)
        self.fail = fail
        self.settled_into = {}
        self.settled_at = None

    async def for_guest(self, db, guest_id):
        if self.fail:
            raise RuntimeError(f"servizio {self.department.value} non raggiungibile")
        return DepartmentChargeSet(
            department=self.department,
            outstanding=tuple(self.outstanding),
            settled=tuple(self.settled),
        )

    async def mark_settled(self, db, source_ids, folio_id, at):
        self.settled_at = at
        count = 0
        for source_id in source_ids:
            if source_id in self.settled_into:
                continue
            self.settled_into[source_id] = folio_id
            count += 1
        self.settled.extend(
            charge.model_copy(update={"state": SettlementState.SETTLED})
            for charge in self.outstanding if charge.source_id in source_ids
        )
        self.outstanding = [c for c in self.outstanding if c.source_id not in source_ids]
        return count


class FakeInvoiceNumbers:
    """Numerazione progressiva in memoria."""

    def __init__(self, start=1):
        self.next_number = start
        self.issued = []

    async def next(self, db, on):
        number = f"{on.year}/{self.next_number:04d}"
        self.next_number += 1
        self.issued.append(number)
        return number


class FakeGuestLock:
    """Lock per ospite in memoria, non bloccante."""

    def __init__(self):
        self.held = set()

    @asynccontextmanager
    async def hold(self, guest_id):
        if guest_id in self.held:
            raise ConflictError("Un altro check-out è in corso per questo ospite")
        self.held.add(guest_id)
        try:
            yield
        finally:
            self.held.discard(guest_id)


def make_charge(department, description, total, quantity=Decimal("1"), source_id=None,
                state=SettlementState.OUTSTANDING):
    """Crea un DepartmentCharge di test."""
    total = Decimal(str(total))
    return DepartmentCharge(
        source_id=source_id or uuid.uuid4(),
        department=department,
        description=description,
        quantity=quantity,
        unit_rate=total / quantity,
        line_total=total,
        state=state,
    )


# ============================================================
# Fixtures di configurazione
# ============================================================


@pytest.fixture
def tax_rules():
    """GST 5% su camera e food & beverage, 0% sulla spa."""
    return (
        TaxRuleConfig(name="GST", percentage=Decimal("5"), applies_to=("room_charges", "food_beverage")),
        TaxRuleConfig(name="Spa GST", percentage=Decimal("0"), applies_to=("spa",)),
    )


@pytest.fixture
def settlement_config(tax_rules):
    return SettlementConfig(tax_rules=tax_rules)


# ============================================================
# Fixtures per lo scenario di check-out
# ============================================================


@pytest.fixture
def guest():
    return MockGuest()


@pytest.fixture
def stay(guest):
    """Soggiorno di una notte in Deluxe a 2000."""
    return MockStay(guest=guest)


@pytest.fixture
def bar_source():
    return FakeChargeSource(
        Department.BAR,
        outstanding=[make_charge(Department.BAR, "Mojito", "500.00", quantity=Decimal("2"))],
    )


@pytest.fixture
def spa_source():
    return FakeChargeSource(
        Department.SPA,
        outstanding=[make_charge(Department.SPA, "Ayurvedic Massage", "1200.00")],
    )


@pytest.fixture
def charge_sources(bar_source, spa_source):
    return [
        bar_source,
        FakeChargeSource(Department.RESTAURANT),
        FakeChargeSource(Department.KITCHEN),
        spa_source,
    ]


@pytest.fixture
def folio_store():
    return FakeFolioStore()


@pytest.fixture
def stay_store(stay):
    return FakeStayStore([stay])


@pytest.fixture
def room_store():
    return FakeRoomStore()


@pytest.fixture
def invoice_numbers():
    return FakeInvoiceNumbers()


@pytest.fixture
def guest_lock():
    return FakeGuestLock()


@pytest.fixture
def checkout_service(
    settlement_config,
    charge_sources,
    folio_store,
    stay_store,
    room_store,
    invoice_numbers,
    guest_lock,
):
    """CheckoutService con tutte le dipendenze in memoria e orologio fisso."""
    return CheckoutService(
        config=settlement_config,
        tax_evaluator=RuleTableTaxEvaluator(settlement_config.tax_rules),
        charge_sources=charge_sources,
        folio_store=folio_store,
        stay_store=stay_store,
        room_store=room_store,
        invoice_numbers=invoice_numbers,
        guest_lock=guest_lock,
        clock=lambda: FIXED_NOW,
    )


@pytest.fixture
def folio_service(folio_store, stay_store, invoice_numbers):
    return FolioService(
        folio_store=folio_store,
        stay_store=stay_store,
        invoice_numbers=invoice_numbers,
        clock=lambda: FIXED_NOW,
    )
