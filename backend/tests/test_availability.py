from datetime import time
from decimal import Decimal

import pytest
from django.db import transaction

from core.availability import AvailabilityOracle, DoctorSlot, RoomCategory, StockLine, check_availability
from core.errors import CapacityExhausted, InsufficientStock, ValidationRejected
from core.ports import (
    DoctorRegistration, LedgerStore, RoomAllocation, SlotAvailability, SlotOption, StockLevel,
    ROOM_ALLOCATED, get_ledger_store
)
from users.services import register_doctor
from .conftest import local_dt


class FakeLedgerStore(LedgerStore):
    """In-memory store: no procedures, no locks."""

    def __init__(self, remaining=5, free_rooms=1, stock=10):
        self.remaining = remaining
        self.free_rooms = free_rooms
        self.stock = stock
        self.locked = []
        self.doctors = []

    def compute_available_slots(self, doctor_id, day):
        return [SlotOption(time(9, 0), '09:00 AM'), SlotOption(time(9, 30), '09:30 AM')]

    def check_slot_availability(self, doctor_id, when, lock=False):
        if lock:
            self.locked.append(('slot', doctor_id))
        if self.remaining <= 0:
            return SlotAvailability(0, False, "No slots remaining for this date")
        return SlotAvailability(self.remaining, True, f"{self.remaining} slots available")

    def allocate_room(self, patient_id, room_category):
        if self.free_rooms <= 0:
            return RoomAllocation(None, f"No available rooms of type {room_category}")
        self.free_rooms -= 1
        return RoomAllocation('FAKE-1', ROOM_ALLOCATED)

    def free_room_count(self, room_category):
        return self.free_rooms

    def stock_level(self, medicine_id, lock=False):
        if lock:
            self.locked.append(('stock', medicine_id))
        return StockLevel(medicine_id, 'Amoxicillin', self.stock)

    def validate_and_create_doctor(self, registration):
        if not registration.license_number.startswith('BMDC-'):
            raise ValidationRejected(f"Invalid License ID: {registration.license_number}")
        self.doctors.append(registration)
        return 'fake-doctor-1'


class TestDisplayCheck:

    def test_check_takes_no_locks(self):
        store = FakeLedgerStore(remaining=3)
        availability = check_availability(DoctorSlot('doc'), local_dt(2025, 1, 1, 10, 0), store=store)

        assert availability.available
        assert availability.remaining_capacity == 3
        assert store.locked == []

    def test_check_reports_unavailable_without_raising(self):
        availability = check_availability(DoctorSlot('doc'), local_dt(2025, 1, 1, 10, 0), store=FakeLedgerStore(remaining=0))

        assert not availability.available
        assert availability.as_dict() == {
            'available': False,
            'remaining_capacity': 0,
            'message': "No slots remaining for this date",
        }

    def test_doctor_slot_needs_a_time(self):
        with pytest.raises(ValidationRejected):
            check_availability(DoctorSlot('doc'), store=FakeLedgerStore())

    def test_room_category_message(self):
        availability = check_availability(RoomCategory('ICU'), store=FakeLedgerStore(free_rooms=0))
        assert availability.message == "No available rooms of type ICU"

    def test_unknown_selector(self):
        with pytest.raises(TypeError):
            check_availability(object(), store=FakeLedgerStore())


@pytest.mark.django_db
class TestBindingCheck:

    def test_require_locks_and_passes(self):
        store = FakeLedgerStore(remaining=2)
        with transaction.atomic():
            availability = AvailabilityOracle(store).require(DoctorSlot('doc'), local_dt(2025, 1, 1, 10, 0))

        assert availability.remaining_capacity == 2
        assert store.locked == [('slot', 'doc')]

    def test_require_raises_capacity_exhausted(self):
        with transaction.atomic():
            with pytest.raises(CapacityExhausted) as exc:
                AvailabilityOracle(FakeLedgerStore(remaining=0)).require(DoctorSlot('doc'), local_dt(2025, 1, 1, 10, 0))
        assert exc.value.message == "No slots remaining for this date"

    def test_require_stock_raises_insufficient_stock(self):
        with transaction.atomic():
            with pytest.raises(InsufficientStock) as exc:
                AvailabilityOracle(FakeLedgerStore(stock=2)).require(StockLine('med', 5))

        assert exc.value.message == "Insufficient stock for Amoxicillin. Available: 2, Requested: 5"
        assert isinstance(exc.value, CapacityExhausted)

    def test_allocate_room_surfaces_store_status(self):
        oracle = AvailabilityOracle(FakeLedgerStore(free_rooms=1))
        with transaction.atomic():
            assert oracle.allocate_room('p1', 'ICU') == 'FAKE-1'
            with pytest.raises(CapacityExhausted) as exc:
                oracle.allocate_room('p2', 'ICU')
        assert exc.value.message == "No available rooms of type ICU"


@pytest.mark.django_db(transaction=True)
class TestBindingCheckNeedsTransaction:

    def test_require_outside_transaction_refused(self):
        with pytest.raises(RuntimeError):
            AvailabilityOracle(FakeLedgerStore()).require(StockLine('med', 1))


@pytest.mark.django_db
class TestStorePort:

    def test_default_store_comes_from_settings(self, settings):
        settings.LEDGER_STORE = 'tests.test_availability.FakeLedgerStore'
        assert isinstance(get_ledger_store(), FakeLedgerStore)

    def test_register_doctor_through_fake_store(self):
        store = FakeLedgerStore()
        registration = DoctorRegistration(
            email='new@careconnect.test', first_name='Sadia', last_name='Karim',
            license_number='BMDC-B-54321', specialization='Neurology',
            consultation_fee=Decimal('700'),
        )
        assert register_doctor(registration, store=store) == {'doctor_id': 'fake-doctor-1'}
        assert store.doctors == [registration]

    def test_register_doctor_surfaces_store_message(self):
        registration = DoctorRegistration(
            email='bad@careconnect.test', first_name='A', last_name='B',
            license_number='XX-1', specialization='ENT', consultation_fee=Decimal('300'),
        )
        with pytest.raises(ValidationRejected) as exc:
            register_doctor(registration, store=FakeLedgerStore())
        assert exc.value.message == "Invalid License ID: XX-1"

