"""
Ledger Store port.

The allocation primitives (slot computation, binding slot checks, room
assignment, license validation) belong to the store, not to the workflows.
Workflows talk to the store through ``LedgerStore`` and typed records, so a
test can hand in a fake store instead of the database-backed one.
"""
import abc
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from typing import List, Optional

from django.conf import settings
from django.utils.module_loading import import_string

ROOM_ALLOCATED = 'Success'


@dataclass(frozen=True)
class SlotOption:
    time: time
    label: str


@dataclass(frozen=True)
class SlotAvailability:
    remaining: int
    available: bool
    message: str


@dataclass(frozen=True)
class RoomAllocation:
    room_number: Optional[str]
    status: str

    @property
    def ok(self):
        return self.status == ROOM_ALLOCATED


@dataclass(frozen=True)
class StockLevel:
    medicine_id: object
    name: str
    quantity: int


@dataclass(frozen=True)
class DoctorRegistration:
    email: str
    first_name: str
    last_name: str
    license_number: str
    specialization: str
    consultation_fee: Decimal
    department_id: Optional[str] = None
    phone: str = ''
    gender: str = ''
    address: str = ''
    joining_date: Optional[date] = None
    room_number: Optional[str] = None


class LedgerStore(abc.ABC):

    @abc.abstractmethod
    def compute_available_slots(self, doctor_id, day: date) -> List[SlotOption]:
        """Display-time slot list for a doctor on a day. Non-binding."""

    @abc.abstractmethod
    def check_slot_availability(self, doctor_id, when: datetime, lock: bool = False) -> SlotAvailability:
        """Remaining daily capacity for ``when``. With ``lock`` the capacity row stays locked until commit."""

    @abc.abstractmethod
    def allocate_room(self, patient_id, room_category: str) -> RoomAllocation:
        """Pick and lock a free room of the category. Any status but 'Success' is the failure reason."""

    @abc.abstractmethod
    def free_room_count(self, room_category: str) -> int:
        """Rooms of the category that are administratively open and not occupied."""

    @abc.abstractmethod
    def stock_level(self, medicine_id, lock: bool = False) -> StockLevel:
        """Current stock of a medicine. With ``lock`` the row stays locked until commit."""

    @abc.abstractmethod
    def validate_and_create_doctor(self, registration: DoctorRegistration):
        """Create a doctor and return its id, raising ValidationRejected for e.g. an invalid license."""


def get_ledger_store(store=None) -> LedgerStore:
    if store is not None:
        return store
    return import_string(settings.LEDGER_STORE)()
