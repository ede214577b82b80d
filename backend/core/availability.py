"""
Availability Oracle.

Two-phase availability for scarce resources:

* ``check`` is the display-time query used for UI hints. It takes no locks
  and its answer may be stale by the time the user submits.
* ``require`` is the binding check. It must run inside the same transaction
  as the write it gates, holds the capacity row locked until commit and
  raises ``CapacityExhausted`` instead of answering ``available=False``.

A display-time answer is never trusted as binding.
"""
from dataclasses import dataclass
from typing import Optional

from .errors import CapacityExhausted, InsufficientStock, ValidationRejected
from .ports import get_ledger_store
from .unit_of_work import require_transaction


@dataclass(frozen=True)
class DoctorSlot:
    doctor_id: object


@dataclass(frozen=True)
class RoomCategory:
    category: str


@dataclass(frozen=True)
class StockLine:
    medicine_id: object
    quantity: int


@dataclass(frozen=True)
class Availability:
    available: bool
    remaining_capacity: int
    message: str = ''

    def as_dict(self):
        return {
            'available': self.available,
            'remaining_capacity': self.remaining_capacity,
            'message': self.message,
        }


class AvailabilityOracle:
    def __init__(self, store=None):
        self.store = get_ledger_store(store)

    def check(self, selector, when=None) -> Availability:
        return self._evaluate(selector, when, lock=False)

    def require(self, selector, when=None) -> Availability:
        require_transaction()
        availability = self._evaluate(selector, when, lock=True)
        if not availability.available:
            if isinstance(selector, StockLine):
                level = self.store.stock_level(selector.medicine_id, lock=True)
                raise InsufficientStock(level.name, level.quantity, selector.quantity)
            raise CapacityExhausted(availability.message, remaining=availability.remaining_capacity)
        return availability

    def allocate_room(self, patient_id, category):
        """Binding room allocation. Returns the allocated room number."""
        require_transaction()
        allocation = self.store.allocate_room(patient_id, category)
        if not allocation.ok:
            raise CapacityExhausted(allocation.status)
        return allocation.room_number

    def _evaluate(self, selector, when, lock) -> Availability:
        if isinstance(selector, DoctorSlot):
            if when is None:
                raise ValidationRejected("A date and time is required to check a doctor's availability.")
            slot = self.store.check_slot_availability(selector.doctor_id, when, lock=lock)
            return Availability(slot.available, slot.remaining, slot.message)

        if isinstance(selector, RoomCategory):
            free = self.store.free_room_count(selector.category)
            message = f"{free} rooms available" if free else f"No available rooms of type {selector.category}"
            return Availability(free > 0, free, message)

        if isinstance(selector, StockLine):
            level = self.store.stock_level(selector.medicine_id, lock=lock)
            ok = level.quantity >= selector.quantity
            message = f"{level.quantity} units in stock" if ok else (
                f"Insufficient stock for {level.name}. Available: {level.quantity}"
            )
            return Availability(ok, level.quantity, message)

        raise TypeError(f"Unsupported resource selector: {selector!r}")


def check_availability(selector, when: Optional[object] = None, store=None) -> Availability:
    return AvailabilityOracle(store).check(selector, when)
