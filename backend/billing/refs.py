"""
Reservation references.

An invoice is owned by exactly one reservation. Instead of passing four
nullable ids around, callers hand the ledger one of the ``ReservationRef``
variants below; the variant decides which invoice column gets filled.
"""
from dataclasses import dataclass
from typing import ClassVar


@dataclass(frozen=True)
class ReservationRef:
    id: object

    owner_field: ClassVar[str] = ''
    source: ClassVar[str] = ''

    def __post_init__(self):
        if type(self) is ReservationRef:
            raise TypeError("ReservationRef is abstract; use AppointmentRef, AdmissionRef, TestOrderRef or PharmacySaleRef.")
        if self.id is None:
            raise TypeError(f"{type(self).__name__} requires an id.")

    def invoice_kwargs(self):
        return {f'{self.owner_field}_id': self.id}


@dataclass(frozen=True)
class AppointmentRef(ReservationRef):
    owner_field: ClassVar[str] = 'appointment'
    source: ClassVar[str] = 'CONSULTATION'


@dataclass(frozen=True)
class AdmissionRef(ReservationRef):
    owner_field: ClassVar[str] = 'admission'
    source: ClassVar[str] = 'INPATIENT'


@dataclass(frozen=True)
class TestOrderRef(ReservationRef):
    owner_field: ClassVar[str] = 'test_order'
    source: ClassVar[str] = 'LAB'


@dataclass(frozen=True)
class PharmacySaleRef(ReservationRef):
    owner_field: ClassVar[str] = 'pharmacy_order'
    source: ClassVar[str] = 'PHARMACY'


REF_TYPES = (AppointmentRef, AdmissionRef, TestOrderRef, PharmacySaleRef)


def ref_for_invoice(invoice) -> ReservationRef:
    """Rebuild the owning reference from a stored invoice."""
    for ref_type in REF_TYPES:
        owner_id = getattr(invoice, f'{ref_type.owner_field}_id')
        if owner_id is not None:
            return ref_type(owner_id)
    raise ValueError(f"Invoice {invoice.pk} has no owning reservation.")
