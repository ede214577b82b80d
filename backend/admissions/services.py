import logging

from django.conf import settings
from django.db import transaction
from django.db.models import Count
from django.utils import timezone

from billing.ledger import LineItem, apply_payment, create_invoice
from billing.refs import AdmissionRef
from core.availability import AvailabilityOracle
from core.errors import ValidationRejected
from core.models import get_or_not_found
from core.permissions import ROLE_ADMIN, ROLE_RECEPTION, ROLE_PATIENT
from core.realtime import broadcast
from core.unit_of_work import Step, UnitOfWork
from patients.models import Patient
from .models import Admission, Room

logger = logging.getLogger(__name__)

ADMITTING_ROLES = (ROLE_ADMIN, ROLE_RECEPTION, ROLE_PATIENT, 'SYSTEM')


def free_rooms(category=None):
    """Rooms that are administratively open and have no active admission."""
    occupied = Admission.objects.filter(status=Admission.ADMITTED).values('room_id')
    queryset = Room.objects.filter(is_available=True).exclude(id__in=occupied)
    if category:
        queryset = queryset.filter(category=category)
    return queryset.order_by('room_number')


def available_rooms(category=None):
    return [
        {
            'room_number': room.room_number,
            'category': room.category,
            'category_display': room.get_category_display(),
            'charge_per_day': room.charge_per_day,
        }
        for room in free_rooms(category)
    ]


def room_availability_stats():
    rows = free_rooms().values('category').annotate(count=Count('id'))
    stats = {category: 0 for category in settings.ADMISSION_ROOM_CATEGORIES}
    stats.update({row['category']: row['count'] for row in rows})
    return stats


def admit_patient(auth, patient_id, room_category, nights=1, store=None):
    """
    Admit a patient into the first free room of ``room_category`` and settle
    the stay up front.

    Unlike consultations, admissions are paid as part of booking: the invoice
    is created and immediately covered by a payment in the same unit.
    """
    auth.require_any(*ADMITTING_ROLES, action='admit patients')
    if room_category not in settings.ADMISSION_ROOM_CATEGORIES:
        raise ValidationRejected(f"Rooms of type {room_category} cannot be booked for admission.")
    if nights < 1:
        raise ValidationRejected("An admission covers at least one night.")

    patient = get_or_not_found(Patient, 'Patient', pk=patient_id)
    oracle = AvailabilityOracle(store)

    def create_admission(r):
        room = Room.objects.get(room_number=r['room'])
        return Admission.objects.create(patient=patient, room=room, nights=nights)

    def settle(r):
        invoice = r['invoice']
        if invoice.status == invoice.PAID:
            return None
        return apply_payment(invoice.id, r['charge'], settings.ADMISSION_PAYMENT_METHOD, remarks='Admission booking')

    def mark_paid(r):
        admission = r['admission']
        admission.payment_status = Admission.PAID
        admission.save(update_fields=['payment_status', 'updated_at'])
        return admission.payment_status

    result = UnitOfWork('room_admission').execute([
        Step('room', lambda r: oracle.allocate_room(patient.id, room_category)),
        Step('admission', create_admission),
        Step('charge', lambda r: r['admission'].room.charge_per_day * nights),
        Step('invoice', lambda r: create_invoice(
            AdmissionRef(r['admission'].id),
            [LineItem(f"Room {r['room']} ({r['admission'].room.get_category_display()})", nights, r['admission'].room.charge_per_day)],
            expected_total=r['charge'],
        )),
        Step('payment', settle),
        Step('payment_status', mark_paid),
    ])

    admission = result['admission']
    invoice = result['invoice']
    invoice.refresh_from_db()
    broadcast('admission_update', {
        'admission_id': str(admission.id),
        'room_number': result['room'],
        'status': admission.status,
    })
    logger.info("Patient %s admitted to room %s", patient.id, result['room'])

    return {
        'admission_id': str(admission.id),
        'room_number': result['room'],
        'invoice_id': str(invoice.id),
        'total_amount': invoice.total_amount,
        'invoice_status': invoice.get_status_display(),
        'payment_status': admission.get_payment_status_display(),
    }


def discharge_patient(admission_id, now=None):
    with transaction.atomic():
        admission = get_or_not_found(
            Admission.objects.select_for_update().select_related('room'), 'Admission', pk=admission_id
        )
        if admission.status == Admission.DISCHARGED:
            raise ValidationRejected("Patient is already discharged.")

        admission.status = Admission.DISCHARGED
        admission.discharged_at = now or timezone.now()
        admission.save(update_fields=['status', 'discharged_at', 'updated_at'])

        broadcast('admission_update', {
            'admission_id': str(admission.id),
            'room_number': admission.room.room_number,
            'status': admission.status,
        })

    logger.info("Admission %s discharged, room %s released", admission.id, admission.room.room_number)
    return {
        'admission_id': str(admission.id),
        'room_number': admission.room.room_number,
        'status': admission.get_status_display(),
        'discharged_at': admission.discharged_at,
    }
