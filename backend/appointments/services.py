import logging
from datetime import datetime

from django.utils import timezone

from billing.ledger import LineItem, create_invoice
from billing.refs import AppointmentRef
from core.availability import AvailabilityOracle, DoctorSlot
from core.errors import ValidationRejected
from core.models import get_or_not_found
from core.permissions import ROLE_ADMIN, ROLE_RECEPTION, ROLE_PATIENT
from core.ports import get_ledger_store
from core.realtime import broadcast
from core.unit_of_work import Step, UnitOfWork
from patients.models import Patient
from users.models import Doctor
from .models import Appointment

logger = logging.getLogger(__name__)

BOOKING_ROLES = (ROLE_ADMIN, ROLE_RECEPTION, ROLE_PATIENT, 'SYSTEM')


def _aware(when: datetime) -> datetime:
    if timezone.is_naive(when):
        return timezone.make_aware(when)
    return when


def available_time_slots(doctor_id, day, store=None):
    """Display-time slot list; a slot shown here can still be taken before booking."""
    slots = get_ledger_store(store).compute_available_slots(doctor_id, day)
    return [{'time': slot.time.strftime('%H:%M'), 'label': slot.label} for slot in slots]


def check_doctor_availability(doctor_id, when, store=None):
    return AvailabilityOracle(store).check(DoctorSlot(doctor_id), _aware(when)).as_dict()


def book_appointment(auth, patient_id, doctor_id, when, reason='', store=None):
    """
    Book a consultation and raise its invoice in one unit.

    The slot is re-checked under lock right before the insert; the invoice
    starts Unpaid and the appointment waits in Pending Payment.
    """
    auth.require_any(*BOOKING_ROLES, action='book appointments')
    when = _aware(when)
    patient = get_or_not_found(Patient, 'Patient', pk=patient_id)
    doctor = get_or_not_found(Doctor.objects.filter(is_active=True).select_related('user'), 'Doctor', pk=doctor_id)
    oracle = AvailabilityOracle(store)
    fee = doctor.consultation_fee

    result = UnitOfWork('appointment_booking').execute([
        Step('availability', lambda r: oracle.require(DoctorSlot(doctor.id), when)),
        Step('appointment', lambda r: Appointment.objects.create(
            patient=patient,
            doctor=doctor,
            appointment_date=when,
            reason=reason,
        )),
        Step('invoice', lambda r: create_invoice(
            AppointmentRef(r['appointment'].id),
            [LineItem(f"Consultation - Dr. {doctor.full_name}", 1, fee)],
            expected_total=fee,
        )),
    ])

    appointment = result['appointment']
    invoice = result['invoice']
    # a free consultation is settled on creation and confirmed by the paid receiver
    appointment.refresh_from_db()
    remaining = max(result['availability'].remaining_capacity - 1, 0)

    broadcast('appointment_update', {
        'appointment_id': str(appointment.id),
        'doctor_id': str(doctor.id),
        'status': appointment.status,
    })
    logger.info("Appointment %s booked for %s with doctor %s", appointment.id, patient.id, doctor.id)

    return {
        'appointment_id': str(appointment.id),
        'invoice_id': str(invoice.id),
        'status': appointment.get_status_display(),
        'invoice_status': invoice.get_status_display(),
        'total_amount': invoice.total_amount,
        'remaining_slots': remaining,
    }


def list_appointments(scope='all', doctor_id=None):
    queryset = Appointment.objects.select_related('patient', 'doctor__user', 'doctor__department')
    if doctor_id:
        queryset = queryset.filter(doctor_id=doctor_id)

    if scope == 'today':
        queryset = queryset.filter(appointment_date__date=timezone.localdate())
    elif scope == 'upcoming':
        queryset = queryset.filter(appointment_date__gte=timezone.now()).exclude(status=Appointment.CANCELLED)
    elif scope != 'all':
        raise ValidationRejected(f"Unknown appointment filter: {scope}")

    return queryset.order_by('appointment_date')


def list_doctors_with_schedules():
    return Doctor.objects.filter(is_active=True).select_related('user', 'department').prefetch_related('schedules').order_by('user__first_name')
