import logging
from decimal import Decimal

from django.db.models import Q, Sum

from billing.models import Invoice
from .models import Patient
from .serializers import PatientSerializer

logger = logging.getLogger(__name__)


def _total(invoices):
    return invoices.aggregate(total=Sum('total_amount'))['total'] or Decimal('0')


def find_or_register_patient(data):
    """
    Front-desk registration keyed on phone number. A returning patient is
    found, otherwise a new one is created. Returns ``(patient, created)``.
    """
    serializer = PatientSerializer(data=data)
    phone = serializer.validate_phone(data.get('phone') or '')
    existing = Patient.objects.filter(phone=phone).first()
    if existing:
        return existing, False

    serializer.is_valid(raise_exception=True)
    patient = serializer.save()
    logger.info("Registered patient %s", patient.id)
    return patient, True


def patient_history(patient):
    """Everything booked for a patient, newest first, plus what they have paid so far."""
    appointments = patient.appointments.select_related('doctor__user', 'doctor__department').order_by('-appointment_date')
    tests = patient.test_orders.select_related('test').order_by('-created_at')
    orders = patient.pharmacy_orders.prefetch_related('items__medicine').order_by('-created_at')
    admissions = patient.admissions.select_related('room').order_by('-admitted_at')

    invoices = Invoice.objects.filter(
        Q(appointment__patient=patient)
        | Q(admission__patient=patient)
        | Q(test_order__patient=patient)
        | Q(pharmacy_order__patient=patient)
    )
    total_spent = _total(invoices.filter(status=Invoice.PAID))
    outstanding = _total(invoices.filter(status=Invoice.UNPAID))

    return {
        'patient_id': str(patient.id),
        'full_name': patient.full_name,
        'appointments': [
            {
                'id': str(a.id),
                'date': a.appointment_date,
                'doctor': a.doctor.full_name,
                'department': a.doctor.department.name if a.doctor.department else None,
                'reason': a.reason,
                'status': a.get_status_display(),
            }
            for a in appointments
        ],
        'tests': [
            {
                'id': str(t.id),
                'test_name': t.test.test_name,
                'status': t.status,
                'scheduled_date': t.scheduled_date,
                'result_summary': t.result_summary,
            }
            for t in tests
        ],
        'pharmacy_orders': [
            {
                'id': str(o.id),
                'total_amount': o.total_amount,
                'status': o.get_status_display(),
                'items': [f"{item.medicine.name} x {item.quantity}" for item in o.items.all()],
                'date': o.created_at,
            }
            for o in orders
        ],
        'admissions': [
            {
                'id': str(a.id),
                'room_number': a.room.room_number,
                'status': a.get_status_display(),
                'admitted_at': a.admitted_at,
                'discharged_at': a.discharged_at,
            }
            for a in admissions
        ],
        'total_spent': total_spent,
        'outstanding_balance': outstanding,
    }
