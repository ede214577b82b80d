"""
Financial Aggregator.

Revenue over a date range, computed from Paid invoices (recognised on
their ``paid_at`` date) and broken down by where the money came from.
Pharmacy restock expenses in the same range are netted off the Pharmacy
source.
"""
from datetime import date
from decimal import Decimal

from django.db.models import Sum
from django.utils import timezone

from appointments.models import Appointment
from billing.models import Expense, Invoice
from core.errors import ValidationRejected
from patients.models import Patient
from users.models import Doctor

CONSULTATION = 'CONSULTATION'
INPATIENT = 'INPATIENT'
LABORATORY = 'LABORATORY'
PHARMACY = 'PHARMACY'

GENERAL_DEPARTMENT = 'General'


def _sum(queryset, field='total_amount'):
    return queryset.aggregate(total=Sum(field))['total'] or Decimal('0')


def revenue_between(start: date, end: date):
    if start > end:
        raise ValidationRejected("Start date must be on or before end date.")

    paid = Invoice.objects.filter(
        status=Invoice.PAID, paid_at__date__gte=start, paid_at__date__lte=end
    )

    by_source = []
    departments = (
        paid.filter(appointment__isnull=False)
        .values('appointment__doctor__department__name')
        .annotate(total=Sum('total_amount'))
    )
    consultation = {}
    for row in departments:
        name = row['appointment__doctor__department__name'] or GENERAL_DEPARTMENT
        consultation[name] = consultation.get(name, Decimal('0')) + row['total']
    for name in sorted(consultation):
        by_source.append({'source': name, 'kind': CONSULTATION, 'amount': consultation[name]})

    restock = _sum(
        Expense.objects.filter(
            category='PHARMACY_RESTOCK', incurred_at__date__gte=start, incurred_at__date__lte=end
        ),
        'amount',
    )
    pharmacy_sales = _sum(paid.filter(pharmacy_order__isnull=False))

    by_source.append({'source': 'Inpatient Care', 'kind': INPATIENT, 'amount': _sum(paid.filter(admission__isnull=False))})
    by_source.append({'source': 'Laboratory', 'kind': LABORATORY, 'amount': _sum(paid.filter(test_order__isnull=False))})
    by_source.append({
        'source': 'Pharmacy',
        'kind': PHARMACY,
        'amount': pharmacy_sales - restock,
        'sales': pharmacy_sales,
        'restock_expense': restock,
    })

    return {
        'start_date': start,
        'end_date': end,
        'total': sum((entry['amount'] for entry in by_source), Decimal('0')),
        'by_source': by_source,
    }


def dashboard_stats():
    return {
        'total_patients': Patient.objects.count(),
        'today_appointments': Appointment.objects.filter(appointment_date__date=timezone.localdate()).count(),
        'pending_revenue': _sum(Invoice.objects.filter(status=Invoice.UNPAID)),
        'active_doctors': Doctor.objects.filter(is_active=True).count(),
    }
