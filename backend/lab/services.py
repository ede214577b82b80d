import logging
from datetime import timedelta

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from billing.ledger import LineItem, apply_payment, create_invoice
from billing.refs import TestOrderRef
from core.errors import NotYetElapsed, ValidationRejected
from core.models import get_or_not_found
from core.permissions import ROLE_ADMIN, ROLE_DOCTOR, ROLE_LAB, ROLE_RECEPTION
from core.realtime import broadcast
from core.unit_of_work import Step, UnitOfWork
from patients.models import Patient
from users.models import Doctor
from .models import MedicalTest, TestOrder

logger = logging.getLogger(__name__)

ORDERING_ROLES = (ROLE_ADMIN, ROLE_RECEPTION, ROLE_LAB, ROLE_DOCTOR, 'SYSTEM')


def _aware(value):
    if value is not None and timezone.is_naive(value):
        return timezone.make_aware(value)
    return value


def _window_end(test, start):
    return start + timedelta(minutes=test.duration_minutes)


def available_tests():
    return MedicalTest.objects.filter(is_active=True).select_related('lab_room')


def book_test(auth, patient_id, test_id, doctor_id=None, process_payment=False,
              scheduled_date=None, payment_method='CASH'):
    """
    Order a lab test and raise its invoice.

    A time slot may only be booked together with payment; an order placed
    without payment waits in PENDING_PAYMENT until it is paid and scheduled.
    """
    auth.require_any(*ORDERING_ROLES, action='order lab tests')
    scheduled_date = _aware(scheduled_date)
    if scheduled_date and not process_payment:
        raise ValidationRejected("A test can only be scheduled once payment is completed.")

    patient = get_or_not_found(Patient, 'Patient', pk=patient_id)
    test = get_or_not_found(MedicalTest.objects.filter(is_active=True), 'Test', pk=test_id)
    doctor = get_or_not_found(Doctor, 'Doctor', pk=doctor_id) if doctor_id else None

    scheduled = bool(process_payment and scheduled_date)

    def create_order(r):
        return TestOrder.objects.create(
            patient=patient,
            test=test,
            doctor=doctor,
            status=TestOrder.SCHEDULED if scheduled else TestOrder.PENDING_PAYMENT,
            payment_status=TestOrder.PAID if process_payment else TestOrder.PENDING,
            scheduled_date=scheduled_date if scheduled else None,
            scheduled_end_time=_window_end(test, scheduled_date) if scheduled else None,
        )

    def pay_now(r):
        invoice = r['invoice']
        if not process_payment or invoice.status == invoice.PAID:
            return None
        return apply_payment(invoice.id, test.cost, payment_method, remarks='Paid at test booking')

    result = UnitOfWork('test_order').execute([
        Step('order', create_order),
        Step('invoice', lambda r: create_invoice(
            TestOrderRef(r['order'].id),
            [LineItem(test.test_name, 1, test.cost)],
            expected_total=test.cost,
        )),
        Step('payment', pay_now),
    ])

    order = result['order']
    invoice = result['invoice']
    invoice.refresh_from_db()
    broadcast('lab_update', {'test_order_id': str(order.id), 'status': order.status})
    logger.info("Test %s ordered for %s (%s)", test.test_name, patient.id, order.status)

    return {
        'test_order_id': str(order.id),
        'invoice_id': str(invoice.id),
        'status': order.status,
        'payment_status': order.payment_status,
        'invoice_status': invoice.get_status_display(),
        'scheduled_end_time': order.scheduled_end_time,
    }


def schedule_test(order_id, scheduled_date):
    scheduled_date = _aware(scheduled_date)
    with transaction.atomic():
        order = get_or_not_found(
            TestOrder.objects.select_for_update().select_related('test'), 'Test order', pk=order_id
        )
        if order.payment_status != TestOrder.PAID:
            raise ValidationRejected("Payment must be completed before scheduling a test.")
        if order.status == TestOrder.COMPLETED:
            raise ValidationRejected("This test has already been completed.")

        order.status = TestOrder.SCHEDULED
        order.scheduled_date = scheduled_date
        order.scheduled_end_time = _window_end(order.test, scheduled_date)
        order.save(update_fields=['status', 'scheduled_date', 'scheduled_end_time', 'updated_at'])
        broadcast('lab_update', {'test_order_id': str(order.id), 'status': order.status})

    return {
        'test_order_id': str(order.id),
        'status': order.status,
        'scheduled_date': order.scheduled_date,
        'scheduled_end_time': order.scheduled_end_time,
    }


def record_test_result(order_id, result_summary, now=None):
    """
    Write the real result for a test.

    Rejected with ``NotYetElapsed`` while the test window is still running,
    whether or not the reconciler has looked at the order yet.
    """
    now = now or timezone.now()
    with transaction.atomic():
        order = get_or_not_found(
            TestOrder.objects.select_for_update().select_related('test'), 'Test order', pk=order_id
        )
        if order.status == TestOrder.PENDING_PAYMENT:
            raise ValidationRejected("This test has not been paid for and scheduled yet.")
        if order.scheduled_end_time and now < order.scheduled_end_time:
            raise NotYetElapsed(order.scheduled_end_time - now)

        order.status = TestOrder.COMPLETED
        order.result_summary = result_summary
        order.completed_at = now
        order.save(update_fields=['status', 'result_summary', 'completed_at', 'updated_at'])
        broadcast('lab_update', {'test_order_id': str(order.id), 'status': order.status})

    logger.info("Result recorded for test order %s", order.id)
    return {'test_order_id': str(order.id), 'status': order.status}


def reconcile_elapsed_tests(now=None):
    """
    Complete every SCHEDULED order whose window has passed, filling in the
    placeholder result. Returns how many orders moved; a second call with
    nothing newly elapsed returns 0.
    """
    now = now or timezone.now()
    applied = 0
    with transaction.atomic():
        due = TestOrder.objects.filter(status=TestOrder.SCHEDULED, scheduled_end_time__lte=now)
        test_ids = due.values_list('test_id', flat=True).distinct()
        for test in MedicalTest.objects.filter(id__in=list(test_ids)):
            applied += due.filter(test=test).update(
                status=TestOrder.COMPLETED,
                result_summary=settings.LAB_RESULT_PLACEHOLDER.format(test_name=test.test_name),
                completed_at=now,
                updated_at=now,
            )
        if applied:
            broadcast('lab_update', {'completed': applied})

    if applied:
        logger.info("Reconciler completed %d elapsed test orders", applied)
    return applied


def list_test_orders(limit=50):
    reconcile_elapsed_tests()
    return TestOrder.objects.select_related('patient', 'test', 'doctor__user').order_by(
        '-scheduled_date', '-created_at'
    )[:limit]
