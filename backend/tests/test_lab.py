from datetime import timedelta
from decimal import Decimal

import pytest
from django.db import IntegrityError, transaction

from billing.ledger import apply_payment
from billing.models import Invoice
from core.errors import NotYetElapsed, TemporalGuardViolation, ValidationRejected
from lab.models import TestOrder
from lab.services import (
    book_test, list_test_orders, reconcile_elapsed_tests, record_test_result, schedule_test
)
from .conftest import local_dt

START = local_dt(2025, 1, 1, 10, 0)


@pytest.mark.django_db
class TestBookTest:

    def test_order_without_payment_waits(self, reception, patient, blood_test):
        result = book_test(reception, patient.id, blood_test.id)

        assert result['status'] == TestOrder.PENDING_PAYMENT
        assert result['payment_status'] == TestOrder.PENDING
        assert result['invoice_status'] == 'Unpaid'
        assert Invoice.objects.get(pk=result['invoice_id']).test_order_id is not None

    def test_paid_and_scheduled_in_one_go(self, reception, patient, blood_test):
        result = book_test(reception, patient.id, blood_test.id, process_payment=True, scheduled_date=START)

        assert result['status'] == TestOrder.SCHEDULED
        assert result['payment_status'] == TestOrder.PAID
        assert result['invoice_status'] == 'Paid'
        assert result['scheduled_end_time'] == START + timedelta(minutes=30)

    def test_scheduling_without_payment_rejected(self, reception, patient, blood_test):
        with pytest.raises(ValidationRejected):
            book_test(reception, patient.id, blood_test.id, scheduled_date=START)
        assert TestOrder.objects.count() == 0
        assert Invoice.objects.count() == 0

    def test_scheduled_unpaid_row_refused_by_database(self, patient, blood_test):
        with pytest.raises(IntegrityError):
            with transaction.atomic():
                TestOrder.objects.create(
                    patient=patient, test=blood_test, status=TestOrder.SCHEDULED,
                    payment_status=TestOrder.PENDING, scheduled_date=START,
                    scheduled_end_time=START + timedelta(minutes=30),
                )


@pytest.mark.django_db
class TestScheduleTest:

    def test_schedule_after_paying_invoice(self, reception, patient, blood_test):
        order = book_test(reception, patient.id, blood_test.id)
        apply_payment(order['invoice_id'], Decimal('800.00'), 'CARD')

        result = schedule_test(order['test_order_id'], START)
        assert result['status'] == TestOrder.SCHEDULED
        assert result['scheduled_end_time'] == START + timedelta(minutes=30)

    def test_schedule_unpaid_rejected(self, reception, patient, blood_test):
        order = book_test(reception, patient.id, blood_test.id)
        with pytest.raises(ValidationRejected):
            schedule_test(order['test_order_id'], START)


@pytest.mark.django_db
class TestRecordResult:

    def _scheduled(self, reception, patient, blood_test):
        return book_test(reception, patient.id, blood_test.id, process_payment=True, scheduled_date=START)

    def test_too_early_reports_remaining_time(self, reception, patient, blood_test):
        order = self._scheduled(reception, patient, blood_test)
        end = START + timedelta(minutes=30)

        with pytest.raises(NotYetElapsed) as exc:
            record_test_result(order['test_order_id'], 'Hb 13.5', now=end - timedelta(minutes=2))

        assert isinstance(exc.value, TemporalGuardViolation)
        assert exc.value.details['remaining_seconds'] == 120
        assert exc.value.message == "Test is processing. Time remaining: 2m 0s"
        assert TestOrder.objects.get(pk=order['test_order_id']).status == TestOrder.SCHEDULED

    def test_after_window_completes(self, reception, patient, blood_test):
        order = self._scheduled(reception, patient, blood_test)
        end = START + timedelta(minutes=30)

        record_test_result(order['test_order_id'], 'Hb 13.5', now=end + timedelta(seconds=1))

        saved = TestOrder.objects.get(pk=order['test_order_id'])
        assert saved.status == TestOrder.COMPLETED
        assert saved.result_summary == 'Hb 13.5'

    def test_real_result_replaces_placeholder(self, reception, patient, blood_test):
        order = self._scheduled(reception, patient, blood_test)
        reconcile_elapsed_tests(now=START + timedelta(hours=1))

        record_test_result(order['test_order_id'], 'Hb 12.9', now=START + timedelta(hours=2))
        assert TestOrder.objects.get(pk=order['test_order_id']).result_summary == 'Hb 12.9'

    def test_unpaid_order_cannot_take_result(self, reception, patient, blood_test):
        order = book_test(reception, patient.id, blood_test.id)
        with pytest.raises(ValidationRejected):
            record_test_result(order['test_order_id'], 'Hb 13.5')


@pytest.mark.django_db
class TestReconciler:

    def test_completes_only_elapsed_orders(self, reception, patient, other_patient, blood_test):
        done = book_test(reception, patient.id, blood_test.id, process_payment=True, scheduled_date=START)
        later = book_test(
            reception, other_patient.id, blood_test.id, process_payment=True,
            scheduled_date=START + timedelta(hours=3),
        )

        applied = reconcile_elapsed_tests(now=START + timedelta(hours=1))

        assert applied == 1
        completed = TestOrder.objects.get(pk=done['test_order_id'])
        assert completed.status == TestOrder.COMPLETED
        assert completed.result_summary == (
            'Auto-generated Result for Complete Blood Count: '
            'Analysis completed successfully. Parameters within normal range.'
        )
        assert TestOrder.objects.get(pk=later['test_order_id']).status == TestOrder.SCHEDULED

    def test_second_run_changes_nothing(self, reception, patient, blood_test):
        order = book_test(reception, patient.id, blood_test.id, process_payment=True, scheduled_date=START)
        now = START + timedelta(hours=1)

        assert reconcile_elapsed_tests(now=now) == 1
        before = TestOrder.objects.get(pk=order['test_order_id'])

        assert reconcile_elapsed_tests(now=now) == 0
        after = TestOrder.objects.get(pk=order['test_order_id'])
        assert (after.status, after.result_summary, after.completed_at) == (
            before.status, before.result_summary, before.completed_at
        )

    def test_listing_reconciles_first(self, reception, patient, blood_test):
        # START is in the past, so the window has already elapsed
        order = book_test(reception, patient.id, blood_test.id, process_payment=True, scheduled_date=START)

        orders = list(list_test_orders())

        assert [o.id for o in orders] == [TestOrder.objects.get(pk=order['test_order_id']).id]
        assert orders[0].status == TestOrder.COMPLETED
