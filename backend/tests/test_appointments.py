from datetime import date
from decimal import Decimal

import pytest

from appointments.models import Appointment
from appointments.services import (
    available_time_slots, book_appointment, check_doctor_availability, list_appointments,
    list_doctors_with_schedules
)
from billing.ledger import apply_payment
from billing.models import Invoice
from core.context import AuthContext
from core.errors import AuthorizationDenied, CapacityExhausted, ReferenceNotFound, ValidationRejected
from .conftest import local_dt


@pytest.mark.django_db
class TestBookAppointment:

    def test_first_booking_of_the_day(self, reception, patient, doctor, schedule):
        result = book_appointment(reception, patient.id, doctor.id, local_dt(2025, 1, 1, 10, 0), 'Chest pain')

        assert result['status'] == 'Pending Payment'
        assert result['invoice_status'] == 'Unpaid'
        assert result['remaining_slots'] == 4

        appointment = Appointment.objects.get(pk=result['appointment_id'])
        invoice = Invoice.objects.get(pk=result['invoice_id'])
        assert invoice.appointment_id == appointment.id
        assert invoice.total_amount == Decimal('500.00')
        assert invoice.items.get().description == 'Consultation - Dr. Rahim Uddin'

    def test_free_consultation_is_confirmed_on_booking(self, reception, patient, doctor, schedule):
        doctor.consultation_fee = Decimal('0.00')
        doctor.save()

        result = book_appointment(reception, patient.id, doctor.id, local_dt(2025, 1, 1, 10, 0))

        assert result['invoice_status'] == 'Paid'
        assert result['status'] == 'Confirmed'
        assert Appointment.objects.get(pk=result['appointment_id']).status == Appointment.CONFIRMED

    def test_remaining_slots_count_down(self, reception, patient, doctor, schedule):
        book_appointment(reception, patient.id, doctor.id, local_dt(2025, 1, 1, 9, 0))
        second = book_appointment(reception, patient.id, doctor.id, local_dt(2025, 1, 1, 9, 30))
        assert second['remaining_slots'] == 3

    def test_daily_capacity_exhausted_rolls_back(self, reception, patient, doctor, schedule):
        schedule.max_patients = 1
        schedule.save()
        book_appointment(reception, patient.id, doctor.id, local_dt(2025, 1, 1, 9, 0))

        with pytest.raises(CapacityExhausted) as exc:
            book_appointment(reception, patient.id, doctor.id, local_dt(2025, 1, 1, 11, 0))

        assert exc.value.message == "No slots remaining for this date"
        assert Appointment.objects.count() == 1
        assert Invoice.objects.count() == 1

    def test_same_time_cannot_be_booked_twice(self, reception, patient, other_patient, doctor, schedule):
        book_appointment(reception, patient.id, doctor.id, local_dt(2025, 1, 1, 10, 0))

        with pytest.raises(CapacityExhausted) as exc:
            book_appointment(reception, other_patient.id, doctor.id, local_dt(2025, 1, 1, 10, 0))
        assert exc.value.message == "This time slot is already booked"

    def test_day_without_schedule(self, reception, patient, doctor, schedule):
        with pytest.raises(CapacityExhausted) as exc:
            book_appointment(reception, patient.id, doctor.id, local_dt(2025, 1, 2, 10, 0))
        assert exc.value.message == "Doctor is not available on Thursday"

    def test_time_outside_schedule(self, reception, patient, doctor, schedule):
        with pytest.raises(CapacityExhausted) as exc:
            book_appointment(reception, patient.id, doctor.id, local_dt(2025, 1, 1, 15, 0))
        assert exc.value.message == "Selected time is outside the doctor's schedule"

    def test_cancelled_appointments_free_capacity(self, reception, patient, doctor, schedule):
        schedule.max_patients = 1
        schedule.save()
        first = book_appointment(reception, patient.id, doctor.id, local_dt(2025, 1, 1, 9, 0))
        Appointment.objects.filter(pk=first['appointment_id']).update(status=Appointment.CANCELLED)

        again = book_appointment(reception, patient.id, doctor.id, local_dt(2025, 1, 1, 9, 0))
        assert again['remaining_slots'] == 0

    def test_unknown_patient(self, reception, doctor, schedule):
        with pytest.raises(ReferenceNotFound):
            book_appointment(reception, '00000000-0000-0000-0000-000000000000', doctor.id, local_dt(2025, 1, 1, 10, 0))

    def test_lab_role_cannot_book(self, patient, doctor, schedule):
        with pytest.raises(AuthorizationDenied):
            book_appointment(AuthContext(role='LAB'), patient.id, doctor.id, local_dt(2025, 1, 1, 10, 0))

    def test_paying_the_invoice_confirms_the_appointment(self, reception, patient, doctor, schedule):
        result = book_appointment(reception, patient.id, doctor.id, local_dt(2025, 1, 1, 10, 0))
        apply_payment(result['invoice_id'], Decimal('500.00'), 'CASH')

        assert Appointment.objects.get(pk=result['appointment_id']).status == Appointment.CONFIRMED


@pytest.mark.django_db
class TestSlotQueries:

    def test_slots_skip_booked_times(self, reception, patient, doctor, schedule):
        book_appointment(reception, patient.id, doctor.id, local_dt(2025, 1, 1, 9, 30))
        slots = available_time_slots(doctor.id, date(2025, 1, 1))

        times = [slot['time'] for slot in slots]
        assert times == ['09:00', '10:00', '10:30', '11:00', '11:30']
        assert slots[0]['label'] == '09:00 AM'

    def test_no_slots_once_day_is_full(self, reception, patient, doctor, schedule):
        schedule.max_patients = 1
        schedule.save()
        book_appointment(reception, patient.id, doctor.id, local_dt(2025, 1, 1, 9, 0))
        assert available_time_slots(doctor.id, date(2025, 1, 1)) == []

    def test_display_check_is_advisory(self, doctor, schedule):
        result = check_doctor_availability(doctor.id, local_dt(2025, 1, 1, 10, 0))
        assert result == {'available': True, 'remaining_capacity': 5, 'message': '5 slots available'}


@pytest.mark.django_db
class TestListAppointments:

    def test_filters(self, reception, patient, doctor, schedule):
        book_appointment(reception, patient.id, doctor.id, local_dt(2025, 1, 1, 10, 0))

        assert list_appointments('all').count() == 1
        assert list_appointments('upcoming').count() == 0
        assert list_appointments('today').count() == 0

    def test_unknown_filter(self, db):
        with pytest.raises(ValidationRejected):
            list_appointments('tomorrow')

    def test_doctors_with_schedules(self, doctor, schedule):
        doctors = list(list_doctors_with_schedules())

        assert doctors == [doctor]
        assert [s.day_of_week for s in doctors[0].schedules.all()] == [2]
