"""
Database-backed Ledger Store.

Holds the allocation primitives the workflows consume through
``core.ports.LedgerStore``: slot computation, binding slot checks, room
assignment and doctor license validation. ``lock=True`` variants use
``select_for_update`` and therefore only make sense inside a transaction.
"""
import logging
import re
from datetime import datetime, timedelta

from django.conf import settings
from django.contrib.auth import get_user_model
from django.utils import timezone

from admissions.models import Admission, Room
from admissions.services import free_rooms
from appointments.models import Appointment, DoctorSchedule
from core.errors import ValidationRejected
from core.models import get_or_not_found
from core.ports import (
    LedgerStore, RoomAllocation, SlotAvailability, SlotOption, StockLevel, ROOM_ALLOCATED
)
from pharmacy.models import Medicine
from users.models import Department, Doctor

logger = logging.getLogger(__name__)

User = get_user_model()


def _slot_times(schedule):
    step = timedelta(minutes=schedule.slot_minutes)
    day = datetime(2000, 1, 1)
    current = datetime.combine(day, schedule.start_time)
    end = datetime.combine(day, schedule.end_time)
    while current < end:
        yield current.time()
        current += step


class DjangoLedgerStore(LedgerStore):

    def _schedule(self, doctor_id, day, lock=False):
        queryset = DoctorSchedule.objects.filter(doctor_id=doctor_id, day_of_week=day.weekday())
        if lock:
            queryset = queryset.select_for_update()
        return queryset.first()

    def _booked(self, doctor_id, day):
        return Appointment.objects.filter(doctor_id=doctor_id, appointment_date__date=day).exclude(
            status=Appointment.CANCELLED
        )

    def compute_available_slots(self, doctor_id, day):
        schedule = self._schedule(doctor_id, day)
        if schedule is None:
            return []

        booked = self._booked(doctor_id, day)
        if booked.count() >= schedule.max_patients:
            return []

        taken = {timezone.localtime(when).time() for when in booked.values_list('appointment_date', flat=True)}
        return [
            SlotOption(time=slot, label=slot.strftime('%I:%M %p'))
            for slot in _slot_times(schedule)
            if slot not in taken
        ]

    def check_slot_availability(self, doctor_id, when, lock=False):
        local = timezone.localtime(when)
        day = local.date()
        schedule = self._schedule(doctor_id, day, lock=lock)
        if schedule is None:
            return SlotAvailability(0, False, f"Doctor is not available on {day.strftime('%A')}")

        booked = self._booked(doctor_id, day)
        remaining = max(schedule.max_patients - booked.count(), 0)

        if local.time() not in set(_slot_times(schedule)):
            return SlotAvailability(remaining, False, "Selected time is outside the doctor's schedule")
        if remaining == 0:
            return SlotAvailability(0, False, "No slots remaining for this date")
        if booked.filter(appointment_date=when).exists():
            return SlotAvailability(remaining, False, "This time slot is already booked")
        return SlotAvailability(remaining, True, f"{remaining} slots available")

    def allocate_room(self, patient_id, room_category):
        if Admission.objects.filter(patient_id=patient_id, status=Admission.ADMITTED).exists():
            return RoomAllocation(None, "Patient is already admitted")

        # candidates come from an unlocked read; each is re-checked once its row is locked
        for room_id in self._room_candidates(room_category):
            room = Room.objects.select_for_update().filter(pk=room_id, is_available=True).first()
            if room is None:
                continue
            if Admission.objects.filter(room=room, status=Admission.ADMITTED).exists():
                logger.debug("Room %s was taken while waiting for its lock", room.room_number)
                continue
            logger.debug("Allocated room %s to patient %s", room.room_number, patient_id)
            return RoomAllocation(room.room_number, ROOM_ALLOCATED)

        return RoomAllocation(None, f"No available rooms of type {room_category}")

    def _room_candidates(self, room_category):
        return list(free_rooms(room_category).values_list('pk', flat=True))

    def free_room_count(self, room_category):
        return free_rooms(room_category).count()

    def stock_level(self, medicine_id, lock=False):
        queryset = Medicine.objects.all()
        if lock:
            queryset = queryset.select_for_update()
        medicine = get_or_not_found(queryset, 'Medicine', pk=medicine_id)
        return StockLevel(medicine.pk, medicine.name, medicine.stock_quantity)

    def validate_and_create_doctor(self, registration):
        license_number = (registration.license_number or '').strip()
        if not re.fullmatch(settings.DOCTOR_LICENSE_PATTERN, license_number):
            raise ValidationRejected(f"Invalid License ID: {license_number}")
        if Doctor.objects.filter(license_number=license_number).exists():
            raise ValidationRejected(f"License {license_number} is already registered.")
        email = registration.email.strip().lower()
        if User.objects.filter(email__iexact=email).exists() or User.objects.filter(username=email).exists():
            raise ValidationRejected(f"A user with email {email} already exists.")

        department = None
        if registration.department_id:
            department = get_or_not_found(Department, 'Department', pk=registration.department_id)

        user = User(
            username=email,
            email=email,
            first_name=registration.first_name,
            last_name=registration.last_name,
            role='DOCTOR',
            phone=registration.phone,
            gender=registration.gender,
            address=registration.address,
        )
        user.set_unusable_password()
        user.save()

        doctor = Doctor.objects.create(
            user=user,
            department=department,
            specialization=registration.specialization,
            license_number=license_number,
            consultation_fee=registration.consultation_fee,
            joining_date=registration.joining_date,
        )

        if registration.room_number:
            updated = Room.objects.filter(room_number=registration.room_number).update(
                is_available=False, current_doctor=doctor
            )
            if not updated:
                raise ValidationRejected(f"Room {registration.room_number} does not exist.")

        return doctor.id
