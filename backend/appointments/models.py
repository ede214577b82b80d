from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from core.models import BaseModel


def default_daily_slots():
    return settings.APPOINTMENT_DEFAULT_DAILY_SLOTS


def default_slot_minutes():
    return settings.APPOINTMENT_SLOT_MINUTES


class DoctorSchedule(BaseModel):
    DAY_CHOICES = (
        (0, 'Monday'),
        (1, 'Tuesday'),
        (2, 'Wednesday'),
        (3, 'Thursday'),
        (4, 'Friday'),
        (5, 'Saturday'),
        (6, 'Sunday'),
    )

    doctor = models.ForeignKey('users.Doctor', on_delete=models.CASCADE, related_name='schedules')
    day_of_week = models.PositiveSmallIntegerField(choices=DAY_CHOICES)
    start_time = models.TimeField()
    end_time = models.TimeField()
    # Daily booking capacity, not per slot.
    max_patients = models.PositiveIntegerField(default=default_daily_slots, validators=[MinValueValidator(1)])
    slot_minutes = models.PositiveIntegerField(default=default_slot_minutes, validators=[MinValueValidator(5)])

    class Meta:
        ordering = ['day_of_week', 'start_time']
        constraints = [
            models.UniqueConstraint(fields=['doctor', 'day_of_week'], name='unique_doctor_schedule_day'),
            models.CheckConstraint(condition=models.Q(end_time__gt=models.F('start_time')), name='schedule_end_after_start'),
        ]

    def __str__(self):
        return f"{self.doctor} - {self.get_day_of_week_display()} {self.start_time}-{self.end_time}"


class Appointment(BaseModel):
    PENDING_PAYMENT = 'PENDING_PAYMENT'
    CONFIRMED = 'CONFIRMED'
    COMPLETED = 'COMPLETED'
    CANCELLED = 'CANCELLED'
    STATUS_CHOICES = (
        (PENDING_PAYMENT, 'Pending Payment'),
        (CONFIRMED, 'Confirmed'),
        (COMPLETED, 'Completed'),
        (CANCELLED, 'Cancelled'),
    )

    patient = models.ForeignKey('patients.Patient', on_delete=models.PROTECT, related_name='appointments')
    doctor = models.ForeignKey('users.Doctor', on_delete=models.PROTECT, related_name='appointments')
    appointment_date = models.DateTimeField()
    reason = models.TextField(blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=PENDING_PAYMENT)

    class Meta:
        ordering = ['appointment_date']
        indexes = [
            models.Index(fields=['doctor', 'appointment_date']),
        ]

    def __str__(self):
        return f"{self.patient.full_name} with {self.doctor} at {self.appointment_date}"
