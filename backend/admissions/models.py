from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import Q
from core.models import BaseModel


class Room(BaseModel):
    ICU = 'ICU'
    WARD_AC = 'WARD_AC'
    WARD_NON_AC = 'WARD_NON_AC'
    OPERATION_THEATER = 'OPERATION_THEATER'
    CONSULTATION = 'CONSULTATION'
    LAB = 'LAB'
    CATEGORY_CHOICES = (
        (ICU, 'ICU'),
        (WARD_AC, 'General Ward (AC)'),
        (WARD_NON_AC, 'General Ward (Non-AC)'),
        (OPERATION_THEATER, 'Operation Theater'),
        (CONSULTATION, 'Consultation'),
        (LAB, 'Lab'),
    )

    room_number = models.CharField(max_length=20, unique=True)
    category = models.CharField(max_length=30, choices=CATEGORY_CHOICES)
    charge_per_day = models.DecimalField(max_digits=10, decimal_places=2, default=0, validators=[MinValueValidator(0)])
    # Administrative flag (maintenance, assigned to a doctor). Occupancy comes from active admissions.
    is_available = models.BooleanField(default=True)
    current_doctor = models.ForeignKey('users.Doctor', on_delete=models.SET_NULL, null=True, blank=True, related_name='rooms')

    class Meta:
        ordering = ['room_number']

    @property
    def is_occupied(self):
        return self.admissions.filter(status=Admission.ADMITTED).exists()

    def __str__(self):
        return f"{self.room_number} ({self.get_category_display()})"


class Admission(BaseModel):
    ADMITTED = 'ADMITTED'
    DISCHARGED = 'DISCHARGED'
    STATUS_CHOICES = ((ADMITTED, 'Admitted'), (DISCHARGED, 'Discharged'))

    PENDING = 'PENDING'
    PAID = 'PAID'
    PAYMENT_STATUS_CHOICES = ((PENDING, 'Pending'), (PAID, 'Paid'))

    patient = models.ForeignKey('patients.Patient', on_delete=models.PROTECT, related_name='admissions')
    room = models.ForeignKey(Room, on_delete=models.PROTECT, related_name='admissions')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=ADMITTED)
    payment_status = models.CharField(max_length=20, choices=PAYMENT_STATUS_CHOICES, default=PENDING)
    nights = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    admitted_at = models.DateTimeField(auto_now_add=True)
    discharged_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ['-admitted_at']
        constraints = [
            models.UniqueConstraint(
                fields=['room'],
                condition=Q(status='ADMITTED'),
                name='one_active_admission_per_room'
            ),
            models.UniqueConstraint(
                fields=['patient'],
                condition=Q(status='ADMITTED'),
                name='one_active_admission_per_patient'
            ),
        ]

    def __str__(self):
        return f"{self.patient.full_name} in {self.room.room_number} ({self.get_status_display()})"
