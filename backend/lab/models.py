from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import Q
from core.models import BaseModel


class MedicalTest(BaseModel):
    test_name = models.CharField(max_length=255, unique=True)
    cost = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(0)])
    duration_minutes = models.PositiveIntegerField(default=30, validators=[MinValueValidator(1)])
    lab_room = models.ForeignKey('admissions.Room', on_delete=models.SET_NULL, null=True, blank=True, related_name='tests')
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ['test_name']

    def __str__(self):
        return self.test_name


class TestOrder(BaseModel):
    PENDING_PAYMENT = 'PENDING_PAYMENT'
    SCHEDULED = 'SCHEDULED'
    COMPLETED = 'COMPLETED'
    STATUS_CHOICES = (
        (PENDING_PAYMENT, 'Pending Payment'),
        (SCHEDULED, 'Scheduled'),
        (COMPLETED, 'Completed'),
    )

    PENDING = 'PENDING'
    PAID = 'PAID'
    PAYMENT_STATUS_CHOICES = ((PENDING, 'Pending'), (PAID, 'Paid'))

    patient = models.ForeignKey('patients.Patient', on_delete=models.PROTECT, related_name='test_orders')
    test = models.ForeignKey(MedicalTest, on_delete=models.PROTECT, related_name='orders')
    doctor = models.ForeignKey('users.Doctor', on_delete=models.SET_NULL, null=True, blank=True, related_name='test_orders')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=PENDING_PAYMENT)
    payment_status = models.CharField(max_length=20, choices=PAYMENT_STATUS_CHOICES, default=PENDING)
    scheduled_date = models.DateTimeField(null=True, blank=True)
    scheduled_end_time = models.DateTimeField(null=True, blank=True)
    result_summary = models.TextField(blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ['-scheduled_date', '-created_at']
        constraints = [
            models.CheckConstraint(
                condition=~Q(status='SCHEDULED') | Q(payment_status='PAID'),
                name='scheduled_test_must_be_paid'
            ),
            models.CheckConstraint(
                condition=~Q(status='SCHEDULED') | Q(scheduled_date__isnull=False, scheduled_end_time__isnull=False),
                name='scheduled_test_has_window'
            ),
        ]
        indexes = [
            models.Index(fields=['status', 'scheduled_end_time']),
        ]

    def __str__(self):
        return f"{self.test.test_name} for {self.patient.full_name} ({self.get_status_display()})"
