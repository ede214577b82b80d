from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import Q
from django.utils import timezone
from core.models import BaseModel

# One nullable reference per reservation variant; exactly one must be set.
OWNER_FIELDS = ('appointment', 'admission', 'test_order', 'pharmacy_order')


def _exactly_one_owner():
    condition = Q()
    for field in OWNER_FIELDS:
        clause = Q(**{f'{field}__isnull': False})
        for other in OWNER_FIELDS:
            if other != field:
                clause &= Q(**{f'{other}__isnull': True})
        condition |= clause
    return condition


class Invoice(BaseModel):
    UNPAID = 'UNPAID'
    PAID = 'PAID'
    STATUS_CHOICES = ((UNPAID, 'Unpaid'), (PAID, 'Paid'))

    SOURCE_CONSULTATION = 'CONSULTATION'
    SOURCE_INPATIENT = 'INPATIENT'
    SOURCE_LAB = 'LAB'
    SOURCE_PHARMACY = 'PHARMACY'

    total_amount = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(0)])
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=UNPAID)
    paid_at = models.DateTimeField(null=True, blank=True)

    appointment = models.OneToOneField('appointments.Appointment', on_delete=models.PROTECT, null=True, blank=True, related_name='invoice')
    admission = models.OneToOneField('admissions.Admission', on_delete=models.PROTECT, null=True, blank=True, related_name='invoice')
    test_order = models.OneToOneField('lab.TestOrder', on_delete=models.PROTECT, null=True, blank=True, related_name='invoice')
    pharmacy_order = models.OneToOneField('pharmacy.PharmacyOrder', on_delete=models.PROTECT, null=True, blank=True, related_name='invoice')

    class Meta:
        ordering = ['-created_at']
        constraints = [
            models.CheckConstraint(condition=_exactly_one_owner(), name='invoice_exactly_one_owner'),
            models.CheckConstraint(condition=Q(total_amount__gte=0), name='invoice_total_non_negative'),
            models.CheckConstraint(
                condition=Q(status='UNPAID') | Q(paid_at__isnull=False),
                name='invoice_paid_has_timestamp'
            ),
        ]

    @property
    def generated_at(self):
        return self.created_at

    @property
    def owner(self):
        for field in OWNER_FIELDS:
            value = getattr(self, field)
            if value is not None:
                return value
        return None

    @property
    def source(self):
        if self.appointment_id:
            return self.SOURCE_CONSULTATION
        if self.admission_id:
            return self.SOURCE_INPATIENT
        if self.test_order_id:
            return self.SOURCE_LAB
        return self.SOURCE_PHARMACY

    @property
    def patient(self):
        owner = self.owner
        return owner.patient if owner is not None else None

    def __str__(self):
        return f"Invoice {self.id} - {self.total_amount} ({self.get_status_display()})"


class InvoiceItem(BaseModel):
    invoice = models.ForeignKey(Invoice, on_delete=models.CASCADE, related_name='items')
    description = models.CharField(max_length=255)
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    unit_price = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(0)])
    amount = models.DecimalField(max_digits=12, decimal_places=2)

    class Meta:
        constraints = [
            models.CheckConstraint(condition=Q(quantity__gte=1), name='invoice_item_quantity_positive'),
            models.CheckConstraint(condition=Q(unit_price__gte=0), name='invoice_item_price_non_negative'),
        ]

    def __str__(self):
        return f"{self.description} x {self.quantity}"


class Payment(BaseModel):
    METHOD_CHOICES = (
        ('CASH', 'Cash'),
        ('CARD', 'Card'),
        ('UPI', 'UPI'),
        ('ONLINE', 'Online'),
        ('INSURANCE', 'Insurance'),
    )

    invoice = models.ForeignKey(Invoice, on_delete=models.PROTECT, related_name='payments')
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    # Portion of ``amount`` that counted towards the invoice total; the rest is overpayment.
    applied_amount = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    method = models.CharField(max_length=20, choices=METHOD_CHOICES)
    paid_at = models.DateTimeField(default=timezone.now)
    remarks = models.CharField(max_length=255, blank=True)

    class Meta:
        ordering = ['paid_at']
        constraints = [
            models.CheckConstraint(condition=Q(amount__gt=0), name='payment_amount_positive'),
            models.CheckConstraint(condition=Q(applied_amount__gte=0), name='payment_applied_non_negative'),
        ]

    def __str__(self):
        return f"Payment {self.amount} ({self.method}) for {self.invoice_id}"


class Expense(BaseModel):
    CATEGORY_CHOICES = (
        ('PHARMACY_RESTOCK', 'Pharmacy Restock'),
        ('OTHER', 'Other'),
    )

    category = models.CharField(max_length=30, choices=CATEGORY_CHOICES)
    description = models.CharField(max_length=255)
    amount = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(0)])
    incurred_at = models.DateTimeField(default=timezone.now)
    recorded_by = models.CharField(max_length=255, blank=True)

    def __str__(self):
        return f"{self.get_category_display()}: {self.amount}"


class FinancialReport(models.Model):
    """
    Denormalised revenue rollup, kept current on every payment. Not a source
    of truth: ``billing.rollup.recalculate_financial_reports`` rebuilds it
    from Payment history.
    """
    YEARLY = 'YEARLY'
    MONTHLY = 'MONTHLY'
    WEEKLY = 'WEEKLY'
    REPORT_TYPES = ((YEARLY, 'Yearly'), (MONTHLY, 'Monthly'), (WEEKLY, 'Weekly'))

    report_type = models.CharField(max_length=10, choices=REPORT_TYPES)
    period_label = models.CharField(max_length=20)
    total_revenue = models.DecimalField(max_digits=15, decimal_places=2, default=0)
    last_updated = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=['report_type', 'period_label'], name='unique_financial_report')
        ]

    def __str__(self):
        return f"{self.get_report_type_display()} {self.period_label}: {self.total_revenue}"
