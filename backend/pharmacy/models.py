from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import Q
from core.models import BaseModel


class Medicine(BaseModel):
    name = models.CharField(max_length=255, unique=True)
    generic_name = models.CharField(max_length=255, blank=True)
    manufacturer = models.CharField(max_length=255, blank=True)
    stock_quantity = models.PositiveIntegerField(default=0)
    unit_price = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(0)])
    reorder_level = models.PositiveIntegerField(default=10)

    class Meta:
        ordering = ['name']
        constraints = [
            models.CheckConstraint(condition=Q(stock_quantity__gte=0), name='medicine_stock_non_negative'),
        ]

    @property
    def is_low_stock(self):
        return self.stock_quantity <= self.reorder_level

    def __str__(self):
        return f"{self.name} ({self.stock_quantity})"


class PharmacyOrder(BaseModel):
    PENDING_PAYMENT = 'PENDING_PAYMENT'
    PAID = 'PAID'
    STATUS_CHOICES = ((PENDING_PAYMENT, 'Pending Payment'), (PAID, 'Paid'))

    patient = models.ForeignKey('patients.Patient', on_delete=models.PROTECT, related_name='pharmacy_orders')
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(0)])
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=PENDING_PAYMENT)
    sold_by = models.ForeignKey('users.User', on_delete=models.SET_NULL, null=True, blank=True, related_name='pharmacy_sales')

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"Pharmacy order {self.id} - {self.total_amount}"


class PharmacyOrderItem(BaseModel):
    order = models.ForeignKey(PharmacyOrder, on_delete=models.CASCADE, related_name='items')
    medicine = models.ForeignKey(Medicine, on_delete=models.PROTECT, related_name='order_items')
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    unit_price = models.DecimalField(max_digits=10, decimal_places=2)

    @property
    def amount(self):
        return self.quantity * self.unit_price

    def __str__(self):
        return f"{self.medicine.name} x {self.quantity}"
