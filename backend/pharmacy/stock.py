"""
Stock Ledger.

Stock only moves through the two functions below. A decrement is a single
conditional UPDATE, so two concurrent sales of the last unit cannot both
succeed even without a prior lock: the second UPDATE matches no row.
"""
from django.db.models import F
from django.utils import timezone

from core.errors import InsufficientStock, ReferenceNotFound, ValidationRejected
from core.unit_of_work import require_transaction
from .models import Medicine


def reserve_stock(medicine_id, quantity):
    require_transaction()
    if quantity < 1:
        raise ValidationRejected("Quantity must be at least 1.")

    updated = Medicine.objects.filter(pk=medicine_id, stock_quantity__gte=quantity).update(
        stock_quantity=F('stock_quantity') - quantity,
        updated_at=timezone.now(),
    )
    if updated:
        return True

    current = Medicine.objects.filter(pk=medicine_id).values('name', 'stock_quantity').first()
    if current is None:
        raise ReferenceNotFound("Medicine not found.")
    raise InsufficientStock(current['name'], current['stock_quantity'], quantity)


def add_stock(medicine_id, quantity):
    require_transaction()
    if quantity < 1:
        raise ValidationRejected("Restock quantity must be at least 1.")

    updated = Medicine.objects.filter(pk=medicine_id).update(
        stock_quantity=F('stock_quantity') + quantity,
        updated_at=timezone.now(),
    )
    if not updated:
        raise ReferenceNotFound("Medicine not found.")
    return Medicine.objects.values_list('stock_quantity', flat=True).get(pk=medicine_id)
