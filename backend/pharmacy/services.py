import logging
from collections import OrderedDict
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db.models import F

from billing.ledger import LineItem, create_invoice
from billing.models import Expense
from billing.refs import PharmacySaleRef
from core.availability import AvailabilityOracle, StockLine
from core.errors import ReferenceNotFound, ValidationRejected
from core.models import get_or_not_found
from core.permissions import ROLE_ADMIN
from core.realtime import broadcast
from core.unit_of_work import Step, UnitOfWork
from patients.models import Patient
from .models import Medicine, PharmacyOrder, PharmacyOrderItem
from .stock import add_stock, reserve_stock

logger = logging.getLogger(__name__)


def _merge_lines(lines):
    """Collapse repeated medicines into one line each, keeping cart order."""
    merged = OrderedDict()
    for line in lines:
        medicine_id = str(line['medicine_id'])
        quantity = line['quantity']
        if not isinstance(quantity, int) or quantity < 1:
            raise ValidationRejected(f"Invalid quantity {quantity!r} for medicine {medicine_id}.")
        merged[medicine_id] = merged.get(medicine_id, 0) + quantity
    if not merged:
        raise ValidationRejected("Cart is empty.")
    return merged


def create_pharmacy_sale(auth, patient_id, lines, store=None):
    """
    Sell a cart of medicines to a patient.

    Stock for every line is checked and then decremented in the same unit as
    the order and its invoice, so one short line rolls back the whole cart.
    Prices come from the catalog.
    """
    auth.forbid(ROLE_ADMIN, "Admins cannot perform sales.")
    cart = _merge_lines(lines)
    patient = get_or_not_found(Patient, 'Patient', pk=patient_id)

    try:
        medicines = Medicine.objects.in_bulk(list(cart.keys()))
    except ValidationError:
        raise ValidationRejected("Cart contains an invalid medicine reference.")
    medicines = {str(pk): medicine for pk, medicine in medicines.items()}
    missing = [medicine_id for medicine_id in cart if medicine_id not in medicines]
    if missing:
        raise ReferenceNotFound(f"Medicine not found: {', '.join(missing)}")

    invoice_lines = [
        LineItem(medicines[medicine_id].name, quantity, medicines[medicine_id].unit_price)
        for medicine_id, quantity in cart.items()
    ]
    total = sum((line.amount for line in invoice_lines), Decimal('0'))
    oracle = AvailabilityOracle(store)

    def verify_stock(r):
        return [oracle.require(StockLine(medicines[mid].pk, qty)) for mid, qty in cart.items()]

    def write_items(r):
        order = r['order']
        items = []
        for medicine_id, quantity in cart.items():
            medicine = medicines[medicine_id]
            reserve_stock(medicine.pk, quantity)
            items.append(PharmacyOrderItem.objects.create(
                order=order,
                medicine=medicine,
                quantity=quantity,
                unit_price=medicine.unit_price,
            ))
        return items

    result = UnitOfWork('pharmacy_sale').execute([
        Step('stock', verify_stock),
        Step('order', lambda r: PharmacyOrder.objects.create(
            patient=patient,
            total_amount=total,
            sold_by_id=auth.user_id,
        )),
        Step('items', write_items),
        Step('invoice', lambda r: create_invoice(
            PharmacySaleRef(r['order'].id), invoice_lines, expected_total=total
        )),
    ])

    order = result['order']
    invoice = result['invoice']
    low_stock = list(
        Medicine.objects.filter(pk__in=[m.pk for m in medicines.values()], stock_quantity__lte=F('reorder_level'))
        .values_list('name', flat=True)
    )
    broadcast('pharmacy_sale_update', {
        'order_id': str(order.id),
        'invoice_id': str(invoice.id),
        'amount': float(total),
        'low_stock': low_stock,
    })
    logger.info("Pharmacy sale %s: %d lines, total %s", order.id, len(cart), total)

    return {
        'order_id': str(order.id),
        'invoice_id': str(invoice.id),
        'total_amount': invoice.total_amount,
        'invoice_status': invoice.get_status_display(),
        'low_stock': low_stock,
    }


def restock_medicine(medicine_id, quantity, unit_cost, recorded_by=''):
    """Add stock and book what it cost as a restock expense, in one unit."""
    if not isinstance(quantity, int) or quantity < 1:
        raise ValidationRejected("Restock quantity must be at least 1.")
    unit_cost = Decimal(str(unit_cost))
    if unit_cost < 0:
        raise ValidationRejected("Unit cost cannot be negative.")

    medicine = get_or_not_found(Medicine, 'Medicine', pk=medicine_id)
    cost = (unit_cost * quantity).quantize(Decimal('0.01'))

    result = UnitOfWork('pharmacy_restock').execute([
        Step('stock', lambda r: add_stock(medicine.pk, quantity)),
        Step('expense', lambda r: Expense.objects.create(
            category='PHARMACY_RESTOCK',
            description=f"Restock {medicine.name} x {quantity}",
            amount=cost,
            recorded_by=recorded_by,
        )),
    ])

    logger.info("Restocked %s by %d (cost %s)", medicine.name, quantity, cost)
    return {
        'medicine_id': str(medicine.pk),
        'stock_quantity': result['stock'],
        'expense_id': str(result['expense'].id),
        'amount': cost,
    }
