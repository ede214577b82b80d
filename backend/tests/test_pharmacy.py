from decimal import Decimal

import pytest
from django.db import transaction

from billing.ledger import apply_payment
from billing.models import Expense, Invoice
from careconnect_cms.store import DjangoLedgerStore
from core.context import AuthContext
from core.errors import AuthorizationDenied, CapacityExhausted, InsufficientStock, ReferenceNotFound
from core.ports import StockLevel
from pharmacy.models import Medicine, PharmacyOrder, PharmacyOrderItem
from pharmacy.services import create_pharmacy_sale, restock_medicine
from pharmacy.stock import add_stock, reserve_stock


class StaleStockStore(DjangoLedgerStore):
    """Reports the stock seen before a concurrent sale committed."""

    def __init__(self, stale_quantity):
        self.stale_quantity = stale_quantity

    def stock_level(self, medicine_id, lock=False):
        medicine = Medicine.objects.get(pk=medicine_id)
        return StockLevel(medicine.pk, medicine.name, self.stale_quantity)


def _line(medicine, quantity):
    return {'medicine_id': medicine.id, 'quantity': quantity}


@pytest.mark.django_db
class TestPharmacySale:

    def test_sale_decrements_stock_and_invoices(self, reception, patient, paracetamol):
        result = create_pharmacy_sale(reception, patient.id, [_line(paracetamol, 10)])

        paracetamol.refresh_from_db()
        assert paracetamol.stock_quantity == 90
        assert result['total_amount'] == Decimal('25.00')
        assert result['invoice_status'] == 'Unpaid'
        assert result['low_stock'] == []

        order = PharmacyOrder.objects.get(pk=result['order_id'])
        assert order.status == PharmacyOrder.PENDING_PAYMENT
        assert Invoice.objects.get(pk=result['invoice_id']).pharmacy_order_id == order.id

    def test_short_line_rolls_back_whole_cart(self, reception, patient, paracetamol, insulin):
        with pytest.raises(CapacityExhausted) as exc:
            create_pharmacy_sale(reception, patient.id, [_line(paracetamol, 5), _line(insulin, 3)])

        assert isinstance(exc.value, InsufficientStock)
        assert exc.value.message == "Insufficient stock for Insulin Pen. Available: 1, Requested: 3"
        assert PharmacyOrder.objects.count() == 0
        assert PharmacyOrderItem.objects.count() == 0
        assert Invoice.objects.count() == 0
        paracetamol.refresh_from_db()
        insulin.refresh_from_db()
        assert (paracetamol.stock_quantity, insulin.stock_quantity) == (100, 1)

    def test_admin_cannot_sell(self, admin_context, patient, paracetamol):
        with pytest.raises(AuthorizationDenied, match="Admins cannot perform sales."):
            create_pharmacy_sale(admin_context, patient.id, [_line(paracetamol, 1)])
        assert PharmacyOrder.objects.count() == 0

    def test_last_unit_sells_once(self, reception, patient, other_patient, insulin):
        create_pharmacy_sale(reception, patient.id, [_line(insulin, 1)])

        with pytest.raises(CapacityExhausted):
            create_pharmacy_sale(reception, other_patient.id, [_line(insulin, 1)])

        insulin.refresh_from_db()
        assert insulin.stock_quantity == 0
        assert PharmacyOrder.objects.count() == 1

    def test_stale_check_still_cannot_oversell(self, reception, patient, other_patient, insulin):
        create_pharmacy_sale(reception, patient.id, [_line(insulin, 1)])

        # the second cashier's check still sees the unit that was just sold
        with pytest.raises(InsufficientStock):
            create_pharmacy_sale(
                reception, other_patient.id, [_line(insulin, 1)], store=StaleStockStore(stale_quantity=1)
            )

        insulin.refresh_from_db()
        assert insulin.stock_quantity == 0
        assert PharmacyOrder.objects.count() == 1
        assert Invoice.objects.count() == 1

    def test_repeated_lines_are_merged(self, reception, patient, paracetamol):
        result = create_pharmacy_sale(reception, patient.id, [_line(paracetamol, 2), _line(paracetamol, 3)])

        order = PharmacyOrder.objects.get(pk=result['order_id'])
        assert [(i.medicine_id, i.quantity) for i in order.items.all()] == [(paracetamol.id, 5)]
        assert result['total_amount'] == Decimal('12.50')

    def test_low_stock_reported(self, reception, patient, paracetamol):
        result = create_pharmacy_sale(reception, patient.id, [_line(paracetamol, 95)])
        assert result['low_stock'] == ['Paracetamol 500mg']

    def test_unknown_medicine(self, reception, patient, paracetamol):
        missing = Medicine(name='ghost', unit_price=1)
        with pytest.raises(ReferenceNotFound):
            create_pharmacy_sale(reception, patient.id, [_line(paracetamol, 1), _line(missing, 1)])

    def test_paying_settles_order(self, reception, patient, paracetamol):
        result = create_pharmacy_sale(reception, patient.id, [_line(paracetamol, 4)])
        apply_payment(result['invoice_id'], Decimal('10.00'), 'CASH')
        assert PharmacyOrder.objects.get(pk=result['order_id']).status == PharmacyOrder.PAID

    def test_sale_records_cashier(self, staff_user, patient, paracetamol):
        auth = AuthContext(role='RECEPTION', user_id=str(staff_user.pk))
        result = create_pharmacy_sale(auth, patient.id, [_line(paracetamol, 1)])
        assert PharmacyOrder.objects.get(pk=result['order_id']).sold_by == staff_user


@pytest.mark.django_db(transaction=True)
class TestStockLedgerOutsideTransaction:

    def test_reserve_requires_transaction(self, paracetamol):
        with pytest.raises(RuntimeError):
            reserve_stock(paracetamol.id, 1)

        paracetamol.refresh_from_db()
        assert paracetamol.stock_quantity == 100

    def test_add_stock_requires_transaction(self, paracetamol):
        with pytest.raises(RuntimeError):
            add_stock(paracetamol.id, 5)


@pytest.mark.django_db
class TestStockLedger:

    def test_conditional_decrement(self, insulin):
        with transaction.atomic():
            assert reserve_stock(insulin.id, 1) is True
            with pytest.raises(InsufficientStock) as exc:
                reserve_stock(insulin.id, 1)

        assert exc.value.available == 0
        insulin.refresh_from_db()
        assert insulin.stock_quantity == 0

    def test_restock_books_expense(self, paracetamol):
        result = restock_medicine(paracetamol.id, 50, '1.20', recorded_by='store')

        paracetamol.refresh_from_db()
        assert paracetamol.stock_quantity == 150
        assert result['stock_quantity'] == 150
        expense = Expense.objects.get(pk=result['expense_id'])
        assert expense.category == 'PHARMACY_RESTOCK'
        assert expense.amount == Decimal('60.00')
