"""
Invoice & Payment Ledger.

``create_invoice`` builds an invoice owned by exactly one reservation, with
the total derived from its line items. ``apply_payment`` appends a payment
and derives the invoice status from the running total: once payments cover
the total the invoice becomes Paid and stays Paid.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional

from django.db import transaction
from django.db.models import Sum
from django.utils import timezone

from core.errors import LedgerInvariantError, ReferenceNotFound, ValidationRejected
from core.realtime import broadcast
from .models import Invoice, InvoiceItem, Payment
from .refs import REF_TYPES, ReservationRef, ref_for_invoice
from .signals import invoice_paid

logger = logging.getLogger(__name__)

Q2 = Decimal("0.01")
PAYMENT_METHODS = {code for code, _ in Payment.METHOD_CHOICES}


def _d(x) -> Decimal:
    return Decimal(str(x or 0))


def _q2(x) -> Decimal:
    return _d(x).quantize(Q2, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class LineItem:
    description: str
    quantity: int
    unit_price: Decimal

    @property
    def amount(self) -> Decimal:
        return _q2(_d(self.unit_price) * self.quantity)


def _check_lines(line_items):
    lines = list(line_items)
    if not lines:
        raise LedgerInvariantError("An invoice needs at least one line item.")
    for line in lines:
        if not isinstance(line.quantity, int) or line.quantity < 1:
            raise LedgerInvariantError(f"Line '{line.description}' has invalid quantity {line.quantity!r}.")
        if _d(line.unit_price) < 0:
            raise LedgerInvariantError(f"Line '{line.description}' has a negative unit price.")
    return lines


def create_invoice(owner: ReservationRef, line_items: Iterable[LineItem], expected_total=None) -> Invoice:
    """
    Create the invoice for ``owner``.

    ``expected_total`` is the charge the caller computed on its own; a
    mismatch with the sum of the lines is a bug in the caller and raises
    ``LedgerInvariantError`` rather than a domain error.
    """
    if not isinstance(owner, REF_TYPES):
        raise LedgerInvariantError(f"Invoice owner must be one of {[t.__name__ for t in REF_TYPES]}, got {owner!r}.")

    lines = _check_lines(line_items)
    total = _q2(sum((line.amount for line in lines), Decimal('0')))
    if expected_total is not None and _q2(expected_total) != total:
        raise LedgerInvariantError(f"Invoice total {expected_total} does not match line items ({total}).")

    with transaction.atomic():
        invoice = Invoice.objects.create(total_amount=total, **owner.invoice_kwargs())
        InvoiceItem.objects.bulk_create([
            InvoiceItem(
                invoice=invoice,
                description=line.description,
                quantity=line.quantity,
                unit_price=_q2(line.unit_price),
                amount=line.amount,
            )
            for line in lines
        ])

        if total == 0:
            # nothing to collect
            _mark_paid(invoice, timezone.now())

        broadcast('billing_update', {
            'invoice_id': str(invoice.id),
            'source': owner.source,
            'amount': float(total),
            'status': invoice.status,
        })

    logger.info("Invoice %s created for %s %s (total %s)", invoice.id, owner.owner_field, owner.id, total)
    return invoice


def amount_paid(invoice) -> Decimal:
    return _q2(invoice.payments.aggregate(total=Sum('applied_amount'))['total'])


def apply_payment(invoice_id, amount, method, remarks='') -> dict:
    amount = _q2(amount)
    if amount <= 0:
        raise ValidationRejected("Payment amount must be greater than zero.")
    if method not in PAYMENT_METHODS:
        raise ValidationRejected(f"Unsupported payment method: {method}")

    with transaction.atomic():
        try:
            invoice = Invoice.objects.select_for_update().get(pk=invoice_id)
        except Invoice.DoesNotExist:
            raise ReferenceNotFound(f"Invoice {invoice_id} not found.")

        paid_before = amount_paid(invoice)
        due = max(invoice.total_amount - paid_before, Decimal('0'))
        applied = min(amount, due)

        payment = Payment.objects.create(
            invoice=invoice,
            amount=amount,
            applied_amount=applied,
            method=method,
            remarks=remarks,
        )

        paid_now = paid_before + applied
        if invoice.status == Invoice.UNPAID and paid_now >= invoice.total_amount:
            _mark_paid(invoice, payment.paid_at)

        broadcast('billing_update', {
            'invoice_id': str(invoice.id),
            'amount': float(invoice.total_amount),
            'status': invoice.status,
            'paid': float(paid_now),
        })

    if applied < amount:
        logger.info("Invoice %s overpaid by %s; excess not applied", invoice.id, amount - applied)

    return {
        'invoice_id': str(invoice.id),
        'payment_id': str(payment.id),
        'new_status': invoice.get_status_display(),
        'amount_paid': paid_now,
        'balance_due': max(invoice.total_amount - paid_now, Decimal('0')),
    }


def _mark_paid(invoice, when):
    invoice.status = Invoice.PAID
    invoice.paid_at = when
    invoice.save(update_fields=['status', 'paid_at', 'updated_at'])
    logger.info("Invoice %s is now Paid", invoice.id)
    invoice_paid.send(sender=Invoice, invoice=invoice, owner=ref_for_invoice(invoice))


def invoice_details(invoice_id) -> dict:
    try:
        invoice = Invoice.objects.prefetch_related('items', 'payments').get(pk=invoice_id)
    except Invoice.DoesNotExist:
        raise ReferenceNotFound(f"Invoice {invoice_id} not found.")

    patient = invoice.patient
    paid = amount_paid(invoice)
    return {
        'invoice_id': str(invoice.id),
        'source': invoice.source,
        'status': invoice.get_status_display(),
        'total_amount': invoice.total_amount,
        'amount_paid': paid,
        'balance_due': max(invoice.total_amount - paid, Decimal('0')),
        'generated_at': invoice.created_at,
        'paid_at': invoice.paid_at,
        'patient': {
            'id': str(patient.id),
            'full_name': patient.full_name,
            'phone': patient.phone,
        } if patient else None,
        'items': [
            {
                'description': item.description,
                'quantity': item.quantity,
                'unit_price': item.unit_price,
                'amount': item.amount,
            }
            for item in invoice.items.all()
        ],
        'payments': [
            {
                'amount': p.amount,
                'applied_amount': p.applied_amount,
                'method': p.method,
                'paid_at': p.paid_at,
            }
            for p in invoice.payments.all()
        ],
    }


def unpaid_invoices(limit: Optional[int] = None):
    queryset = Invoice.objects.filter(status=Invoice.UNPAID).select_related(
        'appointment__patient', 'admission__patient', 'test_order__patient', 'pharmacy_order__patient'
    ).order_by('created_at')
    return queryset[:limit] if limit else queryset
