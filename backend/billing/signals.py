from django.db.models.signals import post_save
from django.dispatch import Signal, receiver

from .models import Payment
from .rollup import add_to_rollup

# Sent once, when an invoice moves from Unpaid to Paid.
# Receivers get ``invoice`` and ``owner`` (the invoice's ReservationRef).
invoice_paid = Signal()


@receiver(post_save, sender=Payment)
def update_financial_rollup(sender, instance, created, **kwargs):
    if created:
        add_to_rollup(instance.applied_amount, instance.paid_at)
