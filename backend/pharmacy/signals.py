from django.dispatch import receiver

from billing.refs import PharmacySaleRef
from billing.signals import invoice_paid
from .models import PharmacyOrder


@receiver(invoice_paid)
def settle_pharmacy_order(sender, invoice, owner, **kwargs):
    if isinstance(owner, PharmacySaleRef):
        PharmacyOrder.objects.filter(pk=owner.id, status=PharmacyOrder.PENDING_PAYMENT).update(
            status=PharmacyOrder.PAID
        )
