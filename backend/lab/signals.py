from django.dispatch import receiver

from billing.refs import TestOrderRef
from billing.signals import invoice_paid
from .models import TestOrder


@receiver(invoice_paid)
def settle_test_order(sender, invoice, owner, **kwargs):
    if isinstance(owner, TestOrderRef):
        TestOrder.objects.filter(pk=owner.id).update(payment_status=TestOrder.PAID)
