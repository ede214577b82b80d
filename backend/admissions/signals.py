from django.dispatch import receiver

from billing.refs import AdmissionRef
from billing.signals import invoice_paid
from .models import Admission


@receiver(invoice_paid)
def settle_admission(sender, invoice, owner, **kwargs):
    if isinstance(owner, AdmissionRef):
        Admission.objects.filter(pk=owner.id).update(payment_status=Admission.PAID)
