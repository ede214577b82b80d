from django.dispatch import receiver

from billing.refs import AppointmentRef
from billing.signals import invoice_paid
from .models import Appointment


@receiver(invoice_paid)
def confirm_paid_appointment(sender, invoice, owner, **kwargs):
    if isinstance(owner, AppointmentRef):
        Appointment.objects.filter(pk=owner.id, status=Appointment.PENDING_PAYMENT).update(
            status=Appointment.CONFIRMED
        )
