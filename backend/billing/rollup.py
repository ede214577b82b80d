import logging
from collections import defaultdict
from decimal import Decimal

from django.db import transaction
from django.db.models import F, Sum
from django.utils import timezone

from .models import FinancialReport, Payment

logger = logging.getLogger(__name__)


def period_labels(when):
    """Yearly, monthly and ISO-week labels for a payment timestamp, in local time."""
    local = timezone.localtime(when) if timezone.is_aware(when) else when
    return [
        (FinancialReport.YEARLY, local.strftime('%Y')),
        (FinancialReport.MONTHLY, local.strftime('%Y-%m')),
        (FinancialReport.WEEKLY, local.strftime('%G-W%V')),
    ]


def add_to_rollup(amount, when):
    if not amount:
        return
    for report_type, label in period_labels(when):
        FinancialReport.objects.get_or_create(report_type=report_type, period_label=label)
        FinancialReport.objects.filter(report_type=report_type, period_label=label).update(
            total_revenue=F('total_revenue') + amount
        )


@transaction.atomic
def recalculate_financial_reports():
    """Rebuild the whole rollup from Payment history. Returns the number of rows written."""
    totals = defaultdict(Decimal)
    for paid_at, applied in Payment.objects.filter(applied_amount__gt=0).values_list('paid_at', 'applied_amount'):
        for key in period_labels(paid_at):
            totals[key] += applied

    FinancialReport.objects.all().delete()
    FinancialReport.objects.bulk_create([
        FinancialReport(report_type=report_type, period_label=label, total_revenue=total)
        for (report_type, label), total in sorted(totals.items())
    ])
    logger.info("Financial rollup rebuilt: %d rows", len(totals))
    return len(totals)


def financial_summary(now=None):
    now = now or timezone.now()
    labels = dict(period_labels(now))

    def revenue(report_type, label):
        row = FinancialReport.objects.filter(report_type=report_type, period_label=label).first()
        return row.total_revenue if row else Decimal('0')

    all_time = FinancialReport.objects.filter(report_type=FinancialReport.YEARLY).aggregate(
        total=Sum('total_revenue')
    )['total'] or Decimal('0')

    return {
        'all_time': all_time,
        'this_year': revenue(FinancialReport.YEARLY, labels[FinancialReport.YEARLY]),
        'this_month': revenue(FinancialReport.MONTHLY, labels[FinancialReport.MONTHLY]),
        'this_week': revenue(FinancialReport.WEEKLY, labels[FinancialReport.WEEKLY]),
        'periods': labels,
    }
