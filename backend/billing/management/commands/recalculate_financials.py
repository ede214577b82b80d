from django.core.management.base import BaseCommand
from billing.rollup import recalculate_financial_reports, financial_summary


class Command(BaseCommand):
    help = 'Rebuilds the yearly/monthly/weekly revenue rollup from payment history.'

    def handle(self, *args, **kwargs):
        self.stdout.write("Recalculating financial reports...")
        rows = recalculate_financial_reports()
        self.stdout.write(f"Wrote {rows} report rows")

        summary = financial_summary()
        self.stdout.write(f"All time: {summary['all_time']}  This month: {summary['this_month']}")
        self.stdout.write(self.style.SUCCESS('Financial reports rebuilt.'))
