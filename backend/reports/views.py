from dateutil import parser as date_parser
from rest_framework.views import APIView
from rest_framework.response import Response
from django.utils import timezone

from billing.rollup import financial_summary
from careconnect_cms.utils import export_to_csv
from core.errors import ValidationRejected
from core.permissions import IsAdminRole, IsHospitalStaff
from .aggregator import dashboard_stats, revenue_between


class BaseReportView(APIView):
    permission_classes = [IsAdminRole]

    def get_date_range(self, request):
        start_date = request.query_params.get('start_date')
        end_date = request.query_params.get('end_date')

        # If dates are empty strings or None, default to today
        today = timezone.localdate()
        return self._parse(start_date, today), self._parse(end_date, today)

    def _parse(self, value, default):
        if not value or value in ('null', 'undefined'):
            return default
        try:
            return date_parser.parse(value).date()
        except (ValueError, OverflowError):
            raise ValidationRejected(f"Invalid date: {value}")


class RevenueReportView(BaseReportView):
    def get(self, request):
        start_date, end_date = self.get_date_range(request)
        report = revenue_between(start_date, end_date)

        if request.query_params.get('export') == 'csv':
            rows = report['by_source'] + [{'source': 'Total', 'kind': '', 'amount': report['total']}]
            return export_to_csv(
                rows,
                f"revenue_{start_date}_{end_date}",
                ['source', 'kind', 'amount'],
                headers=['Source', 'Type', 'Amount'],
            )

        return Response({'report_type': 'Revenue', **report})


class FinancialSummaryView(BaseReportView):
    def get(self, request):
        return Response(financial_summary())


class DashboardStatsView(APIView):
    permission_classes = [IsHospitalStaff]

    def get(self, request):
        return Response(dashboard_stats())
