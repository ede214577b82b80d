from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.response import Response
from django.db.models import Sum
from django.utils import timezone
from django_filters.rest_framework import DjangoFilterBackend

from careconnect_cms.utils import export_to_csv
from core.permissions import IsAdminRole, IsBillingStaff
from core.results import run_workflow
from .ledger import apply_payment, invoice_details, unpaid_invoices
from .models import Invoice, Payment, Expense, FinancialReport
from .rollup import financial_summary, recalculate_financial_reports
from .serializers import (
    InvoiceSerializer, AddPaymentSerializer, ExpenseSerializer, FinancialReportSerializer
)


class InvoiceViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Invoices are created by the reservation workflows, never through this
    endpoint. The only mutation offered here is ``add_payment``.
    """
    queryset = Invoice.objects.all().select_related(
        'appointment__patient', 'admission__patient', 'test_order__patient', 'pharmacy_order__patient'
    ).prefetch_related('items', 'payments').order_by('-created_at')
    serializer_class = InvoiceSerializer
    permission_classes = [IsBillingStaff]
    filter_backends = [DjangoFilterBackend]
    filterset_fields = ['status']

    def get_queryset(self):
        queryset = super().get_queryset()

        month = self.request.query_params.get('month')
        year = self.request.query_params.get('year')
        if month and year and month.isdigit() and year.isdigit():
            queryset = queryset.filter(created_at__month=int(month), created_at__year=int(year))

        return queryset

    @action(detail=True, methods=['get'])
    def details(self, request, pk=None):
        return run_workflow(invoice_details, pk).to_response()

    @action(detail=False, methods=['get'])
    def unpaid(self, request):
        serializer = self.get_serializer(unpaid_invoices(), many=True)
        return Response(serializer.data)

    @action(detail=True, methods=['post'])
    def add_payment(self, request, pk=None):
        serializer = AddPaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        result = run_workflow(apply_payment, pk, data['amount'], data['method'], data['remarks'])
        return result.to_response(success_status=status.HTTP_201_CREATED)

    @action(detail=False, methods=['get'])
    def stats(self, request):
        today = timezone.localdate()
        collection_today = Payment.objects.filter(paid_at__date=today).aggregate(
            total=Sum('applied_amount'))['total'] or 0
        pending = Invoice.objects.filter(status=Invoice.UNPAID).aggregate(
            total=Sum('total_amount'))['total'] or 0

        return Response({
            'revenue_today': collection_today,
            'pending_amount': pending,
            'invoices_today': Invoice.objects.filter(created_at__date=today).count(),
        })

    @action(detail=False, methods=['get'])
    def summary(self, request):
        return Response(financial_summary())

    @action(detail=False, methods=['get'], permission_classes=[IsAdminRole])
    def rollup(self, request):
        report_type = request.query_params.get('type')
        reports = FinancialReport.objects.all().order_by('report_type', '-period_label')
        if report_type:
            reports = reports.filter(report_type=report_type.upper())
        return Response(FinancialReportSerializer(reports, many=True).data)

    @action(detail=False, methods=['post'], permission_classes=[IsAdminRole])
    def recalculate(self, request):
        rows = recalculate_financial_reports()
        return Response({'success': True, 'rows': rows})

    @action(detail=False, methods=['get'])
    def export(self, request):
        return export_to_csv(
            self.filter_queryset(self.get_queryset()),
            'invoices',
            ['id', 'source', 'patient.full_name', 'total_amount', 'status', 'created_at', 'paid_at'],
            headers=['Invoice', 'Source', 'Patient', 'Total', 'Status', 'Generated', 'Paid At'],
        )


class ExpenseViewSet(viewsets.ReadOnlyModelViewSet):
    queryset = Expense.objects.all().order_by('-incurred_at')
    serializer_class = ExpenseSerializer
    permission_classes = [IsAdminRole]
    filter_backends = [DjangoFilterBackend]
    filterset_fields = ['category']
