from decimal import Decimal

from rest_framework import serializers
from .models import Invoice, InvoiceItem, Payment, Expense, FinancialReport


class InvoiceItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = InvoiceItem
        fields = ['id', 'description', 'quantity', 'unit_price', 'amount']


class PaymentSerializer(serializers.ModelSerializer):
    class Meta:
        model = Payment
        fields = ['id', 'amount', 'applied_amount', 'method', 'paid_at', 'remarks']


class InvoiceSerializer(serializers.ModelSerializer):
    items = InvoiceItemSerializer(many=True, read_only=True)
    payments = PaymentSerializer(many=True, read_only=True)
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    source = serializers.CharField(read_only=True)
    patient_display = serializers.SerializerMethodField()
    patient_id = serializers.SerializerMethodField()

    class Meta:
        model = Invoice
        fields = [
            'id', 'total_amount', 'status', 'status_display', 'source', 'paid_at', 'created_at',
            'appointment', 'admission', 'test_order', 'pharmacy_order',
            'patient_display', 'patient_id', 'items', 'payments',
        ]
        read_only_fields = fields

    def get_patient_display(self, obj):
        patient = obj.patient
        return patient.full_name if patient else "Walk-in Patient"

    def get_patient_id(self, obj):
        patient = obj.patient
        return patient.id if patient else None


class AddPaymentSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0.01'))
    method = serializers.ChoiceField(choices=Payment.METHOD_CHOICES)
    remarks = serializers.CharField(required=False, allow_blank=True, default='')


class ExpenseSerializer(serializers.ModelSerializer):
    class Meta:
        model = Expense
        fields = '__all__'


class FinancialReportSerializer(serializers.ModelSerializer):
    class Meta:
        model = FinancialReport
        fields = ['report_type', 'period_label', 'total_revenue', 'last_updated']
