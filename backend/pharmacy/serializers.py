from rest_framework import serializers
from .models import Medicine, PharmacyOrder, PharmacyOrderItem


class MedicineSerializer(serializers.ModelSerializer):
    is_low_stock = serializers.BooleanField(read_only=True)

    class Meta:
        model = Medicine
        fields = [
            'id', 'name', 'generic_name', 'manufacturer', 'stock_quantity',
            'unit_price', 'reorder_level', 'is_low_stock', 'updated_at'
        ]
        # Stock moves only through sales and restocks.
        read_only_fields = ['stock_quantity', 'updated_at']


class PharmacyOrderItemSerializer(serializers.ModelSerializer):
    medicine_name = serializers.CharField(source='medicine.name', read_only=True)
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = PharmacyOrderItem
        fields = ['id', 'medicine', 'medicine_name', 'quantity', 'unit_price', 'amount']


class PharmacyOrderSerializer(serializers.ModelSerializer):
    patient_name = serializers.CharField(source='patient.full_name', read_only=True)
    items = PharmacyOrderItemSerializer(many=True, read_only=True)

    class Meta:
        model = PharmacyOrder
        fields = ['id', 'patient', 'patient_name', 'total_amount', 'status', 'items', 'created_at']
        read_only_fields = fields


class SaleLineSerializer(serializers.Serializer):
    medicine_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1)


class PharmacySaleSerializer(serializers.Serializer):
    patient = serializers.UUIDField()
    items = SaleLineSerializer(many=True, allow_empty=False)


class RestockSerializer(serializers.Serializer):
    quantity = serializers.IntegerField(min_value=1)
    unit_cost = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0)
