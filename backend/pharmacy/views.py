from django.db import models
from rest_framework import viewsets, filters, status
from rest_framework.decorators import action
from rest_framework.response import Response

from core.context import AuthContext
from core.permissions import IsAdminRole, IsPharmacyOrAdmin
from core.results import run_workflow
from .models import Medicine, PharmacyOrder
from .serializers import (
    MedicineSerializer, PharmacyOrderSerializer, PharmacySaleSerializer, RestockSerializer
)
from .services import create_pharmacy_sale, restock_medicine


class MedicineViewSet(viewsets.ModelViewSet):
    queryset = Medicine.objects.all()
    serializer_class = MedicineSerializer
    permission_classes = [IsPharmacyOrAdmin]
    filter_backends = [filters.SearchFilter, filters.OrderingFilter]
    search_fields = ['name', 'generic_name', 'manufacturer']
    ordering_fields = ['name', 'stock_quantity', 'updated_at']
    ordering = ['name']

    @action(detail=False, methods=['get'], url_path='low-stock')
    def low_stock(self, request):
        qs = self.get_queryset().filter(stock_quantity__lte=models.F('reorder_level')).order_by('stock_quantity')
        return Response(self.get_serializer(qs, many=True).data)

    @action(detail=True, methods=['post'])
    def restock(self, request, pk=None):
        serializer = RestockSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        result = run_workflow(
            restock_medicine, pk, data['quantity'], data['unit_cost'],
            recorded_by=request.user.get_username(),
        )
        return result.to_response(success_status=status.HTTP_201_CREATED)


class PharmacyOrderViewSet(viewsets.ReadOnlyModelViewSet):
    queryset = PharmacyOrder.objects.select_related('patient').prefetch_related('items__medicine').all()
    serializer_class = PharmacyOrderSerializer
    permission_classes = [IsPharmacyOrAdmin]
    filterset_fields = ['status', 'patient']

    @action(detail=False, methods=['post'])
    def sale(self, request):
        serializer = PharmacySaleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        result = run_workflow(
            create_pharmacy_sale,
            AuthContext.from_request(request),
            data['patient'],
            [dict(line) for line in data['items']],
        )
        return result.to_response(success_status=status.HTTP_201_CREATED)
