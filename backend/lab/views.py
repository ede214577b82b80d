from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.response import Response

from core.context import AuthContext
from core.permissions import IsAdminRole, IsLabOrAdmin
from core.results import run_workflow
from .models import MedicalTest, TestOrder
from .serializers import (
    MedicalTestSerializer, TestOrderSerializer, BookTestSerializer,
    ScheduleTestSerializer, TestResultSerializer
)
from .services import (
    available_tests, book_test, list_test_orders, reconcile_elapsed_tests,
    record_test_result, schedule_test
)


class MedicalTestViewSet(viewsets.ModelViewSet):
    queryset = MedicalTest.objects.select_related('lab_room').all()
    serializer_class = MedicalTestSerializer

    def get_permissions(self):
        if self.action in ('list', 'retrieve', 'available'):
            return [IsLabOrAdmin()]
        return [IsAdminRole()]

    @action(detail=False, methods=['get'])
    def available(self, request):
        return Response(MedicalTestSerializer(available_tests(), many=True).data)


class TestOrderViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Listing test orders first completes any scheduled test whose window has
    elapsed, so the list never shows an overdue SCHEDULED order.
    """
    queryset = TestOrder.objects.select_related('patient', 'test', 'doctor__user').all()
    serializer_class = TestOrderSerializer
    permission_classes = [IsLabOrAdmin]
    pagination_class = None

    def list(self, request, *args, **kwargs):
        return Response(self.get_serializer(list_test_orders(), many=True).data)

    @action(detail=False, methods=['post'])
    def book(self, request):
        serializer = BookTestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        result = run_workflow(
            book_test,
            AuthContext.from_request(request),
            data['patient'],
            data['test'],
            doctor_id=data['doctor'],
            process_payment=data['process_payment'],
            scheduled_date=data['scheduled_date'],
            payment_method=data['payment_method'],
        )
        return result.to_response(success_status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['post'])
    def schedule(self, request, pk=None):
        serializer = ScheduleTestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return run_workflow(schedule_test, pk, serializer.validated_data['scheduled_date']).to_response()

    @action(detail=True, methods=['post'])
    def result(self, request, pk=None):
        serializer = TestResultSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return run_workflow(record_test_result, pk, serializer.validated_data['result_summary']).to_response()

    @action(detail=False, methods=['post'])
    def reconcile(self, request):
        return Response({'success': True, 'completed': reconcile_elapsed_tests()})
