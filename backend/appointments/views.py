from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.response import Response

from core.context import AuthContext
from core.permissions import IsHospitalStaff, IsReceptionOrAdmin
from core.results import run_workflow
from users.serializers import DoctorSerializer
from .models import Appointment, DoctorSchedule
from .serializers import (
    AppointmentSerializer, DoctorScheduleSerializer, BookAppointmentSerializer,
    AvailabilityQuerySerializer, SlotQuerySerializer
)
from .services import (
    available_time_slots, book_appointment, check_doctor_availability,
    list_appointments, list_doctors_with_schedules
)


class AppointmentViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Appointments are read-only here; new ones go through ``book`` so the
    slot is re-checked and the invoice raised in the same transaction.
    """
    queryset = Appointment.objects.all()
    serializer_class = AppointmentSerializer
    permission_classes = [IsHospitalStaff]

    def get_queryset(self):
        scope = self.request.query_params.get('filter', 'all')
        if scope not in ('today', 'upcoming', 'all'):
            scope = 'all'
        return list_appointments(scope, doctor_id=self.request.query_params.get('doctor'))

    @action(detail=False, methods=['get'])
    def slots(self, request):
        query = SlotQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        slots = available_time_slots(query.validated_data['doctor'], query.validated_data['date'])
        return Response({'slots': slots})

    @action(detail=False, methods=['get'])
    def availability(self, request):
        query = AvailabilityQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        result = run_workflow(check_doctor_availability, query.validated_data['doctor'], query.validated_data['date'])
        return result.to_response()

    @action(detail=False, methods=['post'], permission_classes=[IsReceptionOrAdmin])
    def book(self, request):
        serializer = BookAppointmentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        result = run_workflow(
            book_appointment,
            AuthContext.from_request(request),
            data['patient'],
            data['doctor'],
            data['appointment_date'],
            data['reason'],
        )
        return result.to_response(success_status=status.HTTP_201_CREATED)

    @action(detail=False, methods=['get'])
    def doctors(self, request):
        return Response(DoctorSerializer(list_doctors_with_schedules(), many=True).data)


class DoctorScheduleViewSet(viewsets.ModelViewSet):
    queryset = DoctorSchedule.objects.select_related('doctor__user').all()
    serializer_class = DoctorScheduleSerializer
    permission_classes = [IsReceptionOrAdmin]
    filterset_fields = ['doctor', 'day_of_week']
