from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.response import Response

from core.context import AuthContext
from core.permissions import IsAdminRole, IsHospitalStaff, IsReceptionOrAdmin
from core.results import run_workflow
from .models import Room, Admission
from .serializers import RoomSerializer, AdmissionSerializer, AdmitPatientSerializer
from .services import admit_patient, available_rooms, discharge_patient, room_availability_stats


class RoomViewSet(viewsets.ModelViewSet):
    queryset = Room.objects.select_related('current_doctor__user').all()
    serializer_class = RoomSerializer
    filterset_fields = ['category', 'is_available']

    def get_permissions(self):
        if self.action in ('list', 'retrieve', 'available', 'stats'):
            return [IsHospitalStaff()]
        return [IsAdminRole()]

    @action(detail=False, methods=['get'])
    def available(self, request):
        return Response(available_rooms(request.query_params.get('category')))

    @action(detail=False, methods=['get'])
    def stats(self, request):
        return Response(room_availability_stats())


class AdmissionViewSet(viewsets.ReadOnlyModelViewSet):
    queryset = Admission.objects.select_related('patient', 'room').all()
    serializer_class = AdmissionSerializer
    permission_classes = [IsHospitalStaff]
    filterset_fields = ['status', 'payment_status', 'patient']

    @action(detail=False, methods=['post'], permission_classes=[IsReceptionOrAdmin])
    def admit(self, request):
        serializer = AdmitPatientSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        result = run_workflow(
            admit_patient,
            AuthContext.from_request(request),
            data['patient'],
            data['room_category'],
            data['nights'],
        )
        return result.to_response(success_status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['post'], permission_classes=[IsReceptionOrAdmin])
    def discharge(self, request, pk=None):
        return run_workflow(discharge_patient, pk).to_response()
