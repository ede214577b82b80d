from rest_framework import viewsets, filters, status
from rest_framework.decorators import action
from rest_framework.response import Response

from careconnect_cms.utils import export_to_csv
from core.permissions import IsHospitalStaff
from .models import Patient
from .serializers import PatientSerializer
from .services import find_or_register_patient, patient_history


class PatientViewSet(viewsets.ModelViewSet):
    """
    Patient registry for the front desk. ``register`` is the walk-in path:
    a known phone number returns the existing record instead of failing.
    """
    queryset = Patient.objects.all().order_by('-created_at')
    serializer_class = PatientSerializer
    permission_classes = [IsHospitalStaff]
    filter_backends = [filters.SearchFilter, filters.OrderingFilter]
    search_fields = ['full_name', 'phone', 'email']
    ordering_fields = ['full_name', 'created_at']

    @action(detail=False, methods=['get'], url_path='export')
    def export_csv(self, request):
        return export_to_csv(
            self.filter_queryset(self.get_queryset()),
            "patients",
            ['full_name', 'gender', 'phone', 'blood_group', 'created_at'],
            headers=['Name', 'Gender', 'Phone', 'Blood Group', 'Registered'],
        )

    @action(detail=False, methods=['post'])
    def register(self, request):
        patient, created = find_or_register_patient(request.data)
        return Response(
            {'created': created, **PatientSerializer(patient).data},
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        )

    @action(detail=True, methods=['get'])
    def history(self, request, pk=None):
        return Response(patient_history(self.get_object()))
