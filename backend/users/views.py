from rest_framework import generics, permissions, viewsets, filters, status
from rest_framework.decorators import action
from rest_framework.response import Response
from django_filters.rest_framework import DjangoFilterBackend
from django.contrib.auth import get_user_model

from core.permissions import IsAdminRole
from core.results import run_workflow
from .models import Department, Doctor
from .serializers import (
    UserSerializer, RegisterSerializer, DepartmentSerializer,
    DoctorSerializer, DoctorRegistrationSerializer
)
from .services import register_doctor, registration_from_data

User = get_user_model()


class RegisterView(generics.CreateAPIView):
    queryset = User.objects.all()
    permission_classes = [permissions.AllowAny]
    serializer_class = RegisterSerializer


class UserProfileView(generics.RetrieveUpdateAPIView):
    permission_classes = [permissions.IsAuthenticated]
    serializer_class = UserSerializer

    def get_object(self):
        return self.request.user


class UserViewSet(viewsets.ModelViewSet):
    """
    CRUD for Admins to manage all hospital staff.
    """
    queryset = User.objects.all().order_by('-date_joined')
    serializer_class = UserSerializer
    permission_classes = [IsAdminRole]
    filter_backends = [filters.SearchFilter]
    search_fields = ['username', 'email', 'role']

    def perform_create(self, serializer):
        password = serializer.validated_data.pop('password', None)
        user = serializer.save()
        if password:
            user.set_password(password)
            user.save()

    def perform_update(self, serializer):
        password = serializer.validated_data.pop('password', None)
        user = serializer.save()
        if password:
            user.set_password(password)
            user.save()


class DepartmentViewSet(viewsets.ReadOnlyModelViewSet):
    queryset = Department.objects.all().order_by('name')
    serializer_class = DepartmentSerializer
    pagination_class = None


class DoctorViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Doctors with their weekly schedules. New doctors go through ``onboard``
    so the license check runs.
    """
    queryset = Doctor.objects.filter(is_active=True).select_related('user', 'department').prefetch_related('schedules').order_by('user__first_name')
    serializer_class = DoctorSerializer
    filter_backends = [DjangoFilterBackend, filters.SearchFilter]
    search_fields = ['user__first_name', 'user__last_name', 'specialization']
    filterset_fields = ['department']

    @action(detail=False, methods=['post'], permission_classes=[IsAdminRole])
    def onboard(self, request):
        serializer = DoctorRegistrationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = run_workflow(register_doctor, registration_from_data(serializer.validated_data))
        return result.to_response(success_status=status.HTTP_201_CREATED)
