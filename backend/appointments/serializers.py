from rest_framework import serializers
from .models import DoctorSchedule, Appointment


class DoctorScheduleSerializer(serializers.ModelSerializer):
    day_name = serializers.CharField(source='get_day_of_week_display', read_only=True)

    class Meta:
        model = DoctorSchedule
        fields = ['id', 'doctor', 'day_of_week', 'day_name', 'start_time', 'end_time', 'max_patients', 'slot_minutes']


class AppointmentSerializer(serializers.ModelSerializer):
    patient_name = serializers.CharField(source='patient.full_name', read_only=True)
    doctor_name = serializers.CharField(source='doctor.full_name', read_only=True)
    department = serializers.CharField(source='doctor.department.name', read_only=True, default=None)
    status_display = serializers.CharField(source='get_status_display', read_only=True)

    class Meta:
        model = Appointment
        fields = [
            'id', 'patient', 'patient_name', 'doctor', 'doctor_name', 'department',
            'appointment_date', 'reason', 'status', 'status_display', 'created_at'
        ]
        read_only_fields = fields


class BookAppointmentSerializer(serializers.Serializer):
    patient = serializers.UUIDField()
    doctor = serializers.UUIDField()
    appointment_date = serializers.DateTimeField()
    reason = serializers.CharField(required=False, allow_blank=True, default='')


class AvailabilityQuerySerializer(serializers.Serializer):
    doctor = serializers.UUIDField()
    date = serializers.DateTimeField()


class SlotQuerySerializer(serializers.Serializer):
    doctor = serializers.UUIDField()
    date = serializers.DateField()
