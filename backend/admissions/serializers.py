from django.conf import settings
from rest_framework import serializers
from .models import Room, Admission


class RoomSerializer(serializers.ModelSerializer):
    category_display = serializers.CharField(source='get_category_display', read_only=True)
    current_doctor_name = serializers.CharField(source='current_doctor.full_name', read_only=True, default=None)

    class Meta:
        model = Room
        fields = [
            'id', 'room_number', 'category', 'category_display', 'charge_per_day',
            'is_available', 'current_doctor', 'current_doctor_name'
        ]


class AdmissionSerializer(serializers.ModelSerializer):
    patient_name = serializers.CharField(source='patient.full_name', read_only=True)
    room_number = serializers.CharField(source='room.room_number', read_only=True)
    room_category = serializers.CharField(source='room.get_category_display', read_only=True)

    class Meta:
        model = Admission
        fields = [
            'id', 'patient', 'patient_name', 'room', 'room_number', 'room_category',
            'status', 'payment_status', 'nights', 'admitted_at', 'discharged_at'
        ]
        read_only_fields = fields


class AdmitPatientSerializer(serializers.Serializer):
    patient = serializers.UUIDField()
    room_category = serializers.CharField()
    nights = serializers.IntegerField(min_value=1, default=1)

    def validate_room_category(self, value):
        if value not in settings.ADMISSION_ROOM_CATEGORIES:
            raise serializers.ValidationError(
                f"Choose one of: {', '.join(settings.ADMISSION_ROOM_CATEGORIES)}"
            )
        return value
