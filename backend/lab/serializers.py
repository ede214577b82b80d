from rest_framework import serializers
from .models import MedicalTest, TestOrder


class MedicalTestSerializer(serializers.ModelSerializer):
    lab_room_number = serializers.CharField(source='lab_room.room_number', read_only=True, default=None)

    class Meta:
        model = MedicalTest
        fields = ['id', 'test_name', 'cost', 'duration_minutes', 'lab_room', 'lab_room_number', 'is_active']


class TestOrderSerializer(serializers.ModelSerializer):
    patient_name = serializers.CharField(source='patient.full_name', read_only=True)
    test_name = serializers.CharField(source='test.test_name', read_only=True)
    doctor_name = serializers.CharField(source='doctor.full_name', read_only=True, default=None)

    class Meta:
        model = TestOrder
        fields = [
            'id', 'patient', 'patient_name', 'test', 'test_name', 'doctor', 'doctor_name',
            'status', 'payment_status', 'scheduled_date', 'scheduled_end_time',
            'result_summary', 'completed_at', 'created_at'
        ]
        read_only_fields = fields


class BookTestSerializer(serializers.Serializer):
    patient = serializers.UUIDField()
    test = serializers.UUIDField()
    doctor = serializers.UUIDField(required=False, allow_null=True, default=None)
    process_payment = serializers.BooleanField(default=False)
    scheduled_date = serializers.DateTimeField(required=False, allow_null=True, default=None)
    payment_method = serializers.ChoiceField(choices=['CASH', 'CARD', 'UPI', 'ONLINE'], default='CASH')


class ScheduleTestSerializer(serializers.Serializer):
    scheduled_date = serializers.DateTimeField()


class TestResultSerializer(serializers.Serializer):
    result_summary = serializers.CharField()
