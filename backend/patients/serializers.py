from django.utils import timezone
from rest_framework import serializers

from .models import Patient


class PatientSerializer(serializers.ModelSerializer):
    age = serializers.SerializerMethodField()

    class Meta:
        model = Patient
        fields = [
            'id', 'full_name', 'date_of_birth', 'age', 'gender', 'phone', 'email', 'address',
            'blood_group', 'emergency_contact_name', 'emergency_contact_phone',
            'medical_history_summary', 'created_at', 'updated_at'
        ]
        read_only_fields = ['id', 'created_at', 'updated_at']

    def get_age(self, obj):
        if not obj.date_of_birth:
            return None
        today = timezone.localdate()
        born = obj.date_of_birth
        return today.year - born.year - ((today.month, today.day) < (born.month, born.day))

    def validate_phone(self, value):
        cleaned = value.strip().replace(' ', '').replace('-', '')
        if cleaned.startswith('+880'):
            cleaned = '0' + cleaned[4:]
        if not cleaned.isdigit() or not 8 <= len(cleaned) <= 15:
            raise serializers.ValidationError("Enter a phone number of 8 to 15 digits.")
        return cleaned
