from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password
from rest_framework import serializers
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer

from .models import Department, Doctor

User = get_user_model()


class RoleTokenObtainPairSerializer(TokenObtainPairSerializer):
    """
    Credential check for the login desk. The response carries the role so the
    client can route to the right dashboard; workflows re-read it from the user.
    """

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token['role'] = user.role
        return token

    def validate(self, attrs):
        data = super().validate(attrs)
        data['valid'] = True
        data['user_id'] = str(self.user.id)
        data['role'] = self.user.role
        return data


class UserSerializer(serializers.ModelSerializer):
    u_id = serializers.UUIDField(source='id', read_only=True)
    password = serializers.CharField(write_only=True, required=False)

    class Meta:
        model = User
        fields = ['id', 'u_id', 'username', 'email', 'first_name', 'last_name', 'role', 'phone', 'is_active', 'date_joined', 'password']
        read_only_fields = ['id', 'u_id', 'date_joined']


class RegisterSerializer(serializers.ModelSerializer):
    password = serializers.CharField(write_only=True)
    u_id = serializers.UUIDField(source='id', read_only=True)

    class Meta:
        model = User
        fields = ['u_id', 'username', 'password']   # role removed from public registration
        read_only_fields = ['u_id']

    def validate_password(self, value):
        validate_password(value)
        return value

    def create(self, validated_data):
        user = User.objects.create_user(
            username=validated_data['username'],
            password=validated_data['password'],
            role='RECEPTION'  # force safe default role
        )
        return user


class DepartmentSerializer(serializers.ModelSerializer):
    class Meta:
        model = Department
        fields = ['id', 'name', 'description']


class DoctorSerializer(serializers.ModelSerializer):
    name = serializers.CharField(source='full_name', read_only=True)
    email = serializers.EmailField(source='user.email', read_only=True)
    department_name = serializers.CharField(source='department.name', read_only=True, default=None)
    schedules = serializers.SerializerMethodField()

    class Meta:
        model = Doctor
        fields = [
            'id', 'name', 'email', 'department', 'department_name', 'specialization',
            'license_number', 'consultation_fee', 'joining_date', 'is_active', 'schedules'
        ]

    def get_schedules(self, obj):
        return [
            {
                'day': s.get_day_of_week_display(),
                'start': s.start_time,
                'end': s.end_time,
                'max_patients': s.max_patients,
            }
            for s in obj.schedules.all()
        ]


class DoctorRegistrationSerializer(serializers.Serializer):
    email = serializers.EmailField()
    first_name = serializers.CharField(max_length=150)
    last_name = serializers.CharField(max_length=150)
    phone = serializers.CharField(max_length=20, required=False, allow_blank=True, default='')
    gender = serializers.CharField(max_length=10, required=False, allow_blank=True, default='')
    address = serializers.CharField(required=False, allow_blank=True, default='')
    department = serializers.UUIDField(required=False, allow_null=True, default=None)
    specialization = serializers.CharField(max_length=100)
    license_number = serializers.CharField(max_length=50)
    consultation_fee = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0)
    joining_date = serializers.DateField(required=False, allow_null=True, default=None)
    room_number = serializers.CharField(max_length=20, required=False, allow_blank=True, allow_null=True, default=None)
