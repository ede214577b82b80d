from django.contrib import admin
from .models import MedicalTest, TestOrder


@admin.register(MedicalTest)
class MedicalTestAdmin(admin.ModelAdmin):
    list_display = ('test_name', 'cost', 'duration_minutes', 'lab_room', 'is_active')
    search_fields = ('test_name',)


@admin.register(TestOrder)
class TestOrderAdmin(admin.ModelAdmin):
    list_display = ('test', 'patient', 'status', 'payment_status', 'scheduled_date', 'scheduled_end_time')
    list_filter = ('status', 'payment_status')
    search_fields = ('patient__full_name', 'test__test_name')
