from django.contrib import admin
from .models import Room, Admission


@admin.register(Room)
class RoomAdmin(admin.ModelAdmin):
    list_display = ('room_number', 'category', 'charge_per_day', 'is_available', 'current_doctor')
    list_filter = ('category', 'is_available')
    search_fields = ('room_number',)


@admin.register(Admission)
class AdmissionAdmin(admin.ModelAdmin):
    list_display = ('patient', 'room', 'status', 'payment_status', 'admitted_at', 'discharged_at')
    list_filter = ('status', 'payment_status')
