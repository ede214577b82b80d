from django.contrib import admin
from django.contrib.auth.admin import UserAdmin
from .models import User, Department, Doctor


@admin.register(User)
class StaffUserAdmin(UserAdmin):
    list_display = ('username', 'email', 'role', 'is_active')
    list_filter = ('role', 'is_active')
    fieldsets = UserAdmin.fieldsets + (('Hospital', {'fields': ('role', 'phone', 'gender', 'address')}),)


@admin.register(Department)
class DepartmentAdmin(admin.ModelAdmin):
    list_display = ('name',)


@admin.register(Doctor)
class DoctorAdmin(admin.ModelAdmin):
    list_display = ('user', 'department', 'specialization', 'license_number', 'consultation_fee', 'is_active')
    list_filter = ('department', 'is_active')
    search_fields = ('user__first_name', 'user__last_name', 'license_number')
