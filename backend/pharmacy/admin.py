from django.contrib import admin
from .models import Medicine, PharmacyOrder, PharmacyOrderItem


@admin.register(Medicine)
class MedicineAdmin(admin.ModelAdmin):
    list_display = ('name', 'stock_quantity', 'unit_price', 'reorder_level')
    search_fields = ('name', 'generic_name')
    readonly_fields = ('stock_quantity',)


class PharmacyOrderItemInline(admin.TabularInline):
    model = PharmacyOrderItem
    extra = 0
    readonly_fields = ('medicine', 'quantity', 'unit_price')


@admin.register(PharmacyOrder)
class PharmacyOrderAdmin(admin.ModelAdmin):
    list_display = ('id', 'patient', 'total_amount', 'status', 'created_at')
    list_filter = ('status',)
    inlines = [PharmacyOrderItemInline]
