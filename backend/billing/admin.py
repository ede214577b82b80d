from django.contrib import admin
from .models import Invoice, InvoiceItem, Payment, Expense, FinancialReport


class InvoiceItemInline(admin.TabularInline):
    model = InvoiceItem
    extra = 0
    readonly_fields = ('description', 'quantity', 'unit_price', 'amount')


class PaymentInline(admin.TabularInline):
    model = Payment
    extra = 0
    readonly_fields = ('amount', 'applied_amount', 'method', 'paid_at', 'remarks')


@admin.register(Invoice)
class InvoiceAdmin(admin.ModelAdmin):
    list_display = ('id', 'source', 'total_amount', 'status', 'paid_at', 'created_at')
    list_filter = ('status', 'created_at')
    inlines = [InvoiceItemInline, PaymentInline]


@admin.register(Expense)
class ExpenseAdmin(admin.ModelAdmin):
    list_display = ('category', 'description', 'amount', 'incurred_at')
    list_filter = ('category',)


@admin.register(FinancialReport)
class FinancialReportAdmin(admin.ModelAdmin):
    list_display = ('report_type', 'period_label', 'total_revenue', 'last_updated')
    list_filter = ('report_type',)
