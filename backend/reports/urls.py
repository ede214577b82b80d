from django.urls import path
from .views import RevenueReportView, FinancialSummaryView, DashboardStatsView

urlpatterns = [
    path('revenue/', RevenueReportView.as_view(), name='revenue-report'),
    path('financial-summary/', FinancialSummaryView.as_view(), name='financial-summary'),
    path('dashboard/', DashboardStatsView.as_view(), name='dashboard-stats'),
]
