from django.urls import path, include
from rest_framework.routers import SimpleRouter
from .views import AppointmentViewSet, DoctorScheduleViewSet

router = SimpleRouter()
router.register('schedules', DoctorScheduleViewSet, basename='schedules')
router.register('', AppointmentViewSet, basename='appointments')

urlpatterns = [
    path('', include(router.urls)),
]
