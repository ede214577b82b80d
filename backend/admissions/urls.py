from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import RoomViewSet, AdmissionViewSet

router = DefaultRouter()
router.register('rooms', RoomViewSet, basename='rooms')
router.register('admissions', AdmissionViewSet, basename='admissions')

urlpatterns = [
    path('', include(router.urls)),
]
