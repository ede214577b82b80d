from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import MedicineViewSet, PharmacyOrderViewSet

router = DefaultRouter()
router.register('medicines', MedicineViewSet, basename='medicines')
router.register('orders', PharmacyOrderViewSet, basename='pharmacy-orders')

urlpatterns = [
    path('', include(router.urls)),
]
