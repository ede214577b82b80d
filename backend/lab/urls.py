from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import MedicalTestViewSet, TestOrderViewSet

router = DefaultRouter()
router.register('tests', MedicalTestViewSet, basename='lab-tests')
router.register('orders', TestOrderViewSet, basename='lab-orders')

urlpatterns = [
    path('', include(router.urls)),
]
