from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import RegisterView, UserProfileView, UserViewSet, DepartmentViewSet, DoctorViewSet

router = DefaultRouter()
router.register('management', UserViewSet, basename='user-management')
router.register('departments', DepartmentViewSet, basename='departments')
router.register('doctors', DoctorViewSet, basename='doctors')

urlpatterns = [
    path('', include(router.urls)),
    path('register/', RegisterView.as_view(), name='register'),
    path('me/', UserProfileView.as_view(), name='profile'),
]
