from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .ordering.api.views.delivery_views import DeliveryViewSet


router = DefaultRouter()
router.register(r"deliveries", DeliveryViewSet, basename="delivery")

app_name = "marketplace"

urlpatterns = [
    path("", include(router.urls)),
]
