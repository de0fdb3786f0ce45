from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .api.views import AuctionViewSet, prometheus_metrics


router = DefaultRouter()
router.register(r"listings", AuctionViewSet, basename="auction")

app_name = "auctions"

urlpatterns = [
    path("metrics/", prometheus_metrics, name="auctions-metrics"),
    path("", include(router.urls)),
]
