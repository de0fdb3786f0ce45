"""
URL configuration for bidmarketBackend project.
"""

from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView


urlpatterns = [
    path("admin/", admin.site.urls),
    # API Documentation
    path("api/schema/", SpectacularAPIView.as_view(), name="schema"),
    path("api/docs/", SpectacularSwaggerView.as_view(url_name="schema"), name="swagger-ui"),
    # API endpoints
    path("api/marketplace/", include("marketplace.urls")),
    path("api/auctions/", include("auctions.urls", namespace="auctions")),
    path("api/payments/", include("payment_system.urls", namespace="payment_system")),
]
