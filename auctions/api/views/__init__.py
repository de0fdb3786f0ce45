from .auction_views import AuctionViewSet
from .metrics_views import prometheus_metrics


__all__ = ["AuctionViewSet", "prometheus_metrics"]
