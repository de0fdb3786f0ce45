from prometheus_client import Counter


# Delivery Metrics
deliveries_created_total = Counter("marketplace_deliveries_created_total", "Deliveries created for paid sales")
delivery_status_changes_total = Counter(
    "marketplace_delivery_status_changes_total", "Delivery status transitions", ["status"]
)

# Listing Metrics
listings_closed_total = Counter("marketplace_listings_closed_total", "Listings closed by a sale or cancellation")
