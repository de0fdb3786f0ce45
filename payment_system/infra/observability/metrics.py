from prometheus_client import Counter


payment_sessions_created_total = Counter(
    "payment_sessions_created_total", "Checkout sessions created for auction payments", ["outcome"]
)
payments_finalized_total = Counter(
    "payments_finalized_total", "Payment verification outcomes", ["outcome"]
)
payment_volume_total = Counter("payment_volume_total", "Total payment volume processed", ["currency"])
invoice_notifications_total = Counter(
    "invoice_notifications_total", "Invoice emails sent to buyers and sellers", ["result"]
)
records_repaired_total = Counter(
    "payment_records_repaired_total", "Transactions or deliveries created by the repair path", ["record"]
)
duplicate_captures_total = Counter(
    "payment_duplicate_captures_total", "Paid checkout sessions for ledgers that were already paid by another session"
)
