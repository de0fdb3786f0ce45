from prometheus_client import Counter, Histogram


bids_placed_total = Counter("bids_placed_total", "Bids accepted into an auction ledger")
bids_rejected_total = Counter("bids_rejected_total", "Bids rejected by validation or state", ["reason"])
bids_withdrawn_total = Counter("bids_withdrawn_total", "Bids withdrawn by their bidder")
auctions_closed_total = Counter("auctions_closed_total", "Auction ledgers closed", ["reason"])
bid_amount = Histogram(
    "auction_bid_amount",
    "Accepted bid amount distribution",
    buckets=[10, 50, 100, 200, 500, 1000, 2000, 5000, float("inf")],
)
