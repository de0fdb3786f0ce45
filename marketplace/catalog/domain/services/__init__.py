from .listing_store import ListingStore


__all__ = ["ListingStore"]
