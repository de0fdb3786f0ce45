"""
ListingStore - the auction core's view of the listing record.

Reads listings and applies the one mutation the negotiation flow is allowed
to make: closing a listing with its buyer and final price.
"""

import logging
from typing import Optional

from django.core.exceptions import ValidationError
from django.utils import timezone

from marketplace.catalog.domain.models import Listing
from marketplace.infra.observability.metrics import listings_closed_total


logger = logging.getLogger(__name__)


class ListingStore:
    def get(self, listing_id) -> Optional[Listing]:
        try:
            return Listing.objects.select_related("seller").get(pk=listing_id)
        except (Listing.DoesNotExist, ValidationError, ValueError):
            return None

    def get_for_update(self, listing_id) -> Optional[Listing]:
        """Lock and return the listing row. Must be called inside transaction.atomic()."""
        try:
            return Listing.objects.select_for_update().get(pk=listing_id)
        except (Listing.DoesNotExist, ValidationError, ValueError):
            return None

    def set_closed(self, listing_id, buyer=None, final_price=None, updated_by=None) -> bool:
        """
        Mark the listing closed.

        ``buyer`` and ``final_price`` are left untouched when None, so a seller
        cancellation does not invent a buyer.
        """
        fields = {"status": "closed", "closed_at": timezone.now(), "updated_at": timezone.now()}
        if buyer is not None:
            fields["buyer"] = buyer
        if final_price is not None:
            fields["final_price"] = final_price
        if updated_by is not None:
            fields["status_updated_by"] = updated_by

        updated = Listing.objects.filter(pk=listing_id).update(**fields)
        if updated:
            listings_closed_total.inc()
            logger.info(f"Listing {listing_id} closed (buyer={getattr(buyer, 'pk', None)}, final_price={final_price})")
        else:
            logger.warning(f"Listing {listing_id} not found while closing")
        return bool(updated)
