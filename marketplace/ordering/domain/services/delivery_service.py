"""
DeliveryService - fulfilment records for paid auctions.

Deliveries are minted by payment reconciliation and afterwards move forward
through pending -> shipped -> out_for_delivery -> delivered.
"""

import uuid
from datetime import timedelta

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from infrastructure.observability import tracer
from marketplace.domain.events import DeliveryStatusChangedEvent
from marketplace.infra.observability.metrics import deliveries_created_total, delivery_status_changes_total
from marketplace.ordering.domain.models import Delivery, DeliveryStatusHistory
from marketplace.services.base import BaseService, ErrorCodes, ServiceResult, service_err, service_ok
from utils.transaction_utils import retry_on_deadlock


def generate_tracking_number() -> str:
    prefix = getattr(settings, "PAYMENTS", {}).get("TRACKING_PREFIX", "TRK")
    return f"{prefix}-{uuid.uuid4().hex[:12].upper()}"


class DeliveryService(BaseService):
    def __init__(self, event_bus=None):
        super().__init__()
        self.event_bus = event_bus

    def create_for_sale(self, listing, seller, buyer, notes: str = "") -> Delivery:
        """
        Return the delivery for ``listing``, creating it when missing.

        Runs inside the caller's transaction; the one-to-one listing column
        backs the at-most-one guarantee.
        """
        existing = Delivery.objects.filter(listing=listing).first()
        if existing is not None:
            return existing

        sla_days = getattr(settings, "PAYMENTS", {}).get("DELIVERY_SLA_DAYS", 7)
        delivery = Delivery.objects.create(
            listing=listing,
            seller=seller,
            buyer=buyer,
            tracking_number=generate_tracking_number(),
            expected_delivery_date=timezone.now() + timedelta(days=sla_days),
            delivery_notes=notes,
        )
        DeliveryStatusHistory.objects.create(delivery=delivery, status="pending", notes="Delivery created")
        deliveries_created_total.inc()
        self.logger.info(f"Delivery {delivery.tracking_number} created for listing {listing.pk}")
        return delivery

    def _queryset_for(self, user):
        return Delivery.objects.select_related("listing", "seller", "buyer", "delivery_partner").filter(
            Q(seller=user) | Q(buyer=user) | Q(delivery_partner=user)
        )

    @BaseService.log_performance
    def list_for_user(self, user) -> ServiceResult[list]:
        deliveries = list(self._queryset_for(user).prefetch_related("status_history"))
        return service_ok(deliveries)

    @BaseService.log_performance
    def get_for_user(self, delivery_id, user) -> ServiceResult[Delivery]:
        try:
            delivery = Delivery.objects.select_related("listing", "seller", "buyer", "delivery_partner").get(
                pk=delivery_id
            )
        except (Delivery.DoesNotExist, ValidationError, ValueError):
            return service_err(ErrorCodes.DELIVERY_NOT_FOUND, f"Delivery {delivery_id} not found")

        if user.pk not in (delivery.seller_id, delivery.buyer_id, delivery.delivery_partner_id):
            return service_err(ErrorCodes.FORBIDDEN, "Only the buyer, seller or delivery partner can view this delivery")
        return service_ok(delivery)

    @BaseService.log_performance
    def update_status(self, delivery_id, actor, new_status: str, notes: str = "") -> ServiceResult[Delivery]:
        """
        Move a delivery forward. Allowed for the seller and the assigned delivery partner.
        """
        with tracer.start_as_current_span("delivery_update_status") as span:
            span.set_attribute("delivery.id", str(delivery_id))
            span.set_attribute("delivery.new_status", new_status)
            result, old_status = self._update_status_locked(delivery_id, actor, new_status, notes)

        if result.ok:
            delivery_status_changes_total.labels(status=new_status).inc()
            DeliveryStatusChangedEvent(
                delivery_id=str(result.value.pk),
                old_status=old_status,
                new_status=new_status,
                updated_by=str(actor.pk),
            ).publish_to(self.event_bus)
        return result

    @retry_on_deadlock()
    def _update_status_locked(self, delivery_id, actor, new_status, notes):
        with transaction.atomic():
            try:
                delivery = Delivery.objects.select_for_update().get(pk=delivery_id)
            except (Delivery.DoesNotExist, ValidationError, ValueError):
                return service_err(ErrorCodes.DELIVERY_NOT_FOUND, f"Delivery {delivery_id} not found"), None

            if actor.pk not in (delivery.seller_id, delivery.delivery_partner_id):
                return (
                    service_err(ErrorCodes.FORBIDDEN, "Only the seller or delivery partner can update delivery status"),
                    None,
                )

            if not delivery.can_transition_to(new_status):
                return (
                    service_err(
                        ErrorCodes.INVALID_STATUS_TRANSITION,
                        f"Cannot move delivery from '{delivery.status}' to '{new_status}'",
                    ),
                    None,
                )

            old_status = delivery.status
            delivery.status = new_status
            update_fields = ["status", "updated_at"]
            if new_status == "delivered":
                delivery.delivered_at = timezone.now()
                update_fields.append("delivered_at")
            delivery.save(update_fields=update_fields)

            DeliveryStatusHistory.objects.create(
                delivery=delivery,
                status=new_status,
                notes=notes or f"Status updated to {new_status}",
                updated_by=actor,
            )

        self.logger.info(f"Delivery {delivery.tracking_number}: {old_status} -> {new_status}")
        return service_ok(delivery), old_status
