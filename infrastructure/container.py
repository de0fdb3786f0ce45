"""
Dependency Injection Container
================================

Service locator for infrastructure handles and the domain services built on
them. Each external handle (payment provider, email sender, event bus) is
created once and shared by every service that needs it.

Usage:
    from infrastructure.container import container

    auction_service = container.auction_service()
    result = auction_service.place_bid(listing_id, request.user, amount)
"""

import logging
from typing import Optional

from .email import EmailFactory, EmailServiceInterface
from .events import EventBus, create_event_bus
from .payments import PaymentFactory, PaymentProviderInterface


logger = logging.getLogger(__name__)


class ServiceContainer:
    """
    Service container for infrastructure dependencies.

    Implements lazy initialization and caching of service instances.
    Singleton: every ``ServiceContainer()`` returns the same object.
    """

    _instance: Optional["ServiceContainer"] = None
    _initialized: bool = False

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if not self._initialized:
            self._clear()
            self._initialized = True
            logger.info("Service container initialized")

    def _clear(self):
        self._email: Optional[EmailServiceInterface] = None
        self._payment: Optional[PaymentProviderInterface] = None
        self._event_bus: Optional[EventBus] = None

        # Domain services
        self._listing_store = None
        self._identity_service = None
        self._auction_service = None
        self._negotiation_service = None
        self._delivery_service = None
        self._notification_service = None
        self._checkout_service = None
        self._reconciliation_service = None
        self._webhook_service = None
        self._transaction_service = None

    # ------------------------------------------------------------------
    # Infrastructure handles
    # ------------------------------------------------------------------

    def email(self, backend: Optional[str] = None) -> EmailServiceInterface:
        """
        Get email service instance.

        Args:
            backend: 'smtp' or 'mock'; None uses INFRASTRUCTURE['EMAIL_BACKEND_TYPE']
        """
        if self._email is None or backend is not None:
            self._email = EmailFactory.create(backend)
            logger.debug(f"Created email service: {type(self._email).__name__}")
        return self._email

    def payment(self, backend: Optional[str] = None) -> PaymentProviderInterface:
        """
        Get payment provider instance.

        Args:
            backend: 'stripe' or 'mock'; None uses INFRASTRUCTURE['PAYMENT_PROVIDER']
        """
        if self._payment is None or backend is not None:
            self._payment = PaymentFactory.create(backend)
            logger.debug(f"Created payment service: {type(self._payment).__name__}")
        return self._payment

    def event_bus(self, backend: Optional[str] = None) -> EventBus:
        if self._event_bus is None or backend is not None:
            self._event_bus = create_event_bus(backend)
            logger.debug(f"Created event bus: {type(self._event_bus).__name__}")
        return self._event_bus

    # ------------------------------------------------------------------
    # Domain services
    # ------------------------------------------------------------------

    def listing_store(self):
        if self._listing_store is None:
            from marketplace.catalog.domain.services import ListingStore

            self._listing_store = ListingStore()
        return self._listing_store

    def identity_service(self):
        if self._identity_service is None:
            from authentication.domain.services import IdentityLookupService

            self._identity_service = IdentityLookupService()
        return self._identity_service

    def auction_service(self):
        """Get AuctionService instance."""
        if self._auction_service is None:
            from auctions.domain.services import AuctionService

            self._auction_service = AuctionService(listing_store=self.listing_store(), event_bus=self.event_bus())
            logger.debug("Created AuctionService")
        return self._auction_service

    def negotiation_service(self):
        """Get NegotiationService instance."""
        if self._negotiation_service is None:
            from auctions.domain.services import NegotiationService

            self._negotiation_service = NegotiationService(
                listing_store=self.listing_store(), event_bus=self.event_bus()
            )
            logger.debug("Created NegotiationService")
        return self._negotiation_service

    def delivery_service(self):
        """Get DeliveryService instance."""
        if self._delivery_service is None:
            from marketplace.ordering.domain.services import DeliveryService

            self._delivery_service = DeliveryService(event_bus=self.event_bus())
            logger.debug("Created DeliveryService")
        return self._delivery_service

    def notification_service(self):
        if self._notification_service is None:
            from payment_system.domain.services import InvoiceNotificationService

            self._notification_service = InvoiceNotificationService(email_service=self.email())
        return self._notification_service

    def checkout_service(self):
        """Get CheckoutService instance."""
        if self._checkout_service is None:
            from payment_system.domain.services import CheckoutService

            self._checkout_service = CheckoutService(payment_provider=self.payment())
            logger.debug("Created CheckoutService")
        return self._checkout_service

    def reconciliation_service(self):
        """Get PaymentReconciliationService instance."""
        if self._reconciliation_service is None:
            from payment_system.domain.services import PaymentReconciliationService

            # Shares the provider, email sender and event bus with every other service
            self._reconciliation_service = PaymentReconciliationService(
                payment_provider=self.payment(),
                delivery_service=self.delivery_service(),
                notification_service=self.notification_service(),
                identity_service=self.identity_service(),
                listing_store=self.listing_store(),
                event_bus=self.event_bus(),
            )
            logger.debug("Created PaymentReconciliationService")
        return self._reconciliation_service

    def webhook_service(self):
        if self._webhook_service is None:
            from payment_system.domain.services import PaymentWebhookService

            self._webhook_service = PaymentWebhookService(
                payment_provider=self.payment(), reconciliation_service=self.reconciliation_service()
            )
        return self._webhook_service

    def transaction_service(self):
        if self._transaction_service is None:
            from payment_system.domain.services import TransactionService

            self._transaction_service = TransactionService()
        return self._transaction_service

    def reset(self):
        """
        Reset all cached service instances.

        Useful for testing or when switching between environments.
        """
        self._clear()
        logger.info("Service container reset")

    def configure_for_testing(self):
        """
        Configure container with in-process doubles for testing.

        Sets up:
            - Mock payment provider (sessions kept in memory)
            - Mock email service (instead of SMTP)
            - In-memory event bus (instead of Redis)
        """
        self.reset()
        self._email = EmailFactory.create("mock")
        self._payment = PaymentFactory.create("mock")
        self._event_bus = create_event_bus("memory")
        logger.info("Service container configured for testing")


# Global singleton instance
container = ServiceContainer()


def get_email() -> EmailServiceInterface:
    """Get email service from global container."""
    return container.email()


def get_payment_provider() -> PaymentProviderInterface:
    """Get payment provider from global container."""
    return container.payment()


def get_event_bus() -> EventBus:
    return container.event_bus()
