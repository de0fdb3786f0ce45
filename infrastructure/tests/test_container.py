"""
Service Container Tests
========================

Unit tests for dependency injection container.
"""

from django.test import SimpleTestCase, override_settings

from auctions.domain.services import AuctionService, NegotiationService
from infrastructure.container import ServiceContainer, container, get_email, get_event_bus, get_payment_provider
from infrastructure.email import MockEmailService, SMTPEmailService
from infrastructure.events import InMemoryEventBus
from infrastructure.payments import MockPaymentProvider, StripeProvider
from marketplace.ordering.domain.services import DeliveryService
from payment_system.domain.services import CheckoutService, PaymentReconciliationService, PaymentWebhookService


class ServiceContainerTest(SimpleTestCase):
    def setUp(self):
        container.configure_for_testing()

    def tearDown(self):
        container.reset()

    def test_container_is_singleton(self):
        self.assertIs(ServiceContainer(), ServiceContainer())
        self.assertIs(ServiceContainer(), container)

    def test_testing_configuration_uses_doubles(self):
        self.assertIsInstance(container.payment(), MockPaymentProvider)
        self.assertIsInstance(container.email(), MockEmailService)
        self.assertIsInstance(container.event_bus(), InMemoryEventBus)

    def test_module_helpers_return_cached_handles(self):
        self.assertIs(get_email(), container.email())
        self.assertIs(get_payment_provider(), container.payment())
        self.assertIs(get_event_bus(), container.event_bus())

    def test_services_are_cached(self):
        self.assertIsInstance(container.auction_service(), AuctionService)
        self.assertIs(container.auction_service(), container.auction_service())
        self.assertIsInstance(container.negotiation_service(), NegotiationService)
        self.assertIsInstance(container.delivery_service(), DeliveryService)

    def test_services_share_infrastructure_handles(self):
        reconciliation = container.reconciliation_service()

        self.assertIsInstance(reconciliation, PaymentReconciliationService)
        self.assertIs(reconciliation.payment_provider, container.payment())
        self.assertIs(reconciliation.event_bus, container.event_bus())
        self.assertIs(reconciliation.delivery_service, container.delivery_service())
        self.assertIs(reconciliation.notification_service.email_service, container.email())
        self.assertIs(container.checkout_service().payment_provider, container.payment())
        self.assertIs(container.auction_service().listing_store, container.negotiation_service().listing_store)

        webhook = container.webhook_service()
        self.assertIsInstance(webhook, PaymentWebhookService)
        self.assertIs(webhook.reconciliation_service, reconciliation)
        self.assertIsInstance(container.checkout_service(), CheckoutService)

    def test_explicit_backend_replaces_handle(self):
        mock_email = container.email()

        self.assertIsInstance(container.email("smtp"), SMTPEmailService)
        self.assertIsNot(container.email(), mock_email)

    @override_settings(
        INFRASTRUCTURE={"EMAIL_BACKEND_TYPE": "smtp", "PAYMENT_PROVIDER": "stripe", "EVENT_BUS_BACKEND": "memory"},
        STRIPE_SECRET_KEY="sk_test_fake",
    )
    def test_reset_rebuilds_from_settings(self):
        container.reset()

        self.assertIsInstance(container.email(), SMTPEmailService)
        self.assertIsInstance(container.payment(), StripeProvider)
        self.assertIsInstance(container.event_bus(), InMemoryEventBus)
