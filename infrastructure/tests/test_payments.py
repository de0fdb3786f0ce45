"""
Payment Infrastructure Tests
==============================

Unit tests for the hosted checkout providers.
"""

import json
from decimal import Decimal
from unittest.mock import MagicMock, patch

import stripe
from django.test import SimpleTestCase, override_settings

from infrastructure.payments import (
    MockPaymentProvider,
    PaymentException,
    PaymentFactory,
    PaymentProviderInterface,
    PaymentStatus,
    StripeProvider,
)
from infrastructure.payments.stripe_provider import to_minor_units


class PaymentInterfaceTest(SimpleTestCase):
    def test_interface_is_abstract(self):
        """PaymentProviderInterface should not be instantiable."""
        with self.assertRaises(TypeError):
            PaymentProviderInterface()

    def test_minor_units_round_half_up(self):
        self.assertEqual(to_minor_units(Decimal("80.00")), 8000)
        self.assertEqual(to_minor_units(Decimal("0.015")), 2)


@override_settings(
    STRIPE_SECRET_KEY="sk_test_fake",
    STRIPE_WEBHOOK_SECRET="whsec_test_fake",
)
class StripeProviderTest(SimpleTestCase):
    """Test StripeProvider implementation."""

    def setUp(self):
        self.provider = StripeProvider()

    @patch("stripe.checkout.Session.create")
    def test_create_checkout_session_success(self, mock_create):
        mock_session = MagicMock()
        mock_session.id = "cs_test_123"
        mock_session.url = "https://checkout.stripe.com/pay/cs_test_123"
        mock_session.payment_status = "unpaid"
        mock_create.return_value = mock_session

        result = self.provider.create_checkout_session(
            amount=Decimal("99.99"),
            currency="USD",
            description="Purchase: Walnut armchair",
            success_url="https://example.com/success",
            cancel_url="https://example.com/cancel",
            metadata={"listing_id": "abc", "buyer_id": 7},
        )

        self.assertEqual(result.session_id, "cs_test_123")
        self.assertEqual(result.amount, 9999)
        self.assertEqual(result.currency, "usd")
        self.assertEqual(result.status, PaymentStatus.PENDING)
        self.assertEqual(result.metadata, {"listing_id": "abc", "buyer_id": "7"})

        params = mock_create.call_args.kwargs
        self.assertEqual(params["mode"], "payment")
        self.assertEqual(params["line_items"][0]["price_data"]["unit_amount"], 9999)
        self.assertEqual(params["line_items"][0]["price_data"]["product_data"]["name"], "Purchase: Walnut armchair")
        self.assertEqual(params["metadata"]["buyer_id"], "7")

    @patch("stripe.checkout.Session.create")
    def test_create_checkout_session_failure(self, mock_create):
        mock_create.side_effect = stripe.InvalidRequestError("Invalid currency", param="currency")

        with self.assertRaises(PaymentException):
            self.provider.create_checkout_session(
                amount=Decimal("10.00"),
                currency="xxx",
                description="Purchase",
                success_url="https://example.com/success",
                cancel_url="https://example.com/cancel",
            )
        self.assertEqual(mock_create.call_count, 1)

    @patch("time.sleep")
    @patch("stripe.checkout.Session.retrieve")
    def test_retrieve_retries_connection_errors(self, mock_retrieve, _sleep):
        paid = MagicMock()
        paid.id = "cs_test_123"
        paid.url = None
        paid.amount_total = 8000
        paid.currency = "usd"
        paid.payment_status = "paid"
        paid.metadata = {"listing_id": "abc"}
        paid.payment_intent = "pi_test_456"
        mock_retrieve.side_effect = [stripe.APIConnectionError("network down"), paid]

        result = self.provider.retrieve_session("cs_test_123")

        self.assertEqual(mock_retrieve.call_count, 2)
        self.assertTrue(result.is_paid)
        self.assertEqual(result.payment_reference, "pi_test_456")
        self.assertEqual(result.metadata, {"listing_id": "abc"})
        self.assertEqual(result.url, "")

    @patch("time.sleep")
    @patch("stripe.checkout.Session.retrieve")
    def test_retrieve_gives_up_after_three_attempts(self, mock_retrieve, _sleep):
        mock_retrieve.side_effect = stripe.APIConnectionError("network down")

        with self.assertRaises(PaymentException):
            self.provider.retrieve_session("cs_test_123")
        self.assertEqual(mock_retrieve.call_count, 3)

    @patch("stripe.Webhook.construct_event")
    def test_verify_webhook_success(self, mock_construct):
        body = {
            "id": "evt_123",
            "type": "checkout.session.completed",
            "created": 1767225600,
            "data": {"object": {"id": "cs_test_123", "metadata": {"listing_id": "abc"}}},
        }
        mock_construct.return_value = body
        payload = json.dumps(body).encode()

        event = self.provider.verify_webhook(payload, "t=1,v1=sig")

        mock_construct.assert_called_once_with(payload, "t=1,v1=sig", "whsec_test_fake")
        self.assertEqual(event.event_id, "evt_123")
        self.assertEqual(event.event_type, "checkout.session.completed")
        self.assertEqual(event.data["metadata"], {"listing_id": "abc"})

    @patch("stripe.Webhook.construct_event")
    def test_verify_webhook_invalid_signature(self, mock_construct):
        mock_construct.side_effect = stripe.SignatureVerificationError("Invalid signature", "sig_header")

        with self.assertRaises(PaymentException):
            self.provider.verify_webhook(b"{}", "invalid_sig")

    def test_status_mapping(self):
        self.assertEqual(self.provider._map_stripe_status("paid"), PaymentStatus.SUCCEEDED)
        self.assertEqual(self.provider._map_stripe_status("no_payment_required"), PaymentStatus.PENDING)
        self.assertEqual(self.provider._map_stripe_status("unpaid"), PaymentStatus.PENDING)
        self.assertEqual(self.provider._map_stripe_status("something_new"), PaymentStatus.PENDING)


class MockPaymentProviderTest(SimpleTestCase):
    def setUp(self):
        self.provider = MockPaymentProvider()

    def create(self):
        return self.provider.create_checkout_session(
            amount=Decimal("80.00"),
            currency="USD",
            description="Purchase",
            success_url="https://example.com/success",
            cancel_url="https://example.com/cancel",
            metadata={"listing_id": 1},
        )

    def test_sessions_start_unpaid(self):
        session = self.create()

        retrieved = self.provider.retrieve_session(session.session_id)

        self.assertFalse(retrieved.is_paid)
        self.assertEqual(retrieved.amount, 8000)
        self.assertEqual(retrieved.metadata, {"listing_id": "1"})

    def test_mark_paid(self):
        session = self.create()

        self.provider.mark_paid(session.session_id, payment_reference="pi_1")

        retrieved = self.provider.retrieve_session(session.session_id)
        self.assertTrue(retrieved.is_paid)
        self.assertEqual(retrieved.payment_reference, "pi_1")

    def test_fail_next_affects_one_call(self):
        session = self.create()
        self.provider.fail_next = True

        with self.assertRaises(PaymentException):
            self.provider.retrieve_session(session.session_id)
        self.assertEqual(self.provider.retrieve_session(session.session_id).session_id, session.session_id)

    def test_unknown_session(self):
        with self.assertRaises(PaymentException):
            self.provider.retrieve_session("cs_mock_unknown")

    def test_webhook_signature(self):
        payload = json.dumps({"id": "evt_1", "type": "checkout.session.completed", "data": {"object": {}}})

        with self.assertRaises(PaymentException):
            self.provider.verify_webhook(payload, "wrong")
        self.assertEqual(self.provider.verify_webhook(payload, MockPaymentProvider.VALID_SIGNATURE).event_id, "evt_1")


class PaymentFactoryTest(SimpleTestCase):
    @override_settings(STRIPE_SECRET_KEY="sk_test_fake")
    def test_create_stripe_provider(self):
        self.assertIsInstance(PaymentFactory.create("stripe"), StripeProvider)

    def test_create_mock_provider(self):
        self.assertIsInstance(PaymentFactory.create("mock"), MockPaymentProvider)

    @override_settings(INFRASTRUCTURE={"PAYMENT_PROVIDER": "mock"})
    def test_backend_from_settings(self):
        self.assertIsInstance(PaymentFactory.create(), MockPaymentProvider)

    def test_invalid_backend_raises_error(self):
        with self.assertRaises(ValueError):
            PaymentFactory.create("paypal")
