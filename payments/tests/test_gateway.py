import hashlib
import hmac
from decimal import Decimal
from unittest import mock

import requests
from django.test import SimpleTestCase

from cores.exceptions import PaymentGatewayError

from payments.gateway import RazorpayClient
from payments.services import to_minor_units
from payments.signatures import verify_payment_signature, verify_webhook_signature


class SignatureTests(SimpleTestCase):
    def sign(self, message):
        return hmac.new(b"secret", message, hashlib.sha256).hexdigest()

    def test_payment_signature_covers_order_and_payment_ids(self):
        signature = self.sign(b"order_1|pay_1")

        self.assertTrue(verify_payment_signature("order_1", "pay_1", signature, "secret"))
        self.assertFalse(verify_payment_signature("order_1", "pay_2", signature, "secret"))
        self.assertFalse(verify_payment_signature("order_1", "pay_1", signature, "other"))

    def test_webhook_signature_covers_raw_body(self):
        body = b'{"event":"payment.captured"}'
        signature = self.sign(body)

        self.assertTrue(verify_webhook_signature(body, signature, "secret"))
        self.assertTrue(verify_webhook_signature(body.decode(), signature, "secret"))
        self.assertFalse(verify_webhook_signature(body + b" ", signature, "secret"))

    def test_missing_signature_or_secret_never_verifies(self):
        self.assertFalse(verify_payment_signature("order_1", "pay_1", "", "secret"))
        self.assertFalse(verify_webhook_signature(b"{}", self.sign(b"{}"), ""))


class MinorUnitsTests(SimpleTestCase):
    def test_rounds_half_up_to_paise(self):
        self.assertEqual(to_minor_units(Decimal("499.00")), 49900)
        self.assertEqual(to_minor_units(Decimal("149.995")), 15000)
        self.assertEqual(to_minor_units(Decimal("0")), 0)


class RazorpayClientTests(SimpleTestCase):
    def setUp(self):
        self.client = RazorpayClient(key_id="rzp_test", key_secret="secret", api_base="https://gateway.test/v1/")

    @mock.patch('payments.gateway.requests.post')
    def test_create_order_posts_with_basic_auth(self, post):
        post.return_value = mock.Mock(ok=True, status_code=200)
        post.return_value.json.return_value = {"id": "order_1"}

        order = self.client.create_order(100, "INR", receipt="r" * 60, notes={"k": "v"})

        self.assertEqual(order["id"], "order_1")
        args, kwargs = post.call_args
        self.assertEqual(args[0], "https://gateway.test/v1/orders")
        self.assertEqual(kwargs['auth'], ("rzp_test", "secret"))
        self.assertEqual(len(kwargs['json']['receipt']), 40)
        self.assertIn('timeout', kwargs)

    @mock.patch('payments.gateway.requests.post')
    def test_connection_error_raises_gateway_error(self, post):
        post.side_effect = requests.exceptions.ConnectionError()

        with self.assertRaises(PaymentGatewayError):
            self.client.create_order(100, "INR", receipt="r")

    @mock.patch('payments.gateway.requests.post')
    def test_response_without_order_id_raises_gateway_error(self, post):
        post.return_value = mock.Mock(ok=True, status_code=200)
        post.return_value.json.return_value = {}

        with self.assertRaises(PaymentGatewayError):
            self.client.create_order(100, "INR", receipt="r")
