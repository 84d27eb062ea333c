# payments/gateway.py
import logging

import requests
from django.conf import settings

from cores.exceptions import PaymentGatewayError

logger = logging.getLogger(__name__)


class RazorpayClient:
    """Thin client over the Razorpay Orders API."""

    def __init__(self, key_id=None, key_secret=None, api_base=None, timeout=None):
        self.key_id = key_id if key_id is not None else settings.RAZORPAY_KEY_ID
        self.key_secret = key_secret if key_secret is not None else settings.RAZORPAY_KEY_SECRET
        self.api_base = (api_base or settings.RAZORPAY_API_BASE).rstrip("/")
        self.timeout = timeout or settings.RAZORPAY_TIMEOUT_SECONDS

    def create_order(self, amount, currency, receipt, notes=None):
        """Creates an order for `amount` minor units and returns the order JSON."""
        if not (self.key_id and self.key_secret):
            logger.error("RAZORPAY_KEY_ID / RAZORPAY_KEY_SECRET missing in settings.")
            raise PaymentGatewayError("Server misconfiguration: missing payment gateway keys")

        payload = {
            "amount": amount,
            "currency": currency,
            "receipt": receipt[:40],
            "notes": notes or {},
        }
        try:
            # Timeout is crucial to prevent the request hanging on the gateway
            resp = requests.post(
                f"{self.api_base}/orders",
                json=payload,
                auth=(self.key_id, self.key_secret),
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout:
            logger.error("Razorpay order creation timed out")
            raise PaymentGatewayError("Payment gateway timed out. Please try again.")
        except requests.exceptions.RequestException as e:
            logger.error("Razorpay order creation failed: %s", e)
            raise PaymentGatewayError("Could not connect to the payment gateway.")

        if not resp.ok:
            logger.error("Razorpay order error %s: %s", resp.status_code, resp.text)
            raise PaymentGatewayError()

        order = resp.json()
        if not order.get("id"):
            logger.error("Razorpay order response without id: %s", order)
            raise PaymentGatewayError()
        return order
