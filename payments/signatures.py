# payments/signatures.py
"""
Razorpay signature checks.

The two checks authenticate different parties and are keyed differently:
the checkout signature is produced with the API key secret over
"<order_id>|<payment_id>", the webhook signature with the webhook secret over
the exact bytes of the request body. Keep them separate.
"""
import hashlib
import hmac


def _hex_hmac(secret, message):
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def verify_payment_signature(order_id, payment_id, signature, secret):
    if not (signature and secret):
        return False
    expected = _hex_hmac(secret, f"{order_id}|{payment_id}".encode("utf-8"))
    return hmac.compare_digest(expected, signature)


def verify_webhook_signature(raw_body, signature, secret):
    if not (signature and secret):
        return False
    if isinstance(raw_body, str):
        raw_body = raw_body.encode("utf-8")
    expected = _hex_hmac(secret, raw_body)
    return hmac.compare_digest(expected, signature)
