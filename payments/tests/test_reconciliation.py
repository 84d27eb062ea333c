import hashlib
import hmac
import json
from unittest import mock

from django.test import override_settings
from rest_framework import status
from rest_framework.test import APIClient, APITestCase

from cores.models import AuditLog
from cores.tests.factories import make_competition, make_student

from payments.models import Enrollment, Payment

VERIFY_URL = '/api/payments/verify/'
WEBHOOK_URL = '/api/payments/webhook/'
KEY_SECRET = "key_secret"
WEBHOOK_SECRET = "webhook_secret"


def sign(secret, message):
    if isinstance(message, str):
        message = message.encode()
    return hmac.new(secret.encode(), message, hashlib.sha256).hexdigest()


def webhook_body(event, order_id="order_1", payment_id="pay_1", notes=None, **entity):
    entity.update({"id": payment_id, "order_id": order_id, "notes": notes or {}})
    return json.dumps({"event": event, "payload": {"payment": {"entity": entity}}}).encode()


@override_settings(RAZORPAY_KEY_SECRET=KEY_SECRET, RAZORPAY_WEBHOOK_SECRET=WEBHOOK_SECRET)
class ReconciliationTestCase(APITestCase):
    @classmethod
    def setUpTestData(cls):
        cls.student = make_student()
        cls.competition = make_competition()

    def setUp(self):
        self.payment = Payment.objects.create(user=self.student, amount=49900, gateway_order_id="order_1")
        self.enrollment = Enrollment.objects.create(user=self.student, competition=self.competition, payment=self.payment)
        self.client.force_authenticate(self.student)
        self.gateway = APIClient()

    def verify(self, signature=None, order_id="order_1", payment_id=None):
        return self.client.post(VERIFY_URL, {
            'payment_id': payment_id or self.payment.id,
            'razorpay_order_id': order_id,
            'razorpay_payment_id': "pay_1",
            'razorpay_signature': signature or sign(KEY_SECRET, f"{order_id}|pay_1"),
        }, format='json')

    def deliver(self, body, signature=None):
        headers = {}
        if signature is not False:
            headers['HTTP_X_RAZORPAY_SIGNATURE'] = signature or sign(WEBHOOK_SECRET, body)
        return self.gateway.post(WEBHOOK_URL, data=body, content_type='application/json', **headers)

    def assertPayment(self, expected_status):
        self.payment.refresh_from_db()
        self.assertEqual(self.payment.status, expected_status)

    def assertEnrollmentConfirmed(self, confirmed=True):
        self.enrollment.refresh_from_db()
        self.assertEqual(self.enrollment.status == Enrollment.Status.CONFIRMED, confirmed)
        self.assertEqual(self.enrollment.is_payment_confirmed, confirmed)


class VerifyPaymentTests(ReconciliationTestCase):
    def test_valid_signature_confirms_enrollment(self):
        response = self.verify()

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json(), {
            'success': True,
            'data': {'enrollment_confirmed': True},
            'message': "Payment verified successfully",
        })
        self.assertPayment(Payment.Status.SUCCESS)
        self.assertEqual(self.payment.gateway_payment_id, "pay_1")
        self.assertEnrollmentConfirmed()
        self.assertEqual(AuditLog.objects.filter(action='PAYMENT_SUCCESS').count(), 1)
        self.assertEqual(AuditLog.objects.filter(action='ENROLLMENT_CONFIRMED').count(), 1)

    def test_repeat_verify_reports_already_verified(self):
        self.verify()

        response = self.verify()

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json()['message'], "Payment already verified")
        self.assertEqual(AuditLog.objects.filter(action='ENROLLMENT_CONFIRMED').count(), 1)

    def test_invalid_signature_fails_payment(self):
        response = self.verify(signature="0" * 64)

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertPayment(Payment.Status.FAILED)
        self.assertEqual(self.payment.failure_reason, "Invalid signature")
        self.assertEnrollmentConfirmed(False)

    def test_failed_payment_never_becomes_success(self):
        self.verify(signature="0" * 64)

        response = self.verify()

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertPayment(Payment.Status.FAILED)
        self.assertEnrollmentConfirmed(False)

    def test_order_mismatch_is_rejected_without_touching_payment(self):
        response = self.verify(order_id="order_other")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertPayment(Payment.Status.PENDING)

    def test_payment_of_another_student_is_forbidden(self):
        self.client.force_authenticate(make_student(email="other@example.com"))

        self.assertEqual(self.verify().status_code, status.HTTP_403_FORBIDDEN)
        self.assertPayment(Payment.Status.PENDING)

    def test_unknown_payment_is_not_found(self):
        self.assertEqual(self.verify(payment_id=987654).status_code, status.HTTP_404_NOT_FOUND)


class WebhookTests(ReconciliationTestCase):
    def test_captured_confirms_enrollment(self):
        response = self.deliver(webhook_body("payment.captured"))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json()['message'], "Webhook processed")
        self.assertPayment(Payment.Status.SUCCESS)
        self.assertEqual(self.payment.gateway_payment_id, "pay_1")
        self.assertEnrollmentConfirmed()

    def test_order_paid_is_treated_as_capture(self):
        self.deliver(webhook_body("order.paid"))

        self.assertPayment(Payment.Status.SUCCESS)

    def test_failed_event_fails_pending_payment(self):
        self.deliver(webhook_body("payment.failed", error_description="Card declined"))

        self.assertPayment(Payment.Status.FAILED)
        self.assertEqual(self.payment.failure_reason, "Card declined")

    def test_failed_event_never_overrides_success(self):
        self.deliver(webhook_body("payment.captured"))

        response = self.deliver(webhook_body("payment.failed", error_description="Late failure"))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertPayment(Payment.Status.SUCCESS)
        self.assertEnrollmentConfirmed()

    def test_lookup_falls_back_to_notes_payment_id(self):
        body = webhook_body("payment.captured", order_id="order_unknown", notes={"payment_id": str(self.payment.id)})

        self.deliver(body)

        self.assertPayment(Payment.Status.SUCCESS)

    def test_unknown_payment_is_acknowledged(self):
        response = self.deliver(webhook_body("payment.captured", order_id="order_unknown"))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json()['message'], "Payment not found")
        self.assertPayment(Payment.Status.PENDING)

    def test_body_without_payment_entity_is_acknowledged(self):
        body = json.dumps({"event": "payment.captured", "payload": {}}).encode()

        response = self.deliver(body)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json()['message'], "No payment entity in webhook")

    def test_invalid_signature_is_unauthorized(self):
        response = self.deliver(webhook_body("payment.captured"), signature=sign(KEY_SECRET, b"tampered"))

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.json()['error'], "Invalid signature")
        self.assertPayment(Payment.Status.PENDING)

    def test_key_secret_does_not_sign_webhooks(self):
        body = webhook_body("payment.captured")

        response = self.deliver(body, signature=sign(KEY_SECRET, body))

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_missing_signature_is_bad_request(self):
        response = self.deliver(webhook_body("payment.captured"), signature=False)

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_malformed_body_is_bad_request(self):
        response = self.deliver(b"{not json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_only_post_is_allowed(self):
        response = self.gateway.get(WEBHOOK_URL)

        self.assertEqual(response.status_code, status.HTTP_405_METHOD_NOT_ALLOWED)


class DualPathConvergenceTests(ReconciliationTestCase):
    """Browser verify and gateway webhook race to confirm the same payment."""

    def assertConfirmedOnce(self):
        self.assertPayment(Payment.Status.SUCCESS)
        self.assertEnrollmentConfirmed()
        self.assertEqual(AuditLog.objects.filter(action='PAYMENT_SUCCESS').count(), 1)
        self.assertEqual(AuditLog.objects.filter(action='ENROLLMENT_CONFIRMED').count(), 1)

    def test_verify_then_webhook(self):
        self.assertEqual(self.verify().status_code, status.HTTP_200_OK)

        response = self.deliver(webhook_body("payment.captured"))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertConfirmedOnce()

    def test_webhook_then_verify(self):
        self.deliver(webhook_body("payment.captured"))

        response = self.verify()

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json()['data'], {'enrollment_confirmed': True})
        self.assertEqual(response.json()['message'], "Payment already verified")
        self.assertConfirmedOnce()

    def test_webhook_lands_while_verify_is_in_flight(self):
        def webhook_first(*args):
            # verify has already read the payment as PENDING at this point
            self.assertEqual(self.deliver(webhook_body("payment.captured")).status_code, status.HTTP_200_OK)
            return True

        with mock.patch('payments.services.verify_payment_signature', side_effect=webhook_first) as check:
            response = self.verify()

        check.assert_called_once()
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json()['data'], {'enrollment_confirmed': True})
        self.assertEqual(response.json()['message'], "Payment already verified")
        self.assertConfirmedOnce()


class MyEnrollmentsTests(ReconciliationTestCase):
    def test_lists_own_enrollments_with_status(self):
        self.verify()

        response = self.client.get('/api/payments/enrollments/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.json()), 1)
        self.assertEqual(response.json()[0]['status'], 'confirmed')
        self.assertEqual(response.json()[0]['competition_title'], "National Science Olympiad")
