# payments/services.py
"""
Competition enrollment and payment reconciliation.

A payment is confirmed by whichever of two independent callers gets there
first: the student's browser (verify, after checkout) or Razorpay's webhook.
Both go through Payment.objects.transition(), a single conditional UPDATE on
status='PENDING', so exactly one of them wins. The winner confirms the
enrollment; the loser sees a terminal payment and reports it as-is.
"""
import json
import logging
from decimal import ROUND_HALF_UP, Decimal

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from cores.exceptions import Conflict, Forbidden, NotFound, Unauthorized, ValidationFailed
from cores.models import AuditLog
from exams.models import Competition

from .gateway import RazorpayClient
from .models import Enrollment, Payment
from .signatures import verify_payment_signature, verify_webhook_signature
from .snapshots import CompetitionSnapshot, UserSnapshot

logger = logging.getLogger(__name__)

CAPTURE_EVENTS = ("payment.captured", "order.paid")
FAILURE_EVENT = "payment.failed"


def to_minor_units(amount):
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def enroll_in_competition(user, competition_id, client=None):
    now = timezone.now()

    if not user.is_profile_complete:
        raise Forbidden("Please complete your profile before enrolling")

    competition = Competition.objects.filter(pk=competition_id, is_published=True).first()
    if competition is None:
        raise NotFound("Competition not found")

    grade = user.student_grade
    if not competition.accepts_grade(grade):
        raise Forbidden(
            f"This competition is for grades {competition.min_grade}-{competition.max_grade}. "
            f"Your grade is {grade if grade is not None else 'not set'}."
        )

    if now < competition.registration_start_date or now > competition.registration_end_date:
        raise Forbidden("Registration is not open for this competition")

    existing = Enrollment.objects.filter(user=user, competition=competition).first()
    if existing is not None and existing.status == Enrollment.Status.CONFIRMED:
        raise Conflict("You are already enrolled in this competition")

    amount = to_minor_units(competition.enrollment_fee)
    currency = settings.PAYMENT_CURRENCY
    client = client or RazorpayClient()
    order = client.create_order(
        amount,
        currency,
        receipt=f"enroll_{user.pk}_{competition.pk}",
        notes={
            "user_id": str(user.pk),
            "competition_id": str(competition.pk),
            "purpose": Payment.Purpose.COMPETITION_ENROLLMENT,
        },
    )

    user_snapshot = UserSnapshot.capture(user).to_dict()
    with transaction.atomic():
        payment = Payment.objects.create(
            user=user,
            amount=amount,
            currency=currency,
            status=Payment.Status.PENDING,
            purpose=Payment.Purpose.COMPETITION_ENROLLMENT,
            reference_id=str(competition.pk),
            gateway_order_id=order["id"],
            user_snapshot=user_snapshot,
        )
        Enrollment.objects.update_or_create(
            user=user,
            competition=competition,
            defaults={
                'payment': payment,
                'status': Enrollment.Status.PENDING,
                'is_payment_confirmed': False,
                'competition_snapshot': CompetitionSnapshot.capture(competition).to_dict(),
                'user_snapshot': user_snapshot,
            },
        )

    logger.info(
        "Created payment %s (order %s) for user %s enrolling in competition %s",
        payment.pk, payment.gateway_order_id, user.pk, competition.pk,
    )
    return {
        "payment_id": payment.pk,
        "razorpay_order_id": payment.gateway_order_id,
        "amount": amount,
        "currency": currency,
        "competition_title": competition.title,
        "razorpay_key_id": client.key_id,
    }


def _confirm_enrollment(payment, source):
    """Runs only for the caller that moved the payment to SUCCESS."""
    AuditLog.record(payment.user, 'PAYMENT_SUCCESS', payment, f"Confirmed via {source}")
    if payment.purpose != Payment.Purpose.COMPETITION_ENROLLMENT:
        return False

    confirmed = Enrollment.objects.confirm_for_payment(payment)
    if not confirmed:
        logger.warning("Payment %s succeeded but no enrollment references it", payment.pk)
        return False

    for enrollment in Enrollment.objects.filter(payment=payment):
        AuditLog.record(payment.user, 'ENROLLMENT_CONFIRMED', enrollment, f"Payment {payment.pk} via {source}")
    logger.info("Enrollment confirmed for payment %s via %s", payment.pk, source)
    return True


def _mark_failed(payment, reason, gateway_response, source):
    failed = Payment.objects.transition(
        payment.pk, Payment.Status.FAILED,
        failure_reason=reason,
        gateway_response=gateway_response,
    )
    if failed:
        AuditLog.record(payment.user, 'PAYMENT_FAILED', payment, f"{reason} ({source})")
        logger.info("Payment %s marked FAILED via %s: %s", payment.pk, source, reason)
    return failed


def _already_verified(payment):
    return {
        "message": "Payment already verified",
        "enrollment_confirmed": Enrollment.objects.filter(
            payment=payment, status=Enrollment.Status.CONFIRMED,
        ).exists(),
    }


def verify_payment(user, payment_id, order_id, gateway_payment_id, signature):
    payment = Payment.objects.filter(pk=payment_id).first()
    if payment is None:
        raise NotFound("Payment not found")
    if payment.user_id != user.pk:
        raise Forbidden("This payment belongs to another user")

    if payment.status == Payment.Status.SUCCESS:
        return _already_verified(payment)

    if order_id != payment.gateway_order_id:
        logger.warning("Verify for payment %s sent order %s, expected %s", payment.pk, order_id, payment.gateway_order_id)
        raise ValidationFailed("Order does not match this payment")

    gateway_response = {
        "razorpay_order_id": order_id,
        "razorpay_payment_id": gateway_payment_id,
        "razorpay_signature": signature,
    }

    if not verify_payment_signature(order_id, gateway_payment_id, signature, settings.RAZORPAY_KEY_SECRET):
        logger.warning("Invalid checkout signature for payment %s", payment.pk)
        _mark_failed(payment, "Invalid signature", gateway_response, "verify")
        raise ValidationFailed("Payment verification failed")

    with transaction.atomic():
        won = Payment.objects.transition(
            payment.pk, Payment.Status.SUCCESS,
            gateway_payment_id=gateway_payment_id,
            gateway_signature=signature,
            gateway_response=gateway_response,
        )
        enrollment_confirmed = _confirm_enrollment(payment, "verify") if won else False

    if not won:
        payment.refresh_from_db(fields=['status'])
        if payment.status == Payment.Status.SUCCESS:
            logger.info("Payment %s was already confirmed by the webhook", payment.pk)
            return _already_verified(payment)
        raise ValidationFailed("Payment verification failed")

    logger.info("Payment %s marked SUCCESS via verify", payment.pk)
    return {
        "message": "Payment verified successfully",
        "enrollment_confirmed": enrollment_confirmed,
    }


def find_webhook_payment(order_id, notes):
    """By gateway order id first, then by our payment id echoed in the notes."""
    payment = Payment.objects.filter(gateway_order_id=order_id).first()
    if payment is not None:
        return payment

    fallback_id = (notes or {}).get("payment_id")
    if fallback_id is None:
        return None
    try:
        fallback_id = int(fallback_id)
    except (TypeError, ValueError):
        logger.warning("Webhook notes carry a non-numeric payment_id: %r", fallback_id)
        return None
    return Payment.objects.filter(pk=fallback_id).first()


def process_webhook(raw_body, signature):
    """
    Applies one Razorpay webhook delivery. Returns the acknowledgement message.

    Only a bad request (missing/invalid signature, unreadable body) raises;
    anything the gateway cannot fix by retrying is logged and acknowledged.
    """
    if not signature:
        logger.warning("Webhook without signature")
        raise ValidationFailed("Missing signature")

    if not verify_webhook_signature(raw_body, signature, settings.RAZORPAY_WEBHOOK_SECRET):
        logger.warning("Invalid webhook signature")
        raise Unauthorized("Invalid signature")

    try:
        body = json.loads(raw_body)
    except ValueError:
        raise ValidationFailed("Malformed webhook payload")
    if not isinstance(body, dict):
        raise ValidationFailed("Malformed webhook payload")

    event = body.get("event")
    entity = ((body.get("payload") or {}).get("payment") or {}).get("entity")
    logger.info("Webhook received: %s", event)

    if not entity:
        return "No payment entity in webhook"

    order_id = entity.get("order_id")
    if not order_id:
        return "No order ID in webhook"

    payment = find_webhook_payment(order_id, entity.get("notes"))
    if payment is None:
        logger.error("Payment not found for order: %s", order_id)
        return "Payment not found"

    if event in CAPTURE_EVENTS:
        with transaction.atomic():
            won = Payment.objects.transition(
                payment.pk, Payment.Status.SUCCESS,
                gateway_payment_id=entity.get("id") or "",
                gateway_response=entity,
            )
            if won:
                _confirm_enrollment(payment, "webhook")
        if won:
            logger.info("Payment %s marked SUCCESS via webhook", payment.pk)
        else:
            payment.refresh_from_db(fields=['status'])
            logger.info("Payment %s already %s, ignoring %s", payment.pk, payment.status, event)
    elif event == FAILURE_EVENT:
        reason = entity.get("error_description") or "Payment failed"
        if not _mark_failed(payment, reason, entity, "webhook"):
            logger.info("Payment %s no longer pending, ignoring %s", payment.pk, event)
    else:
        logger.info("Ignoring webhook event %s for payment %s", event, payment.pk)

    return "Webhook processed"
