# payments/models.py
from django.db import models
from django.conf import settings
from exams.models import Competition


class PaymentQuerySet(models.QuerySet):
    def transition(self, pk, to_status, **fields):
        """
        Moves a PENDING payment to `to_status` with one conditional UPDATE.

        Returns True only for the caller whose update matched the row; a
        terminal payment is never touched again.
        """
        return bool(
            self.filter(pk=pk, status=Payment.Status.PENDING).update(status=to_status, **fields)
        )


class Payment(models.Model):
    class Status(models.TextChoices):
        PENDING = "PENDING", "Pending"
        SUCCESS = "SUCCESS", "Success"
        FAILED = "FAILED", "Failed"

    class Purpose(models.TextChoices):
        COMPETITION_ENROLLMENT = "COMPETITION_ENROLLMENT", "Competition enrollment"

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='payments')
    amount = models.PositiveIntegerField(help_text="Minor currency units (paise)")
    currency = models.CharField(max_length=3, default="INR")
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.PENDING)
    gateway = models.CharField(max_length=20, default="RAZORPAY")
    purpose = models.CharField(max_length=40, choices=Purpose.choices, default=Purpose.COMPETITION_ENROLLMENT)
    reference_id = models.CharField(max_length=64, blank=True)  # competition id for enrollments

    gateway_order_id = models.CharField(max_length=100, unique=True)
    gateway_payment_id = models.CharField(max_length=100, blank=True)
    gateway_signature = models.CharField(max_length=256, blank=True)
    gateway_response = models.JSONField(default=dict, blank=True)
    failure_reason = models.CharField(max_length=255, blank=True)

    user_snapshot = models.JSONField(default=dict, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = PaymentQuerySet.as_manager()

    def __str__(self):
        return f"{self.user} - {self.gateway_order_id} - {self.status}"


class EnrollmentQuerySet(models.QuerySet):
    def confirm_for_payment(self, payment):
        return self.filter(payment=payment).update(
            status=Enrollment.Status.CONFIRMED, is_payment_confirmed=True,
        )


class Enrollment(models.Model):
    class Status(models.TextChoices):
        PENDING = "pending", "Pending"
        CONFIRMED = "confirmed", "Confirmed"
        CANCELLED = "cancelled", "Cancelled"

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='enrollments')
    competition = models.ForeignKey(Competition, on_delete=models.CASCADE, related_name='enrollments')
    payment = models.ForeignKey(Payment, null=True, blank=True, on_delete=models.SET_NULL, related_name='enrollments')
    submission = models.ForeignKey(
        'assessments.Submission', null=True, blank=True, on_delete=models.SET_NULL, related_name='+',
    )

    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    is_payment_confirmed = models.BooleanField(default=False)

    competition_snapshot = models.JSONField(default=dict)
    user_snapshot = models.JSONField(default=dict)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = EnrollmentQuerySet.as_manager()

    class Meta:
        unique_together = ('user', 'competition')

    def __str__(self):
        return f"{self.user} - {self.competition} - {self.status}"
