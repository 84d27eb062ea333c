from django.db import models
from django.conf import settings


class AuditLog(models.Model):
    ACTION_CHOICES = [
        ('SUBMIT', 'Exam Submitted'),
        ('PAYMENT_SUCCESS', 'Payment Succeeded'),
        ('PAYMENT_FAILED', 'Payment Failed'),
        ('ENROLLMENT_CONFIRMED', 'Enrollment Confirmed'),
    ]

    actor = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, related_name='audit_logs')
    action = models.CharField(max_length=30, choices=ACTION_CHOICES)
    target_model = models.CharField(max_length=50, help_text="e.g., Submission, Payment, Enrollment")
    target_object_id = models.CharField(max_length=100, blank=True, null=True)
    details = models.TextField(blank=True, help_text="Description of the transition")
    timestamp = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-timestamp']

    def __str__(self):
        return f"{self.actor} - {self.action} - {self.timestamp}"

    @classmethod
    def record(cls, actor, action, target, details=""):
        """Writes one audit row for a state transition on `target`."""
        return cls.objects.create(
            actor=actor,
            action=action,
            target_model=target.__class__.__name__,
            target_object_id=str(target.pk),
            details=details,
        )
