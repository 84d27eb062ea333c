# users/models.py
from django.contrib.auth.models import AbstractUser
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

class User(AbstractUser):
    # Enforce unique email for authentication
    email = models.EmailField(unique=True)
    phone_number = models.CharField(max_length=15, blank=True)

    # Student profile (read by eligibility checks)
    student_name = models.CharField(max_length=150, blank=True)
    student_grade = models.PositiveSmallIntegerField(
        null=True, blank=True,
        validators=[MinValueValidator(1), MaxValueValidator(12)],
    )
    school_name = models.CharField(max_length=255, blank=True)
    is_profile_complete = models.BooleanField(default=False)

    # Set email as the main field for authentication
    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = ['username']

    def __str__(self):
        return self.email

    def save(self, *args, **kwargs):
        self.is_profile_complete = bool(
            self.student_name and self.student_grade and self.school_name
        )
        super().save(*args, **kwargs)
