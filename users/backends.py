# olympiad_platform/users/backends.py
from django.contrib.auth.backends import ModelBackend
from django.contrib.auth import get_user_model
from django.db.models import Q

User = get_user_model()

class EmailOrPhoneBackend(ModelBackend):
    """Students sign in with either their email address or their phone number."""

    def authenticate(self, request, username=None, password=None, **kwargs):
        identifier = username or kwargs.get(User.USERNAME_FIELD)
        if not identifier:
            return None
        try:
            user = User.objects.get(Q(email__iexact=identifier) | Q(phone_number=identifier))
        except User.DoesNotExist:
            # Run the hasher anyway so a missing account costs the same time
            User().set_password(password)
            return None
        except User.MultipleObjectsReturned:
            user = User.objects.filter(email__iexact=identifier).order_by('id').first()
            if user is None:
                return None

        if user.check_password(password) and self.user_can_authenticate(user):
            return user
        return None
