# labflow/iam/models.py
import uuid
from django.conf import settings
from django.db import models


class UserProfile(models.Model):
    """
    Clinic-side details for a Django auth user (registration form fields
    that auth.User does not carry).
    """
    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="clinic_profile")
    phone = models.CharField(max_length=32, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "iam_user_profile"

    def __str__(self) -> str:
        return f"{self.user.username}"


class UserSession(models.Model):
    """
    Authoritative record of a signed-in user.

    Keyed by username (not FK) so a session can outlive its user and be
    detected as dangling. At most one row per username: login replaces.
    Rows idle longer than LABFLOW_SESSION_TTL_SECONDS are expired.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    username = models.CharField(max_length=150)
    session_id = models.CharField(max_length=64)

    login_time = models.DateTimeField()
    last_activity = models.DateTimeField(db_index=True)
    user_agent = models.CharField(max_length=255, blank=True, default="")

    class Meta:
        db_table = "iam_user_session"
        constraints = [
            models.UniqueConstraint(fields=["username", "session_id"], name="uq_session_username_session_id"),
        ]

    def __str__(self) -> str:
        return f"{self.username} ({self.session_id[:8]}...)"
