# labflow/iam/services/accounts.py
from __future__ import annotations

import logging

from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password
from django.db import IntegrityError, transaction
from django.db.models import QuerySet

from labflow.audit.services import AuditService
from labflow.iam.models import UserProfile

logger = logging.getLogger(__name__)


class AccountService:
    @staticmethod
    @transaction.atomic
    def register(
        *,
        username: str,
        password: str,
        first_name: str,
        last_name: str,
        phone: str = "",
    ):
        """
        Create a clinic user. The password is stored only as a salted hash.
        Raises ValueError if the username is taken; password policy errors
        surface as django ValidationError.
        """
        User = get_user_model()
        if User.objects.filter(username=username).exists():
            raise ValueError("Username already exists.")

        validate_password(password, user=User(username=username, first_name=first_name, last_name=last_name))

        try:
            user = User.objects.create_user(
                username=username,
                password=password,
                first_name=first_name,
                last_name=last_name,
            )
        except IntegrityError:
            raise ValueError("Username already exists.")

        UserProfile.objects.create(user=user, phone=phone or "")

        AuditService.log(
            event_code="user.registered",
            entity_type="User",
            entity_id=user.pk,
            actor_username=username,
            metadata={},
        )
        logger.info("Registered username=%s", username)
        return user


def list_users() -> QuerySet:
    return get_user_model().objects.select_related("clinic_profile").order_by("username")
