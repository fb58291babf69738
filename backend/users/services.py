# users/services.py
import logging

from django.db import transaction
from django.contrib.auth import get_user_model

from solarshare.exceptions import NotFound, ValidationError, full_clean_or_raise
from .models import ROLE_CHOICES, ROLE_INVESTOR

logger = logging.getLogger(__name__)

User = get_user_model()

MUTABLE_FIELDS = ('username', 'email', 'first_name', 'last_name', 'profile_image_url', 'stripe_subscription_id')


def get_user(user_id):
    user = User.objects.filter(pk=user_id).first()
    if user is None:
        raise NotFound(f"User {user_id} not found")
    return user


@transaction.atomic
def upsert_user(user_id, role=None, stripe_customer_id=None, **fields):
    """
    Insert a user keyed by ``user_id`` or replace its mutable fields.
    ``role`` is only applied when the user is created; it cannot change afterwards.
    Calling twice with the same data leaves a single, unchanged row.
    Returns ``(user, created)``, like ``get_or_create``.
    """
    if not user_id:
        raise ValidationError({'id': ['This field is required.']})
    unknown = set(fields) - set(MUTABLE_FIELDS)
    if unknown:
        raise ValidationError({name: ['Unknown user field.'] for name in sorted(unknown)})
    if role is not None and role not in dict(ROLE_CHOICES):
        raise ValidationError({'role': [f'"{role}" is not a valid role.']})

    user = User.objects.select_for_update().filter(pk=user_id).first()
    created = user is None
    if created:
        user = User(id=user_id, role=role or ROLE_INVESTOR)
        user.username = fields.pop('username', None) or user_id
        user.set_unusable_password()
    elif role is not None and role != user.role:
        logger.warning("Ignoring role change for user %s (%s -> %s)", user_id, user.role, role)

    for name, value in fields.items():
        setattr(user, name, value)
    if stripe_customer_id is not None:
        user.set_stripe_customer_id(stripe_customer_id)

    full_clean_or_raise(user, exclude=['password'])
    user.save()
    logger.info("%s user %s (role=%s)", 'Created' if created else 'Updated', user.pk, user.role)
    return user, created
