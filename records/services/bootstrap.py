import logging

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import transaction

logger = logging.getLogger(__name__)

User = get_user_model()


def ensure_super_admin():
    """Create the owner account if no SUPER_ADMIN exists yet (idempotent).

    Returns the created user, or ``None`` when an owner already exists.
    """
    with transaction.atomic():
        if User.objects.select_for_update().filter(role=User.ROLE_SUPER_ADMIN).exists():
            logger.debug('SUPER_ADMIN already exists')
            return None
        email = settings.SUPER_ADMIN_EMAIL.strip().lower()
        user = User.objects.filter(email=email).first()
        if user is not None:
            raise RuntimeError(f'{email} is taken by a non-owner account; set SUPER_ADMIN_EMAIL')
        user = User.objects.create_superuser(
            email=email,
            password=settings.SUPER_ADMIN_PASSWORD,
            name=settings.SUPER_ADMIN_NAME,
            is_active=True,
            hospital=None,
        )
    logger.info('SUPER_ADMIN ready: %s', user.email)
    return user
