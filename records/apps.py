import logging

from django.apps import AppConfig
from django.conf import settings
from django.db.models.signals import post_migrate

logger = logging.getLogger(__name__)


def bootstrap_owner(sender, **kwargs):
    if not getattr(settings, 'SUPER_ADMIN_BOOTSTRAP', False):
        return
    from records.services.bootstrap import ensure_super_admin
    try:
        ensure_super_admin()
    except RuntimeError as e:
        logger.error('owner bootstrap skipped: %s', e)


class RecordsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'records'
    verbose_name = 'Patient records'

    def ready(self):
        post_migrate.connect(bootstrap_owner, sender=self, dispatch_uid='records.bootstrap_owner')
