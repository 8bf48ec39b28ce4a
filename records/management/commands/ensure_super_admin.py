from django.core.management.base import BaseCommand, CommandError

from records.services.bootstrap import ensure_super_admin


class Command(BaseCommand):
    help = "Create the SUPER_ADMIN owner account from settings if none exists (idempotent)."

    def handle(self, *args, **opts):
        try:
            user = ensure_super_admin()
        except RuntimeError as e:
            raise CommandError(str(e))
        if user is None:
            self.stdout.write("SUPER_ADMIN already exists; nothing to do.")
        else:
            self.stdout.write(self.style.SUCCESS(f"ok: created SUPER_ADMIN {user.email}"))
