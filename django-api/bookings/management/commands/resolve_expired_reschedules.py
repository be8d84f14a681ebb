"""Cancel and refund reschedule proposals whose response deadline has passed.

Students who answer late are handled when they respond; this command
resolves the proposals nobody answered. Run it from cron.
"""

from django.core.management.base import BaseCommand, CommandError

from bookings.domain import Err
from bookings.services.dependencies import get_reschedule_service


class Command(BaseCommand):
    help = "Resolve expired reschedule proposals as rejections."

    def handle(self, *args, **options):
        result = get_reschedule_service().resolve_expired()
        if isinstance(result, Err):
            raise CommandError(str(result.error))
        for occurrence in result.value:
            self.stdout.write(f"cancelled {occurrence.id} ({occurrence.sport} on {occurrence.window.date})")
        self.stdout.write(self.style.SUCCESS(f"Resolved {len(result.value)} expired reschedule(s)."))
