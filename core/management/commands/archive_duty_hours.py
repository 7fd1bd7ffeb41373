from django.core.management.base import BaseCommand

from core.services.availability import archive_expired_duty_hours


class Command(BaseCommand):
    help = "Archive doctor duty windows that ended more than 24 hours ago."

    def handle(self, *args, **options):
        n = archive_expired_duty_hours()
        self.stdout.write(self.style.SUCCESS(f"Archived {n} duty windows"))
