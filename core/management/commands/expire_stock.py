from django.core.management.base import BaseCommand

from core.services.inventory import sweep_expired_stock
from core.services.timeutils import parse_iso_date


class Command(BaseCommand):
    help = "Zero expired medicine batches and deduct them from stock."

    def add_arguments(self, parser):
        parser.add_argument('--as-of', dest='as_of', help='Sweep as of this YYYY-MM-DD date (default: today in Manila)')

    def handle(self, *args, **options):
        today = parse_iso_date(options.get('as_of'))
        removed = sweep_expired_stock(today)
        self.stdout.write(self.style.SUCCESS(f"Removed {removed} expired units"))
