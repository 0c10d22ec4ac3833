import time
from django.core.management.base import BaseCommand
from conversions.converter import get_default_converter
from conversions.exceptions import RateFetchError


class Command(BaseCommand):
    help = "Fetches the live rate table into the shared cache. Runs every 10 minutes."

    def add_arguments(self, parser):
        parser.add_argument(
            '--interval',
            type=int,
            default=600,  # 10 minutes in seconds
            help='Refresh interval in seconds (default: 600 = 10 minutes)'
        )
        parser.add_argument(
            '--once',
            action='store_true',
            help='Run once and exit (for cron jobs)'
        )

    def handle(self, *args, **options):
        interval = options['interval']
        run_once = options['once']
        rates = get_default_converter().rates

        self.stdout.write(
            self.style.SUCCESS(
                f"Starting rate refresher for base {rates.base_currency}, every {interval}s"
            )
        )

        while True:
            try:
                table = rates.refresh()
                self.stdout.write(
                    self.style.SUCCESS(f"✓ {len(table['rates'])} rates cached for {table['base']}")
                )
            except RateFetchError as e:
                self.stdout.write(self.style.ERROR(f"✗ {e.code}: {e.message}"))

            if run_once:
                break

            self.stdout.write(f"Waiting {interval}s until next fetch...\n")
            time.sleep(interval)
