import sys
from django.core.management.base import BaseCommand
from conversions.converter import get_default_converter, get_record_store, get_conversion_log
from conversions.exceptions import ConversionError, RateFetchError, user_message


class Command(BaseCommand):
    help = (
        "Converts amounts between currencies at live rates. "
        "With no arguments, prompts in a loop until an amount of 0 is entered."
    )
    stealth_options = ('stdin',)

    CURRENCY_HINT = 'USD/INR/EUR/GBP/AUD/CAD/JPY'

    def add_arguments(self, parser):
        parser.add_argument('amount', nargs='?', help='Amount to convert (one-shot mode)')
        parser.add_argument('source', nargs='?', help='Currency to convert from')
        parser.add_argument('target', nargs='?', help='Currency to convert to')

    def handle(self, *args, **options):
        self.stdin = options.get('stdin', sys.stdin)
        self.converter = get_default_converter()
        self.store = get_record_store()
        self.log = get_conversion_log()

        try:
            if options['amount'] is not None:
                if not options['source'] or not options['target']:
                    self.stderr.write("Usage: convert AMOUNT FROM TO")
                    return
                self.convert_once(options['amount'], options['source'], options['target'])
            else:
                self.run_loop()
        finally:
            self.log.flush()

    def prompt(self, text):
        self.stdout.write(text, ending='')
        self.stdout.flush()
        line = self.stdin.readline()
        if not line:
            return None
        return line.strip()

    def run_loop(self):
        self.stdout.write(self.style.SUCCESS("===== SMART LIVE CURRENCY CONVERTER ====="))

        while True:
            raw_amount = self.prompt("\nEnter amount (or 0 to exit): ")
            if raw_amount is None:
                break
            try:
                if float(raw_amount) == 0:
                    break
            except ValueError:
                # Non-numeric input is reported by the converter.
                pass

            source = self.prompt(f"From Currency ({self.CURRENCY_HINT}): ")
            if source is None:
                break
            target = self.prompt(f"To Currency ({self.CURRENCY_HINT}): ")
            if target is None:
                break

            self.convert_once(raw_amount, source, target)

        self.stdout.write("Program Ended. Thank you!")

    def convert_once(self, amount, source, target):
        self.stdout.write("\nFetching Live Rates... Please wait...\n")
        try:
            result = self.converter.convert(amount, source, target)
        except RateFetchError as e:
            self.stdout.write(self.style.ERROR(f"Error: {user_message(e)}"))
            self.stderr.write(f"{e.code}: {e.message}")
            return None
        except ConversionError as e:
            self.stdout.write(self.style.ERROR(f"Error: {user_message(e)}"))
            return None

        self.stdout.write("----------------------------------")
        self.stdout.write(str(result))
        self.stdout.write("----------------------------------")

        if self.store.save(result):
            self.stdout.write(self.style.SUCCESS("✓ Conversion saved to database"))
        else:
            self.stdout.write(self.style.WARNING("✗ Conversion could not be saved"))

        self.log.append(result)
        return result
