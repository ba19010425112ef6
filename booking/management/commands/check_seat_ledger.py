from django.core.management.base import BaseCommand, CommandError

from booking.ledger import ledger_discrepancies
from booking.models import Ride


class Command(BaseCommand):
    help = "Report rides whose free and booked seats do not add up to the posted capacity."

    def add_arguments(self, parser):
        parser.add_argument(
            '--open-only',
            action='store_true',
            help='Only check rides that are still available or full.',
        )

    def handle(self, *args, **options):
        rides = Ride.objects.all()
        if options['open_only']:
            rides = rides.filter(status__in=Ride.OPEN_STATUSES)

        checked = rides.count()
        problems = ledger_discrepancies(rides)

        for problem in problems:
            self.stdout.write(
                f"Ride {problem['ride_id']}: total={problem['total_seats']} "
                f"available={problem['available_seats']} held={problem['seats_held']} "
                f"(off by {problem['difference']})"
            )

        if problems:
            raise CommandError(f'{len(problems)} of {checked} ride(s) have unbalanced seat counts')

        self.stdout.write(self.style.SUCCESS(f'All {checked} ride(s) balance'))
