from django.core.management.base import BaseCommand, CommandError

from user.models import CustomUser, UserRole


class Command(BaseCommand):
    help = "Give an account the platform admin capability."

    def add_arguments(self, parser):
        parser.add_argument('email')
        parser.add_argument(
            '--revoke',
            action='store_true',
            help='Remove the admin capability instead of granting it.',
        )

    def handle(self, *args, **options):
        email = options['email'].strip().lower()
        user = CustomUser.objects.filter(email__iexact=email).first()
        if user is None:
            raise CommandError(f'No account with email {email}')

        if options['revoke']:
            deleted, _ = UserRole.objects.filter(user=user, role=UserRole.ADMIN).delete()
            if deleted:
                self.stdout.write(self.style.SUCCESS(f'Revoked admin from {email}'))
            else:
                self.stdout.write(f'{email} was not an admin')
            return

        _, created = UserRole.objects.get_or_create(user=user, role=UserRole.ADMIN)
        if created:
            self.stdout.write(self.style.SUCCESS(f'Granted admin to {email}'))
        else:
            self.stdout.write(f'{email} is already an admin')
