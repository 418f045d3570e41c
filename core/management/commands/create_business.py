import secrets

from django.core.exceptions import ValidationError
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from core.models import Business, User
from core.services import create_business


class Command(BaseCommand):
    help = 'Create a new business with its slug and optional operator account'

    def add_arguments(self, parser):
        parser.add_argument('name', type=str, help='Public-facing business name')
        parser.add_argument('--category', type=str, default='', help='Business category (e.g. Cafe)')
        parser.add_argument('--city', type=str, default='', help='City')
        parser.add_argument('--region', type=str, default='', help='Region or state')
        parser.add_argument('--email', type=str, default='', help='Contact email for notifications')
        parser.add_argument(
            '--activation-code',
            type=str,
            default='',
            help='Code end-users must enter to claim pre-generated cards'
        )
        parser.add_argument(
            '--allow-negative',
            action='store_true',
            help='Allow client balances to go below zero'
        )
        parser.add_argument(
            '--create-operator',
            action='store_true',
            help='Create a business user account for this business'
        )

    def handle(self, *args, **options):
        name = options['name'].strip()

        if not name:
            raise CommandError('Business name cannot be empty')

        if Business.objects.filter(name__iexact=name).exists():
            raise CommandError(f'Business with name "{name}" already exists')

        with transaction.atomic():
            try:
                business = create_business(
                    name,
                    category=options['category'],
                    city=options['city'],
                    region=options['region'],
                    contact_email=options['email'],
                    activation_code=options['activation_code'],
                    allow_negative_points=options['allow_negative'],
                )
            except ValidationError as e:
                raise CommandError(f'Invalid business: {e}')

            operator = None
            password = None
            if options['create_operator']:
                operator, password = self._create_operator(business, options['email'])

        # Output success message
        self.stdout.write(
            self.style.SUCCESS(f'✅ Successfully created business: {business.name}')
        )
        self.stdout.write(f'   Slug: {business.slug}')
        self.stdout.write(f'   Overdraft: {"🟢 Allowed" if business.allow_negative_points else "🔴 Blocked"}')
        self.stdout.write(f'   Business ID: {business.id}')

        if operator:
            self.stdout.write(self.style.SUCCESS('\n👤 Created business user:'))
            self.stdout.write(f'   Username: {operator.username}')
            self.stdout.write(f'   Password: {password}')
            self.stdout.write('\n⚠️  SECURITY: Change this password immediately!')

    def _create_operator(self, business, email):
        """Operator account with a generated password"""
        password = secrets.token_urlsafe(12)
        username = f'operator-{business.slug}'

        if User.objects.filter(username=username).exists():
            raise CommandError(f'User "{username}" already exists')

        operator = User.objects.create_user(
            username=username,
            email=email or f'{username}@example.invalid',
            password=password,
            role=User.ROLE_BUSINESS_USER,
            business=business,
        )
        return operator, password
