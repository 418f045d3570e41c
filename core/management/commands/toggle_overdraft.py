from django.core.cache import cache
from django.core.management.base import BaseCommand, CommandError
from django.db.models import Q

from core.models import Business


class Command(BaseCommand):
    help = 'Allow or block negative client balances for a business'

    def add_arguments(self, parser):
        parser.add_argument(
            'identifier',
            type=str,
            help='Business slug or name'
        )
        parser.add_argument(
            '--allow',
            action='store_true',
            help='Allow balances below zero'
        )
        parser.add_argument(
            '--block',
            action='store_true',
            help='Block operations that would leave a negative balance'
        )
        parser.add_argument(
            '--force',
            action='store_true',
            help='Force operation without confirmation'
        )

    def handle(self, *args, **options):
        identifier = options['identifier']

        # Validate arguments
        if options['allow'] and options['block']:
            raise CommandError('Cannot use both --allow and --block')

        if not options['allow'] and not options['block']:
            raise CommandError('Must specify either --allow or --block')

        business = Business.objects.filter(
            Q(slug=identifier) | Q(name__iexact=identifier)
        ).first()

        if not business:
            raise CommandError(f'Business not found: {identifier}')

        allow = options['allow']

        if business.allow_negative_points == allow:
            state = "allows" if allow else "blocks"
            self.stdout.write(
                self.style.WARNING(f'⚠️  Business "{business.name}" already {state} negative balances')
            )
            return

        # Show preview
        self.stdout.write('\n' + '═' * 50)
        self.stdout.write(f'Business: {business.name} ({business.slug})')
        self.stdout.write(f'Current Policy: {"🟢 Overdraft allowed" if business.allow_negative_points else "🔴 Overdraft blocked"}')
        self.stdout.write(f'Action: {"ALLOW" if allow else "BLOCK"}')
        self.stdout.write('═' * 50 + '\n')

        if not allow:
            negative = business.client_set.filter(points__lt=0).count()
            if negative:
                self.stdout.write(
                    self.style.WARNING(
                        f'⚠️  {negative} clients already have a negative balance; '
                        f'their redemptions will be rejected until they earn back to zero'
                    )
                )

        if not options['force']:
            confirm = input('Are you sure you want to change the overdraft policy? [y/N]: ')
            if confirm.lower() not in ['y', 'yes']:
                self.stdout.write(self.style.WARNING('❌ Operation cancelled'))
                return

        business.allow_negative_points = allow
        business.save(update_fields=['allow_negative_points', 'updated_at'])

        # Middleware caches businesses by slug
        cache.delete(f'business:slug:{business.slug}')

        self.stdout.write(self.style.SUCCESS(f'✅ Updated overdraft policy for: {business.name}'))
        self.stdout.write(f'   New Policy: {"🟢 Overdraft allowed" if allow else "🔴 Overdraft blocked"}')
