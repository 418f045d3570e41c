from datetime import timedelta

from django.core.management.base import BaseCommand, CommandError
from django.db.models import Count, Q, Sum
from django.utils import timezone

from core.models import Business
from loyalty.models import Client, Item, LedgerEntry


class Command(BaseCommand):
    help = 'Show loyalty statistics for one business or the whole platform'

    def add_arguments(self, parser):
        parser.add_argument(
            'business',
            nargs='?',
            type=str,
            help='Business slug (optional)'
        )
        parser.add_argument(
            '--days',
            type=int,
            default=30,
            help='Activity window in days'
        )
        parser.add_argument(
            '--health',
            action='store_true',
            help='Show system health check'
        )

    def handle(self, *args, **options):
        if options['health']:
            self._show_system_health()
            return

        since = timezone.now() - timedelta(days=options['days'])

        if options['business']:
            business = Business.objects.filter(slug=options['business']).first()
            if not business:
                raise CommandError(f'Business not found: {options["business"]}')
            self._show_business_stats(business, since, options['days'])
        else:
            self._show_platform_stats(since, options['days'])

    def _show_system_health(self):
        """Show system health information"""
        from django.core.cache import cache
        from django.db import connection

        self.stdout.write(self.style.SUCCESS('\n🏥 SYSTEM HEALTH CHECK\n'))

        try:
            with connection.cursor() as cursor:
                cursor.execute("SELECT 1")
            self.stdout.write('✅ Database: Connected')
        except Exception as e:
            self.stdout.write(self.style.ERROR(f'❌ Database: Error - {e}'))

        try:
            cache.set('health_check', 'ok', 1)
            if cache.get('health_check') == 'ok':
                self.stdout.write('✅ Cache: Working')
            else:
                self.stdout.write(self.style.WARNING('⚠️ Cache: Issues detected'))
        except Exception as e:
            self.stdout.write(self.style.ERROR(f'❌ Cache: Error - {e}'))

        self.stdout.write(f'\n🏪 Businesses: {Business.objects.count()}')
        self.stdout.write(f'👥 Clients: {Client.objects.count():,}')

    def _show_platform_stats(self, since, days):
        """Totals across all businesses plus the most active ones"""
        self.stdout.write(self.style.SUCCESS('\n📊 PLATFORM STATISTICS\n'))

        self.stdout.write(f'Businesses: {Business.objects.count()}')
        self.stdout.write(f'Clients: {Client.objects.count():,}')
        self.stdout.write(f'Items: {Item.objects.count():,}')
        self.stdout.write(f'Transactions: {LedgerEntry.objects.count():,}')

        top = (
            LedgerEntry.objects.filter(created_at__gte=since)
            .values('business__name')
            .annotate(count=Count('id'))
            .order_by('-count')[:5]
        )
        if top:
            self.stdout.write(f'\n🔥 Most active (last {days} days):')
            for row in top:
                self.stdout.write(f'  • {row["business__name"]}: {row["count"]:,}')

    def _show_business_stats(self, business, since, days):
        """Client, balance and ledger figures for a single business"""
        clients = Client.objects.filter(business=business)
        entries = LedgerEntry.objects.filter(business=business)
        recent = entries.filter(created_at__gte=since)

        balances = clients.aggregate(
            total=Sum('points'),
            negative=Count('id', filter=Q(points__lt=0)),
            inactive=Count('id', filter=Q(is_activated=False)),
        )
        flows = recent.aggregate(
            earned=Sum('points', filter=Q(points__gt=0)),
            redeemed=Sum('points', filter=Q(points__lt=0)),
        )

        self.stdout.write(self.style.SUCCESS(f'\n📊 STATISTICS FOR: {business.name}\n'))
        self.stdout.write(f'Slug: {business.slug}')
        self.stdout.write(f'Overdraft: {"🟢 Allowed" if business.allow_negative_points else "🔴 Blocked"}')
        self.stdout.write(f'Created: {business.created_at.strftime("%Y-%m-%d")}')

        self.stdout.write('\n👥 CLIENTS:')
        self.stdout.write(f'  Total: {clients.count():,}')
        self.stdout.write(f'  Not yet activated: {balances["inactive"]:,}')
        self.stdout.write(f'  Negative balance: {balances["negative"]:,}')
        self.stdout.write(f'  Points outstanding: {balances["total"] or 0:,}')

        self.stdout.write(f'\n📦 ITEMS: {Item.objects.filter(business=business).count()}')

        self.stdout.write(f'\n🧾 LEDGER (last {days} days):')
        self.stdout.write(f'  Transactions: {recent.count():,} of {entries.count():,} total')
        self.stdout.write(f'  Points earned: {flows["earned"] or 0:,}')
        self.stdout.write(f'  Points redeemed: {-(flows["redeemed"] or 0):,}')
