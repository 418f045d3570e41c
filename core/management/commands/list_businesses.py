import csv
import json

from django.core.management.base import BaseCommand
from django.db.models import Count

from core.models import Business


class Command(BaseCommand):
    help = 'List all businesses with their loyalty data counts'

    def add_arguments(self, parser):
        parser.add_argument(
            '--city',
            type=str,
            help='Only businesses in this city'
        )
        parser.add_argument(
            '--overdraft-only',
            action='store_true',
            help='Show only businesses that allow negative balances'
        )
        parser.add_argument(
            '--format',
            type=str,
            choices=['table', 'json', 'csv'],
            default='table',
            help='Output format'
        )

    def handle(self, *args, **options):
        businesses = Business.objects.annotate(
            client_total=Count('client_set', distinct=True),
            item_total=Count('item_set', distinct=True),
        ).order_by('name')

        if options['city']:
            businesses = businesses.filter(city__iexact=options['city'])
        if options['overdraft_only']:
            businesses = businesses.filter(allow_negative_points=True)

        if options['format'] == 'json':
            self._output_json(businesses)
        elif options['format'] == 'csv':
            self._output_csv(businesses)
        else:
            self._output_table(businesses)

    def _output_table(self, businesses):
        """Output as formatted table"""
        self.stdout.write(
            self.style.SUCCESS(f'\n📋 Businesses ({businesses.count()})\n')
        )
        self.stdout.write('─' * 90)
        self.stdout.write(
            f"{'Overdraft':^9} | {'Name':<22} | {'Slug':<22} | {'City':<12} | {'Clients':>7} | {'Items':>5}"
        )
        self.stdout.write('─' * 90)

        for business in businesses:
            overdraft = '🟢' if business.allow_negative_points else '🔴'
            self.stdout.write(
                f"   {overdraft:^3}    | {business.name[:22]:<22} | {business.slug[:22]:<22} | "
                f"{business.city[:12]:<12} | {business.client_total:>7} | {business.item_total:>5}"
            )

        self.stdout.write('─' * 90)

    def _output_json(self, businesses):
        """Output as JSON"""
        data = [
            {
                'id': business.id,
                'name': business.name,
                'slug': business.slug,
                'category': business.category,
                'city': business.city,
                'allow_negative_points': business.allow_negative_points,
                'clients': business.client_total,
                'items': business.item_total,
                'created_at': business.created_at.isoformat(),
            }
            for business in businesses
        ]
        self.stdout.write(json.dumps(data, indent=2))

    def _output_csv(self, businesses):
        """Output as CSV"""
        writer = csv.writer(self.stdout)
        writer.writerow(['ID', 'Name', 'Slug', 'City', 'Overdraft', 'Clients', 'Items', 'Created'])

        for business in businesses:
            writer.writerow([
                business.id,
                business.name,
                business.slug,
                business.city,
                'Yes' if business.allow_negative_points else 'No',
                business.client_total,
                business.item_total,
                business.created_at.strftime('%Y-%m-%d'),
            ])
