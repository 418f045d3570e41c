"""
Management command tests
"""
import json
from io import StringIO

from django.core.management import CommandError, call_command
from django.test import TestCase

from core.models import Business, User
from loyalty import operations

from .helpers import make_business, make_client, make_operator


class CreateBusinessCommandTestCase(TestCase):

    def test_creates_business_and_operator(self):
        out = StringIO()
        call_command('create_business', 'Corner Bakery', '--city', 'Lyon', '--create-operator', stdout=out)

        business = Business.objects.get(slug='corner-bakery')
        self.assertEqual(business.city, 'Lyon')
        self.assertTrue(User.objects.filter(business=business, role=User.ROLE_BUSINESS_USER).exists())
        self.assertIn('corner-bakery', out.getvalue())

    def test_duplicate_name(self):
        make_business('Corner Bakery')
        with self.assertRaises(CommandError):
            call_command('create_business', 'corner bakery', stdout=StringIO())


class ToggleOverdraftCommandTestCase(TestCase):

    def setUp(self):
        self.business = make_business('Corner Bakery')

    def test_allow_and_block(self):
        call_command('toggle_overdraft', 'corner-bakery', '--allow', '--force', stdout=StringIO())
        self.business.refresh_from_db()
        self.assertTrue(self.business.allow_negative_points)

        call_command('toggle_overdraft', 'Corner Bakery', '--block', '--force', stdout=StringIO())
        self.business.refresh_from_db()
        self.assertFalse(self.business.allow_negative_points)

    def test_requires_exactly_one_flag(self):
        with self.assertRaises(CommandError):
            call_command('toggle_overdraft', 'corner-bakery', stdout=StringIO())
        with self.assertRaises(CommandError):
            call_command('toggle_overdraft', 'corner-bakery', '--allow', '--block', stdout=StringIO())

    def test_unknown_business(self):
        with self.assertRaises(CommandError):
            call_command('toggle_overdraft', 'nope', '--allow', '--force', stdout=StringIO())


class ReportingCommandsTestCase(TestCase):

    def setUp(self):
        self.business = make_business('Corner Bakery', city='Lyon')
        make_business('Tea House', city='Porto', allow_negative_points=True)
        operator = make_operator(self.business)
        client = make_client(self.business, 'CORN-AAAAAA', points=10)
        operations.apply_manual(client.pk, -4, actor=operator)

    def test_list_businesses_json(self):
        out = StringIO()
        call_command('list_businesses', '--format', 'json', stdout=out)

        data = {row['slug']: row for row in json.loads(out.getvalue())}
        self.assertEqual(data['corner-bakery']['clients'], 1)
        self.assertTrue(data['tea-house']['allow_negative_points'])

    def test_list_businesses_overdraft_only(self):
        out = StringIO()
        call_command('list_businesses', '--overdraft-only', '--format', 'csv', stdout=out)

        self.assertIn('tea-house', out.getvalue())
        self.assertNotIn('corner-bakery', out.getvalue())

    def test_business_stats(self):
        out = StringIO()
        call_command('business_stats', 'corner-bakery', stdout=out)

        output = out.getvalue()
        self.assertIn('Points outstanding: 6', output)
        self.assertIn('Points redeemed: 4', output)

    def test_business_stats_unknown(self):
        with self.assertRaises(CommandError):
            call_command('business_stats', 'nope', stdout=StringIO())
