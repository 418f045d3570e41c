"""
Balance Ledger tests - immutability, arithmetic invariant, filtering and paging
"""
from datetime import timedelta

from django.db import IntegrityError, transaction
from django.test import TestCase
from django.utils import timezone

from loyalty import ledger, operations
from loyalty.exceptions import ImmutableLedgerError, NotFound, ValidationFailure
from loyalty.models import LedgerEntry

from .helpers import make_business, make_client, make_item, make_operator


class LedgerEntryModelTestCase(TestCase):

    def setUp(self):
        self.business = make_business('Corner Bakery')
        self.operator = make_operator(self.business)
        self.client_card = make_client(self.business, 'CORN-AAAAAA', points=10)

    def _entry(self):
        return operations.apply_manual(self.client_card.pk, 5, actor=self.operator).entry

    def test_entries_cannot_be_modified(self):
        entry = self._entry()
        entry.note = 'rewritten'
        with self.assertRaises(ImmutableLedgerError):
            entry.save()

    def test_entries_cannot_be_deleted(self):
        entry = self._entry()
        with self.assertRaises(ImmutableLedgerError):
            entry.delete()
        self.assertTrue(LedgerEntry.objects.filter(pk=entry.pk).exists())

    def test_database_rejects_unbalanced_entries(self):
        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                LedgerEntry.objects.create(
                    client=self.client_card,
                    business=self.business,
                    points=5,
                    before_points=10,
                    after_points=99,
                    performed_by=self.operator,
                )


class AppendEntryTestCase(TestCase):

    def setUp(self):
        self.business = make_business('Corner Bakery')
        self.operator = make_operator(self.business)
        self.client_card = make_client(self.business, 'CORN-BBBBBB', points=10)

    def test_inconsistent_arithmetic_rejected(self):
        with self.assertRaises(ValidationFailure):
            ledger.append_entry(self.client_card, self.business, None, 5, 10, 16, self.operator)

    def test_zero_delta_rejected(self):
        with self.assertRaises(ValidationFailure):
            ledger.append_entry(self.client_card, self.business, None, 0, 10, 10, self.operator)

    def test_append_records_values_verbatim(self):
        entry = ledger.append_entry(
            self.client_card, self.business, None, -4, 10, 6, self.operator, note='fix'
        )
        self.assertEqual((entry.before_points, entry.points, entry.after_points), (10, -4, 6))
        self.assertEqual(entry.note, 'fix')


class BalanceAndListingTestCase(TestCase):

    def setUp(self):
        self.business = make_business('Corner Bakery')
        self.other = make_business('Tea House')
        self.operator = make_operator(self.business)
        self.other_operator = make_operator(self.other)
        self.client_card = make_client(self.business, 'CORN-CCCCCC', points=0)
        self.other_client = make_client(self.other, 'TEAH-CCCCCC', points=0)
        self.earn = make_item(self.business, 'Croissant', 3, 'earn')

        for _ in range(5):
            operations.apply_item(self.client_card.pk, self.earn.pk, actor=self.operator)
        operations.apply_manual(self.other_client.pk, 7, actor=self.other_operator)

    def test_get_balance(self):
        self.assertEqual(ledger.get_balance(self.client_card), 15)
        self.assertEqual(ledger.get_balance(self.other_client.pk), 7)

    def test_get_balance_unknown_client(self):
        with self.assertRaises(NotFound):
            ledger.get_balance(424242)

    def test_latest_entry_matches_balance(self):
        self.assertEqual(ledger.latest_entry(self.client_card).after_points, 15)

    def test_list_entries_filters_by_business(self):
        page = ledger.list_entries(business=self.business)
        self.assertEqual(page.total, 5)
        self.assertTrue(all(entry.business_id == self.business.pk for entry in page.entries))

    def test_list_entries_newest_first_with_paging(self):
        first = ledger.list_entries(client=self.client_card, page=1, page_size=2)
        third = ledger.list_entries(client=self.client_card, page=3, page_size=2)

        self.assertEqual(first.pages, 3)
        self.assertEqual([e.after_points for e in first.entries], [15, 12])
        self.assertEqual([e.after_points for e in third.entries], [3])
        self.assertEqual(
            first.as_pagination(),
            {'page': 1, 'limit': 2, 'total': 5, 'pages': 3}
        )

    def test_page_beyond_range_is_empty(self):
        page = ledger.list_entries(client=self.client_card, page=10, page_size=2)
        self.assertEqual(page.entries, [])
        self.assertEqual(page.total, 5)

    def test_page_size_is_capped(self):
        page = ledger.list_entries(page_size=10_000)
        self.assertEqual(page.page_size, 200)

    def test_date_filters(self):
        now = timezone.now()
        self.assertEqual(ledger.filter_entries(date_from=now + timedelta(days=1)).count(), 0)
        self.assertEqual(ledger.filter_entries(date_to=now + timedelta(days=1)).count(), 6)

    def test_item_filter(self):
        self.assertEqual(ledger.filter_entries(item=self.earn).count(), 5)
