"""
Points Operation Engine tests - balance changes, overdraft policy, atomicity
"""
from unittest import mock

from django.test import TestCase

from loyalty import operations
from loyalty.exceptions import CrossTenant, InsufficientBalance, NotFound, ValidationFailure
from loyalty.ledger import latest_entry
from loyalty.models import Client, Item, LedgerEntry

from .helpers import make_business, make_client, make_item, make_operator


class ApplyItemTestCase(TestCase):
    """Earn and redeem through catalog items"""

    def setUp(self):
        self.business = make_business('My Coffee Shop')
        self.operator = make_operator(self.business)
        self.client_card = make_client(self.business, 'MYCO-AAAAAA', points=100)
        self.redeem_50 = make_item(self.business, 'Free Coffee', 50, Item.KIND_REDEEM)
        self.redeem_200 = make_item(self.business, 'Free Lunch', 200, Item.KIND_REDEEM)
        self.earn_10 = make_item(self.business, 'Visit', 10, Item.KIND_EARN)

    def test_redeem_within_balance(self):
        result = operations.apply_item(self.client_card.pk, self.redeem_50.pk, actor=self.operator)

        self.assertEqual(result.before_points, 100)
        self.assertEqual(result.after_points, 50)
        self.assertEqual(result.points_change, -50)
        self.assertEqual(result.entry.points, -50)
        self.assertEqual(result.entry.item, self.redeem_50)
        self.assertEqual(result.entry.performed_by, self.operator)

        self.client_card.refresh_from_db()
        self.assertEqual(self.client_card.points, 50)

    def test_redeem_beyond_balance_is_rejected_without_mutation(self):
        self.client_card.points = 50
        self.client_card.save(update_fields=['points'])

        with self.assertRaises(InsufficientBalance) as ctx:
            operations.apply_item(self.client_card.pk, self.redeem_200.pk, actor=self.operator)

        self.assertEqual(ctx.exception.current_balance, 50)
        self.assertEqual(ctx.exception.required, 200)
        self.assertEqual(ctx.exception.shortfall, 150)
        self.assertIn('Current balance: 50', str(ctx.exception.detail))

        self.client_card.refresh_from_db()
        self.assertEqual(self.client_card.points, 50)
        self.assertFalse(LedgerEntry.objects.exists())

    def test_overdraft_allowed_goes_negative(self):
        self.client_card.points = 50
        self.client_card.save(update_fields=['points'])
        self.business.allow_negative_points = True
        self.business.save(update_fields=['allow_negative_points'])

        result = operations.apply_item(self.client_card.pk, self.redeem_200.pk, actor=self.operator)

        self.assertEqual((result.before_points, result.after_points), (50, -150))
        self.client_card.refresh_from_db()
        self.assertEqual(self.client_card.points, -150)

    def test_earn_adds_points(self):
        result = operations.apply_item(self.client_card.pk, self.earn_10.pk, actor=self.operator)

        self.assertEqual(result.after_points, 110)
        self.assertEqual(result.entry.points, 10)

    def test_default_notes(self):
        earned = operations.apply_item(self.client_card.pk, self.earn_10.pk, actor=self.operator)
        redeemed = operations.apply_item(self.client_card.pk, self.redeem_50.pk, actor=self.operator)

        self.assertEqual(earned.entry.note, 'Earned: Visit')
        self.assertEqual(redeemed.entry.note, 'Redeemed: Free Coffee')

    def test_explicit_note_is_kept(self):
        result = operations.apply_item(
            self.client_card.pk, self.earn_10.pk, actor=self.operator, note='Birthday visit'
        )
        self.assertEqual(result.entry.note, 'Birthday visit')

    def test_accepts_model_instances(self):
        result = operations.apply_item(self.client_card, self.earn_10, actor=self.operator)
        self.assertEqual(result.after_points, 110)

    def test_unknown_client(self):
        with self.assertRaises(NotFound):
            operations.apply_item(999999, self.earn_10.pk, actor=self.operator)

    def test_unknown_item(self):
        with self.assertRaises(NotFound):
            operations.apply_item(self.client_card.pk, 999999, actor=self.operator)
        self.assertFalse(LedgerEntry.objects.exists())

    def test_item_from_other_business_is_cross_tenant(self):
        other = make_business('Tea House')
        foreign_client = make_client(other, 'TEAH-BBBBBB', points=500)

        with self.assertRaises(CrossTenant):
            operations.apply_item(foreign_client.pk, self.redeem_50.pk, actor=self.operator)

        foreign_client.refresh_from_db()
        self.client_card.refresh_from_db()
        self.assertEqual(foreign_client.points, 500)
        self.assertEqual(self.client_card.points, 100)
        self.assertFalse(LedgerEntry.objects.exists())

    def test_earn_on_negative_balance_reports_remaining_shortfall(self):
        self.client_card.points = -150
        self.client_card.save(update_fields=['points'])

        with self.assertRaises(InsufficientBalance) as ctx:
            operations.apply_item(self.client_card.pk, self.earn_10.pk, actor=self.operator)

        self.assertEqual(ctx.exception.current_balance, -150)
        self.assertEqual(ctx.exception.required, 0)
        self.assertEqual(ctx.exception.shortfall, 140)
        self.client_card.refresh_from_db()
        self.assertEqual(self.client_card.points, -150)

    def test_deleting_item_leaves_recorded_entries_untouched(self):
        result = operations.apply_item(self.client_card.pk, self.redeem_50.pk, actor=self.operator)
        item_pk = self.redeem_50.pk

        self.redeem_50.delete()

        entry = LedgerEntry.objects.get(pk=result.entry.pk)
        self.assertEqual(entry.item_id, item_pk)
        self.assertIsNone(entry.item_or_none)
        self.assertEqual((entry.before_points, entry.after_points, entry.points), (100, 50, -50))

    def test_client_row_is_locked(self):
        with mock.patch.object(
            Client.objects, 'select_for_update', wraps=Client.objects.select_for_update
        ) as select_for_update:
            operations.apply_item(self.client_card.pk, self.earn_10.pk, actor=self.operator)

        select_for_update.assert_called_once_with()


class ApplyManualTestCase(TestCase):
    """Manual adjustments without an item"""

    def setUp(self):
        self.business = make_business('My Coffee Shop')
        self.operator = make_operator(self.business)
        self.client_card = make_client(self.business, 'MYCO-CCCCCC', points=70)

    def test_deduction_within_balance(self):
        result = operations.apply_manual(self.client_card.pk, -30, actor=self.operator)

        self.assertEqual((result.before_points, result.after_points), (70, 40))
        self.assertIsNone(result.entry.item)
        self.assertEqual(result.entry.note, 'Manual adjustment: -30 points')

    def test_addition_note_has_plus_sign(self):
        result = operations.apply_manual(self.client_card.pk, 25, actor=self.operator)

        self.assertEqual(result.after_points, 95)
        self.assertEqual(result.entry.note, 'Manual adjustment: +25 points')

    def test_deduction_beyond_balance_rejected(self):
        with self.assertRaises(InsufficientBalance) as ctx:
            operations.apply_manual(self.client_card.pk, -100, actor=self.operator)

        self.assertEqual(ctx.exception.required, 100)
        self.assertEqual(ctx.exception.shortfall, 30)
        self.client_card.refresh_from_db()
        self.assertEqual(self.client_card.points, 70)

    def test_invalid_deltas(self):
        for delta in (0, 1.5, '10', True, None):
            with self.subTest(delta=delta):
                with self.assertRaises(ValidationFailure):
                    operations.apply_manual(self.client_card.pk, delta, actor=self.operator)
        self.assertFalse(LedgerEntry.objects.exists())

    def test_balance_matches_latest_entry_after_many_operations(self):
        for delta in (10, -20, 5, -60, 15):
            operations.apply_manual(self.client_card.pk, delta, actor=self.operator)

        self.client_card.refresh_from_db()
        self.assertEqual(self.client_card.points, 70 + 10 - 20 + 5 - 60 + 15)
        self.assertEqual(latest_entry(self.client_card).after_points, self.client_card.points)

        chain = list(LedgerEntry.objects.filter(client=self.client_card).order_by('created_at', 'id'))
        self.assertEqual(len(chain), 5)
        self.assertEqual(chain[0].before_points, 70)
        for previous, current in zip(chain, chain[1:]):
            self.assertEqual(current.before_points, previous.after_points)
        for entry in chain:
            self.assertEqual(entry.after_points, entry.before_points + entry.points)


class AtomicityTestCase(TestCase):
    """A failed ledger write leaves the balance untouched"""

    def setUp(self):
        self.business = make_business('My Coffee Shop')
        self.operator = make_operator(self.business)
        self.client_card = make_client(self.business, 'MYCO-DDDDDD', points=100)

    def test_ledger_failure_rolls_back_balance(self):
        with mock.patch('loyalty.operations.ledger.append_entry', side_effect=RuntimeError('disk full')):
            with self.assertRaises(RuntimeError):
                operations.apply_manual(self.client_card.pk, 25, actor=self.operator)

        self.assertEqual(Client.objects.get(pk=self.client_card.pk).points, 100)
        self.assertFalse(LedgerEntry.objects.exists())
