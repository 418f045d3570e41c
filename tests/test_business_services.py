"""
Business lifecycle tests - slugs, creation, renaming and cascading deletion
"""
from django.core.exceptions import ValidationError
from django.test import TestCase

from core import services
from core.models import Business, User
from core.slugs import slugify_business_name, unique_business_slug
from loyalty import operations
from loyalty.models import Client, Item, LedgerEntry

from .helpers import make_admin, make_business, make_client, make_item, make_operator


class SlugTestCase(TestCase):

    def test_slugify(self):
        cases = [
            ('My Coffee Shop', 'my-coffee-shop'),
            ('  Café & Bar!! ', 'caf-bar'),
            ('A--B__C', 'a-b-c'),
            ('---', ''),
        ]
        for name, expected in cases:
            with self.subTest(name=name):
                self.assertEqual(slugify_business_name(name), expected)

    def test_unique_slug_appends_counter(self):
        make_business('My Coffee Shop')
        make_business('My Coffee Shop!')

        self.assertEqual(unique_business_slug('my coffee shop?'), 'my-coffee-shop-2')

    def test_empty_slug_falls_back(self):
        self.assertEqual(unique_business_slug('***'), 'business')


class CreateAndUpdateBusinessTestCase(TestCase):

    def setUp(self):
        self.admin = make_admin()

    def test_create_assigns_slug_and_creator(self):
        business = services.create_business('Corner Bakery', created_by=self.admin, city='Lyon')

        self.assertEqual(business.slug, 'corner-bakery')
        self.assertEqual(business.created_by, self.admin)
        self.assertFalse(business.allow_negative_points)
        self.assertEqual(business.card_design['pattern'], 'geometric')

    def test_duplicate_name_rejected(self):
        services.create_business('Corner Bakery')
        with self.assertRaises(ValidationError):
            services.create_business('Corner Bakery')

    def test_save_does_not_rederive_slug(self):
        business = services.create_business('Corner Bakery')
        business.name = 'Renamed Directly'
        business.save()

        business.refresh_from_db()
        self.assertEqual(business.slug, 'corner-bakery')

    def test_rename_through_update_changes_slug(self):
        business = services.create_business('Corner Bakery')
        services.update_business(business, name='Corner Patisserie', city='Paris')

        business.refresh_from_db()
        self.assertEqual(business.slug, 'corner-patisserie')
        self.assertEqual(business.city, 'Paris')

    def test_update_without_rename_keeps_slug(self):
        business = services.create_business('Corner Bakery')
        services.update_business(business, city='Nice')
        self.assertEqual(business.slug, 'corner-bakery')

    def test_update_ignores_fields_outside_whitelist(self):
        business = services.create_business('Corner Bakery')
        services.update_business(
            business,
            allowed_fields=['city'],
            city='Nice',
            allow_negative_points=True,
        )
        business.refresh_from_db()
        self.assertEqual(business.city, 'Nice')
        self.assertFalse(business.allow_negative_points)

    def test_card_design_is_merged(self):
        business = services.create_business('Corner Bakery')
        services.update_business(business, card_design={'primaryColor': '#ff0000'})

        business.refresh_from_db()
        self.assertEqual(business.card_design['primaryColor'], '#ff0000')
        self.assertEqual(business.card_design['pattern'], 'geometric')

    def test_regenerate_slug(self):
        business = services.create_business('Corner Bakery')
        Business.objects.filter(pk=business.pk).update(name='Bakery Two')
        business.refresh_from_db()

        services.regenerate_slug(business)
        self.assertEqual(business.slug, 'bakery-two')


class DeleteBusinessTestCase(TestCase):

    def setUp(self):
        self.admin = make_admin()
        self.business = make_business('Corner Bakery')
        self.other = make_business('Tea House')
        self.operator = make_operator(self.business)
        self.other_operator = make_operator(self.other)

        client = make_client(self.business, 'CORN-AAAAAA', points=10)
        item = make_item(self.business, 'Bread', 5, Item.KIND_EARN)
        operations.apply_item(client.pk, item.pk, actor=self.operator)
        operations.apply_manual(client.pk, 3, actor=self.admin)

        other_client = make_client(self.other, 'TEAH-AAAAAA', points=10)
        operations.apply_manual(other_client.pk, 1, actor=self.other_operator)

    def test_cascade_removes_all_business_data(self):
        counts = services.delete_business(self.business.pk)

        self.assertEqual(counts, {'transactions': 2, 'clients': 1, 'items': 1, 'users': 1})
        self.assertFalse(Business.objects.filter(pk=self.business.pk).exists())
        self.assertFalse(Client.objects.filter(business_id=self.business.pk).exists())
        self.assertFalse(LedgerEntry.objects.filter(business_id=self.business.pk).exists())
        self.assertFalse(User.objects.filter(pk=self.operator.pk).exists())

    def test_other_businesses_untouched(self):
        services.delete_business(self.business.pk)

        self.assertTrue(Business.objects.filter(pk=self.other.pk).exists())
        self.assertEqual(Client.objects.filter(business=self.other).count(), 1)
        self.assertEqual(LedgerEntry.objects.filter(business=self.other).count(), 1)
        self.assertTrue(User.objects.filter(pk=self.admin.pk).exists())

    def test_missing_business_returns_none(self):
        self.assertIsNone(services.delete_business(999999))
