"""
Access Scoping Layer tests - role and tenant resolution of clients
"""
from django.test import TestCase

from loyalty import operations, scoping
from loyalty.exceptions import Forbidden, NotFound, ValidationFailure

from .helpers import make_admin, make_business, make_client, make_operator


class ResolveClientTestCase(TestCase):

    def setUp(self):
        self.admin = make_admin()
        self.business_a = make_business('Alpha Cafe')
        self.business_b = make_business('Beta Bistro')
        self.operator_a = make_operator(self.business_a)
        self.client_a = make_client(self.business_a, 'ALPH-AAAAAA')
        self.client_b = make_client(self.business_b, 'BETA-AAAAAA')

    def test_operator_resolves_own_client_by_pk_and_client_id(self):
        self.assertEqual(scoping.resolve_client(self.operator_a, str(self.client_a.pk)), self.client_a)
        self.assertEqual(scoping.resolve_client(self.operator_a, self.client_a.pk), self.client_a)
        self.assertEqual(scoping.resolve_client(self.operator_a, 'ALPH-AAAAAA'), self.client_a)

    def test_operator_cannot_reach_other_business_by_pk(self):
        with self.assertRaises(Forbidden):
            scoping.resolve_client(self.operator_a, self.client_b.pk)

    def test_operator_does_not_see_other_business_client_id(self):
        with self.assertRaises(NotFound):
            scoping.resolve_client(self.operator_a, 'BETA-AAAAAA')

    def test_admin_reaches_any_business(self):
        self.assertEqual(scoping.resolve_client(self.admin, self.client_b.pk), self.client_b)
        self.assertEqual(scoping.resolve_client(self.admin, 'BETA-AAAAAA'), self.client_b)

    def test_admin_ambiguous_client_id(self):
        make_client(self.business_b, 'SAME-AAAAAA')
        shared = make_client(self.business_a, 'SAME-AAAAAA')

        with self.assertRaises(ValidationFailure):
            scoping.resolve_client(self.admin, 'SAME-AAAAAA')

        resolved = scoping.resolve_client(self.admin, 'SAME-AAAAAA', business=self.business_a)
        self.assertEqual(resolved, shared)

    def test_unknown_and_blank_references(self):
        with self.assertRaises(NotFound):
            scoping.resolve_client(self.admin, 'NOPE-AAAAAA')
        with self.assertRaises(ValidationFailure):
            scoping.resolve_client(self.admin, '  ')

    def test_non_ascii_digits_are_not_primary_keys(self):
        with self.assertRaises(NotFound):
            scoping.resolve_client(self.admin, '١٢')

    def test_operator_without_business_is_forbidden(self):
        # A business user row whose business was removed out from under it
        self.operator_a.business_id = None
        with self.assertRaises(Forbidden):
            scoping.resolve_client(self.operator_a, 'ALPH-AAAAAA')


class ResolveBusinessTestCase(TestCase):

    def setUp(self):
        self.admin = make_admin()
        self.business_a = make_business('Alpha Cafe')
        self.business_b = make_business('Beta Bistro')
        self.operator_a = make_operator(self.business_a)

    def test_operator_pinned_to_own_business(self):
        self.assertEqual(scoping.resolve_business(self.operator_a, self.business_a.pk), self.business_a)
        with self.assertRaises(Forbidden):
            scoping.resolve_business(self.operator_a, self.business_b.pk)

    def test_admin_any_business(self):
        self.assertEqual(scoping.resolve_business(self.admin, str(self.business_b.pk)), self.business_b)

    def test_unknown_business(self):
        with self.assertRaises(NotFound):
            scoping.resolve_business(self.admin, 424242)
        with self.assertRaises(NotFound):
            scoping.resolve_business(self.admin, 'not-a-number')


class ScopedQuerysetTestCase(TestCase):

    def setUp(self):
        self.admin = make_admin()
        self.business_a = make_business('Alpha Cafe')
        self.business_b = make_business('Beta Bistro')
        self.operator_a = make_operator(self.business_a)
        self.operator_b = make_operator(self.business_b)
        client_a = make_client(self.business_a, 'ALPH-AAAAAA')
        client_b = make_client(self.business_b, 'BETA-AAAAAA')
        operations.apply_manual(client_a.pk, 5, actor=self.operator_a)
        operations.apply_manual(client_b.pk, 5, actor=self.operator_b)

    def test_operator_sees_only_own_data(self):
        self.assertEqual(
            set(scoping.scope_clients(self.operator_a).values_list('business_id', flat=True)),
            {self.business_a.pk}
        )
        self.assertEqual(scoping.scope_entries(self.operator_a).count(), 1)

    def test_operator_cannot_widen_scope_with_business_argument(self):
        self.assertFalse(scoping.scope_clients(self.operator_a, business=self.business_b).exists())

    def test_admin_sees_everything_or_narrows(self):
        self.assertEqual(scoping.scope_clients(self.admin).count(), 2)
        self.assertEqual(scoping.scope_entries(self.admin, business=self.business_b).count(), 1)
