"""
Logging context tests - business attribution of log records
"""
import logging

from django.test import RequestFactory, TestCase

from core.logging import BusinessContextFilter, RequestContextFilter
from core.utils import business_context, clear_thread_locals, get_current_business, set_current_request

from .helpers import make_business, make_operator


def make_record(**extra):
    record = logging.LogRecord('loyalty', logging.INFO, __file__, 1, 'message', None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class BusinessContextFilterTestCase(TestCase):

    def tearDown(self):
        clear_thread_locals()

    def test_without_context(self):
        record = make_record()
        BusinessContextFilter().filter(record)
        self.assertEqual(record.business, '[no-business]')

    def test_extra_business_id(self):
        record = make_record(business_id=42)
        BusinessContextFilter().filter(record)
        self.assertEqual(record.business, '[business:42]')

    def test_nested_business_context_restores_previous(self):
        outer = make_business('Alpha Cafe')
        inner = make_business('Beta Bistro')

        with business_context(outer):
            with business_context(inner):
                record = make_record()
                BusinessContextFilter().filter(record)
                self.assertEqual(record.business, '[beta-bistro]')
            self.assertEqual(get_current_business(), outer)
        self.assertIsNone(get_current_business())


class RequestContextFilterTestCase(TestCase):

    def tearDown(self):
        clear_thread_locals()

    def test_system_record(self):
        record = make_record()
        RequestContextFilter().filter(record)
        self.assertEqual(record.user, 'system')

    def test_request_record(self):
        operator = make_operator(make_business('Alpha Cafe'))
        request = RequestFactory().post('/api/business/clients/1/manual/', HTTP_X_FORWARDED_FOR='10.0.0.9, 10.0.0.1')
        request.user = operator
        set_current_request(request)

        record = make_record()
        RequestContextFilter().filter(record)

        self.assertEqual(record.user, f'{operator.username}(business_user)')
        self.assertEqual(record.method, 'POST')
        self.assertEqual(record.ip, '10.0.0.9')
