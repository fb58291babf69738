# solarshare/tests.py
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import OperationalError
from django.conf import settings
from django.test import SimpleTestCase, override_settings

from .conf import solarshare_setting
from .exceptions import ConflictError, solarshare_exception_handler


class ExceptionHandlerTestCase(SimpleTestCase):
    def test_store_errors_become_503(self):
        resp = solarshare_exception_handler(OperationalError('connection refused'), {})
        self.assertEqual(resp.status_code, 503)
        self.assertEqual(resp.data['detail'], 'Storage backend is unavailable.')

    def test_model_validation_becomes_400(self):
        resp = solarshare_exception_handler(DjangoValidationError({'amount': ['too small']}), {})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.data['amount'], ['too small'])

    def test_conflict_keeps_reason(self):
        resp = solarshare_exception_handler(ConflictError('Cannot move investment from completed to active'), {})
        self.assertEqual(resp.status_code, 409)
        self.assertEqual(resp.data['detail'], 'Cannot move investment from completed to active')


class SolarshareSettingTestCase(SimpleTestCase):
    def test_reads_current_settings(self):
        self.assertEqual(solarshare_setting('LOCK_IN_PERIODS'), settings.SOLARSHARE['LOCK_IN_PERIODS'])
        with override_settings(SOLARSHARE={**settings.SOLARSHARE, 'MONTHLY_INCOME_WINDOW_DAYS': 7}):
            self.assertEqual(solarshare_setting('MONTHLY_INCOME_WINDOW_DAYS'), 7)
