"""Test settings.

In-memory SQLite, eager Celery and an in-memory mail outbox, with a
fixed VNPay sandbox configuration so signatures are reproducible.
"""

from .base import *  # noqa: F401,F403

DEBUG = False

SECRET_KEY = 'test-secret-key'

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

EMAIL_BACKEND = 'django.core.mail.backends.locmem.EmailBackend'

STORAGES = {
    **STORAGES,  # noqa: F405
    'staticfiles': {'BACKEND': 'django.contrib.staticfiles.storage.StaticFilesStorage'},
}

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = 'memory://'
CELERY_RESULT_BACKEND = 'cache+memory://'

VNPAY_TMN_CODE = 'TESTTMN1'
VNPAY_HASH_SECRET = 'TESTSECRETKEY0123456789ABCDEFGHIJ'
VNPAY_PAYMENT_URL = 'https://sandbox.vnpayment.vn/paymentv2/vpcpay.html'
VNPAY_RETURN_URL = 'http://testserver/api/v1/finances/vnpay-return/'

for _logger in ('apps', 'shared', 'apps.finances'):
    LOGGING['loggers'][_logger]['level'] = 'WARNING'  # noqa: F405
