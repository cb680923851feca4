"""
Test settings.
"""
from .base import *

DEBUG = False

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = 'memory://'
CELERY_RESULT_BACKEND = 'cache+memory://'

AZAMPAY_CLIENT_ID = 'test-client'
AZAMPAY_CLIENT_SECRET = 'test-secret'
AZAMPAY_API_KEY = 'test-api-key'
AZAMPAY_BASE_URL = 'https://sandbox.azampay.test'
AZAMPAY_WEBHOOK_SECRET = ''

CRON_SECRET = ''
MIGRATION_SECRET = 'test-migration-secret'

LOGGING['loggers']['apps']['level'] = 'CRITICAL'

CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
    }
}
