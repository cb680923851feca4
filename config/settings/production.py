"""
Production settings.
"""
from .base import *

DEBUG = False

SECURE_SSL_REDIRECT = os.getenv('SECURE_SSL_REDIRECT', 'True') == 'True'
SESSION_COOKIE_SECURE = True
CSRF_COOKIE_SECURE = True

AZAMPAY_ENV = os.getenv('AZAMPAY_ENV', 'production')
AZAMPAY_BASE_URL = os.getenv('AZAMPAY_BASE_URL', 'https://checkout.azampay.co.tz')
