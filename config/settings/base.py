"""
Django settings for Kopqela Billing - Base Configuration
"""

import os
from pathlib import Path
from datetime import timedelta

# Build paths inside the project like this: BASE_DIR / 'subdir'.
BASE_DIR = Path(__file__).resolve().parent.parent.parent

# SECURITY WARNING: keep the secret key used in production secret!
SECRET_KEY = os.environ.get('SECRET_KEY', 'django-insecure-development-key-change-in-production')

# SECURITY WARNING: don't run with debug turned on in production!
DEBUG = os.environ.get('DEBUG', 'True') == 'True'

ALLOWED_HOSTS = os.environ.get('ALLOWED_HOSTS', 'localhost,127.0.0.1').split(',')

# Azampay callbacks arrive through a reverse proxy
SECURE_PROXY_SSL_HEADER = ('HTTP_X_FORWARDED_PROTO', 'https')
USE_X_FORWARDED_HOST = True

# ────────────────────────────────────────────────────────────────
#  INSTALLED APPS
# ────────────────────────────────────────────────────────────────
DJANGO_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
]

THIRD_PARTY_APPS = [
    'rest_framework',
    'rest_framework_simplejwt',
    'corsheaders',
    'django_filters',
    'drf_yasg',
    'django_celery_beat',      # Celery Beat scheduler (periodic tasks)
    'django_celery_results',   # Celery task results backend
]

LOCAL_APPS = [
    'apps.core',
    'apps.subscriptions',
    'apps.payments',
]

INSTALLED_APPS = DJANGO_APPS + THIRD_PARTY_APPS + LOCAL_APPS

# ────────────────────────────────────────────────────────────────
#  MIDDLEWARE (CorsMiddleware first)
# ────────────────────────────────────────────────────────────────
MIDDLEWARE = [
    'corsheaders.middleware.CorsMiddleware',
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
    'apps.core.middleware.BusinessContextMiddleware',
]

# ────────────────────────────────────────────────────────────────
#  DATABASE
# ────────────────────────────────────────────────────────────────
DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.postgresql',
        'NAME': os.environ.get('DB_NAME', 'kopqela'),
        'USER': os.environ.get('DB_USER', 'kopqela'),
        'PASSWORD': os.environ.get('DB_PASSWORD', ''),
        'HOST': os.environ.get('DB_HOST', 'localhost'),
        'PORT': os.environ.get('DB_PORT', '5432'),
    }
}

# ────────────────────────────────────────────────────────────────
#  REDIS & CELERY CONFIGURATION
# ────────────────────────────────────────────────────────────────
REDIS_URL = os.environ.get('REDIS_URL', 'redis://localhost:6379/0')

CELERY_BROKER_URL = REDIS_URL
CELERY_RESULT_BACKEND = 'django-db'  # Store results in Django DB
CELERY_ACCEPT_CONTENT = ['json']
CELERY_TASK_SERIALIZER = 'json'
CELERY_RESULT_SERIALIZER = 'json'
CELERY_TIMEZONE = 'Africa/Dar_es_Salaam'
CELERY_ENABLE_UTC = True

# Celery Beat (scheduled tasks) - Use database scheduler
CELERY_BEAT_SCHEDULER = 'django_celery_beat.schedulers:DatabaseScheduler'

# ────────────────────────────────────────────────────────────────
#  ROOT URLCONF, TEMPLATES, WSGI
# ────────────────────────────────────────────────────────────────
ROOT_URLCONF = 'config.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.debug',
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

WSGI_APPLICATION = 'config.wsgi.application'

# ────────────────────────────────────────────────────────────────
#  PASSWORD VALIDATION
# ────────────────────────────────────────────────────────────────
AUTH_PASSWORD_VALIDATORS = [
    {'NAME': 'django.contrib.auth.password_validation.UserAttributeSimilarityValidator'},
    {'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator'},
    {'NAME': 'django.contrib.auth.password_validation.CommonPasswordValidator'},
    {'NAME': 'django.contrib.auth.password_validation.NumericPasswordValidator'},
]

# ────────────────────────────────────────────────────────────────
#  INTERNATIONALIZATION & TIME
# ────────────────────────────────────────────────────────────────
LANGUAGE_CODE = 'en-us'
TIME_ZONE = 'Africa/Dar_es_Salaam'
USE_I18N = True
USE_TZ = True

# ────────────────────────────────────────────────────────────────
#  STATIC
# ────────────────────────────────────────────────────────────────
STATIC_URL = 'static/'
STATIC_ROOT = os.path.join(BASE_DIR, 'staticfiles')

# ────────────────────────────────────────────────────────────────
#  DEFAULT PRIMARY KEY & CUSTOM USER
# ────────────────────────────────────────────────────────────────
DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'
AUTH_USER_MODEL = 'core.User'

# ────────────────────────────────────────────────────────────────
#  REST FRAMEWORK & JWT
# ────────────────────────────────────────────────────────────────
REST_FRAMEWORK = {
    'DEFAULT_AUTHENTICATION_CLASSES': (
        'rest_framework_simplejwt.authentication.JWTAuthentication',
        'rest_framework.authentication.SessionAuthentication',
    ),
    'DEFAULT_PERMISSION_CLASSES': (
        'rest_framework.permissions.IsAuthenticated',
    ),
    'DEFAULT_FILTER_BACKENDS': (
        'django_filters.rest_framework.DjangoFilterBackend',
    ),
    'DEFAULT_PAGINATION_CLASS': 'rest_framework.pagination.LimitOffsetPagination',
    'PAGE_SIZE': 50,
    'EXCEPTION_HANDLER': 'apps.core.error_handlers.api_exception_handler',
}

SIMPLE_JWT = {
    'ACCESS_TOKEN_LIFETIME': timedelta(days=1),
    'REFRESH_TOKEN_LIFETIME': timedelta(days=7),
    'ROTATE_REFRESH_TOKENS': True,
    'ALGORITHM': 'HS256',
    'SIGNING_KEY': SECRET_KEY,
    'AUTH_HEADER_TYPES': ('Bearer',),
}

# ────────────────────────────────────────────────────────────────
#  CORS
# ────────────────────────────────────────────────────────────────
CORS_ALLOWED_ORIGINS = os.environ.get(
    'CORS_ALLOWED_ORIGINS',
    'http://localhost:3000,http://127.0.0.1:3000'
).split(',')
CORS_ALLOW_CREDENTIALS = True

# ────────────────────────────────────────────────────────────────
#  SECURITY HEADERS
# ────────────────────────────────────────────────────────────────
SECURE_CONTENT_TYPE_NOSNIFF = True
X_FRAME_OPTIONS = 'DENY'

# ────────────────────────────────────────────────────────────────
#  LOGGING
# ────────────────────────────────────────────────────────────────
LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {'format': '{levelname} {asctime} {module} {message}', 'style': '{'},
        'simple': {'format': '{levelname} {message}', 'style': '{'},
    },
    'handlers': {
        'console': {'class': 'logging.StreamHandler', 'formatter': 'verbose'},
    },
    'loggers': {
        'django': {'handlers': ['console'], 'level': 'INFO', 'propagate': False},
        'apps': {'handlers': ['console'], 'level': LOG_LEVEL, 'propagate': False},
        'celery': {'handlers': ['console'], 'level': 'INFO', 'propagate': False},
    },
}

# ────────────────────────────────────────────────────────────────
#  SUBSCRIPTIONS
# ────────────────────────────────────────────────────────────────
SUBSCRIPTION_TRIAL_DAYS = int(os.getenv('SUBSCRIPTION_TRIAL_DAYS', '30'))
SUBSCRIPTION_TRIAL_PLAN = os.getenv('SUBSCRIPTION_TRIAL_PLAN', 'BASIC')

# Create a trial as soon as a Business row is created
SUBSCRIPTION_AUTO_TRIAL = os.getenv('SUBSCRIPTION_AUTO_TRIAL', 'True') == 'True'

# Bearer secrets for the cron trigger and the one-off trial migration
CRON_SECRET = os.getenv('CRON_SECRET', '')
MIGRATION_SECRET = os.getenv('MIGRATION_SECRET', '')

# ────────────────────────────────────────────────────────────────
#  AZAMPAY CONFIG (mobile money gateway)
# ────────────────────────────────────────────────────────────────
AZAMPAY_APP_NAME = os.getenv('AZAMPAY_APP_NAME', 'Kopqela')
AZAMPAY_CLIENT_ID = os.getenv('AZAMPAY_CLIENT_ID', '')
AZAMPAY_CLIENT_SECRET = os.getenv('AZAMPAY_CLIENT_SECRET', '')
AZAMPAY_API_KEY = os.getenv('AZAMPAY_API_KEY', '')
AZAMPAY_ENV = os.getenv('AZAMPAY_ENV', 'sandbox')  # 'sandbox' or 'production'
AZAMPAY_BASE_URL = os.getenv('AZAMPAY_BASE_URL', 'https://sandbox.azampay.co.tz')
AZAMPAY_WEBHOOK_SECRET = os.getenv('AZAMPAY_WEBHOOK_SECRET', '')  # For verifying webhooks
AZAMPAY_TIMEOUT = int(os.getenv('AZAMPAY_TIMEOUT', '30'))
AZAMPAY_CURRENCY = 'TZS'

# PENDING transactions older than this are marked EXPIRED
AZAMPAY_PENDING_TIMEOUT_MINUTES = int(os.getenv('AZAMPAY_PENDING_TIMEOUT_MINUTES', '30'))
