"""
support_board/settings.py
=========================
Base settings shared by local development and production.
Environment-specific overrides live in settings_production.py.

Set DJANGO_SETTINGS_MODULE=support_board.settings_production on the host
to switch to the production overrides.
"""

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

# --- Security (overridden in production via env var) ----------------------
SECRET_KEY = 'django-insecure-dev-key-replace-in-production'
DEBUG      = True
ALLOWED_HOSTS = ['*']

# --- Applications ---------------------------------------------------------
INSTALLED_APPS = [
    'django.contrib.staticfiles',
    'tickets',
]

# --- Middleware ------------------------------------------------------------
MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'whitenoise.middleware.WhiteNoiseMiddleware',   # serves static files in prod
    'django.middleware.common.CommonMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'support_board.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.debug',
                'django.template.context_processors.request',
            ],
        },
    },
]

WSGI_APPLICATION = 'support_board.wsgi.application'

# --- Database -------------------------------------------------------------
# Tickets are read from AdOrbit on every request; nothing is stored locally.
DATABASES = {}

# --- Internationalisation --------------------------------------------------
LANGUAGE_CODE = 'en-us'
TIME_ZONE     = os.environ.get('TIME_ZONE', 'America/Chicago')
USE_I18N = True
USE_TZ   = True

# --- Static files ---------------------------------------------------------
STATIC_URL  = '/static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'   # collectstatic target

STORAGES = {
    'staticfiles': {
        'BACKEND': 'django.contrib.staticfiles.storage.StaticFilesStorage',
    },
}

# --- AdOrbit API ----------------------------------------------------------
API_BASE_URL = os.environ.get('API_BASE_URL', 'https://api.adorbit.com')
API_KEY      = os.environ.get('API_KEY', '')      # HMAC secret, required
PUBLIC_KEY   = os.environ.get('PUBLIC_KEY', '')   # required

ADORBIT_AUTH_SCHEME          = 'ADORBIT'
ADORBIT_TIMEOUT              = float(os.environ.get('ADORBIT_TIMEOUT', '30'))
ADORBIT_CHANGED_SINCE_MONTHS = 3
ADORBIT_TICKET_URL = os.environ.get(
    'ADORBIT_TICKET_URL',
    'https://evergreenmedia.adorbit.com/tickets/ticket/?id={id}',
)

# --- Logging --------------------------------------------------------------
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "simple": {"format": "%(asctime)s %(levelname)s %(name)s: %(message)s"},
    },
    "handlers": {"console": {"class": "logging.StreamHandler", "formatter": "simple"}},
    "root": {"handlers": ["console"], "level": "WARNING"},
    "loggers": {
        "tickets": {"level": os.environ.get("TICKETS_LOG_LEVEL", "INFO")},
    },
}
