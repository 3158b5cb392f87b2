"""
Local settings for development and single-workshop installs.
SQLite database, verbose file logging.

Usage:
    python manage.py runserver --settings=taller_motos.settings.local
"""

from .base import *

# =============================================================================
# DEPLOYMENT MODE
# =============================================================================
DEPLOYMENT_MODE = 'local'


# =============================================================================
# DATABASE - SQLite
# =============================================================================
DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': BASE_DIR / 'db.sqlite3',
        'OPTIONS': {
            'timeout': 20,  # Wait up to 20 seconds for locks
        }
    }
}


# =============================================================================
# LOCAL-SPECIFIC SETTINGS
# =============================================================================
SECURE_SSL_REDIRECT = False
SESSION_COOKIE_SECURE = False
CSRF_COOKIE_SECURE = False

# More verbose logging for debugging
LOGGING['handlers']['file'] = {
    'class': 'logging.handlers.RotatingFileHandler',
    'filename': LOGS_DIR / 'local.log',
    'maxBytes': 10 * 1024 * 1024,  # 10MB
    'backupCount': 5,
    'formatter': 'verbose',
}
LOGGING['loggers']['taller']['handlers'] = ['console', 'file']
LOGGING['loggers']['taller']['level'] = 'DEBUG'
LOGGING['loggers']['inventario']['handlers'] = ['console', 'file']
LOGGING['loggers']['inventario']['level'] = 'DEBUG'

# Create logs directory if it doesn't exist
LOGS_DIR.mkdir(exist_ok=True)
