"""
Test settings. In-memory SQLite, fast hasher, console logging only.
"""

from .base import *

DEPLOYMENT_MODE = 'test'

DEBUG = False

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

PASSWORD_HASHERS = [
    'django.contrib.auth.hashers.MD5PasswordHasher',
]

CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
        'LOCATION': 'taller-motos-test',
    }
}

JWT_SECRET_KEY = 'test-jwt-secret-key-with-enough-length-for-hs256'

LOGGING['loggers']['taller']['level'] = 'WARNING'
LOGGING['loggers']['inventario']['level'] = 'WARNING'
