"""
Base settings for taller_motos project.
Shared between local and production deployments.
"""

from pathlib import Path
import os

from django.urls import reverse_lazy

# Build paths inside the project like this: BASE_DIR / 'subdir'.
BASE_DIR = Path(__file__).resolve().parent.parent.parent


# SECURITY WARNING: keep the secret key used in production secret!
SECRET_KEY = os.getenv('SECRET_KEY', 'django-insecure-q7t!m2x#taller-motos-dev-key-9d@k3v$0p^w8e(l4r&z1')

# SECURITY WARNING: don't run with debug turned on in production!
DEBUG = os.getenv('DEBUG', 'True').lower() == 'true'

ALLOWED_HOSTS = os.getenv('ALLOWED_HOSTS', '*').split(',')


# Application definition
INSTALLED_APPS = [
    "unfold",
    "unfold.contrib.filters",
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'corsheaders',
    'taller',
    'inventario',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'corsheaders.middleware.CorsMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
    'taller.middleware.JSONOnlyMiddleware',
]

ROOT_URLCONF = 'taller_motos.urls'

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

WSGI_APPLICATION = 'taller_motos.wsgi.application'


# Password validation
AUTH_PASSWORD_VALIDATORS = [
    {'NAME': 'django.contrib.auth.password_validation.UserAttributeSimilarityValidator'},
    {'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator'},
    {'NAME': 'django.contrib.auth.password_validation.CommonPasswordValidator'},
    {'NAME': 'django.contrib.auth.password_validation.NumericPasswordValidator'},
]


# Internationalization
LANGUAGE_CODE = 'es-pe'
TIME_ZONE = 'America/Lima'
USE_I18N = True
USE_TZ = True


# Static files
STATIC_URL = 'static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'


# CORS
CORS_ALLOW_ALL_ORIGINS = os.getenv('CORS_ALLOW_ALL_ORIGINS', 'True').lower() == 'true'
CORS_ALLOWED_ORIGINS = [
    origin for origin in os.getenv('CORS_ALLOWED_ORIGINS', '').split(',') if origin
]


# Default primary key field type
DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'


# JWT Settings
JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY', SECRET_KEY)
JWT_ALGORITHM = 'HS256'
JWT_EXPIRATION_HOURS = int(os.getenv('JWT_EXPIRATION_HOURS', '24'))


# Cache - Redis when REDIS_URL is set, local memory otherwise
REDIS_URL = os.getenv('REDIS_URL', '')

if REDIS_URL:
    CACHES = {
        'default': {
            'BACKEND': 'django_redis.cache.RedisCache',
            'LOCATION': REDIS_URL,
            'OPTIONS': {
                'CLIENT_CLASS': 'django_redis.client.DefaultClient',
            },
            'KEY_PREFIX': 'taller_motos',
            'TIMEOUT': 300,
        }
    }
else:
    CACHES = {
        'default': {
            'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
            'LOCATION': 'taller-motos',
        }
    }

CONFIGURACION_CACHE_TIMEOUT = int(os.getenv('CONFIGURACION_CACHE_TIMEOUT', '300'))


# Unfold Admin Configuration
UNFOLD = {
    "SITE_TITLE": "Taller de Motos Admin",
    "SITE_HEADER": "Taller de Motos",
    "SITE_URL": "/",
    "SITE_SYMBOL": "two_wheeler",

    "SIDEBAR": {
        "show_search": True,
        "show_all_applications": True,
        "navigation": [
            {
                "title": "Taller",
                "separator": True,
                "items": [
                    {
                        "title": "Órdenes de trabajo",
                        "icon": "build",
                        "link": reverse_lazy("admin:taller_ordentrabajo_changelist"),
                    },
                    {
                        "title": "Clientes",
                        "icon": "people",
                        "link": reverse_lazy("admin:taller_cliente_changelist"),
                    },
                    {
                        "title": "Motos",
                        "icon": "two_wheeler",
                        "link": reverse_lazy("admin:taller_moto_changelist"),
                    },
                    {
                        "title": "Pagos",
                        "icon": "payments",
                        "link": reverse_lazy("admin:taller_pago_changelist"),
                    },
                ],
            },
            {
                "title": "Inventario",
                "separator": True,
                "items": [
                    {
                        "title": "Repuestos",
                        "icon": "inventory_2",
                        "link": reverse_lazy("admin:inventario_repuesto_changelist"),
                    },
                    {
                        "title": "Movimientos",
                        "icon": "swap_vert",
                        "link": reverse_lazy("admin:inventario_repuestomovimiento_changelist"),
                    },
                ],
            },
            {
                "title": "Usuarios y acceso",
                "separator": True,
                "items": [
                    {
                        "title": "Usuarios",
                        "icon": "badge",
                        "link": reverse_lazy("admin:taller_usuario_changelist"),
                    },
                    {
                        "title": "Configuración",
                        "icon": "settings",
                        "link": reverse_lazy("admin:taller_configuracion_changelist"),
                    },
                ],
            },
        ],
    },
}


LOGS_DIR = BASE_DIR / 'logs'

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '[{asctime}] {levelname} {name}: {message}',
            'style': '{',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'verbose',
        },
    },
    'loggers': {
        'taller': {
            'handlers': ['console'],
            'level': os.getenv('LOG_LEVEL', 'INFO'),
            'propagate': False,
        },
        'inventario': {
            'handlers': ['console'],
            'level': os.getenv('LOG_LEVEL', 'INFO'),
            'propagate': False,
        },
        'django': {
            'handlers': ['console'],
            'level': 'INFO',
        },
    },
}
