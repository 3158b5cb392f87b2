"""
ASGI config for taller_motos project.
"""

import os

from django.core.asgi import get_asgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'taller_motos.settings.local')

application = get_asgi_application()
