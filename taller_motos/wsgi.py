"""
WSGI config for taller_motos project.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'taller_motos.settings.local')

application = get_wsgi_application()
