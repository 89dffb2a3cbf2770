"""
WSGI config for the iProduction ERP backend.
"""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'iproduction.config.settings')

application = get_wsgi_application()
