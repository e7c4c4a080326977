"""
WSGI config for the ThriftHub back office.
"""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'thrifthub.config.settings')

application = get_wsgi_application()
