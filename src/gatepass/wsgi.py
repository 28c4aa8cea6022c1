"""WSGI config for the gatepass project."""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "gatepass.settings")

application = get_wsgi_application()
