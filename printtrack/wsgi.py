"""WSGI config for the PrintTrack project."""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "printtrack.settings")

application = get_wsgi_application()
