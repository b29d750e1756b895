"""
WSGI config for the file sharing service.

Provided for traditional deployments (gunicorn, mod_wsgi). The
`application` callable is the entry point.

For more information on this file, see:
https://docs.djangoproject.com/en/5.2/howto/deployment/wsgi/
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

application = get_wsgi_application()
