import os

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "core.settings")
import django  # noqa: E402

django.setup()

from django.conf import settings  # noqa: E402

wsgi_app = "core.wsgi:application"
bind = os.environ.get("GUNICORN_BIND", "0.0.0.0:8000")
workers = int(os.environ.get("GUNICORN_WORKERS", "2"))
# Request handling is synchronous
worker_class = "sync"
timeout = int(os.environ.get("GUNICORN_TIMEOUT", "30"))

# Gunicorn writes to stdout/stderr; logconfig_dict routes both through Django's LOGGING
errorlog = "-"
accesslog = "-"
loglevel = settings.LOG_LEVEL.lower()
capture_output = True

# Access and error lines carry correlation_id through the shared filter
logconfig_dict = settings.LOGGING
