"""
support_board/settings_production.py
====================================
Production overrides.
Set DJANGO_SETTINGS_MODULE=support_board.settings_production on the host.
"""

from .settings import *   # noqa
import os

# --- Security -------------------------------------------------------------
SECRET_KEY = os.environ["SECRET_KEY"]
DEBUG      = False

_raw_hosts = os.environ.get("ALLOWED_HOSTS", "")
ALLOWED_HOSTS = [h.strip() for h in _raw_hosts.split(",") if h.strip()]

SECURE_PROXY_SSL_HEADER = ("HTTP_X_FORWARDED_PROTO", "https")

# --- Static files ---------------------------------------------------------
# WhiteNoise compression + caching; requires collectstatic at build time.
STORAGES = {
    "staticfiles": {
        "BACKEND": "whitenoise.storage.CompressedManifestStaticFilesStorage",
    },
}
