"""
WSGI entry point for the support board.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "support_board.settings")

application = get_wsgi_application()
