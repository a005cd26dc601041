"""
WSGI config for omega_lims project.
"""

import os
from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'omega_lims.settings')
application = get_wsgi_application()
