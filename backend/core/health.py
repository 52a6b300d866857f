from __future__ import annotations

import logging

from django.db import connection
from django.http import JsonResponse

logger = logging.getLogger(__name__)


def healthz(_request):
    """Liveness probe that also confirms the database answers."""
    db_ok = True
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
    except Exception:
        logger.exception("healthz: database check failed")
        db_ok = False
    status_code = 200 if db_ok else 503
    return JsonResponse({"ok": db_ok, "db": db_ok}, status=status_code)
