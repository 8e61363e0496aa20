import structlog
from django.db import connection
from django.http import JsonResponse
from django.views.decorators.http import require_http_methods

logger = structlog.get_logger(__name__)


@require_http_methods(["GET"])
def healthz(request):
    """Liveness probe that also checks database connectivity."""
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
    except Exception as exc:
        logger.error("healthz.failed", error=str(exc))
        return JsonResponse({"status": "error", "database": "unavailable"}, status=503)
    return JsonResponse({"status": "ok", "database": "connected"})
