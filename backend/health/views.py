import logging

from django.db import connection
from django.core.cache import caches
from django.apps import apps
from django.db.migrations.executor import MigrationExecutor
from rest_framework.permissions import AllowAny
from rest_framework.views import APIView
from rest_framework.response import Response

logger = logging.getLogger(__name__)


class LiveView(APIView):
    """Liveness probe: process is running. No DB or external deps."""

    permission_classes = [AllowAny]
    throttle_classes = []

    def get(self, request):
        return Response({"status": "alive"})


class ReadyView(APIView):
    """Readiness probe: DB, cache, migrations, simulation and audit tables."""

    permission_classes = [AllowAny]
    throttle_classes = []

    def get(self, request):
        return self._run_checks()

    def _run_checks(self):

        checks = {}

        # DB check
        try:
            with connection.cursor() as cursor:
                cursor.execute("SELECT 1;")
            checks["database"] = "ok"
        except Exception:
            logger.warning("readiness_database_failed", exc_info=True)
            checks["database"] = "error"

        # Migration consistency check
        try:
            executor = MigrationExecutor(connection)
            plan = executor.migration_plan(executor.loader.graph.leaf_nodes())
            checks["migrations"] = "ok" if not plan else "pending"
        except Exception:
            logger.warning("readiness_migrations_failed", exc_info=True)
            checks["migrations"] = "error"

        # Cache check
        try:
            cache = caches["default"]
            cache.set("health_check", "ok", timeout=5)
            if cache.get("health_check") == "ok":
                checks["cache"] = "ok"
            else:
                checks["cache"] = "error"
        except Exception:
            logger.warning("readiness_cache_failed", exc_info=True)
            checks["cache"] = "error"

        # Simulation and audit tables accessibility
        for label, model_name in (
            ("simulations_table", "simulations.Simulation"),
            ("audit_table", "audit.AuditEntry"),
        ):
            try:
                apps.get_model(model_name).objects.exists()
                checks[label] = "ok"
            except Exception:
                logger.warning("readiness_table_failed", extra={"check": label})
                checks[label] = "error"

        overall = "ready" if all(v == "ok" for v in checks.values()) else "not_ready"

        return Response(
            {"status": overall, "checks": checks},
            status=200 if overall == "ready" else 503,
        )
