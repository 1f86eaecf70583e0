"""
Audit entry views - query the simulation audit trail.

Read-only - audit entries are append-only.
"""

from rest_framework import status
from rest_framework.decorators import api_view
from rest_framework.response import Response
from rest_framework.pagination import LimitOffsetPagination
from django.utils.dateparse import parse_datetime
from apps.audit.models import AuditAction, AuditEntry
from apps.audit.serializers import AuditEntrySerializer


def _validation_error(message):
    return Response(
        {
            "error": {
                "code": "VALIDATION_ERROR",
                "message": message,
                "details": {},
            }
        },
        status=status.HTTP_400_BAD_REQUEST,
    )


def _parse_date(value):
    try:
        return parse_datetime(value)
    except (ValueError, TypeError):
        return None


@api_view(["GET"])
def query_audit_entries(request):
    """
    GET /api/v1/audit

    Query audit entries with optional filters: simulationId, actor, action,
    fromDate, toDate.
    """
    simulation_id = request.query_params.get("simulationId")
    actor = request.query_params.get("actor")
    action = request.query_params.get("action")
    from_date = request.query_params.get("fromDate")
    to_date = request.query_params.get("toDate")

    queryset = AuditEntry.objects.all()

    # Apply filters
    if simulation_id:
        if not simulation_id.isdigit() or int(simulation_id) <= 0:
            return _validation_error("Invalid simulationId format")
        queryset = queryset.filter(simulation_id=int(simulation_id))

    if actor:
        queryset = queryset.filter(actor=actor)

    if action:
        if action not in AuditAction.values:
            return _validation_error("Invalid action")
        queryset = queryset.filter(action=action)

    if from_date:
        from_dt = _parse_date(from_date)
        if from_dt is None:
            return _validation_error("Invalid fromDate format (use ISO 8601)")
        queryset = queryset.filter(timestamp_utc__gte=from_dt)

    if to_date:
        to_dt = _parse_date(to_date)
        if to_dt is None:
            return _validation_error("Invalid toDate format (use ISO 8601)")
        queryset = queryset.filter(timestamp_utc__lte=to_dt)

    # Newest first
    queryset = queryset.order_by("-timestamp_utc", "-id")

    # Paginate
    paginator = LimitOffsetPagination()
    paginator.default_limit = 50
    paginator.max_limit = 100

    page = paginator.paginate_queryset(queryset, request)
    serializer = AuditEntrySerializer(page, many=True)

    return paginator.get_paginated_response(serializer.data)
