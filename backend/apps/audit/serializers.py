"""
Serializers for AuditEntry model.
"""

from rest_framework import serializers
from apps.audit.models import AuditEntry


class AuditEntrySerializer(serializers.ModelSerializer):
    """Serializer for AuditEntry."""

    id = serializers.IntegerField(read_only=True)
    simulationId = serializers.IntegerField(source="simulation_id", read_only=True)
    actor = serializers.CharField(read_only=True)
    correlationId = serializers.CharField(
        source="correlation_id", read_only=True, allow_null=True
    )
    timestampUtc = serializers.DateTimeField(source="timestamp_utc", read_only=True)
    action = serializers.CharField(read_only=True)
    changes = serializers.JSONField(read_only=True)
    prevETag = serializers.CharField(
        source="prev_token", read_only=True, allow_null=True
    )
    newETag = serializers.CharField(source="new_token", read_only=True, allow_null=True)

    class Meta:
        model = AuditEntry
        fields = [
            "id",
            "simulationId",
            "actor",
            "correlationId",
            "timestampUtc",
            "action",
            "changes",
            "prevETag",
            "newETag",
        ]
