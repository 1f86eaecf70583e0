"""
Serializers for Simulation.

No business logic in serializers - validation only.
All mutations flow through services and handlers.
"""

from rest_framework import serializers

from core.exceptions import DomainError
from apps.simulations.handlers import SimulationPatch
from apps.simulations.models import Simulation
from apps.simulations.state_machine import parse_status
from apps.simulations.validators import (
    ensure_future,
    parse_start_time,
    validate_data_source,
    validate_name,
)


def _run(rule, value):
    try:
        return rule(value)
    except DomainError as exc:
        raise serializers.ValidationError(exc.message)


class SimulationSerializer(serializers.ModelSerializer):
    """Outward representation of a Simulation."""

    startTime = serializers.SerializerMethodField()
    fileName = serializers.CharField(source="file_name", read_only=True)
    etag = serializers.SerializerMethodField()

    class Meta:
        model = Simulation
        fields = ["id", "name", "startTime", "fileName", "status", "etag"]
        read_only_fields = fields

    def get_startTime(self, obj):
        return obj.start_time.strftime("%Y-%m-%dT%H:%M:%SZ")

    def get_etag(self, obj):
        return obj.token.to_wire()


class CreateSimulationSerializer(serializers.Serializer):
    """Request body for POST /simulations."""

    name = serializers.CharField(allow_blank=True, trim_whitespace=False)
    startTime = serializers.CharField()
    dataSource = serializers.CharField(allow_blank=True, trim_whitespace=False)

    def validate_name(self, value):
        return _run(validate_name, value)

    def validate_startTime(self, value):
        parsed = _run(parse_start_time, value)
        return _run(ensure_future, parsed)

    def validate_dataSource(self, value):
        return _run(validate_data_source, value)


class UpdateSimulationSerializer(serializers.Serializer):
    """
    Request body for PATCH /simulations/{id}.

    Only shape is checked here; rules that depend on the stored simulation
    (immutability, transitions, future StartTime) run in the update handler.
    """

    name = serializers.CharField(
        required=False, allow_null=True, allow_blank=True, trim_whitespace=False
    )
    startTime = serializers.CharField(required=False, allow_null=True)
    dataSource = serializers.CharField(
        required=False, allow_null=True, allow_blank=True, trim_whitespace=False
    )
    status = serializers.CharField(required=False, allow_null=True)

    def validate_name(self, value):
        return None if value is None else _run(validate_name, value)

    def validate_startTime(self, value):
        return None if value is None else _run(parse_start_time, value)

    def validate_dataSource(self, value):
        return None if value is None else _run(validate_data_source, value)

    def validate_status(self, value):
        return None if value is None else _run(parse_status, value)

    def to_patch(self):
        data = self.validated_data
        return SimulationPatch(
            name=data.get("name"),
            start_time=data.get("startTime"),
            file_name=data.get("dataSource"),
            status=data.get("status"),
        )
