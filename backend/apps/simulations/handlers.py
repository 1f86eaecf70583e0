"""
Command handlers for optimistic-concurrency updates and soft deletes.

Flow for every command:
- decode the caller's expected token (no I/O on failure)
- load the live simulation and validate domain rules against that snapshot
- apply changes in memory and compare-and-swap them through the repository
- diff before/after and record an audit entry (best-effort)

Handlers return core.results.Result; DomainError never escapes them. Once the
repository has committed a write, nothing after it can turn the call into a
failure.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from core.exceptions import DomainError, NotFoundError, ValidationError
from core.results import Result
from apps.audit.models import AuditAction
from apps.audit.services import AuditRecorder, build_audit_entry, record_safely
from apps.simulations.models import SimulationStatus
from apps.simulations.repository import SimulationRepository
from apps.simulations.state_machine import (
    ensure_mutable,
    parse_status,
    validate_transition,
)
from apps.simulations.tokens import ConcurrencyToken
from apps.simulations.validators import ensure_future, validate_data_source, validate_name

logger = logging.getLogger(__name__)

# Audit field name -> model attribute, in diff order.
TRACKED_FIELDS = (
    ("name", "name"),
    ("startTime", "start_time"),
    ("fileName", "file_name"),
    ("status", "status"),
)


@dataclass(frozen=True)
class SimulationPatch:
    """Partial update; None means "leave unchanged"."""

    name: Optional[str] = None
    start_time: Optional[datetime] = None
    file_name: Optional[str] = None
    status: Optional[SimulationStatus] = None

    def is_empty(self):
        return all(
            value is None
            for value in (self.name, self.start_time, self.file_name, self.status)
        )


@dataclass(frozen=True)
class UpdateSimulationCommand:
    id: int
    if_match: str
    patch: SimulationPatch = field(default_factory=SimulationPatch)
    actor: Optional[str] = None
    correlation_id: Optional[str] = None


@dataclass(frozen=True)
class DeleteSimulationCommand:
    id: int
    if_match: str
    actor: Optional[str] = None
    correlation_id: Optional[str] = None


def snapshot(simulation):
    """JSON-ready values of the tracked fields."""
    values = {}
    for audit_field, attribute in TRACKED_FIELDS:
        value = getattr(simulation, attribute)
        if isinstance(value, datetime):
            value = value.isoformat()
        elif value is not None:
            value = str(value)
        values[audit_field] = value
    return values


def diff_snapshots(before, after):
    """List of {field, before, after} for fields whose values differ."""
    return [
        {"field": audit_field, "before": before[audit_field], "after": after[audit_field]}
        for audit_field, _ in TRACKED_FIELDS
        if before[audit_field] != after[audit_field]
    ]


def _validate_id(simulation_id):
    if not isinstance(simulation_id, int) or simulation_id <= 0:
        raise ValidationError(
            "Invalid id", {"id": ["Id must be a positive integer."]}
        )


class UpdateSimulationHandler:
    """Partial update of a simulation under optimistic concurrency."""

    def __init__(self, repository=None, audit_recorder=None):
        self.repository = repository or SimulationRepository()
        self.audit_recorder = audit_recorder or AuditRecorder()

    def handle(self, command):
        """
        Apply command.patch to simulation command.id.

        Returns:
            Result: success(Simulation, token=new token) or failure with one of
            VALIDATION_ERROR, INVALID_TOKEN, NOT_FOUND, IMMUTABILITY_VIOLATION,
            ILLEGAL_TRANSITION, CONCURRENCY_CONFLICT
        """
        try:
            _validate_id(command.id)
            expected_token = ConcurrencyToken.from_wire(command.if_match)

            simulation = self.repository.get_tracked(command.id)
            if simulation is None:
                raise NotFoundError(f"Simulation with id {command.id} was not found.")

            before = snapshot(simulation)
            self._apply(simulation, command.patch)

            updated = self.repository.cas_update(simulation, expected_token)
        except DomainError as exc:
            logger.info(
                "simulation_update_rejected",
                extra={
                    "simulation_id": command.id,
                    "error_code": exc.code,
                    "correlation_id": command.correlation_id,
                },
            )
            return Result.failure(exc)

        new_token = updated.token
        changes = diff_snapshots(before, snapshot(updated))

        logger.info(
            "simulation_updated",
            extra={
                "simulation_id": updated.id,
                "actor": command.actor or "anonymous",
                "changed_fields": [change["field"] for change in changes],
                "correlation_id": command.correlation_id,
            },
        )

        record_safely(
            self.audit_recorder,
            build_audit_entry(
                simulation_id=updated.id,
                action=AuditAction.UPDATE,
                changes=changes,
                actor=command.actor,
                correlation_id=command.correlation_id,
                prev_token=expected_token,
                new_token=new_token,
            ),
        )

        return Result.success(updated, token=new_token)

    def _apply(self, simulation, patch):
        """Validate patch against the loaded snapshot and mutate it in memory."""
        start_time = patch.start_time
        if start_time is not None:
            start_time = start_time.replace(microsecond=0)

        ensure_mutable(simulation, patch.file_name, start_time)

        if patch.name is not None:
            simulation.name = validate_name(patch.name)

        if start_time is not None and start_time != simulation.start_time:
            simulation.start_time = ensure_future(start_time)

        if patch.file_name is not None and patch.file_name != simulation.file_name:
            simulation.file_name = validate_data_source(patch.file_name)

        if patch.status is not None:
            target = parse_status(patch.status)
            validate_transition(simulation.status, target)
            simulation.status = target


class DeleteSimulationHandler:
    """Soft delete of a simulation under optimistic concurrency."""

    def __init__(self, repository=None, audit_recorder=None):
        self.repository = repository or SimulationRepository()
        self.audit_recorder = audit_recorder or AuditRecorder()

    def handle(self, command):
        """
        Soft-delete simulation command.id.

        Returns:
            Result: success(True, token=new token) when deleted,
            success(False) when no live simulation exists,
            failure with VALIDATION_ERROR, INVALID_TOKEN or CONCURRENCY_CONFLICT
        """
        try:
            _validate_id(command.id)
            expected_token = ConcurrencyToken.from_wire(command.if_match)
            new_token = self.repository.cas_soft_delete(command.id, expected_token)
        except DomainError as exc:
            logger.info(
                "simulation_delete_rejected",
                extra={
                    "simulation_id": command.id,
                    "error_code": exc.code,
                    "correlation_id": command.correlation_id,
                },
            )
            return Result.failure(exc)

        if new_token is None:
            return Result.success(False)

        logger.info(
            "simulation_deleted",
            extra={
                "simulation_id": command.id,
                "actor": command.actor or "anonymous",
                "correlation_id": command.correlation_id,
            },
        )

        record_safely(
            self.audit_recorder,
            build_audit_entry(
                simulation_id=command.id,
                action=AuditAction.DELETE,
                changes=[{"field": "isDeleted", "before": False, "after": True}],
                actor=command.actor,
                correlation_id=command.correlation_id,
                prev_token=expected_token,
                new_token=new_token,
            ),
        )

        return Result.success(True, token=new_token)
