"""
Audit service - builds and persists immutable audit entries.

All audit entries are append-only. No updates or deletions. Recording is
best-effort: callers guard AuditRecorder.record and log failures on the
"apps.audit" logger instead of failing the mutation that already committed.
"""

import logging

from django.db import transaction
from django.utils import timezone

from apps.audit.models import AuditEntry

logger = logging.getLogger("apps.audit")

ANONYMOUS_ACTOR = "anonymous"


def build_audit_entry(
    simulation_id,
    action,
    changes,
    actor=None,
    correlation_id=None,
    prev_token=None,
    new_token=None,
):
    """
    Build an unsaved audit entry.

    Args:
        simulation_id: Identifier of the changed simulation
        action: AuditAction value ('Update' or 'Delete')
        changes: List of {"field", "before", "after"} for changed fields only
        actor: Username (None for anonymous)
        correlation_id: Request correlation id (optional)
        prev_token: ConcurrencyToken before the change (optional)
        new_token: ConcurrencyToken after the change (optional)

    Returns:
        AuditEntry: Unsaved entry
    """
    return AuditEntry(
        simulation_id=simulation_id,
        action=action,
        changes=list(changes),
        actor=actor or ANONYMOUS_ACTOR,
        correlation_id=correlation_id,
        timestamp_utc=timezone.now(),
        prev_token=prev_token.to_wire() if prev_token is not None else None,
        new_token=new_token.to_wire() if new_token is not None else None,
    )


class AuditRecorder:
    """Persists audit entries in their own savepoint."""

    def record(self, entry):
        """
        Persist an audit entry. May raise; see record_safely.

        The savepoint keeps a failed insert from poisoning an enclosing
        transaction.
        """
        with transaction.atomic():
            entry.save()
        return entry


def record_safely(recorder, entry):
    """
    Record an entry without ever propagating a failure.

    Returns:
        bool: True if the entry was written
    """
    try:
        recorder.record(entry)
    except Exception:
        # Mutation already committed; losing the audit row only degrades the trail.
        logger.warning(
            "audit_write_failed",
            exc_info=True,
            extra={
                "simulation_id": entry.simulation_id,
                "action": entry.action,
                "correlation_id": entry.correlation_id,
            },
        )
        return False
    return True
