"""
AuditEntry model - immutable chronological record of simulation changes.

Audit entries are append-only. No update or delete operations.
"""

from django.db import models


class AuditAction(models.TextChoices):
    UPDATE = "Update", "Update"
    DELETE = "Delete", "Delete"


class AuditEntryQuerySet(models.QuerySet):
    """Blocks bulk mutation of audit entries."""

    def update(self, **kwargs):
        raise ValueError("AuditEntry entries are append-only. Updates are not allowed.")

    def delete(self):
        raise ValueError(
            "AuditEntry entries are append-only. Deletions are not allowed."
        )


class AuditEntry(models.Model):
    """AuditEntry model - immutable audit trail of a simulation mutation."""

    id = models.BigAutoField(primary_key=True)
    simulation_id = models.BigIntegerField()
    actor = models.CharField(max_length=150, default="anonymous")
    correlation_id = models.CharField(max_length=64, null=True, blank=True)
    timestamp_utc = models.DateTimeField()
    action = models.CharField(max_length=10, choices=AuditAction.choices)
    changes = models.JSONField(default=list, blank=True)
    prev_token = models.CharField(max_length=128, null=True, blank=True)
    new_token = models.CharField(max_length=128, null=True, blank=True)

    objects = AuditEntryQuerySet.as_manager()

    class Meta:
        db_table = "audit_entries"
        indexes = [
            models.Index(fields=["simulation_id"], name="idx_audit_simulation"),
            models.Index(fields=["timestamp_utc"], name="idx_audit_timestamp"),
            models.Index(fields=["actor"], name="idx_audit_actor"),
        ]
        ordering = ["-timestamp_utc", "-id"]

    def __str__(self):
        return f"{self.action} - Simulation:{self.simulation_id} at {self.timestamp_utc}"

    def save(self, *args, **kwargs):
        """Override save to prevent updates."""
        if self.pk and AuditEntry.objects.filter(pk=self.pk).exists():
            raise ValueError(
                "AuditEntry entries are append-only. Updates are not allowed."
            )
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        """Override delete to prevent deletion."""
        raise ValueError(
            "AuditEntry entries are append-only. Deletions are not allowed."
        )
