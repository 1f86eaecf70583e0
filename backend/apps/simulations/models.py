"""
Simulation domain model.

A Simulation is a scheduled weather-data streaming job. Every mutation goes
through the token-locked update path in apps.simulations.repository; rows are
soft-deleted and never physically removed by the service.
"""

from django.db import models

from apps.simulations.tokens import ConcurrencyToken


def new_row_version():
    return ConcurrencyToken.initial().value


class SimulationStatus(models.TextChoices):
    NOT_STARTED = "NotStarted", "Not Started"
    IN_PROGRESS = "InProgress", "In Progress"
    COMPLETED = "Completed", "Completed"


class LiveSimulationManager(models.Manager):
    """Default manager - hides soft-deleted simulations."""

    def get_queryset(self):
        return super().get_queryset().filter(is_deleted=False)


class Simulation(models.Model):
    """Simulation model - lifecycle record of a streaming job."""

    id = models.BigAutoField(primary_key=True)
    name = models.CharField(max_length=70)
    start_time = models.DateTimeField()
    file_name = models.CharField(max_length=260)
    status = models.CharField(
        max_length=20,
        choices=SimulationStatus.choices,
        default=SimulationStatus.NOT_STARTED,
    )
    is_deleted = models.BooleanField(default=False)
    row_version = models.BinaryField(max_length=64, default=new_row_version)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = LiveSimulationManager()
    all_objects = models.Manager()

    class Meta:
        db_table = "simulations"
        base_manager_name = "all_objects"
        constraints = [
            models.CheckConstraint(
                condition=models.Q(status__in=["NotStarted", "InProgress", "Completed"]),
                name="valid_simulation_status",
            ),
        ]
        indexes = [
            models.Index(fields=["start_time", "id"], name="idx_sim_start_time"),
            models.Index(fields=["file_name", "status"], name="idx_sim_file_status"),
        ]

    def __str__(self):
        return f"{self.name} ({self.status})"

    @property
    def token(self):
        return ConcurrencyToken(self.row_version)
