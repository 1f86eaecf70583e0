"""
Simulation repository - the persistence boundary for the command handlers.

The repository is stateless: every call runs its own queries and nothing is
cached between calls. Writes to existing rows only happen through a single
conditional UPDATE matching id, is_deleted=False and the expected token, so
the database decides which of several concurrent writers wins.
"""

from django.db import transaction
from django.utils import timezone

from core.exceptions import ConcurrencyConflictError, NotFoundError
from apps.simulations.models import Simulation, SimulationStatus
from apps.simulations.tokens import ConcurrencyToken
from apps.simulations.versioning import token_locked_update


class SimulationRepository:
    """Django ORM implementation of the simulation store."""

    def get(self, simulation_id):
        """Return the live simulation with this id, or None."""
        return Simulation.objects.filter(pk=simulation_id).first()

    def get_tracked(self, simulation_id):
        """
        Load a live simulation for mutation.

        No lock is taken; the snapshot is only guarded by its row_version at
        write time.
        """
        return Simulation.objects.filter(pk=simulation_id).first()

    def list_all(self):
        return list(Simulation.objects.order_by("start_time", "id"))

    def list_from_start_time(self, boundary):
        return list(
            Simulation.objects.filter(start_time__gte=boundary).order_by(
                "start_time", "id"
            )
        )

    def is_file_in_use(self, path):
        """True when a live In Progress simulation streams from path."""
        if not path or not path.strip():
            raise ValueError("File path cannot be null or empty.")

        return Simulation.objects.filter(
            file_name=path, status=SimulationStatus.IN_PROGRESS
        ).exists()

    def create(self, name, start_time, file_name):
        return Simulation.objects.create(
            name=name,
            start_time=start_time,
            file_name=file_name,
            status=SimulationStatus.NOT_STARTED,
            row_version=ConcurrencyToken.initial().value,
        )

    def current_token(self, simulation_id):
        """Stored token of the live simulation, or None if it is gone."""
        value = (
            Simulation.objects.filter(pk=simulation_id)
            .values_list("row_version", flat=True)
            .first()
        )
        return None if value is None else ConcurrencyToken(value)

    def cas_update(self, simulation, expected_token):
        """
        Persist the in-memory simulation if its stored token still matches.

        Args:
            simulation: Simulation mutated by the caller
            expected_token: ConcurrencyToken the caller read

        Returns:
            Simulation: The same instance carrying the new row_version

        Raises:
            ConcurrencyConflictError: Token mismatch; carries the current token
            NotFoundError: The simulation was deleted in the meantime
        """
        updated_at = timezone.now()

        with transaction.atomic():
            try:
                new_token = token_locked_update(
                    Simulation.objects.filter(pk=simulation.pk),
                    expected_token,
                    name=simulation.name,
                    start_time=simulation.start_time,
                    file_name=simulation.file_name,
                    status=simulation.status,
                    updated_at=updated_at,
                )
            except ConcurrencyConflictError:
                self._raise_mismatch(simulation.pk)

        simulation.row_version = new_token.value
        simulation.updated_at = updated_at
        return simulation

    def cas_soft_delete(self, simulation_id, expected_token):
        """
        Soft-delete the simulation if its stored token still matches.

        Returns:
            ConcurrencyToken: New token when the simulation was deleted
            None: No live simulation with this id exists

        Raises:
            ConcurrencyConflictError: Token mismatch; carries the current token
        """
        with transaction.atomic():
            try:
                return token_locked_update(
                    Simulation.objects.filter(pk=simulation_id),
                    expected_token,
                    is_deleted=True,
                    updated_at=timezone.now(),
                )
            except ConcurrencyConflictError:
                try:
                    self._raise_mismatch(simulation_id)
                except NotFoundError:
                    return None

    def _raise_mismatch(self, simulation_id):
        current = self.current_token(simulation_id)
        if current is None:
            raise NotFoundError(f"Simulation with id {simulation_id} was not found.")
        raise ConcurrencyConflictError(current)
