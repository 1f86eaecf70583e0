"""
Simulation services - creation and read paths.

Rules:
- Updates and deletes go through apps.simulations.handlers only
- Reads never return soft-deleted simulations
- Every call logs its outcome with a duration
"""

import logging
import time

from django.conf import settings

from core.exceptions import FileInUseError, ValidationError
from apps.simulations.files import validate_data_source_file
from apps.simulations.repository import SimulationRepository

logger = logging.getLogger(__name__)


def _elapsed_ms(started):
    return round((time.monotonic() - started) * 1000, 2)


def create_simulation(name, start_time, data_source, repository=None):
    """
    Create a new Simulation with status NotStarted.

    Args:
        name: Validated simulation name
        start_time: Aware UTC datetime in the future
        data_source: Validated path of the CSV data source
        repository: SimulationRepository (default: ORM repository)

    Returns:
        Simulation: Created simulation carrying its initial token

    Raises:
        DataSourceDirectoryNotFoundError, DataSourceNotFoundError,
        DataSourceLockedError: If the data source cannot be read
        FileInUseError: If an In Progress simulation uses the data source
    """
    repository = repository or SimulationRepository()

    logger.info("simulation_create_requested", extra={"simulation_name": name})

    if settings.SIMULATIONS.get("VALIDATE_DATA_SOURCE_FILE", True):
        validate_data_source_file(data_source)

    if repository.is_file_in_use(data_source):
        logger.warning(
            "simulation_file_in_use", extra={"data_source": data_source}
        )
        raise FileInUseError(
            f"The file '{data_source}' is currently in use by another simulation "
            "which is In Progress",
            {"dataSource": [f"The file '{data_source}' is in use."]},
        )

    simulation = repository.create(
        name=name, start_time=start_time, file_name=data_source
    )

    logger.info("simulation_created", extra={"simulation_id": simulation.id})
    return simulation


def list_simulations(repository=None):
    """All live simulations ordered by start time then id."""
    repository = repository or SimulationRepository()
    started = time.monotonic()
    items = repository.list_all()
    logger.info(
        "simulations_listed",
        extra={"count": len(items), "duration_ms": _elapsed_ms(started)},
    )
    return items


def list_simulations_from(boundary, repository=None):
    """Live simulations starting at or after boundary."""
    repository = repository or SimulationRepository()
    started = time.monotonic()
    items = repository.list_from_start_time(boundary)
    logger.info(
        "simulations_listed_from_start_time",
        extra={
            "boundary": boundary.isoformat(),
            "count": len(items),
            "duration_ms": _elapsed_ms(started),
        },
    )
    return items


def get_simulation(simulation_id, repository=None):
    """
    Return the live simulation or None.

    Raises:
        ValidationError: If simulation_id is not positive
    """
    if simulation_id <= 0:
        raise ValidationError(
            "Invalid id", {"id": ["Id must be a positive integer."]}
        )

    repository = repository or SimulationRepository()
    started = time.monotonic()
    simulation = repository.get(simulation_id)
    logger.info(
        "simulation_retrieved",
        extra={
            "simulation_id": simulation_id,
            "found": simulation is not None,
            "duration_ms": _elapsed_ms(started),
        },
    )
    return simulation
