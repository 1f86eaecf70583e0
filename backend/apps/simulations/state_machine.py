"""
State machine enforcement for Simulation.

NotStarted -> InProgress -> Completed (terminal). Status only moves forward
and may not skip InProgress. DataSource and StartTime are frozen once the
simulation has left NotStarted.
"""

from core.exceptions import (
    IllegalTransitionError,
    ImmutabilityViolationError,
    ValidationError,
)
from apps.simulations.models import SimulationStatus

# Explicit total order; independent of how statuses are stored.
STATUS_ORDER = (
    SimulationStatus.NOT_STARTED,
    SimulationStatus.IN_PROGRESS,
    SimulationStatus.COMPLETED,
)

_RANK = {status: rank for rank, status in enumerate(STATUS_ORDER)}

PREVIOUS_STATE_REASON = "Illegal status transition: cannot move to a previous state."
JUMP_TO_COMPLETED_REASON = (
    "Illegal status transition: Not Started cannot jump directly to Completed."
)


def parse_status(value):
    """
    Parse a client-supplied status name.

    Accepts the enum names case-insensitively, with or without spaces
    ("InProgress", "in progress").

    Raises:
        ValidationError: If the value names no known status
    """
    if isinstance(value, SimulationStatus):
        return value

    normalized = str(value or "").replace(" ", "").lower()
    for status in STATUS_ORDER:
        if status.value.lower() == normalized:
            return status

    raise ValidationError(
        f"Unknown status: {value}",
        {"status": [f"Status must be one of {', '.join(s.value for s in STATUS_ORDER)}."]},
    )


def can_transition(current_status, target_status):
    """
    Check whether current_status may move to target_status.

    Returns:
        tuple: (allowed, reason) - reason is None when allowed
    """
    current = SimulationStatus(current_status)
    target = SimulationStatus(target_status)

    if target == current:
        return True, None

    if _RANK[target] < _RANK[current]:
        return False, PREVIOUS_STATE_REASON

    if current == SimulationStatus.NOT_STARTED and target == SimulationStatus.COMPLETED:
        return False, JUMP_TO_COMPLETED_REASON

    return True, None


def validate_transition(current_status, target_status):
    """
    Validate a status transition.

    Raises:
        IllegalTransitionError: If transition is disallowed
    """
    allowed, reason = can_transition(current_status, target_status)
    if not allowed:
        raise IllegalTransitionError(
            SimulationStatus(current_status).value,
            SimulationStatus(target_status).value,
            reason,
        )
    return True


def is_terminal_state(status):
    return SimulationStatus(status) == STATUS_ORDER[-1]


def ensure_mutable(simulation, file_name=None, start_time=None):
    """
    Reject changes to frozen fields of a simulation that has started.

    Only a value that differs from the stored one counts as a change; resending
    the current DataSource or StartTime is allowed.

    Raises:
        ImmutabilityViolationError: Naming the offending field
    """
    if simulation.status == SimulationStatus.NOT_STARTED:
        return

    if file_name is not None and file_name != simulation.file_name:
        raise ImmutabilityViolationError(
            "fileName", "Cannot change DataSource after the simulation has started."
        )

    if start_time is not None and start_time != simulation.start_time:
        raise ImmutabilityViolationError(
            "startTime", "Cannot change StartTime after the simulation has started."
        )
