"""
Field rules shared by the request serializers and the update handler.
"""

import ntpath
import posixpath
from datetime import timezone as dt_timezone

from django.utils import timezone
from django.utils.dateparse import parse_datetime

from core.exceptions import ValidationError

NAME_MAX_LENGTH = 70
DATA_SOURCE_MAX_LENGTH = 260
_DATA_SOURCE_EXTRA_CHARS = set(" -_.\\/:")


def validate_name(name):
    if name is None or not str(name).strip():
        raise ValidationError(
            "Name is required and cannot be empty",
            {"name": ["Name is required and cannot be empty"]},
        )
    if len(name) > NAME_MAX_LENGTH:
        raise ValidationError(
            f"Name cannot exceed {NAME_MAX_LENGTH} characters",
            {"name": [f"Name cannot exceed {NAME_MAX_LENGTH} characters"]},
        )
    return name


def _base_name(path):
    return posixpath.basename(ntpath.basename(path))


def validate_data_source(path):
    """
    Validate the shape of a data source path (not its existence).

    Raises:
        ValidationError: With the first broken rule
    """
    message = None
    if path is None or not str(path).strip():
        message = "DataSource is required and cannot be empty"
    elif len(path) > DATA_SOURCE_MAX_LENGTH:
        message = (
            f"File path cannot exceed {DATA_SOURCE_MAX_LENGTH} characters "
            "(Windows MAX_PATH limit)"
        )
    elif _base_name(path)[:1].isdigit():
        message = "File name cannot start with a numeric digit"
    elif any(not (c.isalnum() or c in _DATA_SOURCE_EXTRA_CHARS) for c in path):
        message = (
            "File path can only contain alphanumeric characters, spaces, hyphens, "
            "underscores, periods, colons and slashes"
        )

    if message:
        raise ValidationError(message, {"dataSource": [message]})
    return path


def parse_start_time(value):
    """
    Parse an ISO 8601 timestamp into an aware UTC datetime.

    Naive values are taken to be UTC. Fractions of a second are dropped so
    the stored value matches the whole-second form shown to clients.

    Raises:
        ValidationError: If the value is not ISO 8601
    """
    message = "StartTime must be in ISO 8601 format (e.g., 2025-11-10T14:30:00Z)"
    try:
        parsed = parse_datetime(str(value).strip()) if value is not None else None
    except ValueError:
        parsed = None

    if parsed is None:
        raise ValidationError(message, {"startTime": [message]})

    if timezone.is_naive(parsed):
        parsed = parsed.replace(tzinfo=dt_timezone.utc)
    return parsed.astimezone(dt_timezone.utc).replace(microsecond=0)


def ensure_future(start_time, now=None):
    """StartTime must be later than now, compared at second precision."""
    now = (now or timezone.now()).replace(microsecond=0)
    if start_time.replace(microsecond=0) <= now:
        message = "StartTime must be in the future"
        raise ValidationError(message, {"startTime": [message]})
    return start_time
