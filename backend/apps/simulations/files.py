"""
Data source file checks performed when a simulation is created.
"""

import os

from core.exceptions import (
    DataSourceDirectoryNotFoundError,
    DataSourceLockedError,
    DataSourceNotFoundError,
    ValidationError,
)


def validate_data_source_file(file_path):
    """
    Ensure the data source exists and can be opened for reading.

    Raises:
        ValidationError: If file_path is blank
        DataSourceDirectoryNotFoundError: If its directory does not exist
        DataSourceNotFoundError: If the file does not exist
        DataSourceLockedError: If the file cannot be opened for reading
    """
    if not file_path or not file_path.strip():
        raise ValidationError("File path cannot be null or empty.")

    directory = os.path.dirname(file_path)
    if directory and not os.path.isdir(directory):
        raise DataSourceDirectoryNotFoundError(
            f"The directory '{directory}' does not exist.",
            {"dataSource": [f"The directory '{directory}' does not exist."]},
        )

    if not os.path.isfile(file_path):
        raise DataSourceNotFoundError(
            f"The file '{file_path}' does not exist.",
            {"dataSource": [f"The file '{file_path}' does not exist."]},
        )

    try:
        with open(file_path, "rb"):
            pass
    except OSError:
        message = (
            f"The file '{file_path}' is currently locked by another process. "
            "Please retry later."
        )
        raise DataSourceLockedError(message, {"dataSource": [message]})
