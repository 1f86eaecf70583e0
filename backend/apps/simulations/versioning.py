"""
Token locking helper for Simulation writes.
Prevents concurrent modification corruption without holding row locks.
"""
from core.exceptions import ConcurrencyConflictError


def token_locked_update(queryset, expected_token, **updates):
    """
    Perform a compare-and-swap update on queryset.

    The row only matches while its stored row_version equals expected_token;
    the successor token is written in the same statement.

    Args:
        queryset: Django QuerySet narrowed to the target row
        expected_token: ConcurrencyToken supplied by the caller
        **updates: Fields to update

    Returns:
        ConcurrencyToken: The newly minted token

    Raises:
        ConcurrencyConflictError: If no row matched (token mismatch or row gone)
    """
    new_token = expected_token.next()
    updated_count = queryset.filter(row_version=expected_token.value).update(
        **updates,
        row_version=new_token.value,
    )

    if updated_count == 0:
        raise ConcurrencyConflictError()

    return new_token
