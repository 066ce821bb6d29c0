"""
Shared helpers for repositories.
"""

from datetime import datetime
from typing import Iterable, Optional


class RecordNotFoundError(LookupError):
    """
    Raised when a record looked up by id does not exist.

    Attributes:
        table -- table that was queried
        record_id -- id that was not found
    """
    def __init__(self, table: str, record_id):
        super().__init__(f"No {table} record with id {record_id}")
        self.table = table
        self.record_id = record_id


def parse_timestamp(value) -> Optional[datetime]:
    """Parse a SQLite TIMESTAMP column into a datetime."""
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


def id_placeholders(ids: Iterable[int]) -> tuple[str, list[int]]:
    """
    Build an IN (...) placeholder list for a collection of ids.

    Returns:
        Tuple of (placeholders, params); ids are deduplicated and sorted
    """
    params = sorted({int(i) for i in ids})
    return ', '.join('?' for _ in params), params
