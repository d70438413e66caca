"""Pydantic models for Toggl API payloads."""

from datetime import datetime
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, TypeAdapter, ValidationError

from tji.core.exceptions import ResponseFormatError


class TogglEntry(BaseModel):
    """Time entry as returned by the Toggl time_entries endpoint.

    Attributes:
        id: Toggl entry id
        description: Entry description
        start: When the entry started
        stop: When the entry stopped (None while running)
        duration: Duration in seconds, integer or fractional; negative while
            the timer is running
        guid: Toggl global id
        wid: Workspace id
        pid: Project id
        tid: Task id
        billable: Whether the entry is billable
        tags: Tag names
        duronly: Whether only the duration is meaningful
        at: Last update time on the server

    guid, wid, pid, tid, billable, tags and duronly are not interpreted and
    keep whatever value Toggl sent, including null. Fields Toggl adds beyond
    these are kept as extra attributes.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    id: int
    duration: Union[int, float]
    description: Optional[str] = None
    start: Optional[datetime] = None
    stop: Optional[datetime] = None
    at: Optional[datetime] = None

    # Passed through as sent
    guid: Any = None
    wid: Any = None
    pid: Any = None
    tid: Any = None
    billable: Any = None
    tags: Any = None
    duronly: Any = None

    @property
    def is_running(self) -> bool:
        """Check if the entry's timer is still running."""
        return self.duration < 0


_ENTRY_LIST = TypeAdapter(Optional[list[TogglEntry]])


def parse_entries(payload: Union[str, bytes]) -> list[TogglEntry]:
    """Parse a JSON array of time entries.

    Args:
        payload: Raw response body

    Returns:
        Entries in payload order

    Raises:
        ResponseFormatError: If the body is not valid JSON, is not an array
            of entries, or is ``null``
    """
    try:
        entries = _ENTRY_LIST.validate_json(payload)
    except ValidationError as e:
        raise ResponseFormatError(f"Could not parse time entries: {e}") from e
    if entries is None:
        raise ResponseFormatError("Time entries payload was null")
    return entries
