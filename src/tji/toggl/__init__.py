"""Toggl API client."""

from tji.toggl.client import SessionCredential, TogglClient, format_time
from tji.toggl.models import TogglEntry, parse_entries

__all__ = ["TogglClient", "SessionCredential", "TogglEntry", "format_time", "parse_entries"]
