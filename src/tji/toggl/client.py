"""Session-authenticated client for the Toggl v8 REST API."""

import base64
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from urllib.parse import quote

import requests
from requests.cookies import RequestsCookieJar, create_cookie

from tji.core.config import ConfigManager
from tji.core.events import Event
from tji.core.exceptions import (
    AuthenticationProtocolError,
    ConfigurationError,
    ResponseFormatError,
    ServerError,
    TransportError,
)
from tji.core.log import LogBroadcaster
from tji.toggl.models import TogglEntry, parse_entries

SESSION_URL = "https://www.toggl.com/api/v8/sessions"
ENTRIES_URL = "https://toggl.com/api/v8/time_entries"
COOKIE_NAME = "toggl_api_session_new"
MIN_ENTRY_DURATION = 30
DEFAULT_TIMEOUT = 30

COOKIE_PATTERN = re.compile(
    COOKIE_NAME + r"=(?P<contents>[^;]+);.*Path=(?P<path>[^;]+);.*Domain=(?P<domain>[^;]+);"
)

INVALID_RESPONSE_MESSAGE = "Invalid response from server"
NOT_LOGGED_IN_MESSAGE = "Not logged in"


@dataclass(frozen=True)
class SessionCredential:
    """Session cookie obtained from a successful log in."""

    value: str
    path: str
    domain: str

    @classmethod
    def from_set_cookie(cls, header: str) -> "SessionCredential":
        """Extract the session cookie from a Set-Cookie header value.

        Raises:
            AuthenticationProtocolError: If the header does not hold the cookie
        """
        match = COOKIE_PATTERN.search(header)
        if match is None:
            raise AuthenticationProtocolError(
                f"Response to log in from Toggl didn't contain a Set-Cookie in the format "
                f"{COOKIE_PATTERN.pattern}.\nInstead we got: {header}"
            )
        return cls(
            value=match.group("contents"),
            path=match.group("path"),
            domain=match.group("domain"),
        )

    def to_cookie_jar(self) -> RequestsCookieJar:
        """Build a cookie jar replaying this credential."""
        jar = RequestsCookieJar()
        jar.set_cookie(create_cookie(COOKIE_NAME, self.value, path=self.path, domain=self.domain))
        return jar


def format_time(time: datetime) -> str:
    """Format a timestamp for the Toggl query string.

    Naive datetimes are taken as local time; aware ones are converted to the
    local zone. The result looks like ``2024-03-05T14:07:09+01:00`` and is
    percent-encoded, so ``:`` and ``+`` are escaped.
    """
    local = time.astimezone()
    return quote(local.isoformat(timespec="seconds"), safe="")


def basic_auth_header(api_token: str) -> str:
    """Build the Authorization header value for an API token."""
    userpass = f"{api_token}:api_token".strip()
    return "Basic " + base64.b64encode(userpass.encode("utf-8")).decode("ascii")


class TogglClient:
    """Client holding one Toggl session.

    Not thread-safe: use one instance per thread or serialize calls.

    Events (fired synchronously, in subscription order):
        logon_succeeded, logon_failed, logout_succeeded, logout_failed,
        fetching_entries_failed(message)
    """

    def __init__(
        self,
        api_token: Optional[str],
        log_broadcaster: Optional[LogBroadcaster] = None,
        session_url: str = SESSION_URL,
        entries_url: str = ENTRIES_URL,
        timeout: int = DEFAULT_TIMEOUT,
    ):
        """Initialize Toggl client. No request is made.

        Args:
            api_token: Toggl API token
            log_broadcaster: Shared broadcaster for log messages
            session_url: Sessions endpoint
            entries_url: Time entries endpoint
            timeout: Per-request timeout in seconds

        Raises:
            ConfigurationError: If the API token is empty
        """
        if not api_token:
            raise ConfigurationError("Cannot have an empty api token")

        self._api_token = api_token
        self._credential: Optional[SessionCredential] = None
        self._encountered_error = False
        self.session_url = session_url
        self.entries_url = entries_url
        self.timeout = timeout

        self.log_broadcaster = log_broadcaster or LogBroadcaster()
        self._log = self.log_broadcaster.get_logger(__name__)

        self.logon_succeeded = Event("logon_succeeded")
        self.logon_failed = Event("logon_failed")
        self.logout_succeeded = Event("logout_succeeded")
        self.logout_failed = Event("logout_failed")
        self.fetching_entries_failed = Event("fetching_entries_failed")

    @classmethod
    def from_config(
        cls, config: ConfigManager, log_broadcaster: Optional[LogBroadcaster] = None
    ) -> "TogglClient":
        """Create a client from the ``toggl`` section of the configuration."""
        return cls(
            config.get("toggl.api_token"),
            log_broadcaster=log_broadcaster,
            session_url=config.get("toggl.session_url", SESSION_URL),
            entries_url=config.get("toggl.entries_url", ENTRIES_URL),
            timeout=config.get("toggl.timeout", DEFAULT_TIMEOUT),
        )

    @property
    def is_logged_in(self) -> bool:
        """Whether a session cookie is held. The cookie's age is not checked."""
        return self._credential is not None

    @property
    def encountered_error(self) -> bool:
        """Whether the most recent operation failed."""
        return self._encountered_error

    @property
    def credential(self) -> Optional[SessionCredential]:
        return self._credential

    def log_in(self) -> None:
        """Open a session and store its cookie.

        Failures are reported through ``logon_failed`` and
        ``encountered_error``, never raised.
        """
        self._log.debug("Log in to Toggl started")
        try:
            with requests.post(
                self.session_url,
                headers={"Authorization": basic_auth_header(self._api_token)},
                timeout=self.timeout,
            ) as response:
                response.raise_for_status()
                set_cookie = response.headers.get("Set-Cookie")
                if set_cookie is None:
                    raise AuthenticationProtocolError(
                        f"Response to log in from Toggl didn't contain a Set-Cookie header. "
                        f"Status received is {response.status_code}"
                    )
                credential = SessionCredential.from_set_cookie(set_cookie)
        except requests.RequestException as e:
            self._log.error("Error during log in to Toggl", e)
            self._encountered_error = True
            self.logon_failed.fire()
            return
        except AuthenticationProtocolError as e:
            self._log.warning(str(e))
            self._encountered_error = True
            self.logon_failed.fire()
            return

        self._credential = credential
        self._log.debug("Logged in to Toggl")
        self._encountered_error = False
        self.logon_succeeded.fire()

    def log_out(self) -> None:
        """Close the session. Does nothing when not logged in.

        The cookie is only dropped when Toggl confirms with HTTP 200.
        """
        if self._credential is None:
            return

        self._log.debug("Logging out from Toggl")
        try:
            with requests.post(
                self.session_url,
                cookies=self._credential.to_cookie_jar(),
                timeout=self.timeout,
            ) as response:
                status_code = response.status_code
        except requests.RequestException as e:
            self._encountered_error = True
            self._log.error("Error during log out from Toggl", e)
            self.logout_failed.fire()
            return

        if status_code == 200:
            self._encountered_error = False
            self._credential = None
            self._log.debug("Logged out from Toggl")
            self.logout_succeeded.fire()
        else:
            self._encountered_error = True
            self._log.debug_format("Failed to log out from Toggl, server returned {0}", status_code)
            self.logout_failed.fire()

    def get_entries(self, from_time: datetime, to_time: datetime) -> Optional[list[TogglEntry]]:
        """Fetch entries between two timestamps.

        Entries of 30 seconds or less are dropped. Without a session cookie
        no request is made and the call fails with "Not logged in".

        Args:
            from_time: Range start
            to_time: Range end

        Returns:
            Entries in server order, or None if fetching failed
        """
        entries: Optional[list[TogglEntry]] = None
        error_message = ""
        start_date = format_time(from_time)
        end_date = format_time(to_time)

        try:
            entries = self._fetch_entries(start_date, end_date)
        except AuthenticationProtocolError as e:
            error_message = str(e)
            self._log.warning("Cannot get entries from Toggl before logging in")
        except ResponseFormatError as e:
            error_message = INVALID_RESPONSE_MESSAGE
            self._log.error("Error while parsing Toggl server response", e)
        except ServerError as e:
            error_message = str(e)
            self._log.warning_format(
                "Did not get an OK when fetching entries from Toggl {0}", e.status_code
            )
        except TransportError as e:
            error_message = str(e)
            self._log.error("Exception while getting Toggl entries", e)

        if entries is None:
            self._encountered_error = True
            self.fetching_entries_failed.fire(error_message)
            return None

        self._encountered_error = False
        return self._remove_too_short_entries(entries)

    def _fetch_entries(self, start_date: str, end_date: str) -> list[TogglEntry]:
        """Run the entries request and parse the body.

        Raises:
            AuthenticationProtocolError: If no session cookie is held
            TransportError: If the request itself failed
            ServerError: If the status is not 200
            ResponseFormatError: If the body is not an entry array
        """
        if self._credential is None:
            raise AuthenticationProtocolError(NOT_LOGGED_IN_MESSAGE)

        url = f"{self.entries_url}?start_date={start_date}&end_date={end_date}"
        cookies = self._credential.to_cookie_jar()

        self._log.debug_format(
            "Getting entries from Toggl updated between {0} and {1}", start_date, end_date
        )
        try:
            with requests.get(
                url,
                cookies=cookies,
                headers={"Content-Type": "application/json"},
                timeout=self.timeout,
            ) as response:
                if response.status_code != 200:
                    raise ServerError(response.status_code)
                self._log.debug("Got a OK when getting entries from Toggl")
                body = response.content
        except requests.RequestException as e:
            raise TransportError(str(e)) from e

        entries = parse_entries(body)
        if entries:
            self._log.info_format("Got {0} entries from Toggl", len(entries))
        else:
            self._log.debug("Got an empty array of entries from Toggl")
        return entries

    def _remove_too_short_entries(self, entries: list[TogglEntry]) -> list[TogglEntry]:
        kept = [e for e in entries if e.duration > MIN_ENTRY_DURATION]
        if kept:
            self._log.info_format("{0} entries exceed {1} seconds", len(kept), MIN_ENTRY_DURATION)
        else:
            self._log.debug(f"No entries exceeding {MIN_ENTRY_DURATION} seconds")
        return kept
