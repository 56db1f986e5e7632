"""
Session termination: clear credentials and send the user to the login route with the page
they were on preserved as ?redirect=..., to be honored after re-authentication.
Navigation goes through an injected Navigator so nothing here touches a global browser object.
"""
import logging
import time
from typing import Protocol
from urllib.parse import parse_qs, urlencode, urlsplit

from soj_client.config import LOGIN_ROUTE, REDIRECT_PARAM, TERMINATE_DEBOUNCE_SECONDS
from soj_client.credential_store import CredentialStore

logger = logging.getLogger(__name__)


class Navigator(Protocol):
    def current_location(self) -> str: ...

    def navigate(self, url: str) -> None: ...


class MemoryNavigator:
    """Navigator for headless programs and tests: keeps the current location and a history."""

    def __init__(self, location: str = "/"):
        self.location = location
        self.history: list[str] = []

    def current_location(self) -> str:
        return self.location

    def navigate(self, url: str) -> None:
        self.history.append(url)
        self.location = url


def build_login_url(location: str | None) -> str:
    """Login route with location encoded as the redirect target."""
    if not location:
        return LOGIN_ROUTE
    return f"{LOGIN_ROUTE}?{urlencode({REDIRECT_PARAM: location})}"


def _is_login_location(location: str) -> bool:
    path = urlsplit(location).path
    return path.rstrip("/") == LOGIN_ROUTE.rstrip("/")


def redirect_target(url_or_query: str | None, default: str = "/") -> str:
    """
    Read the redirect target back from a login URL or its query string.
    Only same-site relative paths are accepted; anything else falls back to default.
    """
    if not url_or_query:
        return default
    query = urlsplit(url_or_query).query if "?" in url_or_query else url_or_query.lstrip("?")
    values = parse_qs(query).get(REDIRECT_PARAM)
    if not values:
        return default
    target = values[0]
    parts = urlsplit(target)
    # Browsers read "\" as "/", so "/\host" is protocol-relative too
    if "\\" in target:
        return default
    if parts.scheme or parts.netloc or not target.startswith("/") or target.startswith("//"):
        return default
    if _is_login_location(target):
        return default
    return target


class SessionTerminator:
    """
    terminate(): clear the store, capture where the user is, navigate to login.
    Idempotent: no navigation when already on the login route, or when a previous
    termination navigated less than `debounce` seconds ago.
    """

    def __init__(
        self,
        store: CredentialStore,
        navigator: Navigator,
        debounce: float = TERMINATE_DEBOUNCE_SECONDS,
    ):
        self.store = store
        self.navigator = navigator
        self.debounce = debounce
        self._last_navigation: float | None = None

    def terminate(self, reason: str = "") -> bool:
        """Returns True if this call navigated to the login route."""
        self.store.clear()
        location = self.navigator.current_location()
        if _is_login_location(location):
            logger.debug("Session terminated (%s); already on login route", reason)
            return False
        now = time.monotonic()
        if self._last_navigation is not None and now - self._last_navigation < self.debounce:
            logger.debug("Session terminated (%s); navigation already in progress", reason)
            return False
        self._last_navigation = now
        logger.info("Session terminated (%s); redirecting to login from %s", reason, location)
        self.navigator.navigate(build_login_url(location))
        return True
