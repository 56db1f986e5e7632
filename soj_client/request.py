"""
Authenticated request pipeline.

Request phase: attach the stored access token (if any) under SOJ-Access-Token.
Response phase: unwrap the {code, data, message} envelope. A 401 (HTTP status or envelope code)
asks the RefreshCoordinator for a fresh token and re-dispatches the request exactly once.
"""
import logging
from dataclasses import dataclass, field
from typing import Any

import httpx

from soj_client.config import (
    ACCESS_TOKEN_HEADER,
    API_BASE_URL,
    REFRESH_PATH,
    REFRESH_TIMEOUT,
    REFRESH_TOKEN_HEADER,
    REQUEST_TIMEOUT,
    STORAGE_PATH,
    SUCCESS_CODE,
    UNAUTHORIZED_CODE,
)
from soj_client.credential_store import CredentialStore
from soj_client.errors import ApplicationError, AuthorizationError, EnvelopeError, RefreshError
from soj_client.refresh import RefreshCoordinator, RefreshedTokens
from soj_client.session import MemoryNavigator, Navigator, SessionTerminator
from soj_client.storage import Storage, open_storage

logger = logging.getLogger(__name__)


@dataclass
class PendingRequest:
    """An outbound call plus whether it was already retried after a refresh."""

    method: str
    url: str
    kwargs: dict[str, Any] = field(default_factory=dict)
    retried: bool = False
    # Access token the last dispatch carried
    token: str | None = None


def _envelope(response: httpx.Response) -> dict:
    try:
        body = response.json()
    except ValueError as e:
        raise EnvelopeError(f"Response is not JSON (HTTP {response.status_code})") from e
    if not isinstance(body, dict) or "code" not in body:
        raise EnvelopeError(f"Response is not an envelope (HTTP {response.status_code})")
    return body


def _mentions_refresh_expiry(message: str | None) -> bool:
    text = (message or "").lower()
    return "refresh" in text and "expire" in text


class HttpRefresher:
    """
    POST the refresh endpoint with the refresh token header and no body.
    Talks to the transport directly: the refresh call never goes through the pipeline.
    """

    def __init__(self, http: httpx.AsyncClient, path: str = REFRESH_PATH):
        self.http = http
        self.path = path

    async def __call__(self, refresh_token: str) -> RefreshedTokens:
        response = await self.http.post(self.path, headers={REFRESH_TOKEN_HEADER: refresh_token})
        if response.status_code == 401:
            raise RefreshError("Refresh token rejected")
        response.raise_for_status()
        try:
            envelope = _envelope(response)
        except EnvelopeError as e:
            raise RefreshError(f"Malformed refresh response: {e}") from e

        code = envelope.get("code")
        message = envelope.get("message") or ""
        if code != SUCCESS_CODE:
            if code == UNAUTHORIZED_CODE or _mentions_refresh_expiry(message):
                raise RefreshError(message or "Refresh token expired")
            raise RefreshError(message or f"Refresh failed with code {code}")

        data = envelope.get("data")
        rotated = None
        if isinstance(data, str):
            access_token = data
        elif isinstance(data, dict):
            access_token = data.get("access_token")
            rotated = data.get("refresh_token")
        else:
            access_token = None
        if not access_token:
            raise RefreshError("Refresh response carried no access token")
        return RefreshedTokens(access_token=access_token, refresh_token=rotated or None)


class ApiClient:
    """
    The single "perform request" entry point. Returns the success envelope; raises
    ApplicationError / AuthorizationError / RefreshError / EnvelopeError, or lets httpx
    transport errors through unchanged.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        store: CredentialStore,
        coordinator: RefreshCoordinator,
    ):
        self.http = http
        self.store = store
        self.coordinator = coordinator

    async def request(self, method: str, url: str, **kwargs) -> dict:
        pending = PendingRequest(method=method.upper(), url=url, kwargs=kwargs)
        response = await self._dispatch(pending)
        envelope = self._inspect(response)
        if envelope is not None:
            return envelope
        return await self._retry(pending)

    async def get(self, url: str, **kwargs) -> dict:
        return await self.request("GET", url, **kwargs)

    async def post(self, url: str, **kwargs) -> dict:
        return await self.request("POST", url, **kwargs)

    async def put(self, url: str, **kwargs) -> dict:
        return await self.request("PUT", url, **kwargs)

    async def delete(self, url: str, **kwargs) -> dict:
        return await self.request("DELETE", url, **kwargs)

    async def _dispatch(self, pending: PendingRequest, token: str | None = None) -> httpx.Response:
        kwargs = dict(pending.kwargs)
        # Callable header values are read per dispatch, so a replay sees tokens rotated by the refresh
        headers = {}
        for name, value in (kwargs.pop("headers", None) or {}).items():
            value = value() if callable(value) else value
            if value is not None:
                headers[name] = value
        token = token or self.store.access_token
        if token:
            headers[ACCESS_TOKEN_HEADER] = token
        else:
            headers.pop(ACCESS_TOKEN_HEADER, None)
        pending.token = token
        return await self.http.request(pending.method, pending.url, headers=headers, **kwargs)

    def _inspect(self, response: httpx.Response) -> dict | None:
        """Success envelope, or None when the response is an authorization failure."""
        if response.status_code == 401:
            return None
        response.raise_for_status()
        envelope = _envelope(response)
        code = envelope.get("code")
        if code == SUCCESS_CODE:
            return envelope
        if code == UNAUTHORIZED_CODE:
            return None
        raise ApplicationError(code, envelope.get("message") or "", envelope.get("data"))

    async def _retry(self, pending: PendingRequest) -> dict:
        if pending.retried:
            raise AuthorizationError(f"{pending.method} {pending.url}: unauthorized")
        pending.retried = True
        token = await self.coordinator.acquire_token(rejected_token=pending.token)
        response = await self._dispatch(pending, token=token)
        envelope = self._inspect(response)
        if envelope is None:
            logger.warning("%s %s still unauthorized after token refresh", pending.method, pending.url)
            raise AuthorizationError(f"{pending.method} {pending.url}: unauthorized after token refresh")
        return envelope

    async def aclose(self) -> None:
        await self.http.aclose()

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()


def create_client(
    base_url: str = API_BASE_URL,
    *,
    storage: Storage | None = None,
    navigator: Navigator | None = None,
    timeout: float = REQUEST_TIMEOUT,
    refresh_timeout: float = REFRESH_TIMEOUT,
    transport: httpx.AsyncBaseTransport | None = None,
) -> ApiClient:
    """Wire storage, credential store, terminator, coordinator and transport into an ApiClient."""
    store = CredentialStore(storage if storage is not None else open_storage(STORAGE_PATH))
    terminator = SessionTerminator(store, navigator if navigator is not None else MemoryNavigator())
    http = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)
    coordinator = RefreshCoordinator(store, HttpRefresher(http), terminator, timeout=refresh_timeout)
    return ApiClient(http, store, coordinator)
