"""
User endpoints the credential lifecycle depends on: login creates credentials, logout drops them,
user info backs the admin check. All calls go through ApiClient.
"""
import logging

import httpx

from soj_client.config import LOGIN_API_PATH, LOGOUT_API_PATH, REFRESH_TOKEN_HEADER, USER_INFO_PATH
from soj_client.credential_store import CredentialRecord
from soj_client.errors import ApiError, EnvelopeError
from soj_client.request import ApiClient
from soj_client.token_codec import ROLE_ADMIN

logger = logging.getLogger(__name__)


async def login(client: ApiClient, username: str, password: str) -> CredentialRecord:
    """Log in and store the returned tokens. Returns the stored record (identity decoded from the token)."""
    envelope = await client.post(LOGIN_API_PATH, json={"username": username, "password": password})
    data = envelope.get("data") or {}
    access_token = data.get("access_token") if isinstance(data, dict) else None
    if not access_token:
        raise EnvelopeError("Login response carried no access token")
    client.store.set(
        CredentialRecord(access_token=access_token, refresh_token=data.get("refresh_token"))
    )
    record = client.store.get()
    logger.info("Logged in as user_id=%s", record.subject_id)
    return record


async def logout(client: ApiClient) -> None:
    """
    Tell the server to revoke the refresh token, then clear local credentials.
    Local state is cleared even when the server call fails.
    """
    refresh_token = client.store.refresh_token
    try:
        if refresh_token:
            await client.get(
                LOGOUT_API_PATH, headers={REFRESH_TOKEN_HEADER: lambda: client.store.refresh_token}
            )
    except (ApiError, httpx.HTTPError) as e:
        logger.warning("Logout call failed: %s; clearing local session anyway", e)
    finally:
        client.store.clear()


async def get_user_info(client: ApiClient, user_id: int) -> dict:
    envelope = await client.get(USER_INFO_PATH.format(user_id=int(user_id)))
    return envelope.get("data") or {}


async def check_admin_permission(client: ApiClient) -> bool:
    """
    Route guard for admin pages: asks the server for the user's role (decoded claims are not trusted
    for this). False on any failure.
    """
    record = client.store.get()
    if record.subject_id is None or not record.access_token:
        return False
    try:
        info = await get_user_info(client, record.subject_id)
    except (ApiError, httpx.HTTPError) as e:
        logger.warning("Admin permission check failed: %s", e)
        return False
    role = info.get("role")
    return isinstance(role, int) and role >= ROLE_ADMIN
