"""
Credential store: access token, refresh token and the identity derived from the access token.
Backed by a Storage (durable key/value); subject id and role are never set directly,
they are re-derived from the access token every time it changes.
"""
from dataclasses import dataclass

from soj_client import token_codec
from soj_client.config import (
    ACCESS_TOKEN_KEY,
    DRAFT_KEY_PREFIX,
    REFRESH_TOKEN_KEY,
    USER_ID_KEY,
    USER_ROLE_KEY,
)
from soj_client.storage import Storage

CREDENTIAL_KEYS = (ACCESS_TOKEN_KEY, REFRESH_TOKEN_KEY, USER_ID_KEY, USER_ROLE_KEY)


@dataclass(frozen=True)
class CredentialRecord:
    access_token: str | None = None
    refresh_token: str | None = None
    subject_id: int | None = None
    authorization_level: int | None = None

    @property
    def is_empty(self) -> bool:
        return (
            self.access_token is None
            and self.refresh_token is None
            and self.subject_id is None
            and self.authorization_level is None
        )


def _int_or_none(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


class CredentialStore:
    def __init__(self, storage: Storage):
        self.storage = storage

    def get(self) -> CredentialRecord:
        return CredentialRecord(
            access_token=self.storage.get_item(ACCESS_TOKEN_KEY),
            refresh_token=self.storage.get_item(REFRESH_TOKEN_KEY),
            subject_id=_int_or_none(self.storage.get_item(USER_ID_KEY)),
            authorization_level=_int_or_none(self.storage.get_item(USER_ROLE_KEY)),
        )

    def set(self, record: CredentialRecord) -> None:
        """
        Store both tokens from record. Its subject_id / authorization_level are ignored:
        identity always comes from decoding the access token.
        """
        self._put(REFRESH_TOKEN_KEY, record.refresh_token)
        self.update_access_token(record.access_token)

    def update_access_token(self, token: str | None) -> None:
        """Replace only the access token and re-derive identity from it."""
        self._put(ACCESS_TOKEN_KEY, token)
        claims = token_codec.decode(token)
        if claims is None:
            self._put(USER_ID_KEY, None)
            self._put(USER_ROLE_KEY, None)
            return
        self._put(USER_ID_KEY, claims.subject_id)
        self._put(USER_ROLE_KEY, claims.authorization_level)

    def update_refresh_token(self, token: str | None) -> None:
        self._put(REFRESH_TOKEN_KEY, token)

    def clear(self) -> None:
        """Remove all credential keys and every cached draft so nothing per-user survives logout."""
        for key in CREDENTIAL_KEYS:
            self.storage.remove_item(key)
        for key in self.storage.keys():
            if key.startswith(DRAFT_KEY_PREFIX):
                self.storage.remove_item(key)

    @property
    def access_token(self) -> str | None:
        return self.storage.get_item(ACCESS_TOKEN_KEY)

    @property
    def refresh_token(self) -> str | None:
        return self.storage.get_item(REFRESH_TOKEN_KEY)

    def is_authenticated(self) -> bool:
        return bool(self.access_token)

    # Per-problem code drafts (swept by clear())

    def save_draft(self, key: str, text: str) -> None:
        self.storage.set_item(f"{DRAFT_KEY_PREFIX}{key}", text)

    def load_draft(self, key: str) -> str | None:
        return self.storage.get_item(f"{DRAFT_KEY_PREFIX}{key}")

    def _put(self, key: str, value) -> None:
        if value is None:
            self.storage.remove_item(key)
        else:
            self.storage.set_item(key, str(value))
