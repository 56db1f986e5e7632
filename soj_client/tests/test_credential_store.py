"""Tests for CredentialStore: derived identity, partial updates, clear()."""
from soj_client.config import (
    ACCESS_TOKEN_KEY,
    DRAFT_KEY_PREFIX,
    REFRESH_TOKEN_KEY,
    USER_ID_KEY,
    USER_ROLE_KEY,
)
from soj_client.credential_store import CredentialRecord
from soj_client.tests.fakes import make_token


def test_empty_store_returns_empty_record(store):
    record = store.get()
    assert record == CredentialRecord()
    assert record.is_empty
    assert store.is_authenticated() is False


def test_set_derives_identity_from_access_token(store):
    token = make_token(user_id=5, role=2)
    store.set(CredentialRecord(access_token=token, refresh_token="R1"))
    record = store.get()
    assert record.access_token == token
    assert record.refresh_token == "R1"
    assert record.subject_id == 5
    assert record.authorization_level == 2
    assert store.is_authenticated() is True


def test_set_ignores_caller_supplied_identity(store):
    token = make_token(user_id=5, role=1)
    store.set(CredentialRecord(access_token=token, refresh_token="R1", subject_id=99, authorization_level=3))
    record = store.get()
    assert record.subject_id == 5
    assert record.authorization_level == 1


def test_update_access_token_rederives_and_keeps_refresh_token(store):
    store.set(CredentialRecord(access_token=make_token(user_id=5, role=1), refresh_token="R1"))
    store.update_access_token(make_token(user_id=6, role=3))
    record = store.get()
    assert record.subject_id == 6
    assert record.authorization_level == 3
    assert record.refresh_token == "R1"


def test_malformed_access_token_has_no_identity(store):
    store.set(CredentialRecord(access_token=make_token(user_id=5), refresh_token="R1"))
    store.update_access_token("opaque")
    record = store.get()
    assert record.access_token == "opaque"
    assert record.subject_id is None
    assert record.authorization_level is None


def test_tokens_are_independently_nullable(store):
    store.set(CredentialRecord(access_token=None, refresh_token="R1"))
    record = store.get()
    assert record.access_token is None
    assert record.refresh_token == "R1"
    assert store.is_authenticated() is False


def test_clear_removes_credentials_and_drafts(store, storage):
    store.set(CredentialRecord(access_token=make_token(user_id=5, role=2), refresh_token="R1"))
    store.save_draft("1001", "int main() {}")
    store.save_draft("1002", "print(1)")
    storage.set_item("theme", "dark")

    store.clear()

    for key in (ACCESS_TOKEN_KEY, REFRESH_TOKEN_KEY, USER_ID_KEY, USER_ROLE_KEY):
        assert storage.get_item(key) is None
    assert not [k for k in storage.keys() if k.startswith(DRAFT_KEY_PREFIX)]
    assert store.get().is_empty
    assert storage.get_item("theme") == "dark"


def test_drafts_roundtrip(store):
    store.save_draft("1001", "code")
    assert store.load_draft("1001") == "code"
    assert store.load_draft("missing") is None
