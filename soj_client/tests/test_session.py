"""Tests for SessionTerminator, login URL building and redirect handling."""
from soj_client.credential_store import CredentialStore
from soj_client.session import MemoryNavigator, SessionTerminator, build_login_url, redirect_target
from soj_client.tests.fakes import login_as


def test_build_login_url_encodes_location():
    assert build_login_url("/problems/42?tab=submit") == "/login?redirect=%2Fproblems%2F42%3Ftab%3Dsubmit"
    assert build_login_url("") == "/login"


def test_redirect_target_roundtrip():
    url = build_login_url("/contests/3")
    assert redirect_target(url) == "/contests/3"
    assert redirect_target("redirect=%2Fcontests%2F3") == "/contests/3"


def test_redirect_target_rejects_external_and_login():
    assert redirect_target("/login?redirect=https%3A%2F%2Fevil.example%2F") == "/"
    assert redirect_target("/login?redirect=%2F%2Fevil.example") == "/"
    assert redirect_target("/login?redirect=%2F%5Cevil.example") == "/"
    assert redirect_target("/login?redirect=%2Fproblems%5C..%5C%5Cevil.example") == "/"
    assert redirect_target("/login?redirect=%2Flogin") == "/"
    assert redirect_target("/login", default="/home") == "/home"
    assert redirect_target(None) == "/"


def test_terminate_clears_and_navigates(store, navigator):
    login_as(store)
    terminator = SessionTerminator(store, navigator)
    assert terminator.terminate("refresh failed") is True
    assert store.get().is_empty
    assert navigator.location == "/login?redirect=%2Fproblems%2F42"
    assert redirect_target(navigator.location) == "/problems/42"


def test_terminate_twice_navigates_once(store):
    class StickyNavigator(MemoryNavigator):
        """Navigation takes effect later, like a browser; location does not change yet."""

        def navigate(self, url):
            self.history.append(url)

    nav = StickyNavigator("/contests")
    terminator = SessionTerminator(store, nav, debounce=60)
    assert terminator.terminate() is True
    assert terminator.terminate() is False
    assert len(nav.history) == 1


def test_terminate_on_login_route_does_not_navigate(storage):
    store = CredentialStore(storage)
    login_as(store)
    nav = MemoryNavigator("/login?redirect=%2Fproblems")
    terminator = SessionTerminator(store, nav)
    assert terminator.terminate() is False
    assert nav.history == []
    assert store.get().is_empty
