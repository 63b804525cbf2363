"""Unit tests for SessionStore."""

from core.exceptions import ProfileFetchError
from domain.services.session_store import AuthState, SessionSnapshot, SessionStore
from tests.unit.conftest import make_principal, make_profile, make_session


class TestSessionStore:
    def test_starts_unauthenticated(self):
        store = SessionStore()

        assert store.snapshot.state == AuthState.UNAUTHENTICATED
        assert store.snapshot.principal is None
        assert not store.snapshot.is_authenticated

    def test_begin_and_abort_authenticating(self):
        store = SessionStore()

        store.begin_authenticating()
        assert store.snapshot.state == AuthState.AUTHENTICATING

        store.abort_authenticating()
        assert store.snapshot.state == AuthState.UNAUTHENTICATED

    def test_begin_authenticating_keeps_an_existing_session(self):
        store = SessionStore()
        store.set_session(make_session())

        store.begin_authenticating()

        assert store.snapshot.state == AuthState.AUTHENTICATED_NO_PROFILE

    def test_set_session_bumps_generation(self):
        store = SessionStore()

        generation = store.set_session(make_session())

        assert generation == 1
        assert store.snapshot.state == AuthState.AUTHENTICATED_NO_PROFILE
        assert store.snapshot.is_authenticated

    def test_token_refresh_for_same_principal_keeps_profile(self):
        store = SessionStore()
        principal = make_principal()
        generation = store.set_session(make_session(principal, token="t1"))
        store.mark_profile_loading(generation)
        store.set_profile(generation, make_profile(principal))

        again = store.set_session(make_session(principal, token="t2"))

        assert again == generation
        assert store.snapshot.state == AuthState.PROFILE_READY
        assert store.snapshot.session is not None
        assert store.snapshot.session.access_token == "t2"

    def test_profile_lifecycle(self):
        store = SessionStore()
        principal = make_principal()
        generation = store.set_session(make_session(principal))

        assert store.mark_profile_loading(generation)
        assert store.snapshot.state == AuthState.PROFILE_LOADING

        profile = make_profile(principal)
        assert store.set_profile(generation, profile)
        assert store.snapshot.state == AuthState.PROFILE_READY
        assert store.snapshot.profile is profile
        assert store.snapshot.role == profile.role

    def test_profile_error_state(self):
        store = SessionStore()
        principal = make_principal()
        generation = store.set_session(make_session(principal))
        error = ProfileFetchError(str(principal.id), "timeout")

        assert store.set_profile_error(generation, error)

        assert store.snapshot.state == AuthState.PROFILE_ERROR
        assert store.snapshot.error is error
        assert store.snapshot.is_authenticated
        assert store.snapshot.role is None

    def test_stale_generation_writes_are_dropped(self):
        store = SessionStore()
        first = make_principal()
        old_generation = store.set_session(make_session(first))
        store.set_session(make_session(make_principal()))

        assert not store.mark_profile_loading(old_generation)
        assert not store.set_profile(old_generation, make_profile(first))
        assert store.snapshot.profile is None
        assert store.snapshot.state == AuthState.AUTHENTICATED_NO_PROFILE

    def test_writes_after_clear_are_dropped(self):
        store = SessionStore()
        principal = make_principal()
        generation = store.set_session(make_session(principal))

        store.clear()

        assert not store.set_profile(generation, make_profile(principal))
        assert store.snapshot.state == AuthState.UNAUTHENTICATED

    def test_listeners_receive_every_snapshot(self):
        store = SessionStore()
        seen: list[SessionSnapshot] = []
        unsubscribe = store.subscribe(seen.append)

        store.begin_authenticating()
        store.set_session(make_session())
        unsubscribe()
        store.clear()

        assert [s.state for s in seen] == [
            AuthState.AUTHENTICATING,
            AuthState.AUTHENTICATED_NO_PROFILE,
        ]

    def test_is_settling(self):
        assert SessionSnapshot(state=AuthState.AUTHENTICATING).is_settling
        assert SessionSnapshot(state=AuthState.PROFILE_LOADING).is_settling
        assert not SessionSnapshot(state=AuthState.PROFILE_READY).is_settling
        assert not SessionSnapshot(state=AuthState.PROFILE_ERROR).is_settling
