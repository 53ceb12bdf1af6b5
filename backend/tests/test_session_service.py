"""
Bearer session lifecycle: expiry boundary, revocation, rotation and cleanup.
"""

from datetime import timedelta

import pytest

from portray.models import UserSession
from portray.services import session_service
from portray.time_utils import utcnow


def _expire_at(db_session, session, when):
    session.expires_at = when
    db_session.commit()


class TestExpiry:
    def test_session_valid_one_second_before_expiry(self, db_session, admin_user):
        session, token = session_service.create_session(admin_user.id)
        _expire_at(db_session, session, utcnow() + timedelta(seconds=1))

        context = session_service.resolve_session(token)
        assert context is not None
        assert context.user.id == admin_user.id

    def test_session_invalid_one_second_after_expiry(self, db_session, admin_user):
        session, token = session_service.create_session(admin_user.id)
        session_id = session.id
        _expire_at(db_session, session, utcnow() - timedelta(seconds=1))

        assert session_service.resolve_session(token) is None
        # Expired rows are removed on lookup
        assert db_session.get(UserSession, session_id) is None

    def test_default_lifetime_is_24_hours(self, admin_user):
        session, _ = session_service.create_session(admin_user.id)
        lifetime = session.expires_at - session.created_at
        assert lifetime == timedelta(hours=24)

    def test_remember_me_lifetime_is_30_days(self, admin_user):
        session, _ = session_service.create_session(admin_user.id, remember_me=True)
        lifetime = session.expires_at - session.created_at
        assert lifetime == timedelta(days=30)


class TestResolve:
    def test_unknown_token(self, admin_user):
        assert session_service.resolve_session("not-a-real-token") is None
        assert session_service.resolve_session("") is None

    def test_only_hash_is_stored(self, db_session, admin_user):
        session, token = session_service.create_session(admin_user.id)
        assert session.token_hash != token
        assert session.token_hash == session_service.hash_token(token)

    def test_inactive_user_does_not_resolve(self, db_session, admin_user):
        _, token = session_service.create_session(admin_user.id)
        admin_user.is_active = False
        db_session.commit()

        assert session_service.resolve_session(token) is None

    def test_unknown_user_cannot_get_session(self, admin_user):
        with pytest.raises(ValueError):
            session_service.create_session(admin_user.id + 1000)


class TestRevocation:
    def test_revoked_token_never_resolves_again(self, admin_user):
        _, token = session_service.create_session(admin_user.id)

        assert session_service.revoke_session(token) is True
        assert session_service.resolve_session(token) is None
        assert session_service.revoke_session(token) is False

    def test_revoke_all_user_sessions(self, db_session, admin_user):
        _, first = session_service.create_session(admin_user.id)
        _, second = session_service.create_session(admin_user.id)

        assert session_service.revoke_all_user_sessions(admin_user.id) == 2
        assert session_service.resolve_session(first) is None
        assert session_service.resolve_session(second) is None

    def test_cleanup_removes_only_expired(self, db_session, admin_user):
        expired, _ = session_service.create_session(admin_user.id)
        _, live_token = session_service.create_session(admin_user.id)
        _expire_at(db_session, expired, utcnow() - timedelta(minutes=5))

        assert session_service.cleanup_expired_sessions() == 1
        assert session_service.resolve_session(live_token) is not None
        assert db_session.query(UserSession).count() == 1


class TestRefresh:
    def test_refresh_rotates_token(self, db_session, admin_user):
        _, old_token = session_service.create_session(admin_user.id, remember_me=True)

        new_session, new_token = session_service.refresh_session(old_token)

        assert new_token != old_token
        assert new_session.remember_me is True
        assert session_service.resolve_session(old_token) is None
        assert session_service.resolve_session(new_token) is not None
        assert db_session.query(UserSession).count() == 1

    def test_refresh_of_expired_token_fails(self, db_session, admin_user):
        session, token = session_service.create_session(admin_user.id)
        _expire_at(db_session, session, utcnow() - timedelta(seconds=1))

        assert session_service.refresh_session(token) is None
