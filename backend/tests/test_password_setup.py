"""
First password for accounts provisioned by contact verification.
"""

import pytest

from portray.errors import ConflictError, NotFoundError
from portray.models import UserAuditLog
from portray.services import auth_service, contact_service, session_service
from portray.services.auth_service import PENDING_SETUP, PasswordValidationError

from conftest import PASSWORD, auth_headers


NEW_PASSWORD = "Harbour#2025"


@pytest.fixture
def pending_user(db_session, port):
    contact, _ = contact_service.create_contact(port.id, {
        "contact_name": "Ravi Kumar",
        "designation": "Port Officer",
        "email": "ravi@kochiport.test",
        "mobile_number": "+91-9000000002",
    })
    return contact_service.consume_verification(contact.verification_token).user


class TestPasswordStrength:
    @pytest.mark.parametrize("password", [
        "Sh0rt!",          # too short
        "nouppercase1!",   # no uppercase
        "NOLOWERCASE1!",   # no lowercase
        "NoDigitsHere!",   # no digit
        "NoSpecial123",    # no special character
    ])
    def test_weak_passwords_rejected(self, password):
        with pytest.raises(PasswordValidationError):
            auth_service.validate_password_strength(password)

    def test_strong_password_accepted(self):
        auth_service.validate_password_strength(NEW_PASSWORD)


class TestSetupPassword:
    def test_pending_user_cannot_login(self, client, pending_user):
        response = client.post('/api/auth/login', json={
            'email': pending_user.email,
            'password': PASSWORD,
        })
        assert response.status_code == 401

    def test_setup_activates_and_logs_in(self, db_session, pending_user):
        user, session, token = auth_service.setup_password(pending_user.id, NEW_PASSWORD)

        assert user.is_active is True
        assert user.password_hash != PENDING_SETUP
        assert auth_service.verify_password(NEW_PASSWORD, user.password_hash)
        assert user.last_login_at is not None
        assert session_service.resolve_session(token).user.id == user.id
        assert session.remember_me is False

        actions = [e.action for e in db_session.query(UserAuditLog).filter_by(target_user_id=user.id)]
        assert "password_setup" in actions

    def test_setup_only_once(self, pending_user):
        auth_service.setup_password(pending_user.id, NEW_PASSWORD)

        with pytest.raises(ConflictError) as exc:
            auth_service.setup_password(pending_user.id, "Another#Pass9")
        assert exc.value.code == "PasswordAlreadySet"

    def test_cannot_overwrite_established_password(self, admin_user):
        with pytest.raises(ConflictError):
            auth_service.setup_password(admin_user.id, NEW_PASSWORD)

    def test_weak_password_leaves_account_pending(self, db_session, pending_user):
        with pytest.raises(PasswordValidationError):
            auth_service.setup_password(pending_user.id, "weak")

        db_session.refresh(pending_user)
        assert pending_user.password_hash == PENDING_SETUP
        assert pending_user.is_active is False

    def test_unknown_user(self, pending_user):
        with pytest.raises(NotFoundError):
            auth_service.setup_password(pending_user.id + 1000, NEW_PASSWORD)


class TestSetupPasswordRoutes:
    def test_setup_then_use_token(self, client, pending_user):
        response = client.post('/api/auth/setup-password', json={
            'user_id': pending_user.id,
            'password': NEW_PASSWORD,
        })

        assert response.status_code == 200
        assert response.json['redirect_path'] == '/dashboard'
        token = response.json['token']

        me = client.get('/api/auth/me', headers=auth_headers(token))
        assert me.status_code == 200
        assert me.json['contact']['email'] == pending_user.email

    def test_alias_route(self, client, pending_user):
        response = client.post('/api/setup-password', json={
            'user_id': pending_user.id,
            'password': NEW_PASSWORD,
        })
        assert response.status_code == 200

    def test_login_with_new_password(self, client, pending_user):
        client.post('/api/auth/setup-password', json={'user_id': pending_user.id, 'password': NEW_PASSWORD})

        response = client.post('/api/auth/login', json={
            'email': pending_user.email,
            'password': NEW_PASSWORD,
        })
        assert response.status_code == 200

    def test_user_id_must_be_integer(self, client, pending_user):
        response = client.post('/api/auth/setup-password', json={
            'user_id': str(pending_user.id),
            'password': NEW_PASSWORD,
        })
        assert response.status_code == 400
