"""
User administration: CRUD, audit trail and session revocation.
"""

import pytest

from portray.errors import ConflictError
from portray.models import Notification, User, UserAuditLog, UserSession
from portray.services import notification_service, session_service, user_service
from portray.services.auth_service import PasswordValidationError

from conftest import PASSWORD, auth_headers, get_auth_token


def _actions(db_session, user_id):
    return [e.action for e in db_session.query(UserAuditLog).filter_by(target_user_id=user_id).order_by(UserAuditLog.id)]


class TestCreateUser:
    def test_admin_creates_user(self, client, db_session, admin_user, admin_headers, port):
        response = client.post('/api/users', json={
            'email': 'ops@portray.test',
            'password': PASSWORD,
            'first_name': 'Ops',
            'last_name': 'Person',
            'role': 'PortAdmin',
            'port_id': port.id,
            'terminal_ids': [3, 1],
        }, headers=admin_headers)

        assert response.status_code == 201
        body = response.json['user']
        assert body['role'] == 'PortAdmin'
        assert body['terminal_ids'] == [3, 1]
        assert 'password_hash' not in body

        (entry,) = db_session.query(UserAuditLog).filter_by(target_user_id=body['id'], action='created').all()
        assert entry.performed_by == admin_user.id

    def test_default_role(self, db_session):
        user = user_service.create_user({'email': 'plain@portray.test', 'password': PASSWORD})
        assert user.role == 'user'

    def test_duplicate_email(self, plain_user):
        with pytest.raises(ConflictError) as exc:
            user_service.create_user({'email': plain_user.email, 'password': PASSWORD})
        assert exc.value.code == 'DuplicateEmail'

    def test_weak_password(self, db_session):
        with pytest.raises(PasswordValidationError):
            user_service.create_user({'email': 'weak@portray.test', 'password': 'password'})

    def test_invalid_role(self, db_session):
        with pytest.raises(ValueError):
            user_service.create_user({'email': 'x@portray.test', 'password': PASSWORD, 'role': 'Overlord'})

    def test_invalid_email(self, db_session):
        with pytest.raises(ValueError):
            user_service.create_user({'email': 'not-an-email', 'password': PASSWORD})

    def test_terminal_ids_must_be_integers(self, db_session):
        with pytest.raises(ValueError):
            user_service.create_user({'email': 't@portray.test', 'password': PASSWORD, 'terminal_ids': ['a']})


class TestUpdateUser:
    def test_role_change_is_audited_twice(self, db_session, admin_user, plain_user):
        user_service.update_user(plain_user.id, {'role': 'PortAdmin'}, performed_by=admin_user.id)

        assert _actions(db_session, plain_user.id) == ['updated', 'role_changed']

    def test_password_change_revokes_sessions(self, client, db_session, admin_user, plain_user):
        token = get_auth_token(client, plain_user.email)

        user_service.update_user(plain_user.id, {'password': 'Changed#Pass1'}, performed_by=admin_user.id)

        assert session_service.resolve_session(token) is None
        assert get_auth_token(client, plain_user.email, 'Changed#Pass1')

    def test_update_route(self, client, admin_headers, plain_user):
        response = client.put(f'/api/users/{plain_user.id}', json={'last_name': 'Renamed'}, headers=admin_headers)
        assert response.status_code == 200
        assert response.json['user']['last_name'] == 'Renamed'


class TestToggleStatus:
    def test_deactivation_revokes_sessions(self, client, db_session, admin_user, plain_user):
        token = get_auth_token(client, plain_user.email)

        user = user_service.toggle_user_status(plain_user.id, performed_by=admin_user.id)

        assert user.is_active is False
        assert db_session.query(UserSession).filter_by(user_id=plain_user.id).count() == 0
        assert client.get('/api/auth/me', headers=auth_headers(token)).status_code == 401
        assert _actions(db_session, plain_user.id)[-1] == 'status_changed'

    def test_reactivation(self, admin_user, plain_user):
        user_service.toggle_user_status(plain_user.id, performed_by=admin_user.id)
        user = user_service.toggle_user_status(plain_user.id, performed_by=admin_user.id)
        assert user.is_active is True

    def test_cannot_deactivate_self(self, client, admin_user, admin_headers):
        response = client.patch(f'/api/users/{admin_user.id}/toggle-status', headers=admin_headers)
        assert response.status_code == 400


class TestDeleteUser:
    def test_delete_removes_sessions_and_notifications(self, client, db_session, admin_user, plain_user):
        get_auth_token(client, plain_user.email)
        notification_service.notify(plain_user.id, 'info', 'Hello', 'Welcome')
        user_id = plain_user.id

        user_service.delete_user(user_id, performed_by=admin_user.id)

        assert db_session.get(User, user_id) is None
        assert db_session.query(UserSession).filter_by(user_id=user_id).count() == 0
        assert db_session.query(Notification).filter_by(user_id=user_id).count() == 0
        # the trail outlives the account
        assert _actions(db_session, user_id)[-1] == 'deleted'

    def test_creator_of_terminal_cannot_be_deleted(self, admin_user, port_admin_user, terminal):
        with pytest.raises(ConflictError) as exc:
            user_service.delete_user(port_admin_user.id, performed_by=admin_user.id)
        assert exc.value.code == 'UserInUse'

    def test_cannot_delete_self(self, client, admin_user, admin_headers):
        response = client.delete(f'/api/users/{admin_user.id}', headers=admin_headers)
        assert response.status_code == 400

    def test_audit_log_route(self, client, admin_headers, admin_user, plain_user):
        user_service.update_user(plain_user.id, {'first_name': 'Changed'}, performed_by=admin_user.id)

        response = client.get(f'/api/users/{plain_user.id}/audit-logs', headers=admin_headers)
        assert response.status_code == 200
        assert response.json['logs'][0]['action'] == 'updated'
