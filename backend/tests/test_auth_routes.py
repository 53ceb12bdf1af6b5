"""
Login, logout, me and token refresh over HTTP.
"""

from portray.models import UserAuditLog

from conftest import PASSWORD, auth_headers, get_auth_token


class TestLogin:
    def test_login_returns_token_and_redirect(self, client, admin_user):
        response = client.post('/api/auth/login', json={
            'email': admin_user.email,
            'password': PASSWORD,
        })

        assert response.status_code == 200
        body = response.json
        assert body['token']
        assert body['expires_at'].endswith('Z')
        assert body['user']['email'] == admin_user.email
        assert body['redirect_path'] == '/portal/welcome'
        assert 'password_hash' not in body['user']

    def test_port_admin_lands_on_dashboard(self, client, port_admin_user):
        response = client.post('/api/auth/login', json={
            'email': port_admin_user.email,
            'password': PASSWORD,
        })
        assert response.status_code == 200
        assert response.json['redirect_path'] == '/dashboard'

    def test_login_records_last_login_and_audit(self, client, db_session, admin_user):
        assert admin_user.last_login_at is None
        get_auth_token(client, admin_user.email)

        db_session.refresh(admin_user)
        assert admin_user.last_login_at is not None
        actions = [e.action for e in db_session.query(UserAuditLog).filter_by(target_user_id=admin_user.id)]
        assert 'login' in actions

    def test_wrong_password_is_generic(self, client, admin_user):
        response = client.post('/api/auth/login', json={
            'email': admin_user.email,
            'password': 'WrongPassword1!',
        })
        assert response.status_code == 401
        assert response.json['error'] == 'Invalid credentials'

    def test_unknown_email_is_generic(self, client, admin_user):
        response = client.post('/api/auth/login', json={
            'email': 'nobody@portray.test',
            'password': PASSWORD,
        })
        assert response.status_code == 401
        assert response.json['error'] == 'Invalid credentials'

    def test_inactive_user_cannot_login(self, client, db_session, admin_user):
        admin_user.is_active = False
        db_session.commit()

        response = client.post('/api/auth/login', json={
            'email': admin_user.email,
            'password': PASSWORD,
        })
        assert response.status_code == 401

    def test_email_match_is_case_sensitive(self, client, admin_user):
        response = client.post('/api/auth/login', json={
            'email': admin_user.email.upper(),
            'password': PASSWORD,
        })
        assert response.status_code == 401

    def test_missing_fields(self, client):
        response = client.post('/api/auth/login', json={'email': 'a@b.com'})
        assert response.status_code == 400


class TestSessionRoutes:
    def test_me(self, client, admin_user, admin_headers):
        response = client.get('/api/auth/me', headers=admin_headers)

        assert response.status_code == 200
        assert response.json['user']['id'] == admin_user.id
        assert response.json['contact'] is None

    def test_logout_invalidates_token(self, client, admin_user):
        token = get_auth_token(client, admin_user.email)

        response = client.post('/api/auth/logout', headers=auth_headers(token))
        assert response.status_code == 200

        response = client.get('/api/auth/me', headers=auth_headers(token))
        assert response.status_code == 401

    def test_refresh_rotates_token(self, client, admin_user):
        token = get_auth_token(client, admin_user.email)

        response = client.post('/api/auth/refresh', headers=auth_headers(token))
        assert response.status_code == 200
        new_token = response.json['token']
        assert new_token != token

        assert client.get('/api/auth/me', headers=auth_headers(token)).status_code == 401
        assert client.get('/api/auth/me', headers=auth_headers(new_token)).status_code == 200

    def test_malformed_authorization_header(self, client, admin_user):
        response = client.get('/api/auth/me', headers={'Authorization': 'Token abc'})
        assert response.status_code == 401


def test_health(client, admin_user, subscription_types):
    response = client.get('/health')

    assert response.status_code == 200
    assert response.json['status'] == 'healthy'
    assert response.json['checks']['bootstrap']['details']['system_admins'] == 1
