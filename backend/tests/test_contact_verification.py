"""
Port admin contact verification.

Covers token issue/consume, expiry, single use, account provisioning and
the profile merge policy for accounts that already exist.
"""

import json
from datetime import timedelta

import pytest

from portray.errors import ConflictError
from portray.models import User, UserAuditLog
from portray.roles import PORT_ADMIN, USER
from portray.services import contact_service
from portray.services.auth_service import PENDING_SETUP
from portray.services.contact_service import AlreadyVerified, InvalidOrExpiredToken
from portray.time_utils import utcnow


CONTACT_DATA = {
    "contact_name": "Asha Rao Menon",
    "designation": "Harbour Master",
    "email": "asha@kochiport.test",
    "mobile_number": "+91-9000000001",
}


@pytest.fixture
def contact(db_session, port):
    contact, _ = contact_service.create_contact(port.id, dict(CONTACT_DATA))
    return contact


def _audit_actions(db_session, user_id):
    return [
        e.action for e in db_session.query(UserAuditLog)
        .filter_by(target_user_id=user_id)
        .order_by(UserAuditLog.id)
    ]


class TestCreateContact:
    def test_new_contact_is_pending(self, contact):
        assert contact.is_verified is False
        assert contact.status == "inactive"
        assert contact.verification_token
        assert contact.user_id is None

        remaining = contact.verification_token_expires - utcnow()
        assert timedelta(hours=23, minutes=59) < remaining <= timedelta(hours=24)

    def test_email_not_sent_without_mail_server(self, db_session, port):
        _, email_sent = contact_service.create_contact(port.id, {
            **CONTACT_DATA, "email": "other@kochiport.test",
        })
        assert email_sent is False

    def test_duplicate_email_rejected(self, contact, port):
        with pytest.raises(ConflictError) as exc:
            contact_service.create_contact(port.id, dict(CONTACT_DATA))
        assert exc.value.code == "DuplicateEmail"

    def test_missing_fields_rejected(self, port):
        with pytest.raises(ValueError):
            contact_service.create_contact(port.id, {"contact_name": "No Email"})

    def test_token_not_exposed(self, client, admin_headers, port):
        response = client.post(f'/api/ports/{port.id}/contacts', json=CONTACT_DATA, headers=admin_headers)

        assert response.status_code == 201
        assert response.json['email_sent'] is False
        assert 'verification_token' not in response.json['contact']
        assert response.json['contact']['verification_pending'] is True


class TestConsume:
    def test_provisions_pending_port_admin(self, db_session, contact, port):
        token = contact.verification_token

        result = contact_service.consume_verification(token)

        assert result.user_created is True
        user = result.user
        assert user.email == CONTACT_DATA["email"]
        assert user.role == PORT_ADMIN
        assert user.port_id == port.id
        assert user.is_active is False
        assert user.password_hash == PENDING_SETUP
        assert (user.first_name, user.last_name) == ("Asha", "Rao Menon")

        db_session.refresh(contact)
        assert contact.is_verified is True
        assert contact.status == "active"
        assert contact.verification_token is None
        assert contact.verification_token_expires is None
        assert contact.user_id == user.id

        assert _audit_actions(db_session, user.id) == ["created", "verified"]

    def test_token_is_single_use(self, contact):
        token = contact.verification_token
        contact_service.consume_verification(token)

        with pytest.raises(InvalidOrExpiredToken):
            contact_service.consume_verification(token)

    def test_expired_token_never_verifies(self, db_session, contact):
        token = contact.verification_token
        contact.verification_token_expires = utcnow() - timedelta(seconds=1)
        db_session.commit()

        with pytest.raises(InvalidOrExpiredToken):
            contact_service.consume_verification(token)

        db_session.refresh(contact)
        assert contact.is_verified is False
        assert contact.user_id is None
        assert db_session.query(User).filter_by(email=CONTACT_DATA["email"]).count() == 0

    def test_unknown_token(self, contact):
        with pytest.raises(InvalidOrExpiredToken):
            contact_service.consume_verification("no-such-token")
        with pytest.raises(InvalidOrExpiredToken):
            contact_service.consume_verification("")

    def test_resend_replaces_pending_token(self, contact):
        old_token = contact.verification_token

        new_token = contact_service.issue_verification(contact.id)

        assert new_token != old_token
        with pytest.raises(InvalidOrExpiredToken):
            contact_service.consume_verification(old_token)
        assert contact_service.consume_verification(new_token).contact.id == contact.id

    def test_resend_after_verification_rejected(self, contact):
        contact_service.consume_verification(contact.verification_token)

        with pytest.raises(AlreadyVerified):
            contact_service.resend_verification(contact.id)


class TestExistingAccount:
    @pytest.fixture
    def existing_user(self, db_session):
        from conftest import make_user
        return make_user(CONTACT_DATA["email"], USER, first_name="Old", last_name="Name")

    def test_overwrite_policy_refreshes_profile(self, db_session, contact, port, existing_user):
        original_hash = existing_user.password_hash

        result = contact_service.consume_verification(contact.verification_token)

        assert result.user_created is False
        assert result.user.id == existing_user.id
        db_session.refresh(existing_user)
        assert existing_user.role == PORT_ADMIN
        assert existing_user.port_id == port.id
        assert (existing_user.first_name, existing_user.last_name) == ("Asha", "Rao Menon")
        assert existing_user.password_hash == original_hash
        assert existing_user.is_active is True

        entry = (
            db_session.query(UserAuditLog)
            .filter_by(target_user_id=existing_user.id, action="updated")
            .one()
        )
        assert "Role changed from 'user' to 'PortAdmin'" in entry.description
        assert json.loads(entry.old_values)["first_name"] == "Old"

    def test_preserve_policy_only_links(self, app, monkeypatch, db_session, contact, existing_user):
        monkeypatch.setitem(app.config, "CONTACT_PROFILE_MERGE_POLICY", "preserve")

        result = contact_service.consume_verification(contact.verification_token)

        assert result.user.id == existing_user.id
        db_session.refresh(existing_user)
        assert existing_user.role == USER
        assert (existing_user.first_name, existing_user.last_name) == ("Old", "Name")
        db_session.refresh(contact)
        assert contact.user_id == existing_user.id
        assert _audit_actions(db_session, existing_user.id) == ["verified"]


class TestVerifyRoute:
    def test_verify_link(self, client, contact):
        response = client.get(f'/api/verify?token={contact.verification_token}')

        assert response.status_code == 200
        assert response.json['user_created'] is True
        assert response.json['needs_password_setup'] is True
        assert response.json['contact']['is_verified'] is True

    def test_second_click_fails(self, client, contact):
        token = contact.verification_token
        assert client.get(f'/api/verify?token={token}').status_code == 200

        response = client.get(f'/api/verify?token={token}')
        assert response.status_code == 400
        assert response.json['code'] == 'InvalidOrExpiredToken'

    def test_token_required(self, client):
        assert client.get('/api/verify').status_code == 400
