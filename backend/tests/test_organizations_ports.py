"""
Organizations, ports and port scoping.
"""

import pytest

from portray.errors import ConflictError, NotFoundError
from portray.services import contact_service, organization_service, port_service

from conftest import auth_headers, get_auth_token, make_user


ORG_DATA = {
    "organization_name": "Coastal Ports Ltd",
    "display_name": "Coastal",
    "organization_code": "CPL",
    "register_office": "12 Marine Drive",
    "country": "India",
}


class TestOrganizations:
    def test_create_and_list(self, client, admin_headers):
        response = client.post('/api/organizations', json=ORG_DATA, headers=admin_headers)
        assert response.status_code == 201
        assert response.json['organization']['is_active'] is True

        response = client.get('/api/organizations', headers=admin_headers)
        assert [o['organization_code'] for o in response.json['organizations']] == ['CPL']

    @pytest.mark.parametrize("field", ["organization_name", "display_name", "organization_code"])
    def test_unique_fields(self, organization, field):
        data = {**ORG_DATA, field: getattr(organization, field)}
        with pytest.raises(ConflictError) as exc:
            organization_service.create_organization(data)
        assert exc.value.field == field

    def test_missing_required(self, db_session):
        with pytest.raises(ValueError):
            organization_service.create_organization({"organization_name": "Half"})

    def test_update_keeps_own_values(self, organization):
        updated = organization_service.update_organization(organization.id, {
            "organization_code": organization.organization_code,
            "website": "https://harbour.test",
        })
        assert updated.website == "https://harbour.test"

    def test_toggle_status(self, client, admin_headers, organization):
        response = client.patch(f'/api/organizations/{organization.id}/toggle-status', headers=admin_headers)
        assert response.json['organization']['is_active'] is False

        response = client.get('/api/organizations?include_inactive=false', headers=admin_headers)
        assert response.json['organizations'] == []

    def test_organization_ports(self, client, admin_headers, organization, port, other_port):
        response = client.get(f'/api/organizations/{organization.id}/ports', headers=admin_headers)
        assert sorted(p['id'] for p in response.json['ports']) == sorted([port.id, other_port.id])

    def test_unknown_organization(self, client, admin_headers):
        assert client.get('/api/organizations/999999', headers=admin_headers).status_code == 404


class TestPorts:
    def test_create_port(self, client, admin_headers, organization):
        response = client.post('/api/ports', json={
            "organization_id": organization.id,
            "port_name": "Port of Goa",
            "display_name": "GOA",
            "address": "Mormugao",
            "country": "India",
            "state": "Goa",
        }, headers=admin_headers)

        assert response.status_code == 201
        assert response.json['port']['organization_id'] == organization.id

    def test_display_name_max_six_chars(self, organization):
        with pytest.raises(ValueError):
            port_service.create_port({
                "organization_id": organization.id,
                "port_name": "Port of Visakhapatnam",
                "display_name": "VIZAGPT",
                "address": "Harbour Area",
                "country": "India",
                "state": "Andhra Pradesh",
            })

    def test_unknown_organization(self, db_session):
        with pytest.raises(NotFoundError):
            port_service.create_port({
                "organization_id": 999999,
                "port_name": "Nowhere",
                "display_name": "NOW",
                "address": "-",
                "country": "India",
                "state": "-",
            })

    def test_toggle_port(self, client, admin_headers, port):
        response = client.patch(f'/api/ports/{port.id}/toggle-status', headers=admin_headers)
        assert response.json['port']['is_active'] is False

    def test_port_admin_sees_own_port_only(self, client, port_admin_headers, port, other_port):
        response = client.get('/api/ports', headers=port_admin_headers)
        assert [p['id'] for p in response.json['ports']] == [port.id]

        assert client.get(f'/api/ports/{other_port.id}', headers=port_admin_headers).status_code == 403

    def test_admin_sees_all_ports(self, client, admin_headers, port, other_port):
        response = client.get('/api/ports', headers=admin_headers)
        assert response.json['count'] == 2


class TestPortScoping:
    def test_verified_contact_grants_port_access(self, app, monkeypatch, db_session, port, other_port):
        # keep the user's own port so both sources of access are visible
        monkeypatch.setitem(app.config, "CONTACT_PROFILE_MERGE_POLICY", "preserve")
        user = make_user("multi@portray.test", "PortAdmin", port_id=port.id)
        contact, _ = contact_service.create_contact(other_port.id, {
            "contact_name": "Multi Port",
            "designation": "Manager",
            "email": user.email,
            "mobile_number": "+91-9000000003",
        })

        assert port_service.accessible_port_ids(user) == {port.id}

        contact_service.consume_verification(contact.verification_token)
        db_session.refresh(user)
        assert port_service.accessible_port_ids(user) == {port.id, other_port.id}

    def test_admin_is_unrestricted(self, admin_user):
        assert port_service.accessible_port_ids(admin_user) is None

    def test_user_without_port_sees_nothing(self, client, plain_user, port):
        headers = auth_headers(get_auth_token(client, plain_user.email))
        response = client.get('/api/ports', headers=headers)
        assert response.json['ports'] == []
