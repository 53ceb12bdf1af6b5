"""
User audit trail: diffing, no-op updates and best-effort writes.
"""

import json

from portray.models import UserAuditLog
from portray.services import audit_service, user_service


def test_diff_ignores_unchanged_and_reorders_terminals():
    old = {"first_name": "Ann", "role": "user", "terminal_ids": [2, 1], "user_type": None}
    new = {"first_name": "Ann", "role": "user", "terminal_ids": [1, 2], "user_type": ""}

    assert audit_service.diff_user_values(old, new) == []


def test_diff_reports_changed_fields_in_order():
    old = {"first_name": "Ann", "role": "user", "port_id": None}
    new = {"first_name": "Anna", "role": "PortAdmin", "port_id": None}

    assert audit_service.diff_user_values(old, new) == ["first_name", "role"]


def test_noop_update_writes_no_entry(db_session, admin_user, plain_user):
    before = db_session.query(UserAuditLog).count()

    user_service.update_user(plain_user.id, {"first_name": plain_user.first_name}, performed_by=admin_user.id)

    assert db_session.query(UserAuditLog).count() == before


def test_update_writes_one_descriptive_entry(db_session, admin_user, plain_user):
    user_service.update_user(
        plain_user.id,
        {"first_name": "Anna", "user_type": "Operator"},
        performed_by=admin_user.id,
        ip_address="10.0.0.1",
        user_agent="pytest",
    )

    (entry,) = db_session.query(UserAuditLog).filter_by(target_user_id=plain_user.id, action="updated").all()
    assert entry.description == (
        "First name changed from 'Test' to 'Anna', User type changed from None to 'Operator'"
    )
    assert entry.performed_by == admin_user.id
    assert entry.ip_address == "10.0.0.1"
    assert json.loads(entry.new_values) == {"first_name": "Anna", "user_type": "Operator"}


def test_log_user_update_returns_none_without_changes(plain_user):
    values = plain_user.audit_values()
    assert audit_service.log_user_update(plain_user, None, values, dict(values)) is None


def test_audit_failure_does_not_raise(db_session, plain_user):
    # description is NOT NULL, so the insert fails at commit
    assert audit_service.log_user_event(plain_user.id, "login", None) is None
    assert db_session.query(UserAuditLog).count() == 0


def test_user_audit_newest_first(db_session, admin_user, plain_user):
    audit_service.log_user_event(plain_user.id, "created", "first")
    audit_service.log_user_event(plain_user.id, "updated", "second")

    entries = audit_service.list_user_audit(plain_user.id)
    assert [e.description for e in entries] == ["second", "first"]
