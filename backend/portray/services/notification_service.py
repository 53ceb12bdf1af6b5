# Overview: Service-layer operations for in-app notifications; best-effort fan-out and inbox actions.

from __future__ import annotations

import json

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..errors import NotFoundError
from ..extensions import db
from ..models import Notification, User


def notify(user_id: int, type: str, title: str, message: str, data: dict | None = None) -> Notification | None:
    """
    Append a notification for one user.

    Best effort: a failed write is rolled back and logged, and None is
    returned. Callers have already committed the change being announced.
    """
    try:
        notification = Notification(
            user_id=user_id,
            type=type,
            title=title,
            message=message,
            data=json.dumps(data, default=str) if data is not None else None,
            is_read=False,
        )
        db.session.add(notification)
        db.session.commit()
        return notification
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Failed to create %s notification for user %s", type, user_id)
        return None


def notify_role(role: str, type: str, title: str, message: str, data: dict | None = None) -> int:
    """Notify every active user holding role. Returns how many were written."""
    try:
        user_ids = [
            uid for (uid,) in db.session.query(User.id).filter(
                User.role == role,
                User.is_active.is_(True),
            ).all()
        ]
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Failed to resolve %s recipients", role)
        return 0

    sent = 0
    for user_id in user_ids:
        if notify(user_id, type, title, message, data) is not None:
            sent += 1
    return sent


def list_for_user(user_id: int, unread_only: bool = False) -> list[Notification]:
    query = db.session.query(Notification).filter_by(user_id=user_id)
    if unread_only:
        query = query.filter_by(is_read=False)
    return query.order_by(Notification.created_at.desc(), Notification.id.desc()).all()


def unread_count(user_id: int) -> int:
    return db.session.query(Notification).filter_by(user_id=user_id, is_read=False).count()


def _get_owned(notification_id: int, user_id: int) -> Notification:
    notification = db.session.query(Notification).filter_by(id=notification_id, user_id=user_id).first()
    if not notification:
        raise NotFoundError("Notification not found")
    return notification


def mark_read(notification_id: int, user_id: int) -> Notification:
    notification = _get_owned(notification_id, user_id)
    notification.is_read = True
    db.session.commit()
    return notification


def mark_all_read(user_id: int) -> int:
    updated = db.session.query(Notification).filter_by(user_id=user_id, is_read=False).update(
        {Notification.is_read: True}, synchronize_session=False
    )
    db.session.commit()
    return updated


def delete_notification(notification_id: int, user_id: int) -> None:
    notification = _get_owned(notification_id, user_id)
    db.session.delete(notification)
    db.session.commit()
