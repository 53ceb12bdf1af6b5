from __future__ import annotations

import enum

from ..extensions import db
from portray.time_utils import to_utc_z


class MenuType(str, enum.Enum):
    GLINK = "glink"  # group link, top level
    PLINK = "plink"  # page link, always under a glink


class Menu(db.Model):
    """
    Navigation menu node.

    A glink has no parent; a plink must have a glink parent.
    """
    __tablename__ = "menus"
    __table_args__ = (
        db.Index("ix_menus_parent_sort", "parent_id", "sort_order"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False, unique=True)
    label = db.Column(db.String(120), nullable=False)
    menu_type = db.Column(
        db.Enum(MenuType, name="menu_type", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    parent_id = db.Column(db.Integer, db.ForeignKey("menus.id"), nullable=True, index=True)
    route = db.Column(db.String(255), nullable=True)
    icon = db.Column(db.String(64), nullable=True)
    sort_order = db.Column(db.Integer, nullable=False, default=0)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    parent = db.relationship("Menu", remote_side=[id], backref=db.backref("children", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "label": self.label,
            "menu_type": self.menu_type.value if self.menu_type else None,
            "parent_id": self.parent_id,
            "route": self.route,
            "icon": self.icon,
            "sort_order": self.sort_order,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
