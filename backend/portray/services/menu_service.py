# Overview: Service-layer operations for navigation menus; glink/plink hierarchy and ordering.

"""
Menu management.

Menus form a two-level tree: glinks (groups) at the top, plinks (pages)
underneath. A glink never has a parent and a plink always has a glink
parent. Deleting a glink that still has children is refused.

bulk_update_order() validates the whole batch before touching any row
and commits once, so a bad entry leaves the existing order intact.
"""

from __future__ import annotations

from ..errors import ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Menu, MenuType
from ..validation import ModelValidationPolicy, validate_payload


MENU_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({"name", "label", "menu_type", "parent_id", "route", "icon", "sort_order", "is_active"}),
    required_on_create=frozenset({"name", "label", "menu_type"}),
)


# (name, label, route, icon, children)
DEFAULT_MENUS = (
    ("masters", "Masters", None, "database", (
        ("organizations", "Organizations", "/organizations", "building"),
        ("ports", "Ports", "/ports", "anchor"),
        ("terminals", "Terminals", "/terminals", "container"),
    )),
    ("administration", "Administration", None, "settings", (
        ("users", "Users", "/users", "users"),
        ("menu-management", "Menu Management", "/menus", "list"),
        ("terminal-activation", "Terminal Activation", "/terminal-activation", "check-circle"),
    )),
)


def _check_hierarchy(menu_type: MenuType, parent_id: int | None, menu_id: int | None = None) -> None:
    if menu_type == MenuType.GLINK:
        if parent_id is not None:
            raise ValidationError("A glink cannot have a parent", field="parent_id")
        return

    if parent_id is None:
        raise ValidationError("A plink must have a glink parent", field="parent_id")
    if menu_id is not None and parent_id == menu_id:
        raise ValidationError("A menu cannot be its own parent", field="parent_id")
    parent = db.session.get(Menu, parent_id)
    if not parent:
        raise NotFoundError("Parent menu not found")
    if parent.menu_type != MenuType.GLINK:
        raise ValidationError("A plink's parent must be a glink", field="parent_id")


def _ensure_name_available(name: str, exclude_id: int | None = None) -> None:
    query = db.session.query(Menu).filter(Menu.name == name)
    if exclude_id is not None:
        query = query.filter(Menu.id != exclude_id)
    if query.first():
        raise ConflictError("Menu name already exists", code="DuplicateMenu", field="name")


def list_menus(menu_type: str | None = None, active_only: bool = False) -> list[Menu]:
    query = db.session.query(Menu)
    if menu_type:
        try:
            query = query.filter(Menu.menu_type == MenuType(menu_type))
        except ValueError:
            raise ValidationError("type must be glink or plink", field="type")
    if active_only:
        query = query.filter(Menu.is_active.is_(True))
    return query.order_by(Menu.sort_order, Menu.id).all()


def menu_tree(active_only: bool = False) -> list[dict]:
    """Glinks in order, each with its ordered plinks under "children"."""
    menus = list_menus(active_only=active_only)
    children: dict[int, list[dict]] = {}
    for menu in menus:
        if menu.menu_type == MenuType.PLINK:
            children.setdefault(menu.parent_id, []).append(menu.to_dict())

    tree = []
    for menu in menus:
        if menu.menu_type == MenuType.GLINK:
            node = menu.to_dict()
            node["children"] = children.get(menu.id, [])
            tree.append(node)
    return tree


def get_menu(menu_id: int) -> Menu:
    menu = db.session.get(Menu, menu_id)
    if not menu:
        raise NotFoundError("Menu not found")
    return menu


def create_menu(data: dict) -> Menu:
    patch = validate_payload(model=Menu, payload=data, policy=MENU_POLICY, partial=False)
    _check_hierarchy(patch["menu_type"], patch.get("parent_id"))
    _ensure_name_available(patch["name"])

    menu = Menu(**patch)
    db.session.add(menu)
    db.session.commit()
    return menu


def update_menu(menu_id: int, data: dict) -> Menu:
    menu = get_menu(menu_id)
    patch = validate_payload(model=Menu, payload=data, policy=MENU_POLICY, partial=True)

    menu_type = patch.get("menu_type", menu.menu_type)
    parent_id = patch["parent_id"] if "parent_id" in patch else menu.parent_id
    if menu_type == MenuType.GLINK and "menu_type" in patch and "parent_id" not in patch:
        parent_id = None
        patch["parent_id"] = None
    _check_hierarchy(menu_type, parent_id, menu_id=menu.id)

    if menu.menu_type == MenuType.GLINK and menu_type == MenuType.PLINK and menu.children:
        raise ConflictError("A glink with children cannot become a plink", code="MenuHasChildren")
    if "name" in patch:
        _ensure_name_available(patch["name"], exclude_id=menu.id)

    for key, value in patch.items():
        setattr(menu, key, value)
    db.session.commit()
    return menu


def toggle_menu_status(menu_id: int) -> Menu:
    menu = get_menu(menu_id)
    menu.is_active = not menu.is_active
    db.session.commit()
    return menu


def delete_menu(menu_id: int) -> None:
    menu = get_menu(menu_id)
    if menu.menu_type == MenuType.GLINK and menu.children:
        raise ConflictError("Cannot delete a glink that still has child menus", code="MenuHasChildren")
    db.session.delete(menu)
    db.session.commit()


def ensure_default_menus() -> int:
    """Create the default navigation if the menus table is empty. Returns how many rows were added."""
    if db.session.query(Menu).first():
        return 0

    created = 0
    for group_order, (name, label, route, icon, pages) in enumerate(DEFAULT_MENUS, start=1):
        group = Menu(name=name, label=label, menu_type=MenuType.GLINK, route=route, icon=icon,
                     sort_order=group_order, is_active=True)
        db.session.add(group)
        db.session.flush()
        created += 1
        for page_order, (page_name, page_label, page_route, page_icon) in enumerate(pages, start=1):
            db.session.add(Menu(name=page_name, label=page_label, menu_type=MenuType.PLINK,
                                parent_id=group.id, route=page_route, icon=page_icon,
                                sort_order=page_order, is_active=True))
            created += 1
    db.session.commit()
    return created


def bulk_update_order(items) -> list[Menu]:
    """
    Apply [{"id", "sort_order", "parent_id"?}, ...] in one transaction.

    Every entry is validated first; any error aborts the whole batch.
    """
    if not isinstance(items, list) or not items:
        raise ValidationError("items must be a non-empty list", field="items")

    planned = []
    for item in items:
        if not isinstance(item, dict):
            raise ValidationError("Each item must be an object", field="items")
        menu_id = item.get("id")
        sort_order = item.get("sort_order")
        if isinstance(menu_id, bool) or not isinstance(menu_id, int):
            raise ValidationError("Each item needs an integer id", field="id")
        if isinstance(sort_order, bool) or not isinstance(sort_order, int):
            raise ValidationError(f"Menu {menu_id}: sort_order must be an integer", field="sort_order")

        menu = db.session.get(Menu, menu_id)
        if not menu:
            raise NotFoundError(f"Menu {menu_id} not found")

        parent_id = item["parent_id"] if "parent_id" in item else menu.parent_id
        if parent_id is not None and (isinstance(parent_id, bool) or not isinstance(parent_id, int)):
            raise ValidationError(f"Menu {menu_id}: parent_id must be an integer", field="parent_id")
        _check_hierarchy(menu.menu_type, parent_id, menu_id=menu.id)
        planned.append((menu, sort_order, parent_id))

    for menu, sort_order, parent_id in planned:
        menu.sort_order = sort_order
        menu.parent_id = parent_id
    db.session.commit()
    return [menu for menu, _, _ in planned]
