# Overview: Flask API routes for navigation menus; parses input and returns JSON responses.

from flask import Blueprint, jsonify, request

from ..decorators import require_auth, require_role
from ..roles import SYSTEM_ADMIN
from ..services import menu_service
from ..validation import json_object

menus_bp = Blueprint("menus", __name__, url_prefix="/api/menus")


@menus_bp.get("")
@require_auth
def list_menus():
    """Query params: type (glink|plink), active_only (bool)."""
    active_only = request.args.get("active_only", "false").lower() == "true"
    menus = menu_service.list_menus(menu_type=request.args.get("type"), active_only=active_only)
    return jsonify({"menus": [m.to_dict() for m in menus], "count": len(menus)})


@menus_bp.get("/tree")
@require_auth
def menu_tree():
    active_only = request.args.get("active_only", "true").lower() == "true"
    return jsonify({"menus": menu_service.menu_tree(active_only=active_only)})


@menus_bp.post("")
@require_auth
@require_role(SYSTEM_ADMIN)
def create_menu():
    menu = menu_service.create_menu(request.get_json(silent=True))
    return jsonify({"menu": menu.to_dict()}), 201


@menus_bp.post("/bulk-update-order")
@require_auth
@require_role(SYSTEM_ADMIN)
def bulk_update_order():
    """Body: {"items": [{"id", "sort_order", "parent_id"?}, ...]}"""
    data = json_object(request.get_json(silent=True))
    menus = menu_service.bulk_update_order(data.get("items"))
    return jsonify({"menus": [m.to_dict() for m in menus], "count": len(menus)})


@menus_bp.get("/<int:menu_id>")
@require_auth
def get_menu(menu_id: int):
    return jsonify({"menu": menu_service.get_menu(menu_id).to_dict()})


@menus_bp.patch("/<int:menu_id>")
@require_auth
@require_role(SYSTEM_ADMIN)
def update_menu(menu_id: int):
    menu = menu_service.update_menu(menu_id, request.get_json(silent=True))
    return jsonify({"menu": menu.to_dict()})


@menus_bp.patch("/<int:menu_id>/toggle-status")
@require_auth
@require_role(SYSTEM_ADMIN)
def toggle_menu_status(menu_id: int):
    menu = menu_service.toggle_menu_status(menu_id)
    return jsonify({"menu": menu.to_dict()})


@menus_bp.delete("/<int:menu_id>")
@require_auth
@require_role(SYSTEM_ADMIN)
def delete_menu(menu_id: int):
    menu_service.delete_menu(menu_id)
    return jsonify({"message": "Menu deleted"})
