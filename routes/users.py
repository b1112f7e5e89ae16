from flask import Blueprint, jsonify, g

from security.rbac import require_admin, require_vendor
from services import users as user_service
from utils.http import json_body
from utils.serialize import user_json

users_bp = Blueprint("users", __name__, url_prefix="/api/users")


@users_bp.get("")
@require_admin
def list_users():
    return jsonify([user_json(u) for u in user_service.list_users()]), 200


@users_bp.post("")
@require_admin
def create_user():
    user = user_service.create_user(json_body())
    return jsonify(user_json(user)), 201


@users_bp.put("/<int:user_id>")
@require_admin
def update_user(user_id: int):
    user = user_service.update_user(user_id, json_body())
    return jsonify(user_json(user)), 200


@users_bp.delete("/<int:user_id>")
@require_admin
def delete_user(user_id: int):
    if user_id == g.user.id:
        return jsonify(message="Cannot delete your own account"), 400
    user_service.delete_user(user_id)
    return jsonify(message="User deleted successfully"), 200


@users_bp.post("/<int:user_id>/block")
@require_vendor
def block_user(user_id: int):
    if user_id == g.user.id:
        return jsonify(message="Cannot block your own account"), 400
    user_service.block_user(user_id)
    return jsonify(message="User blocked successfully"), 200


@users_bp.post("/<int:user_id>/unblock")
@require_vendor
def unblock_user(user_id: int):
    user_service.unblock_user(user_id)
    return jsonify(message="User unblocked successfully"), 200
