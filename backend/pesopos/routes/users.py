# Overview: Flask API routes for till users and login.

# backend/pesopos/routes/users.py
from flask import Blueprint, current_app, jsonify, request

from ..services import user_service
from ..services.pos_store import get_store
from ..validation import PosError

users_bp = Blueprint("users", __name__, url_prefix="/api/users")


@users_bp.get("")
def list_users():
    users = user_service.list_users(get_store())
    return jsonify({"items": [u.to_dict() for u in users], "count": len(users)})


@users_bp.post("")
def create_user():
    payload = request.get_json(silent=True) or {}
    try:
        user = user_service.add_user(
            get_store(),
            username=payload.get("username"),
            name=payload.get("name"),
            role=payload.get("role", user_service.ROLE_CASHIER),
            password=payload.get("password"),
        )
        return jsonify(user.to_dict()), 201
    except PosError as e:
        return e.to_response()
    except Exception:
        current_app.logger.exception("Failed to create user")
        return jsonify({"error": "Internal server error"}), 500


@users_bp.patch("/<user_id>")
def patch_user(user_id: str):
    payload = request.get_json(silent=True) or {}
    try:
        user = user_service.update_user(get_store(), user_id, payload)
        return jsonify(user.to_dict())
    except PosError as e:
        return e.to_response()


@users_bp.delete("/<user_id>")
def remove_user(user_id: str):
    try:
        user_service.delete_user(get_store(), user_id)
        return "", 204
    except PosError as e:
        return e.to_response()


@users_bp.post("/login")
def login():
    payload = request.get_json(silent=True) or {}
    user = user_service.authenticate(get_store(), payload.get("username"), payload.get("password"))
    if user is None:
        current_app.logger.info("Failed login for %r", payload.get("username"))
        return jsonify({"error": "Invalid credentials"}), 401
    return jsonify({"user": user.to_dict()})
