import re
import logging

from flask import Blueprint, jsonify
from flask_login import login_user, logout_user, login_required, current_user

from esg_platform import db
from esg_platform.api import json_body, admin_required, get_or_404, commit
from esg_platform.models import User

logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth", __name__, url_prefix="/auth")

MIN_PASSWORD_LENGTH = 8
ROLES = ("admin", "editor", "viewer")


def _validate_password(password):
    """Check password meets minimum strength requirements."""
    if len(password) < MIN_PASSWORD_LENGTH:
        return f"Password must be at least {MIN_PASSWORD_LENGTH} characters."
    if not re.search(r'[A-Za-z]', password):
        return "Password must contain at least one letter."
    if not re.search(r'[0-9]', password):
        return "Password must contain at least one number."
    return None


@auth_bp.route("/login", methods=["POST"])
def login():
    data = json_body()
    username = (data.get("username") or "").strip()
    password = data.get("password") or ""
    user = User.query.filter_by(username=username).first()
    if user and user.check_password(password):
        login_user(user)
        logger.info(f"User '{username}' logged in")
        return jsonify({"ok": True, "user": user.to_dict()})
    logger.warning(f"Failed login for '{username}'")
    return jsonify({"ok": False, "error": "Invalid username or password."}), 401


@auth_bp.route("/logout", methods=["POST"])
@login_required
def logout():
    logout_user()
    return jsonify({"ok": True})


@auth_bp.route("/me")
@login_required
def me():
    return jsonify(current_user.to_dict())


@auth_bp.route("/change-password", methods=["POST"])
@login_required
def change_password():
    """Allow users to change their password (required for default accounts)."""
    data = json_body()
    current_pw = data.get("current_password", "")
    new_pw = data.get("new_password", "")
    confirm_pw = data.get("confirm_password", "")

    if not current_user.check_password(current_pw):
        return jsonify({"error": "Current password is incorrect."}), 400
    if new_pw != confirm_pw:
        return jsonify({"error": "New passwords do not match."}), 400
    pw_error = _validate_password(new_pw)
    if pw_error:
        return jsonify({"error": pw_error}), 400

    current_user.set_password(new_pw)
    current_user.must_change_password = False
    failed = commit("Password change")
    if failed:
        return failed
    return jsonify({"ok": True})


@auth_bp.route("/users")
@login_required
@admin_required
def user_list():
    users = User.query.order_by(User.created_at.desc()).all()
    return jsonify([u.to_dict() for u in users])


@auth_bp.route("/users", methods=["POST"])
@login_required
@admin_required
def create_user():
    data = json_body()
    username = (data.get("username") or "").strip()
    email = (data.get("email") or "").strip()
    full_name = (data.get("full_name") or "").strip()
    role = data.get("role") or "viewer"
    password = data.get("password") or ""

    if not username or not email or not password or not full_name:
        return jsonify({"error": "All required fields must be filled."}), 400
    if role not in ROLES:
        return jsonify({"error": f"Role must be one of {', '.join(ROLES)}."}), 400
    if User.query.filter_by(username=username).first():
        return jsonify({"error": "Username already exists."}), 409
    if User.query.filter_by(email=email).first():
        return jsonify({"error": "Email already exists."}), 409
    pw_error = _validate_password(password)
    if pw_error:
        return jsonify({"error": pw_error}), 400

    user = User(
        username=username,
        email=email,
        full_name=full_name,
        department=(data.get("department") or "").strip(),
        role=role,
        must_change_password=True,
    )
    user.set_password(password)
    db.session.add(user)
    failed = commit("User creation")
    if failed:
        return failed
    logger.info(f"User '{username}' created by {current_user.username}")
    return jsonify(user.to_dict()), 201


@auth_bp.route("/users/<int:user_id>", methods=["PUT", "PATCH"])
@login_required
@admin_required
def edit_user(user_id):
    user, missing = get_or_404(User, user_id)
    if missing:
        return missing
    data = json_body()

    role = data.get("role", user.role)
    if role not in ROLES:
        return jsonify({"error": f"Role must be one of {', '.join(ROLES)}."}), 400
    user.email = (data.get("email") or user.email).strip()
    user.full_name = (data.get("full_name") or user.full_name).strip()
    user.department = (data.get("department", user.department) or "").strip()
    user.role = role
    new_password = (data.get("password") or "").strip()
    if new_password:
        pw_error = _validate_password(new_password)
        if pw_error:
            db.session.rollback()
            return jsonify({"error": pw_error}), 400
        user.set_password(new_password)
        user.must_change_password = True

    failed = commit("User update")
    if failed:
        return failed
    return jsonify(user.to_dict())
