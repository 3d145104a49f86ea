"""Helpers shared by the JSON blueprints."""

import logging
from datetime import date
from functools import wraps

from flask import jsonify, request
from flask_login import current_user
from sqlalchemy.exc import SQLAlchemyError

from esg_platform import db

logger = logging.getLogger(__name__)


class InvalidInput(ValueError):
    """Invalid client input; routes answer 400 with the message."""


def editor_required(view):
    """Writes need the editor or admin role."""
    @wraps(view)
    def wrapped(*args, **kwargs):
        if not current_user.can_edit:
            return jsonify({"error": "Access denied."}), 403
        return view(*args, **kwargs)
    return wrapped


def admin_required(view):
    @wraps(view)
    def wrapped(*args, **kwargs):
        if not current_user.is_admin:
            return jsonify({"error": "Access denied."}), 403
        return view(*args, **kwargs)
    return wrapped


def json_body():
    data = request.get_json(silent=True)
    if data is None:
        data = request.form.to_dict() if request.form else {}
    if not isinstance(data, dict):
        raise InvalidInput("Request body must be a JSON object.")
    return data


def get_or_404(model, object_id):
    obj = db.session.get(model, object_id)
    if obj is None:
        return None, (jsonify({"error": f"{model.__name__} {object_id} not found."}), 404)
    return obj, None


def parse_date(value, field):
    if value in (None, ""):
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        raise InvalidInput(f"{field} must be a date in YYYY-MM-DD format.")


def parse_number(value, field, cast=float):
    if value in (None, ""):
        return None
    try:
        return cast(value)
    except (TypeError, ValueError):
        raise InvalidInput(f"{field} must be a number.")


def parse_bool(value):
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on", "sim")
    return bool(value)


def clean(data, dates=(), floats=(), ints=(), bools=(), allowed=None):
    """Keep the allowed keys of `data` and convert typed fields."""
    out = {}
    for key, value in data.items():
        if allowed is not None and key not in allowed:
            continue
        if key in dates:
            value = parse_date(value, key)
        elif key in floats:
            value = parse_number(value, key)
        elif key in ints:
            value = parse_number(value, key, int)
        elif key in bools:
            value = parse_bool(value)
        elif isinstance(value, str):
            value = value.strip()
        out[key] = value
    return out


def result_response(result, serialize=None, created=False, error_status=400):
    """Turn an OperationResult into a JSON response."""
    if not result.ok:
        return jsonify({"ok": False, "error": result.error}), error_status
    data = serialize(result.data) if serialize else result.data
    return jsonify({"ok": True, "data": data}), 201 if created else 200


def batch_response(batch):
    """200 when every item succeeded, 207 when some failed."""
    summary = batch.summary()
    return jsonify({"ok": batch.ok, **summary}), 200 if batch.ok else 207


def commit(action):
    """Commit the session; on failure roll back and return an error response."""
    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"{action} failed: {e}")
        return jsonify({"error": f"{action} failed."}), 500
    return None
