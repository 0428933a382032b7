"""
Request helpers shared by the blueprints.
"""
from datetime import date, datetime

from flask import current_app, request, session

from sizzle.exceptions import ValidationError


def get_store():
    return current_app.extensions['sizzle.store']


def get_pipeline_cache():
    return current_app.extensions['sizzle.pipeline_cache']


def json_body():
    return request.get_json(silent=True) or {}


def current_user_id(data=None):
    """user_id from the request body, falling back to the logged-in session."""
    user_id = (data or {}).get('user_id') or request.args.get('user_id') or session.get('user_id')
    if not user_id:
        raise ValidationError('user_id is required')
    return user_id


def int_arg(name, default):
    value = request.args.get(name)
    if value in (None, ''):
        return default
    try:
        return int(value)
    except ValueError:
        raise ValidationError(f"'{name}' must be an integer")


def serialize(value):
    """JSON-ready copy: datetimes → ISO strings, recursively."""
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: serialize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [serialize(v) for v in value]
    if hasattr(value, 'to_dict'):
        return serialize(value.to_dict())
    return value
