"""
Call list routes — today's ranked worklist and call attempt logging.
"""

from flask import Blueprint, jsonify

from sizzle.config import DAILY_CALL_QUOTA
from sizzle.exceptions import ValidationError
from sizzle.routes.helpers import get_store, int_arg, json_body, serialize
from sizzle.services import crm
from sizzle.services.call_list import get_call_list

bp = Blueprint('calls', __name__)


@bp.route('/api/call-list')
def call_list():
    """Top of the ranked call list (DAILY_CALL_QUOTA entries unless ?limit= is given)."""
    limit = int_arg('limit', DAILY_CALL_QUOTA)
    if limit < 0:
        raise ValidationError("'limit' cannot be negative")
    ranked = get_call_list(get_store())
    return jsonify({
        'entries': serialize(ranked[:limit]),
        'total': len(ranked),
    })


@bp.route('/api/call-attempts', methods=['POST'])
def log_call():
    data = json_body()
    if not data.get('pipeline_entry_id'):
        raise ValidationError('pipeline_entry_id is required')
    attempt = crm.create_call_attempt(
        get_store(),
        pipeline_entry_id=data['pipeline_entry_id'],
        status=data.get('status', 'PENDING'),
        notes=data.get('notes'),
        next_follow_up=data.get('next_follow_up'),
    )
    return jsonify(serialize(attempt)), 201


@bp.route('/api/call-attempts/<attempt_id>', methods=['PATCH'])
def edit_call(attempt_id):
    attempt = crm.update_call_attempt(get_store(), attempt_id, json_body())
    return jsonify(serialize(attempt))
