"""
Assignments routes — coaching sessions assigned to salespeople.
"""
from flask import Blueprint, jsonify, request

from sizzle.exceptions import ValidationError
from sizzle.routes.helpers import get_store, json_body, serialize
from sizzle.services import crm

bp = Blueprint('assignments', __name__)


@bp.route('/api/assignments')
def list_assignments():
    assignments = crm.list_user_assignments(get_store(), user_id=request.args.get('user_id'))
    return jsonify(serialize(assignments))


@bp.route('/api/assignments/<assignment_id>/status', methods=['POST'])
def set_status(assignment_id):
    data = json_body()
    if 'completed' not in data:
        raise ValidationError('completed is required')
    assignment = crm.update_assignment_status(get_store(), assignment_id, bool(data['completed']))
    return jsonify(serialize(assignment))
