"""
Pipeline routes — GoHighLevel kanban board and the local pipeline entries.
"""
import logging

from flask import Blueprint, jsonify, request

from sizzle.exceptions import ValidationError
from sizzle.routes.helpers import (
    current_user_id, get_pipeline_cache, get_store, json_body, serialize,
)
from sizzle.services import crm
from sizzle.services.pipeline_board import create_opportunity, move_opportunity

logger = logging.getLogger('routes.pipeline')

bp = Blueprint('pipeline', __name__)


# ── GoHighLevel board ────────────────────────────────────────────────────────

@bp.route('/api/pipeline')
def get_pipeline():
    """Board data; ?force=1 bypasses the freshness window."""
    force = request.args.get('force') in ('1', 'true', 'yes')
    if force:
        logger.info("Forced pipeline refresh")
    cache = get_pipeline_cache().refresh(force=force)
    return jsonify(serialize(cache.to_dict()))


@bp.route('/api/pipeline/opportunities', methods=['POST'])
def new_opportunity():
    data = json_body()
    created = create_opportunity(
        get_pipeline_cache(),
        title=data.get('title', ''),
        value=data.get('value'),
        notes=data.get('notes', ''),
    )
    return jsonify(serialize(created)), 201


@bp.route('/api/pipeline/opportunities/<opportunity_id>/move', methods=['POST'])
def move(opportunity_id):
    """Drag-and-drop drop target: move an opportunity to another stage."""
    stage_id = json_body().get('stage_id')
    if not stage_id:
        raise ValidationError('stage_id is required')
    moved = move_opportunity(get_pipeline_cache(), opportunity_id, stage_id)
    return jsonify(serialize(moved))


# ── Local pipeline entries ───────────────────────────────────────────────────

@bp.route('/api/pipeline-entries')
def list_entries():
    return jsonify(serialize(crm.list_pipeline_entries(get_store())))


@bp.route('/api/pipeline-entries', methods=['POST'])
def create_entry():
    data = json_body()
    entry = crm.create_pipeline_entry(
        get_store(),
        user_id=current_user_id(data),
        name=data.get('name', ''),
        value=data.get('value', 0),
        stage=data.get('stage', 'LEADS'),
        status=data.get('status', 'OPEN'),
        notes=data.get('notes'),
    )
    return jsonify(serialize(entry)), 201


@bp.route('/api/pipeline-entries/<entry_id>', methods=['PATCH'])
def update_entry(entry_id):
    """Update an entry; moving it into CLOSED credits the owner's weekly sales."""
    entry = crm.update_pipeline_entry(get_store(), entry_id, json_body())
    return jsonify(serialize(entry))
