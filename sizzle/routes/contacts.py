"""
Contacts routes — GoHighLevel contacts browser.
"""
import logging

from flask import Blueprint, jsonify, request

from sizzle.exceptions import ValidationError
from sizzle.routes.helpers import get_pipeline_cache, int_arg, json_body, serialize

logger = logging.getLogger('routes.contacts')

bp = Blueprint('contacts', __name__)

_CONTACT_KEYS = ('first_name', 'last_name', 'email', 'phone', 'tags')


def _client():
    return get_pipeline_cache().client


def _contact_fields(data):
    return {k: data[k] for k in _CONTACT_KEYS if k in data}


@bp.route('/api/locations')
def locations():
    return jsonify(_client().get_locations())


@bp.route('/api/contacts')
def list_contacts():
    page = int_arg('page', 1)
    limit = int_arg('limit', 100)
    if page < 1 or not 1 <= limit <= 100:
        raise ValidationError("'page' must be >= 1 and 'limit' between 1 and 100")
    return jsonify(serialize(_client().get_contacts(page=page, limit=limit)))


@bp.route('/api/contacts/search')
def search_contacts():
    query = (request.args.get('q') or '').strip()
    if not query:
        return jsonify([])
    limit = int_arg('limit', 10)
    return jsonify(serialize(_client().search_contacts(query, page_limit=limit)))


@bp.route('/api/contacts', methods=['POST'])
def create_contact():
    fields = _contact_fields(json_body())
    if not fields:
        raise ValidationError('No contact fields given')
    contact = _client().create_contact(**fields)
    logger.info("Contact created: %s", contact.id if contact else None)
    return jsonify(serialize(contact)), 201


@bp.route('/api/contacts/<contact_id>', methods=['PUT'])
def update_contact(contact_id):
    fields = _contact_fields(json_body())
    if not fields:
        raise ValidationError('No contact fields given')
    return jsonify(serialize(_client().update_contact(contact_id, **fields)))
