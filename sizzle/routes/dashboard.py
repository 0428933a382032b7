"""
Dashboard routes — health checks, circuit breaker status, monthly summary.
"""
import logging
from datetime import date

from flask import Blueprint, jsonify, request

from sizzle.exceptions import ValidationError
from sizzle.routes.helpers import get_store, int_arg, serialize
from sizzle.services.circuit_breaker import get_all_breakers
from sizzle.services.reports import monthly_performance

logger = logging.getLogger('routes.dashboard')

bp = Blueprint('dashboard', __name__)


@bp.route('/health')
def health_check():
    """Health check endpoint."""
    return jsonify({"status": "healthy"}), 200


@bp.route('/api/health')
def api_health():
    """Circuit breaker state for every external service."""
    return jsonify({
        'services': {name: cb.get_health() for name, cb in get_all_breakers().items()},
    })


@bp.route('/api/health/<service>/reset', methods=['POST'])
def reset_circuit(service):
    """Manually close a service's circuit breaker."""
    breaker = get_all_breakers().get(service)
    if breaker is None:
        return jsonify({'error': f"Unknown service '{service}'"}), 404
    breaker.reset()
    return jsonify({'ok': True, 'service': service})


@bp.route('/api/dashboard')
def dashboard():
    """Monthly totals, weekly records and pipeline metrics (defaults to this month)."""
    today = date.today()
    year = int_arg('year', today.year)
    month = int_arg('month', today.month)
    if not 1 <= month <= 12:
        raise ValidationError("'month' must be between 1 and 12")

    summary = monthly_performance(get_store(), year, month, user_id=request.args.get('user_id'))
    return jsonify(serialize(summary))
