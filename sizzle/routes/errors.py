"""
Error responses — maps the Sizzle error taxonomy onto HTTP status codes.
"""
import logging

from flask import jsonify
from sqlalchemy.exc import IntegrityError

from sizzle.exceptions import (
    SizzleError, ConfigurationError, ValidationError, RecordNotFoundError,
    AuthenticationError, GHLAPIError, ServiceUnreachableError, ServiceTimeoutError,
)
from sizzle.services.circuit_breaker import CircuitOpenError

logger = logging.getLogger('routes.errors')

# Most specific first
_STATUS = [
    (ValidationError, 400),
    (AuthenticationError, 401),
    (RecordNotFoundError, 404),
    (ConfigurationError, 500),
    (ServiceTimeoutError, 504),
    (ServiceUnreachableError, 503),
    (CircuitOpenError, 503),
    (GHLAPIError, 502),
]


def status_for(exc) -> int:
    for cls, status in _STATUS:
        if isinstance(exc, cls):
            return status
    return 500


def register_error_handlers(app):
    @app.errorhandler(SizzleError)
    def handle_sizzle_error(exc):
        status = status_for(exc)
        if status >= 500:
            logger.error("%s: %s", type(exc).__name__, exc)
        else:
            logger.warning("%s: %s", type(exc).__name__, exc)
        body = {'error': str(exc), 'kind': type(exc).__name__}
        if isinstance(exc, CircuitOpenError) and exc.retry_after is not None:
            body['retry_after'] = round(exc.retry_after)
        return jsonify(body), status

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(exc):
        logger.error("Integrity error: %s", exc.orig)
        return jsonify({'error': 'Conflicting write — please retry', 'kind': 'IntegrityError'}), 409
