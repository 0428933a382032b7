"""
Flask application factory.

Creates and configures the app, wires the record store and pipeline cache,
registers all blueprints and the shared error handler.
"""
import logging

from flask import Flask, request, session, jsonify


def create_app(store=None, ghl_client=None):
    """Create and configure the Flask application."""
    from sizzle.logging_config import configure_logging
    from sizzle.config import DASHBOARD_PASSWORD, SECRET_KEY

    app = Flask(__name__)

    configure_logging(app)

    app.secret_key = SECRET_KEY

    # ── Shared services ─────────────────────────────────────────────────
    from sizzle.services.store import RecordStore
    from sizzle.services.ghl import GHLClient
    from sizzle.services.pipeline_board import PipelineCache

    app.extensions['sizzle.store'] = store or RecordStore()
    app.extensions['sizzle.pipeline_cache'] = PipelineCache(ghl_client or GHLClient())

    # ── Simple password auth ────────────────────────────────────────────
    OPEN_PATHS = {'/health', '/login'}

    @app.before_request
    def require_login():
        if not DASHBOARD_PASSWORD:
            return  # No password set — open access (local dev)
        if request.path in OPEN_PATHS:
            return
        if session.get('authenticated'):
            return
        return jsonify({'error': 'Authentication required'}), 401

    @app.route('/login', methods=['POST'])
    def login():
        data = request.get_json(silent=True) or request.form
        if DASHBOARD_PASSWORD and data.get('password') != DASHBOARD_PASSWORD:
            return jsonify({'error': 'Wrong password'}), 401
        session['authenticated'] = True
        if data.get('user_id'):
            session['user_id'] = data['user_id']
        return jsonify({'ok': True, 'user_id': session.get('user_id')})

    @app.route('/logout', methods=['POST'])
    def logout():
        session.clear()
        return jsonify({'ok': True})

    # ── Errors ──────────────────────────────────────────────────────────
    from sizzle.routes.errors import register_error_handlers
    register_error_handlers(app)

    # Register blueprints
    from sizzle.routes.dashboard import bp as dashboard_bp
    from sizzle.routes.pipeline import bp as pipeline_bp
    from sizzle.routes.calls import bp as calls_bp
    from sizzle.routes.reports import bp as reports_bp
    from sizzle.routes.contacts import bp as contacts_bp
    from sizzle.routes.assignments import bp as assignments_bp

    app.register_blueprint(dashboard_bp)
    app.register_blueprint(pipeline_bp)
    app.register_blueprint(calls_bp)
    app.register_blueprint(reports_bp)
    app.register_blueprint(contacts_bp)
    app.register_blueprint(assignments_bp)

    # Circuit breakers for external API services
    from sizzle.extensions import redis_client
    from sizzle.services.circuit_breaker import init_breakers
    init_breakers(redis_client)

    logging.getLogger('sizzle').info("Sizzle app created")
    return app
