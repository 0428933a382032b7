"""
Logging setup for the Sizzle API.

configure_logging() runs once inside create_app(). LOG_LEVEL (default INFO)
and LOG_FORMAT ("text" or "json") are read at call time. Records logged while
a request is being handled carry the request path and the session's user id.
"""
import json
import logging
import os
import sys
from datetime import datetime, timezone

TEXT_FORMAT = '[%(asctime)s] %(levelname)s %(name)s%(request_suffix)s — %(message)s'
TEXT_DATEFMT = '%Y-%m-%d %H:%M:%S'

QUIET_LOGGERS = ('urllib3', 'requests', 'sqlalchemy.engine', 'werkzeug')


class RequestContextFilter(logging.Filter):
    """Attach `path` / `user_id` of the current Flask request, if any."""

    def filter(self, record):
        record.path = None
        record.user_id = None
        try:
            from flask import has_request_context, request, session
            if has_request_context():
                record.path = request.path
                record.user_id = session.get('user_id')
        except RuntimeError:
            pass
        parts = [p for p in (record.path, record.user_id) if p]
        record.request_suffix = f" [{' '.join(parts)}]" if parts else ''
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record):
        payload = {
            'timestamp': datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }
        for key in ('path', 'user_id'):
            value = getattr(record, key, None)
            if value:
                payload[key] = value
        if record.exc_info and record.exc_info[0] is not None:
            payload['exception'] = self.formatException(record.exc_info)
        return json.dumps(payload)


def _level_from_env():
    return getattr(logging, os.getenv('LOG_LEVEL', 'INFO').upper(), logging.INFO)


def _formatter_from_env():
    if os.getenv('LOG_FORMAT', 'text').lower() == 'json':
        return JSONFormatter()
    return logging.Formatter(TEXT_FORMAT, datefmt=TEXT_DATEFMT)


def configure_logging(app=None):
    """Install a single stderr handler on the root logger (replacing any others)."""
    level = _level_from_env()

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(_formatter_from_env())
    handler.addFilter(RequestContextFilter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    if app is not None:
        app.logger.setLevel(level)
