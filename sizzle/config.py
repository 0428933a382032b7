"""
Centralized configuration — all env vars, pipeline stages, call-list constants.
"""
import os


# ── Logging ──────────────────────────────────────────────────────────────────
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
LOG_FORMAT = os.getenv('LOG_FORMAT', 'text')

# ── Redis ─────────────────────────────────────────────────────────────────────
REDIS_URL = os.getenv('REDIS_URL', 'redis://localhost:6379/0')

# ── PostgreSQL ────────────────────────────────────────────────────────────────
DATABASE_URL = os.getenv('DATABASE_URL', 'sqlite:///local.db')

# ── GoHighLevel ───────────────────────────────────────────────────────────────
GHL_API_KEY = os.getenv('GHL_API_KEY')
GHL_LOCATION_ID = os.getenv('GHL_LOCATION_ID', 'If7RlbDkb7KAVAB03iaw')
GHL_API_URL = os.getenv('GHL_API_URL', 'https://services.leadconnectorhq.com')
GHL_API_VERSION = '2021-07-28'
GHL_TIMEOUT = float(os.getenv('GHL_TIMEOUT', '15'))

# Freshness window for the in-memory pipeline board cache
PIPELINE_CACHE_SECONDS = float(os.getenv('PIPELINE_CACHE_SECONDS', '3'))

# ── Auth ─────────────────────────────────────────────────────────────────────
DASHBOARD_PASSWORD = os.getenv('DASHBOARD_PASSWORD')
SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-change-me')

# ── Pipeline stage definitions (ordered; CLOSED is the won state) ─────────────
PIPELINE_STAGES = [
    'LEADS',
    'CONVERSATIONS',
    'APPOINTMENTS',
    'FOLLOW_UP',
    'CLOSED',
    'LOST',
]
CLOSED_STAGE = 'CLOSED'

PIPELINE_STATUSES = ['OPEN', 'WON', 'LOST']

# ── Call list ────────────────────────────────────────────────────────────────
ACTIVE_CALL_STAGES = ['LEADS', 'CONVERSATIONS']
CALL_STATUSES = ['PENDING', 'COMPLETED', 'NO_ANSWER', 'RESCHEDULED']
NO_ANSWER = 'NO_ANSWER'
DAILY_CALL_QUOTA = 5
