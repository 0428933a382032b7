"""
Record-store operations behind the pipeline, call list, reports and assignments pages.
"""
import logging
import math
from datetime import datetime
from typing import Any, Dict, List, Optional

from sizzle.config import CALL_STATUSES, CLOSED_STAGE, PIPELINE_STAGES, PIPELINE_STATUSES
from sizzle.exceptions import ValidationError
from sizzle.services.call_list import parse_instant
from sizzle.services.reconciler import on_stage_change
from sizzle.services.weeks import week_key, week_start

logger = logging.getLogger('services.crm')

_ENTRY_FIELDS = {'user_id', 'name', 'value', 'stage', 'status', 'notes'}
_ATTEMPT_FIELDS = {'status', 'notes', 'next_follow_up', 'attempt_date'}
_REPORT_COUNTERS = ('calls_made', 'meetings_booked', 'leads_generated')
_REPORT_FIELDS = {'sales_amount', 'notes', *_REPORT_COUNTERS}


def _validate_value(value, allow_zero=True) -> float:
    try:
        value = float(value)
    except (TypeError, ValueError):
        raise ValidationError('Please enter a valid value')
    if not math.isfinite(value) or value < 0 or (value == 0 and not allow_zero):
        raise ValidationError('Please enter a valid value')
    return value


def _validate_count(name, value) -> int:
    try:
        count = int(value or 0)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be a whole number")
    if count < 0:
        raise ValidationError(f"{name} cannot be negative")
    return count


def _check_fields(changes: Dict[str, Any], allowed) -> None:
    unknown = set(changes) - set(allowed)
    if unknown:
        raise ValidationError(f"Unknown fields: {', '.join(sorted(unknown))}")


def _parse_date(value) -> Optional[datetime]:
    try:
        return parse_instant(value)
    except (TypeError, ValueError):
        raise ValidationError('Invalid date')


# ── Pipeline entries ─────────────────────────────────────────────────────────

def list_pipeline_entries(store) -> List[Dict[str, Any]]:
    return store.select_many('pipeline_entries', order_by='-created_at')


def create_pipeline_entry(store, user_id: str, name: str, value, stage: str = 'LEADS',
                          status: str = 'OPEN', notes: str = None) -> Dict[str, Any]:
    """Validate and insert a new pipeline entry."""
    if not user_id:
        raise ValidationError('user_id is required')
    if not isinstance(name, str) or not name.strip():
        raise ValidationError('Please enter a name')
    if stage not in PIPELINE_STAGES:
        raise ValidationError(f"Unknown stage '{stage}'")
    if status not in PIPELINE_STATUSES:
        raise ValidationError(f"Unknown status '{status}'")

    entry = store.insert('pipeline_entries', {
        'user_id': user_id,
        'name': name.strip(),
        'value': _validate_value(value),
        'stage': stage,
        'status': status,
        'notes': notes,
    })
    logger.info("Created pipeline entry %s (%s, %.2f)", entry['id'], stage, entry['value'])
    return entry


def update_pipeline_entry(store, entry_id: str, updates: Dict[str, Any],
                          now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Persist an entry update, then let the reconciler credit a close.

    The previous stage is read before the write so the reconciler can tell a
    transition into CLOSED from a re-save of an already closed entry. Setting
    stage CLOSED again on an entry that was never credited (the reconciler
    failed after the stage write) runs the reconciler again; its credit ledger
    keeps that to a single credit.
    """
    _check_fields(updates, _ENTRY_FIELDS)
    changes = dict(updates)
    if 'name' in changes:
        name = changes['name']
        if not isinstance(name, str) or not name.strip():
            raise ValidationError('Please enter a name')
        changes['name'] = name.strip()
    if 'stage' in changes and changes['stage'] not in PIPELINE_STAGES:
        raise ValidationError(f"Unknown stage '{changes['stage']}'")
    if 'status' in changes and changes['status'] not in PIPELINE_STATUSES:
        raise ValidationError(f"Unknown status '{changes['status']}'")
    if 'value' in changes:
        changes['value'] = _validate_value(changes['value'])

    current = store.select_one('pipeline_entries', {'id': entry_id})
    changes['updated_at'] = now or datetime.now()
    entry = store.update('pipeline_entries', entry_id, changes)

    previous = current['stage']
    if previous == updates.get('stage') == CLOSED_STAGE and store.find_one(
            'sales_credits', {'pipeline_entry_id': entry_id}) is None:
        # repeated close of an entry whose credit never landed
        previous = None
    on_stage_change(store, entry_id, previous, entry['stage'], now=now)
    return entry


# ── Call attempts ────────────────────────────────────────────────────────────

def create_call_attempt(store, pipeline_entry_id: str, status: str, notes: str = None,
                        next_follow_up=None, now: Optional[datetime] = None) -> Dict[str, Any]:
    """Log a call against an entry; the attempt inherits the entry's owner."""
    if status not in CALL_STATUSES:
        raise ValidationError(f"Unknown call status '{status}'")

    entry = store.select_one('pipeline_entries', {'id': pipeline_entry_id})
    attempt = store.insert('call_attempts', {
        'pipeline_entry_id': pipeline_entry_id,
        'user_id': entry['user_id'],
        'status': status,
        'notes': notes,
        'next_follow_up': _parse_date(next_follow_up),
        'attempt_date': now or datetime.now(),
    })
    logger.info("Logged %s call for entry %s", status, pipeline_entry_id)
    return attempt


def update_call_attempt(store, attempt_id: str, updates: Dict[str, Any]) -> Dict[str, Any]:
    """Corrective edit of a logged attempt."""
    _check_fields(updates, _ATTEMPT_FIELDS)
    changes = dict(updates)
    if 'status' in changes and changes['status'] not in CALL_STATUSES:
        raise ValidationError(f"Unknown call status '{changes['status']}'")
    for key in ('next_follow_up', 'attempt_date'):
        if key in changes:
            changes[key] = _parse_date(changes[key])
    if 'attempt_date' in changes and changes['attempt_date'] is None:
        raise ValidationError('attempt_date cannot be empty')
    return store.update('call_attempts', attempt_id, changes)


# ── Weekly performance reports ───────────────────────────────────────────────

def submit_weekly_report(store, user_id: str, report_date, sales_amount=0, calls_made=0,
                         meetings_booked=0, leads_generated=0, notes: str = None) -> Dict[str, Any]:
    """
    Record a salesperson's numbers for the week containing report_date.

    Numbers are added to the week's existing record (which a closed deal may
    already have created) so there is never more than one row per user and week.
    """
    if not user_id:
        raise ValidationError('user_id is required')
    if isinstance(report_date, str):
        report_date = _parse_date(report_date)
    if report_date is None:
        raise ValidationError('A report date is required')

    sales = _validate_value(sales_amount or 0)
    counters = {name: _validate_count(name, value) for name, value in (
        ('calls_made', calls_made),
        ('meetings_booked', meetings_booked),
        ('leads_generated', leads_generated),
    )}
    week_number, year = week_key(report_date)

    with store.transaction() as tx:
        if tx.find_one('profiles', {'id': user_id}) is None:
            tx.insert('profiles', {'id': user_id})

        record = tx.find_one('performance_metrics', {
            'user_id': user_id,
            'week_number': week_number,
            'year': year,
        })
        if record is None:
            record = tx.insert('performance_metrics', {
                'user_id': user_id,
                'week_number': week_number,
                'year': year,
                'week_start': week_start(report_date),
                'sales_amount': sales,
                'notes': notes,
                **counters,
            })
            logger.info("Weekly report %d/%d created for user %s", week_number, year, user_id)
        else:
            record = tx.increment('performance_metrics', record['id'], 'sales_amount', sales)
            for name, amount in counters.items():
                record = tx.increment('performance_metrics', record['id'], name, amount)
            if notes:
                record = tx.update('performance_metrics', record['id'], {'notes': notes})
            logger.info("Weekly report %d/%d merged for user %s", week_number, year, user_id)

    return record


def list_performance_records(store, user_id: Optional[str] = None) -> List[Dict[str, Any]]:
    filters = {'user_id': user_id} if user_id else None
    return store.select_many('performance_metrics', filters, order_by='-week_start')


def get_performance_record(store, record_id: str) -> Dict[str, Any]:
    return store.select_one('performance_metrics', {'id': record_id})


def update_performance_record(store, record_id: str, updates: Dict[str, Any]) -> Dict[str, Any]:
    """Overwrite reported numbers on an existing weekly record."""
    _check_fields(updates, _REPORT_FIELDS)
    changes = dict(updates)
    if 'sales_amount' in changes:
        changes['sales_amount'] = _validate_value(changes['sales_amount'])
    for name in _REPORT_COUNTERS:
        if name in changes:
            changes[name] = _validate_count(name, changes[name])
    return store.update('performance_metrics', record_id, changes)


# ── Coaching assignments ─────────────────────────────────────────────────────

def list_user_assignments(store, user_id: Optional[str] = None) -> List[Dict[str, Any]]:
    """Assignments (newest first), each with its session and the session's program."""
    filters = {'user_id': user_id} if user_id else None
    assignments = store.select_many('user_assignments', filters, order_by='-created_at')
    if not assignments:
        return []

    sessions = {
        s['id']: s for s in store.select_many(
            'program_sessions', {'id': {a['session_id'] for a in assignments}},
        )
    }
    programs = {
        p['id']: p for p in store.select_many(
            'coaching_programs', {'id': {s['program_id'] for s in sessions.values()}},
        )
    }

    result = []
    for assignment in assignments:
        session = sessions.get(assignment['session_id'])
        program = programs.get(session['program_id']) if session else None
        result.append({**assignment, 'session': session, 'program': program})
    return result


def update_assignment_status(store, assignment_id: str, completed: bool,
                             now: Optional[datetime] = None) -> Dict[str, Any]:
    return store.update('user_assignments', assignment_id, {
        'completed': bool(completed),
        'completed_at': (now or datetime.now()) if completed else None,
    })
