"""
Call-list ranking — decides who gets called today.

Priority, each tier only breaking ties left by the one before:
  1. Entries never called come first
  2. Both latest attempts carry a follow-up → earliest follow-up first
     (if only one side has a follow-up this tier is skipped)
  3. Latest attempt NO_ANSWER before any other outcome
  4. Highest value first
Remaining ties keep input order.
"""
import logging
import math
from datetime import datetime
from functools import cmp_to_key
from typing import Any, Dict, Iterable, List, Optional

from sizzle.config import ACTIVE_CALL_STAGES, NO_ANSWER

logger = logging.getLogger('services.call_list')


def parse_instant(value) -> Optional[datetime]:
    """ISO string or datetime → naive local datetime (aware values are converted)."""
    if value is None or value == '':
        return None
    if not isinstance(value, datetime):
        value = datetime.fromisoformat(str(value).replace('Z', '+00:00'))
    if value.tzinfo is not None:
        value = value.astimezone().replace(tzinfo=None)
    return value


def _value(entry: Dict[str, Any]) -> float:
    """Entry value for tier 4; missing or non-finite values rank as 0."""
    try:
        value = float(entry.get('value') or 0)
    except (TypeError, ValueError):
        return 0.0
    return value if math.isfinite(value) else 0.0


def latest_attempt(attempts: Iterable[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Attempt with the greatest attempt_date; the first one seen wins a tie."""
    latest = None
    for attempt in attempts or []:
        if latest is None or parse_instant(attempt.get('attempt_date')) > parse_instant(latest.get('attempt_date')):
            latest = attempt
    return latest


def _compare(a: Dict[str, Any], b: Dict[str, Any]) -> int:
    la = a.get('latest_attempt')
    lb = b.get('latest_attempt')

    if la is None and lb is not None:
        return -1
    if la is not None and lb is None:
        return 1

    fa = parse_instant(la.get('next_follow_up')) if la else None
    fb = parse_instant(lb.get('next_follow_up')) if lb else None
    if fa is not None and fb is not None:
        if fa < fb:
            return -1
        if fa > fb:
            return 1
        # Same follow-up instant falls through to the outcome tier

    a_no_answer = bool(la) and la.get('status') == NO_ANSWER
    b_no_answer = bool(lb) and lb.get('status') == NO_ANSWER
    if a_no_answer and not b_no_answer:
        return -1
    if b_no_answer and not a_no_answer:
        return 1

    va, vb = _value(a), _value(b)
    if va > vb:
        return -1
    if va < vb:
        return 1
    return 0


def rank(entries: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Order pipeline entries for the daily call list.

    Each entry is a dict with at least `value` and optionally `call_attempts`
    (a list of attempt dicts with `attempt_date`, `status`, `next_follow_up`).
    Returns new dicts with `latest_attempt` filled in; the input is not mutated.
    """
    annotated = []
    for entry in entries:
        item = dict(entry)
        item['latest_attempt'] = latest_attempt(entry.get('call_attempts') or [])
        annotated.append(item)
    return sorted(annotated, key=cmp_to_key(_compare))


def get_call_list(store) -> List[Dict[str, Any]]:
    """Load active leads/conversations with their attempts and rank them."""
    entries = store.select_many(
        'pipeline_entries',
        {'stage': ACTIVE_CALL_STAGES},
        order_by='-created_at',
    )
    if not entries:
        return []

    attempts = store.select_many(
        'call_attempts',
        {'pipeline_entry_id': [e['id'] for e in entries]},
        order_by='attempt_date',
    )
    by_entry: Dict[str, List[Dict[str, Any]]] = {}
    for attempt in attempts:
        by_entry.setdefault(attempt['pipeline_entry_id'], []).append(attempt)

    for entry in entries:
        entry['call_attempts'] = by_entry.get(entry['id'], [])

    ranked = rank(entries)
    logger.info("Call list: %d active entries, %d attempts", len(ranked), len(attempts))
    return ranked
