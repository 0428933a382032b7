"""
Stage-close reconciler — folds a newly closed deal into the owner's weekly record.

Runs after the caller has already persisted the stage change. The whole fold
(credit ledger check, weekly record increment or create, ledger insert) runs
in a single store transaction:

  - the sales_credits ledger makes a repeated close of the same entry a no-op
  - the increment is one atomic UPDATE at the database, not read-modify-write
  - the (user_id, week_number, year) unique constraint turns a concurrent
    first-close-of-the-week race into an IntegrityError instead of a second row

Store errors propagate to the caller. The stage change itself is not rolled
back; the caller retries the reconciler, not the whole transition.
"""
import logging
from datetime import datetime
from typing import Any, Dict, Optional

from sizzle.config import CLOSED_STAGE
from sizzle.services.weeks import week_key, week_start

logger = logging.getLogger('services.reconciler')


def is_close_transition(previous_stage: Optional[str], new_stage: Optional[str]) -> bool:
    return new_stage == CLOSED_STAGE and previous_stage != CLOSED_STAGE


def on_stage_change(
    store, entry_id: str, previous_stage: Optional[str], new_stage: Optional[str],
    now: Optional[datetime] = None,
) -> Optional[Dict[str, Any]]:
    """
    Credit a pipeline entry's value to its owner's weekly performance record.

    Args:
        store:          RecordStore
        entry_id:       id of the pipeline entry whose stage just changed
        previous_stage: stage before the update
        new_stage:      stage after the update
        now:            moment of the close (defaults to datetime.now())

    Returns:
        The weekly performance record the value was credited to, or None when
        nothing was credited (not a transition into CLOSED, or already credited).
    """
    if not is_close_transition(previous_stage, new_stage):
        return None

    now = now or datetime.now()

    # Authoritative post-update values — not the caller's copy
    entry = store.select_one('pipeline_entries', {'id': entry_id})
    user_id = entry['user_id']
    value = entry['value'] or 0.0
    week_number, year = week_key(now)

    with store.transaction() as tx:
        credit = tx.find_one('sales_credits', {'pipeline_entry_id': entry_id})
        if credit is not None:
            logger.info(
                "Entry %s already credited to week %d/%d — skipping",
                entry_id, credit['week_number'], credit['year'],
            )
            return None

        record = tx.find_one('performance_metrics', {
            'user_id': user_id,
            'week_number': week_number,
            'year': year,
        })

        if record is not None:
            record = tx.increment('performance_metrics', record['id'], 'sales_amount', value)
            logger.info(
                "Added %.2f to week %d/%d for user %s (now %.2f)",
                value, week_number, year, user_id, record['sales_amount'],
            )
        else:
            record = tx.insert('performance_metrics', {
                'user_id': user_id,
                'week_number': week_number,
                'year': year,
                'sales_amount': value,
                'calls_made': 0,
                'meetings_booked': 0,
                'leads_generated': 0,
                'week_start': week_start(now),
            })
            logger.info(
                "Created week %d/%d record for user %s with %.2f",
                week_number, year, user_id, value,
            )

        tx.insert('sales_credits', {
            'pipeline_entry_id': entry_id,
            'performance_metric_id': record['id'],
            'user_id': user_id,
            'week_number': week_number,
            'year': year,
            'amount': value,
        })

    return record
