"""
Dashboard and reports aggregation — monthly totals, KPIs, pipeline metrics.
"""
import logging
from typing import Any, Dict, Iterable, List

from sizzle.config import CLOSED_STAGE, PIPELINE_STAGES
from sizzle.services.weeks import month_bounds, weeks_in_month

logger = logging.getLogger('services.reports')


def _sum(records: Iterable[Dict[str, Any]], field: str) -> float:
    return sum((r.get(field) or 0) for r in records)


def pipeline_metrics(entries: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Counts and values across all pipeline entries."""
    closed = [e for e in entries if e.get('stage') == CLOSED_STAGE]
    won = [e for e in entries if e.get('status') == 'WON']
    lost = [e for e in entries if e.get('status') == 'LOST']
    return {
        'total_leads': sum(1 for e in entries if e.get('stage') == 'LEADS'),
        'total_value': _sum(entries, 'value'),
        'closed_deals': len(closed),
        'closed_value': _sum(closed, 'value'),
        'won_deals': len(won),
        'won_value': _sum(won, 'value'),
        'lost_deals': len(lost),
        'lost_value': _sum(lost, 'value'),
    }


def stage_values(entries: List[Dict[str, Any]]) -> Dict[str, float]:
    """Value sum per stage, every stage present."""
    totals = {stage: 0.0 for stage in PIPELINE_STAGES}
    for entry in entries:
        stage = entry.get('stage')
        if stage in totals:
            totals[stage] += entry.get('value') or 0
    return totals


def records_in_month(records: List[Dict[str, Any]], year: int, month: int) -> List[Dict[str, Any]]:
    """Weekly records whose week starts inside the calendar month."""
    start, end = month_bounds(year, month)
    return [r for r in records if r.get('week_start') and start <= r['week_start'].replace(tzinfo=None) < end]


def monthly_kpis(records: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Totals, per-week averages and call → meeting conversion rate."""
    weeks = len(records)
    total_sales = _sum(records, 'sales_amount')
    total_calls = _sum(records, 'calls_made')
    total_meetings = _sum(records, 'meetings_booked')
    total_leads = _sum(records, 'leads_generated')
    return {
        'total_sales': total_sales,
        'total_calls': total_calls,
        'total_meetings': total_meetings,
        'total_leads': total_leads,
        'avg_sales_per_week': total_sales / weeks if weeks else 0,
        'avg_calls_per_week': total_calls / weeks if weeks else 0,
        'avg_leads_per_week': total_leads / weeks if weeks else 0,
        'conversion_rate': (total_meetings / total_calls * 100) if total_calls > 0 else 0,
    }


def monthly_performance(store, year: int, month: int, user_id: str = None) -> Dict[str, Any]:
    """
    Dashboard summary for one month.

    Closed deals are already folded into weekly sales_amount by the reconciler,
    so total_sales is the sum of weekly records only.
    """
    filters = {'user_id': user_id} if user_id else None
    records = records_in_month(
        store.select_many('performance_metrics', filters, order_by='week_start'),
        year, month,
    )
    entries = store.select_many('pipeline_entries')
    kpis = monthly_kpis(records)

    logger.debug("Monthly performance %d-%02d: %d weekly records", year, month, len(records))
    return {
        'year': year,
        'month': month,
        'total_sales': kpis['total_sales'],
        'total_calls': kpis['total_calls'],
        'total_meetings': kpis['total_meetings'],
        'total_leads': kpis['total_leads'],
        'weeks': [{'week_number': w, 'year': y} for w, y in weeks_in_month(year, month)],
        'weekly_metrics': records,
        'pipeline_metrics': pipeline_metrics(entries),
        'stage_values': stage_values(entries),
    }
