"""Tests for sizzle.services.reports — monthly totals and pipeline metrics."""
from datetime import datetime

import pytest

from sizzle.services import crm
from sizzle.services.reports import (
    monthly_kpis, monthly_performance, pipeline_metrics, records_in_month, stage_values,
)


ENTRIES = [
    {'stage': 'LEADS', 'status': 'OPEN', 'value': 100.0},
    {'stage': 'LEADS', 'status': 'OPEN', 'value': None},
    {'stage': 'APPOINTMENTS', 'status': 'OPEN', 'value': 400.0},
    {'stage': 'CLOSED', 'status': 'WON', 'value': 1000.0},
    {'stage': 'LOST', 'status': 'LOST', 'value': 250.0},
]


class TestPipelineMetrics:

    def test_counts_and_values(self):
        metrics = pipeline_metrics(ENTRIES)
        assert metrics['total_leads'] == 2
        assert metrics['total_value'] == pytest.approx(1750.0)
        assert metrics['closed_deals'] == 1
        assert metrics['closed_value'] == pytest.approx(1000.0)
        assert metrics['won_deals'] == 1
        assert metrics['lost_deals'] == 1
        assert metrics['lost_value'] == pytest.approx(250.0)

    def test_empty(self):
        assert pipeline_metrics([])['total_value'] == 0

    def test_stage_values_include_every_stage(self):
        values = stage_values(ENTRIES)
        assert values['LEADS'] == pytest.approx(100.0)
        assert values['CONVERSATIONS'] == 0
        assert values['CLOSED'] == pytest.approx(1000.0)
        assert set(values) == {'LEADS', 'CONVERSATIONS', 'APPOINTMENTS', 'FOLLOW_UP', 'CLOSED', 'LOST'}


class TestMonthlyKpis:

    def test_totals_and_averages(self):
        records = [
            {'sales_amount': 100, 'calls_made': 40, 'meetings_booked': 4, 'leads_generated': 6},
            {'sales_amount': 300, 'calls_made': 60, 'meetings_booked': 6, 'leads_generated': 2},
        ]
        kpis = monthly_kpis(records)
        assert kpis['total_sales'] == 400
        assert kpis['avg_sales_per_week'] == 200
        assert kpis['avg_calls_per_week'] == 50
        assert kpis['avg_leads_per_week'] == 4
        assert kpis['conversion_rate'] == pytest.approx(10.0)

    def test_no_records_or_calls(self):
        kpis = monthly_kpis([])
        assert kpis['avg_sales_per_week'] == 0
        assert kpis['conversion_rate'] == 0

    def test_records_in_month_uses_week_start(self):
        records = [
            {'id': 'jan', 'week_start': datetime(2024, 1, 29)},
            {'id': 'feb', 'week_start': datetime(2024, 2, 5)},
            {'id': 'mar', 'week_start': datetime(2024, 3, 4)},
            {'id': 'none', 'week_start': None},
        ]
        assert [r['id'] for r in records_in_month(records, 2024, 2)] == ['feb']


class TestMonthlyPerformance:

    def test_closed_deals_are_not_counted_twice(self, store, make_entry):
        entry = make_entry(user_id='u1', value=1000.0, stage='FOLLOW_UP')
        crm.update_pipeline_entry(store, entry['id'], {'stage': 'CLOSED'}, now=datetime(2024, 2, 14, 10))
        crm.submit_weekly_report(store, 'u1', '2024-02-14', sales_amount=500, calls_made=20)

        summary = monthly_performance(store, 2024, 2)

        assert summary['total_sales'] == pytest.approx(1500.0)
        assert summary['total_calls'] == 20
        assert len(summary['weekly_metrics']) == 1
        assert summary['pipeline_metrics']['closed_value'] == pytest.approx(1000.0)
        assert summary['stage_values']['CLOSED'] == pytest.approx(1000.0)

    def test_filters_by_user_and_month(self, store):
        crm.submit_weekly_report(store, 'u1', '2024-02-07', sales_amount=100)
        crm.submit_weekly_report(store, 'u2', '2024-02-07', sales_amount=900)
        crm.submit_weekly_report(store, 'u1', '2024-03-06', sales_amount=50)

        summary = monthly_performance(store, 2024, 2, user_id='u1')

        assert summary['total_sales'] == pytest.approx(100.0)
        assert (summary['year'], summary['month']) == (2024, 2)

    def test_empty_month(self, store):
        summary = monthly_performance(store, 2024, 5)
        assert summary['total_sales'] == 0
        assert summary['weekly_metrics'] == []

    def test_lists_every_week_of_the_month(self, store):
        summary = monthly_performance(store, 2024, 2)
        assert [w['week_number'] for w in summary['weeks']] == [6, 7, 8, 9]
