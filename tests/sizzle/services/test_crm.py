"""Tests for sizzle.services.crm — pipeline, call, report and assignment operations."""
from datetime import datetime
from unittest.mock import patch

import pytest
from sqlalchemy.exc import IntegrityError

from sizzle.exceptions import RecordNotFoundError, ValidationError
from sizzle.services import crm


class TestPipelineEntries:

    def test_create_entry(self, store):
        entry = crm.create_pipeline_entry(store, 'u1', '  Acme  ', '1500')
        assert entry['name'] == 'Acme'
        assert entry['value'] == pytest.approx(1500.0)
        assert entry['stage'] == 'LEADS'

    @pytest.mark.parametrize('value', [-1, 'abc', float('nan'), None])
    def test_create_rejects_bad_values(self, store, value):
        with pytest.raises(ValidationError):
            crm.create_pipeline_entry(store, 'u1', 'Acme', value)

    def test_create_rejects_blank_name(self, store):
        with pytest.raises(ValidationError):
            crm.create_pipeline_entry(store, 'u1', '   ', 10)

    def test_create_rejects_unknown_stage(self, store):
        with pytest.raises(ValidationError):
            crm.create_pipeline_entry(store, 'u1', 'Acme', 10, stage='WON')

    def test_list_entries(self, store, make_entry):
        make_entry(name='a')
        make_entry(name='b')
        assert {e['name'] for e in crm.list_pipeline_entries(store)} == {'a', 'b'}

    def test_update_into_closed_credits_the_week(self, store, make_entry):
        entry = make_entry(user_id='u1', value=900.0, stage='APPOINTMENTS')

        updated = crm.update_pipeline_entry(store, entry['id'], {'stage': 'CLOSED'},
                                            now=datetime(2024, 2, 14, 12))

        assert updated['stage'] == 'CLOSED'
        record = store.select_one('performance_metrics', {'user_id': 'u1'})
        assert (record['week_number'], record['year']) == (7, 2024)
        assert record['sales_amount'] == pytest.approx(900.0)

    def test_resaving_a_closed_entry_does_not_credit_again(self, store, make_entry):
        entry = make_entry(user_id='u1', value=900.0, stage='APPOINTMENTS')
        now = datetime(2024, 2, 14, 12)
        crm.update_pipeline_entry(store, entry['id'], {'stage': 'CLOSED'}, now=now)
        crm.update_pipeline_entry(store, entry['id'], {'notes': 'signed'}, now=now)

        record = store.select_one('performance_metrics', {'user_id': 'u1'})
        assert record['sales_amount'] == pytest.approx(900.0)

    def test_retrying_a_failed_close_credits_once(self, store, make_entry):
        entry = make_entry(user_id='u1', value=900.0, stage='APPOINTMENTS')
        now = datetime(2024, 2, 14, 12)
        conflict = IntegrityError('INSERT INTO performance_metrics', {}, Exception('duplicate week'))

        with patch('sizzle.services.crm.on_stage_change', side_effect=conflict):
            with pytest.raises(IntegrityError):
                crm.update_pipeline_entry(store, entry['id'], {'stage': 'CLOSED'}, now=now)
        assert store.select_many('performance_metrics') == []

        crm.update_pipeline_entry(store, entry['id'], {'stage': 'CLOSED'}, now=now)
        crm.update_pipeline_entry(store, entry['id'], {'stage': 'CLOSED'}, now=now)

        record = store.select_one('performance_metrics', {'user_id': 'u1'})
        assert record['sales_amount'] == pytest.approx(900.0)
        assert len(store.select_many('sales_credits')) == 1

    def test_editing_an_entry_created_closed_does_not_credit(self, store, make_entry):
        entry = make_entry(stage='CLOSED')
        crm.update_pipeline_entry(store, entry['id'], {'notes': 'imported'})
        assert store.select_many('performance_metrics') == []

    @pytest.mark.parametrize('name', ['', '   ', None, 42])
    def test_update_rejects_blank_name(self, store, make_entry, name):
        entry = make_entry(name='Acme')
        with pytest.raises(ValidationError):
            crm.update_pipeline_entry(store, entry['id'], {'name': name})
        assert store.select_one('pipeline_entries', {'id': entry['id']})['name'] == 'Acme'

    def test_update_strips_name(self, store, make_entry):
        entry = make_entry()
        updated = crm.update_pipeline_entry(store, entry['id'], {'name': '  Globex  '})
        assert updated['name'] == 'Globex'

    def test_update_without_stage_change_creates_no_record(self, store, make_entry):
        entry = make_entry()
        crm.update_pipeline_entry(store, entry['id'], {'value': 42})
        assert store.select_many('performance_metrics') == []

    def test_update_rejects_unknown_fields(self, store, make_entry):
        entry = make_entry()
        with pytest.raises(ValidationError):
            crm.update_pipeline_entry(store, entry['id'], {'id': 'other'})

    def test_update_missing_entry(self, store):
        with pytest.raises(RecordNotFoundError):
            crm.update_pipeline_entry(store, 'nope', {'stage': 'CLOSED'})


class TestCallAttempts:

    def test_attempt_inherits_entry_owner(self, store, make_entry):
        entry = make_entry(user_id='u7')
        attempt = crm.create_call_attempt(
            store, entry['id'], 'NO_ANSWER',
            next_follow_up='2024-03-05T09:00:00', now=datetime(2024, 3, 1, 10),
        )
        assert attempt['user_id'] == 'u7'
        assert attempt['status'] == 'NO_ANSWER'
        assert attempt['next_follow_up'] == datetime(2024, 3, 5, 9)
        assert attempt['attempt_date'] == datetime(2024, 3, 1, 10)

    def test_unknown_status(self, store, make_entry):
        with pytest.raises(ValidationError):
            crm.create_call_attempt(store, make_entry()['id'], 'VOICEMAIL')

    def test_unknown_entry(self, store):
        with pytest.raises(RecordNotFoundError):
            crm.create_call_attempt(store, 'nope', 'COMPLETED')

    def test_update_attempt(self, store, make_entry, make_attempt):
        attempt = make_attempt(make_entry(), datetime(2024, 3, 1, 10))
        updated = crm.update_call_attempt(store, attempt['id'], {
            'status': 'RESCHEDULED', 'next_follow_up': '2024-03-08T14:00:00',
        })
        assert updated['status'] == 'RESCHEDULED'
        assert updated['next_follow_up'] == datetime(2024, 3, 8, 14)

    def test_unparseable_follow_up_rejected(self, store, make_entry):
        entry = make_entry()
        with pytest.raises(ValidationError, match='Invalid date'):
            crm.create_call_attempt(store, entry['id'], 'RESCHEDULED', next_follow_up='tomorrow')
        assert store.select_many('call_attempts') == []

    def test_update_attempt_rejects_unparseable_date(self, store, make_entry, make_attempt):
        attempt = make_attempt(make_entry(), datetime(2024, 3, 1, 9))
        with pytest.raises(ValidationError, match='Invalid date'):
            crm.update_call_attempt(store, attempt['id'], {'attempt_date': '01/03/2024'})

    def test_update_attempt_cannot_clear_attempt_date(self, store, make_entry, make_attempt):
        attempt = make_attempt(make_entry(), datetime(2024, 3, 1, 10))
        with pytest.raises(ValidationError):
            crm.update_call_attempt(store, attempt['id'], {'attempt_date': None})


class TestWeeklyReports:

    def test_first_submission_creates_record_and_profile(self, store):
        record = crm.submit_weekly_report(
            store, 'u1', '2024-02-14', sales_amount=300, calls_made=40,
            meetings_booked=6, leads_generated=9, notes='good week',
        )
        assert (record['week_number'], record['year']) == (7, 2024)
        assert record['week_start'].replace(tzinfo=None) == datetime(2024, 2, 12)
        assert record['calls_made'] == 40
        assert record['notes'] == 'good week'
        assert store.find_one('profiles', {'id': 'u1'}) is not None

    def test_second_submission_merges_into_same_week(self, store):
        crm.submit_weekly_report(store, 'u1', datetime(2024, 2, 12), sales_amount=100, calls_made=10)
        record = crm.submit_weekly_report(store, 'u1', datetime(2024, 2, 16), sales_amount=50,
                                          calls_made=5, meetings_booked=2)
        assert record['sales_amount'] == pytest.approx(150.0)
        assert record['calls_made'] == 15
        assert record['meetings_booked'] == 2
        assert len(store.select_many('performance_metrics')) == 1

    def test_report_lands_on_the_record_a_closed_deal_created(self, store, make_entry):
        entry = make_entry(user_id='u1', value=1000.0, stage='FOLLOW_UP')
        crm.update_pipeline_entry(store, entry['id'], {'stage': 'CLOSED'}, now=datetime(2024, 2, 13, 9))

        record = crm.submit_weekly_report(store, 'u1', '2024-02-15', calls_made=30)

        assert record['sales_amount'] == pytest.approx(1000.0)
        assert record['calls_made'] == 30
        assert len(store.select_many('performance_metrics')) == 1

    def test_negative_counts_rejected(self, store):
        with pytest.raises(ValidationError):
            crm.submit_weekly_report(store, 'u1', '2024-02-14', calls_made=-3)

    def test_unparseable_report_date_rejected(self, store):
        with pytest.raises(ValidationError, match='Invalid date'):
            crm.submit_weekly_report(store, 'u1', 'not-a-date')
        assert store.select_many('performance_metrics') == []

    def test_user_required(self, store):
        with pytest.raises(ValidationError):
            crm.submit_weekly_report(store, '', '2024-02-14')

    def test_list_records_newest_first(self, store):
        crm.submit_weekly_report(store, 'u1', '2024-01-10')
        crm.submit_weekly_report(store, 'u1', '2024-02-14')
        crm.submit_weekly_report(store, 'u2', '2024-03-01')
        weeks = [r['week_number'] for r in crm.list_performance_records(store, user_id='u1')]
        assert weeks == [7, 2]
        assert len(crm.list_performance_records(store)) == 3

    def test_update_record_overwrites(self, store):
        record = crm.submit_weekly_report(store, 'u1', '2024-02-14', calls_made=10)
        updated = crm.update_performance_record(store, record['id'], {'calls_made': 4})
        assert updated['calls_made'] == 4
        assert crm.get_performance_record(store, record['id'])['calls_made'] == 4

    def test_update_record_rejects_week_fields(self, store):
        record = crm.submit_weekly_report(store, 'u1', '2024-02-14')
        with pytest.raises(ValidationError):
            crm.update_performance_record(store, record['id'], {'week_number': 9})


class TestAssignments:

    @pytest.fixture
    def assignment(self, store):
        program = store.insert('coaching_programs', {'name': 'Closing Bootcamp'})
        session = store.insert('program_sessions', {'program_id': program['id'], 'title': 'Objection handling'})
        return store.insert('user_assignments', {'user_id': 'u1', 'session_id': session['id']})

    def test_list_includes_session_and_program(self, store, assignment):
        result = crm.list_user_assignments(store, user_id='u1')
        assert len(result) == 1
        assert result[0]['session']['title'] == 'Objection handling'
        assert result[0]['program']['name'] == 'Closing Bootcamp'
        assert result[0]['completed'] is False

    def test_list_for_other_user_is_empty(self, store, assignment):
        assert crm.list_user_assignments(store, user_id='u2') == []

    def test_mark_complete_and_undo(self, store, assignment):
        done = crm.update_assignment_status(store, assignment['id'], True, now=datetime(2024, 3, 1, 9))
        assert done['completed'] is True
        assert done['completed_at'] == datetime(2024, 3, 1, 9)

        undone = crm.update_assignment_status(store, assignment['id'], False)
        assert undone['completed'] is False
        assert undone['completed_at'] is None
