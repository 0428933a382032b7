"""
Reports routes — weekly performance records and monthly KPIs.
"""
from datetime import date

from flask import Blueprint, jsonify, request

from sizzle.exceptions import ValidationError
from sizzle.routes.helpers import current_user_id, get_store, int_arg, json_body, serialize
from sizzle.services import crm
from sizzle.services.reports import monthly_kpis, records_in_month
from sizzle.services.weeks import week_start_for

bp = Blueprint('reports', __name__)


@bp.route('/api/reports')
def monthly_report():
    """KPIs plus the weekly records of one month."""
    today = date.today()
    year = int_arg('year', today.year)
    month = int_arg('month', today.month)
    if not 1 <= month <= 12:
        raise ValidationError("'month' must be between 1 and 12")

    records = crm.list_performance_records(get_store(), user_id=request.args.get('user_id'))
    monthly = records_in_month(records, year, month)
    return jsonify({
        'year': year,
        'month': month,
        'kpis': monthly_kpis(monthly),
        'records': serialize(monthly),
    })


@bp.route('/api/reports/records')
def list_records():
    records = crm.list_performance_records(get_store(), user_id=request.args.get('user_id'))
    return jsonify(serialize(records))


@bp.route('/api/reports/records', methods=['POST'])
def submit_record():
    """
    Submit a week's numbers.

    The week is picked by `date` (any day inside it) or by `year` + `week_number`.
    """
    data = json_body()
    if data.get('date'):
        report_date = data['date']
    elif data.get('year') and data.get('week_number'):
        try:
            report_date = week_start_for(int(data['year']), int(data['week_number']))
        except (TypeError, ValueError):
            raise ValidationError('Invalid year / week_number')
    else:
        report_date = date.today()

    record = crm.submit_weekly_report(
        get_store(),
        user_id=current_user_id(data),
        report_date=report_date,
        sales_amount=data.get('sales_amount', 0),
        calls_made=data.get('calls_made', 0),
        meetings_booked=data.get('meetings_booked', 0),
        leads_generated=data.get('leads_generated', 0),
        notes=data.get('notes'),
    )
    return jsonify(serialize(record)), 201


@bp.route('/api/reports/records/<record_id>')
def get_record(record_id):
    return jsonify(serialize(crm.get_performance_record(get_store(), record_id)))


@bp.route('/api/reports/records/<record_id>', methods=['PATCH'])
def update_record(record_id):
    record = crm.update_performance_record(get_store(), record_id, json_body())
    return jsonify(serialize(record))
