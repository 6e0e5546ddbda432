"""Dashboard route handlers: raw stats, achievements and the yearly graph."""
from datetime import date

from flask import current_app, jsonify, request
from sqlalchemy.exc import SQLAlchemyError

from backend.dashboard_stats import (
    completion_streaks,
    contribution_counts,
    contribution_streaks,
    daily_stats,
    month_range,
    range_completion,
    range_daily_stats,
    week_range,
)
from backend.level_system import (
    PLAN_DAILY_LEVELS,
    PLAN_MONTHLY_LEVELS,
    PLAN_WEEKLY_LEVELS,
    TODO_DAILY_LEVELS,
    TODO_MONTHLY_LEVELS,
    TODO_WEEKLY_LEVELS,
    get_level_info,
)
from row_store import RowStore
from services.validation_service import local_today, parse_day_value, parse_int

YEARLY_TYPES = ('todos', 'plans', 'all')


def _today():
    return local_today(current_app.config.get('APP_TIMEZONE', 'UTC'))


def _completed_between(plans, start, end):
    count = 0
    for plan in plans:
        if plan['completed'] and plan.get('completed_at'):
            if start <= date.fromisoformat(plan['completed_at'][:10]) <= end:
                count += 1
    return count


def dashboard_stats():
    start = parse_day_value(request.args.get('startDate'))
    end = parse_day_value(request.args.get('endDate'))
    if not start or not end:
        return jsonify({'error': 'startDate and endDate required'}), 400
    store = RowStore()
    try:
        todos = store.list_paged('todos', ranges={'date': (start, end)}, order_by=['date', 'order_index'])
        plans = store.list_paged('plans', order_by=['order_index'])
    except SQLAlchemyError as exc:
        current_app.logger.error("Error fetching dashboard stats: %s", exc)
        return jsonify({'error': 'Failed to fetch dashboard stats'}), 500
    return jsonify({
        'todos': todos,
        'plans': plans,
        'summary': range_daily_stats(todos, start, end),
    })


def achievements():
    store = RowStore()
    try:
        todos = store.list_paged('todos', order_by=['date'])
        plans = store.list_paged('plans')
    except SQLAlchemyError as exc:
        current_app.logger.error("Error fetching achievement metrics: %s", exc)
        return jsonify({'error': 'Failed to fetch achievement metrics'}), 500

    today = _today()
    daily = daily_stats(todos)
    longest, current = completion_streaks(daily)
    week_start, week_end = week_range(today)
    month_start, month_end = month_range(today)
    today_stats = range_completion(todos, today, today)
    week_stats = range_completion(todos, week_start, week_end)
    month_stats = range_completion(todos, month_start, month_end)

    return jsonify({
        'totalTodos': len(todos),
        'completedTodos': sum(1 for t in todos if t['completed']),
        'daysWithTodos': len(daily),
        'perfectDays': sum(1 for d in daily if d['total'] and d['completed'] == d['total']),
        'longestStreak': longest,
        'currentStreak': current,
        'currentWeekCompleted': week_stats['completed'],
        'currentWeekTotal': week_stats['total'],
        'currentMonthCompleted': month_stats['completed'],
        'currentMonthTotal': month_stats['total'],
        'templateCompleted': sum(1 for t in todos if t['completed'] and t.get('template_id')),
        'plansCompleted': sum(1 for p in plans if p['completed']),
        'weekRange': {'start': week_start.isoformat(), 'end': week_end.isoformat()},
        'monthRange': {'start': month_start.isoformat(), 'end': month_end.isoformat()},
        'levels': {
            'todos': {
                'daily': get_level_info(today_stats['completed'], TODO_DAILY_LEVELS),
                'weekly': get_level_info(week_stats['completed'], TODO_WEEKLY_LEVELS),
                'monthly': get_level_info(month_stats['completed'], TODO_MONTHLY_LEVELS),
            },
            'plans': {
                'daily': get_level_info(_completed_between(plans, today, today), PLAN_DAILY_LEVELS),
                'weekly': get_level_info(_completed_between(plans, week_start, week_end), PLAN_WEEKLY_LEVELS),
                'monthly': get_level_info(_completed_between(plans, month_start, month_end), PLAN_MONTHLY_LEVELS),
            },
        },
    })


def yearly():
    today = _today()
    year = parse_int(request.args.get('year'), today.year)
    kind = request.args.get('type', 'all')
    if kind not in YEARLY_TYPES:
        return jsonify({'error': 'type must be todos, plans or all'}), 400
    if year is None or not 1 <= year <= 9999:
        return jsonify({'error': 'year must be a valid year'}), 400
    start, end = date(year, 1, 1), date(year, 12, 31)

    store = RowStore()
    result = {'year': year}
    contributions = {}
    try:
        if kind in ('todos', 'all'):
            todos = store.list_paged('todos', {'completed': True}, ranges={'date': (start, end)}, order_by=['date'])
            result['todos'] = [{'date': t['date'], 'completed': True} for t in todos]
            for key, count in contribution_counts(todos, 'date').items():
                contributions[key] = contributions.get(key, 0) + count
        if kind in ('plans', 'all'):
            plans = store.list_paged('plans', {'completed': True}, ranges={'due_date': (start, end)}, order_by=['due_date'])
            result['plans'] = [{'due_date': p['due_date'], 'completed': True} for p in plans]
            for key, count in contribution_counts(plans, 'due_date').items():
                contributions[key] = contributions.get(key, 0) + count
    except SQLAlchemyError as exc:
        current_app.logger.error("Error fetching yearly dashboard data: %s", exc)
        return jsonify({'error': 'Failed to fetch yearly dashboard data'}), 500

    result['contributions'] = contributions
    result['streaks'] = contribution_streaks(contributions, today)
    return jsonify(result)
