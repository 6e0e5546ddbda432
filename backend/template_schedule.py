"""Materialising a template's items as dated todos."""
import calendar
from datetime import date, timedelta

from flask import current_app

from backend.template_items import tree_order

DEFAULT_HORIZON_DAYS = 90


def add_months(day, months):
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return day.replace(year=year, month=month, day=min(day.day, last_day))


def template_day_todos(template, day):
    """Todo rows for one day: template items in outline order, numbered from 0."""
    todos = []
    for position, item in enumerate(tree_order(template.get('items') or [])):
        todos.append({
            'template_id': template['id'],
            'date': day,
            'title': item.get('title') or '',
            'description': item.get('description') or None,
            'completed': False,
            'order_index': position,
        })
    return todos


def activate_template(store, template_id, today, horizon_days=DEFAULT_HORIZON_DAYS):
    """
    Make template_id the only active template and rebuild upcoming todos.

    Todos from today through three months ahead are cleared first, then the
    template's items are written for each of the next horizon_days days.
    Returns the number of todos created, or None when the template is missing.
    """
    template = store.get('templates', template_id)
    if template is None:
        return None
    store.update_where('templates', {'is_active': False, 'applied_from_date': None})
    cleared = store.delete_where('todos', ranges={'date': (today, add_months(today, 3))})
    store.update('templates', template_id, {'is_active': True, 'applied_from_date': today})

    rows = []
    for offset in range(horizon_days):
        rows.extend(template_day_todos(template, today + timedelta(days=offset)))
    if rows:
        store.insert_many('todos', rows)
    current_app.logger.info(
        "Activated template %s: cleared %s todos, created %s", template_id, cleared, len(rows)
    )
    return len(rows)


def check_active_template(store, today, horizon_days=DEFAULT_HORIZON_DAYS):
    """
    Fill in days in the horizon that have no todos from the active template.

    Returns {'applied': False} when no template is active, otherwise
    {'applied': True, 'createdCount': n}.
    """
    active = store.list('templates', {'is_active': True}, order_by=['-created_at'], limit=1)
    if not active:
        return {'applied': False, 'message': 'No active template'}
    template = active[0]

    start = today
    if template.get('applied_from_date'):
        applied_from = date.fromisoformat(template['applied_from_date'])
        start = max(applied_from, today)
    end = start + timedelta(days=horizon_days - 1)

    existing = store.list('todos', {'template_id': template['id']}, ranges={'date': (start, end)})
    covered = {row['date'] for row in existing}

    rows = []
    for offset in range(horizon_days):
        day = start + timedelta(days=offset)
        if day.isoformat() in covered:
            continue
        rows.extend(template_day_todos(template, day))
    if rows:
        store.insert_many('todos', rows)
    current_app.logger.info("Active template %s check created %s todos", template['id'], len(rows))
    return {'applied': True, 'createdCount': len(rows)}
