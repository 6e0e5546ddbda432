"""
Completion statistics for the dashboard.

All functions work on plain row dicts as returned by RowStore, where dates
are ISO strings (YYYY-MM-DD).
"""
import calendar
from collections import Counter
from datetime import date, timedelta

PERFECT_RATE = 80


def _as_date(value):
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def completion_rate(completed, total):
    return round(completed / total * 100) if total else 0


def week_range(day):
    """Monday through Sunday of the week containing `day`."""
    start = day - timedelta(days=day.weekday())
    return start, start + timedelta(days=6)


def month_range(day):
    last = calendar.monthrange(day.year, day.month)[1]
    return day.replace(day=1), day.replace(day=last)


def daily_stats(todos):
    """Per-day {date, completed, total}, sorted by date."""
    per_day = {}
    for todo in todos:
        key = _as_date(todo['date']).isoformat()
        entry = per_day.setdefault(key, {'date': key, 'completed': 0, 'total': 0})
        entry['total'] += 1
        if todo.get('completed'):
            entry['completed'] += 1
    return [per_day[key] for key in sorted(per_day)]


def range_daily_stats(todos, start, end):
    """
    One entry per calendar day in [start, end], empty days included.

    Returns {'days': [...], 'completed', 'total', 'averageRate'} where the
    average is taken over days that have todos.
    """
    by_day = {entry['date']: entry for entry in daily_stats(
        t for t in todos if start <= _as_date(t['date']) <= end
    )}
    days = []
    day = start
    while day <= end:
        entry = by_day.get(day.isoformat(), {'date': day.isoformat(), 'completed': 0, 'total': 0})
        days.append(dict(entry, completionRate=completion_rate(entry['completed'], entry['total'])))
        day += timedelta(days=1)
    active = [d for d in days if d['total']]
    average = round(sum(d['completionRate'] for d in active) / len(active)) if active else 0
    return {
        'days': days,
        'completed': sum(d['completed'] for d in days),
        'total': sum(d['total'] for d in days),
        'averageRate': average,
    }


def completion_streaks(daily):
    """
    (longest, current) runs of consecutive days at or above PERFECT_RATE.

    `daily` is the sorted output of daily_stats. A gap in dates or a day
    below the threshold ends a run; current is the run at the last entry.
    """
    longest = current = 0
    previous = None
    for entry in daily:
        day = _as_date(entry['date'])
        if completion_rate(entry['completed'], entry['total']) >= PERFECT_RATE:
            if previous is not None and (day - previous).days == 1:
                current += 1
            else:
                current = 1
            longest = max(longest, current)
        else:
            current = 0
        previous = day
    return longest, current


def contribution_counts(rows, date_key):
    """Completed rows counted per ISO day."""
    counts = Counter()
    for row in rows:
        if row.get(date_key):
            counts[_as_date(row[date_key]).isoformat()] += 1
    return dict(counts)


def contribution_streaks(contributions, today):
    """
    Streak statistics over days that have at least one contribution.

    The current streak only counts if it reaches today or yesterday.
    """
    days = sorted(_as_date(key) for key, count in contributions.items() if count > 0)
    longest = run = 0
    previous = None
    for day in days:
        run = run + 1 if previous is not None and (day - previous).days == 1 else 1
        longest = max(longest, run)
        previous = day

    current = 0
    if days and (today - days[-1]).days in (0, 1):
        current = 1
        for earlier, later in zip(reversed(days[:-1]), reversed(days)):
            if (later - earlier).days != 1:
                break
            current += 1
    return {
        'totalContributions': sum(contributions.values()),
        'activeDays': len(days),
        'longestStreak': longest,
        'currentStreak': current,
    }


def range_completion(todos, start, end):
    completed = total = 0
    for todo in todos:
        if start <= _as_date(todo['date']) <= end:
            total += 1
            completed += 1 if todo.get('completed') else 0
    return {'completed': completed, 'total': total}
