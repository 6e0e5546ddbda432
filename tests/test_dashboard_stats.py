from datetime import date

from backend.dashboard_stats import (
    completion_streaks,
    contribution_streaks,
    daily_stats,
    month_range,
    range_daily_stats,
    week_range,
)
from backend.level_system import TODO_DAILY_LEVELS, TODO_WEEKLY_LEVELS, get_level_info


def todo(day, completed):
    return {'date': day, 'completed': completed}


def test_daily_stats_groups_and_sorts():
    stats = daily_stats([
        todo('2024-03-02', True),
        todo('2024-03-01', False),
        todo('2024-03-02', False),
    ])
    assert stats == [
        {'date': '2024-03-01', 'completed': 0, 'total': 1},
        {'date': '2024-03-02', 'completed': 1, 'total': 2},
    ]


def test_range_daily_stats_fills_empty_days():
    result = range_daily_stats(
        [todo('2024-03-01', True), todo('2024-03-03', False), todo('2024-04-01', True)],
        date(2024, 3, 1),
        date(2024, 3, 3),
    )
    assert [d['date'] for d in result['days']] == ['2024-03-01', '2024-03-02', '2024-03-03']
    assert [d['completionRate'] for d in result['days']] == [100, 0, 0]
    assert result['total'] == 2
    assert result['averageRate'] == 50


def test_completion_streaks_needs_consecutive_good_days():
    daily = [
        {'date': '2024-01-01', 'completed': 4, 'total': 5},
        {'date': '2024-01-02', 'completed': 5, 'total': 5},
        {'date': '2024-01-03', 'completed': 5, 'total': 5},
        {'date': '2024-01-05', 'completed': 1, 'total': 1},
        {'date': '2024-01-06', 'completed': 1, 'total': 2},
    ]
    assert completion_streaks(daily) == (3, 0)
    assert completion_streaks(daily[:4]) == (3, 1)


def test_contribution_streaks_current_requires_recent_activity():
    counts = {'2024-05-01': 2, '2024-05-02': 1, '2024-05-03': 4, '2024-05-10': 1}
    stats = contribution_streaks(counts, date(2024, 5, 11))
    assert stats == {'totalContributions': 8, 'activeDays': 4, 'longestStreak': 3, 'currentStreak': 1}
    assert contribution_streaks(counts, date(2024, 5, 20))['currentStreak'] == 0
    assert contribution_streaks({}, date(2024, 5, 20))['longestStreak'] == 0


def test_week_and_month_ranges():
    assert week_range(date(2024, 5, 15)) == (date(2024, 5, 13), date(2024, 5, 19))
    assert month_range(date(2024, 2, 10)) == (date(2024, 2, 1), date(2024, 2, 29))


def test_level_info_between_thresholds():
    info = get_level_info(6, TODO_DAILY_LEVELS)
    assert info['level'] == 3
    assert info['currentXP'] == 1
    assert info['xpToNext'] == 2


def test_level_info_top_level():
    info = get_level_info(500, TODO_WEEKLY_LEVELS)
    assert info['level'] == 10
    assert info['xpToNext'] == 0
    assert info['currentXP'] == 320


def test_level_info_zero():
    info = get_level_info(0, TODO_DAILY_LEVELS)
    assert info['level'] == 1
    assert info['xpToNext'] == 3
