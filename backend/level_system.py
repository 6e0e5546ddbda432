"""Achievement level tables for the dashboard."""


def _levels(rows):
    return [
        {'level': n, 'title': title, 'description': description, 'xpRequired': xp}
        for n, (title, description, xp) in enumerate(rows, start=1)
    ]


TODO_DAILY_LEVELS = _levels([
    ('Dawn', 'The day has started', 0),
    ('Morning', 'A lively morning', 3),
    ('Forenoon', 'A well spent morning', 5),
    ('Noon', 'Half the day done', 8),
    ('Afternoon', 'Kept going through the afternoon', 12),
    ('Evening', 'Gave it everything until evening', 16),
    ('Night', 'Wrapped up the day', 20),
    ('Midnight', 'Remarkable productivity', 25),
    ('Nightless City', 'Unstoppable follow-through', 30),
    ('Legend', 'Today\'s legend', 40),
])

TODO_WEEKLY_LEVELS = _levels([
    ('Monday Blues', 'The week has started', 0),
    ('Midweek', 'Found the weekly rhythm', 15),
    ('Weekday Warrior', 'Steady execution', 30),
    ('Friday', 'The weekend is in sight', 50),
    ('Weekender', 'A full week well spent', 70),
    ('Week Complete', 'Did your best all week', 90),
    ('Weekly King', 'Master of the week', 110),
    ('Seven Day Reign', 'Conquered the week', 130),
    ('Weekly Legend', 'A legendary week', 150),
    ('Week Deity', 'The week became a myth', 180),
])

TODO_MONTHLY_LEVELS = _levels([
    ('First Day', 'The month has started', 0),
    ('Early Month', 'First steps of the month', 50),
    ('Mid Month', 'Past the middle of the month', 100),
    ('Late Month', 'The end of the month is in sight', 180),
    ('Month End', 'A diligent month', 280),
    ('Monthly King', 'Did your best all month', 380),
    ('30 Day Challenge', 'Master of the month', 480),
    ('World Class', 'An amazing month', 600),
    ('Monthly Legend', 'A legendary month', 750),
    ('Month Deity', 'The month became a myth', 900),
])

PLAN_DAILY_LEVELS = _levels([
    ('Planner', 'Made today\'s plan', 0),
    ('Doer', 'Put the plan into action', 1),
    ('Challenger', 'Took on more challenges', 2),
    ('Achiever', 'Reached goals steadily', 3),
    ('Finisher', 'Finished today\'s goals', 5),
    ('Transcender', 'Went beyond expectations', 7),
    ('Master', 'A master of getting plans done', 10),
    ('Ace', 'Amazing execution', 13),
    ('Champion', 'Today\'s champion', 16),
    ('Hero', 'Today\'s hero', 20),
])

PLAN_WEEKLY_LEVELS = _levels([
    ('Organizer', 'Planned the week', 0),
    ('Driver', 'Driving the plans forward', 5),
    ('Runner', 'Progressing smoothly', 10),
    ('Builder', 'Completing plan after plan', 18),
    ('Goal King', 'An expert at reaching goals', 28),
    ('Week King', 'Handled the week perfectly', 40),
    ('Pro', 'Professional execution', 55),
    ('Grandmaster', 'Top completion rate', 70),
    ('Legend', 'A legendary week', 85),
    ('God', 'Reached the divine level', 100),
])

PLAN_MONTHLY_LEVELS = _levels([
    ('Goal Setter', 'Set the month\'s goals', 0),
    ('Goal Pusher', 'Moving toward the goals', 15),
    ('Plan King', 'An expert at executing plans', 35),
    ('Accomplisher', 'Accomplished a lot', 60),
    ('Monthly Powerhouse', 'Strong all month long', 90),
    ('Monthly Emperor', 'Ruled the month', 130),
    ('Monthly Master', 'Master of the month', 180),
    ('Monthly Grand Slam', 'Hit a grand slam', 240),
    ('Monthly Legend', 'A legendary month', 310),
    ('Monthly Immortal', 'Left an immortal record', 400),
])


def get_level_info(xp, levels):
    """
    Level reached with `xp` points on the given table.

    currentXP is the progress past the current threshold and xpToNext the
    distance to the next one (0 at the top level).
    """
    current = levels[0]
    for entry in levels:
        if xp >= entry['xpRequired']:
            current = entry
    next_entry = levels[min(current['level'], len(levels) - 1)]
    return {
        'level': current['level'],
        'currentXP': max(0, xp - current['xpRequired']),
        'xpToNext': max(0, next_entry['xpRequired'] - xp),
        'title': current['title'],
        'description': current['description'],
    }
