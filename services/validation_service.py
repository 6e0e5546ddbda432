from datetime import date, datetime

import pytz

PRIORITIES = ("low", "medium", "high")
BUCKETLIST_CATEGORIES = (
    "general",
    "travel",
    "career",
    "health",
    "hobby",
    "relationship",
    "financial",
    "learning",
    "experience",
)
PLAN_FILTERS = ("all", "pending", "completed")


def parse_bool(value, default=False):
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ["1", "true", "yes", "on"]


def parse_int(value, default=None):
    if isinstance(value, bool):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def normalize_priority(raw, default="medium"):
    value = str(raw or "").strip().lower()
    return value if value in PRIORITIES else default


def normalize_category(raw):
    value = str(raw or "").strip().lower()
    return value if value in BUCKETLIST_CATEGORIES else "general"


def normalize_tags(raw):
    if not raw:
        return []
    if isinstance(raw, list):
        return [str(t).strip() for t in raw if str(t).strip()]
    return [t.strip() for t in str(raw).split(",") if t.strip()]


def tags_to_string(tags):
    return ",".join(normalize_tags(tags))


def normalize_parent_id(raw):
    """Empty strings and the literal 'null' from query strings mean root."""
    if raw is None:
        return None
    value = str(raw).strip()
    if not value or value.lower() in ("null", "none"):
        return None
    return value


def parse_id_list(raw):
    """Accept a JSON list or a comma separated string of ids."""
    if raw is None:
        return []
    if isinstance(raw, (list, tuple, set)):
        values = raw
    else:
        values = str(raw).split(",")
    return [str(v).strip() for v in values if str(v).strip()]


def parse_day_value(raw):
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    try:
        return datetime.strptime(str(raw), "%Y-%m-%d").date()
    except (TypeError, ValueError):
        return None


def local_today(tz_name="UTC"):
    """Today's date in the configured timezone (falls back to UTC on bad names)."""
    try:
        tz = pytz.timezone(tz_name or "UTC")
    except pytz.UnknownTimeZoneError:
        tz = pytz.UTC
    return datetime.now(tz).date()


def utc_now_naive():
    return datetime.now(pytz.UTC).replace(tzinfo=None)
