from datetime import date, datetime
import calendar
from utils.constants import DATE_FORMAT

# ── Display date formats ──────────────────────────────────────────────────────

_STRFTIME_MAP = {
    "MM/DD/YYYY": "%m/%d/%Y",
    "DD/MM/YYYY": "%d/%m/%Y",
    "YYYY-MM-DD": "%Y-%m-%d",
    "DD.MM.YYYY": "%d.%m.%Y",
}


def today() -> date:
    """The only place the wall clock is read; callers pass the result down."""
    return date.today()


def parse_date(date_str: str | None) -> date | None:
    """Parse a date string in YYYY-MM-DD format, returning None on failure."""
    if not date_str:
        return None
    for fmt in ("%Y-%m-%d", "%Y/%m/%d", "%Y.%m.%d"):
        try:
            return datetime.strptime(date_str.strip(), fmt).date()
        except ValueError:
            continue
    return None


def format_date(d: date | None) -> str | None:
    return d.strftime(DATE_FORMAT) if d else None


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def clamp_day_to_month(year: int, month: int, day: int) -> int:
    """Clamp day to valid range for the given year/month."""
    return min(day, days_in_month(year, month))


def add_months(d: date, n: int) -> date:
    """Add n months to date d, clamping day to month end."""
    month = d.month - 1 + n
    year = d.year + month // 12
    month = month % 12 + 1
    day = clamp_day_to_month(year, month, d.day)
    return d.replace(year=year, month=month, day=day)


def months_between(earlier: date, later: date) -> int:
    """Whole calendar months from earlier's month to later's month (days ignored)."""
    return (later.year - earlier.year) * 12 + (later.month - earlier.month)


def day_of_week(d: date) -> int:
    """0=Sunday .. 6=Saturday."""
    return (d.weekday() + 1) % 7


def format_display_date(d: date | str | None, fmt_key: str = "MM/DD/YYYY") -> str:
    """Render a date (or YYYY-MM-DD string) in the user-facing display format."""
    if isinstance(d, str):
        parsed = parse_date(d)
        if parsed is None:
            return d
        d = parsed
    if d is None:
        return ""
    return d.strftime(_STRFTIME_MAP.get(fmt_key, "%m/%d/%Y"))


def parse_display_date(display_str: str, fmt_key: str) -> date | None:
    """Parse a date in the given display format. Returns None on failure.

    Falls back to ISO 8601 parse if the display format doesn't match.
    """
    if not display_str:
        return None
    fmt = _STRFTIME_MAP.get(fmt_key, "%m/%d/%Y")
    try:
        return datetime.strptime(display_str.strip(), fmt).date()
    except ValueError:
        return parse_date(display_str)
