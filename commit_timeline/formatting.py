"""Display text helpers (English, 12-hour clock)."""

from datetime import datetime


def _short_time(moment: datetime) -> str:
    hour = moment.hour % 12 or 12
    suffix = "AM" if moment.hour < 12 else "PM"
    return f"{hour}:{moment.minute:02d} {suffix}"


def format_long_datetime(moment: datetime) -> str:
    """Long date, short time: 'February 12, 2024 at 3:44 PM'."""
    return f"{moment.strftime('%B')} {moment.day}, {moment.year} at {_short_time(moment)}"


def format_full_datetime(moment: datetime) -> str:
    """Full date, short time: 'Monday, February 12, 2024 at 3:44 PM'."""
    return f"{moment.strftime('%A')}, {format_long_datetime(moment)}"


def format_percent(proportion: float) -> str:
    """Percentage with one decimal place: 0.4567 -> '45.7%'."""
    return f"{proportion * 100:.1f}%"


def format_hour_tick(hour: float) -> str:
    return f"{int(hour) % 24:02d}:00"
