"""Date manipulation utilities"""

from datetime import date, datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    """Timezone-aware current UTC time"""
    return datetime.now(timezone.utc)


def days_until(due_date: date, today: Optional[date] = None) -> int:
    """Whole days from today to due_date; negative once the date has passed"""
    today = today or date.today()
    return (due_date - today).days


def is_valid_period(period: str) -> bool:
    """Check a filing period in YYYY-MM form"""
    try:
        datetime.strptime(period, "%Y-%m")
    except ValueError:
        return False
    return len(period) == 7
