from datetime import datetime, timezone
from typing import Optional

# Shared datetime helpers for the repository and the dashboard.

def ensure_timezone_aware(dt: datetime) -> datetime:
    """Ensures a datetime object is timezone-aware, assuming UTC if naive."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt

def time_ago(dt: Optional[datetime], now: Optional[datetime] = None) -> str:
    """Converts a datetime object to a human-readable string like '2h ago'."""
    if not dt: return "N/A"
    now = now or datetime.now(timezone.utc)
    diff = now - ensure_timezone_aware(dt)
    seconds = diff.total_seconds()
    if seconds < 60: return "Just now"
    if seconds < 3600: return f"{int(seconds / 60)}m ago"
    if seconds < 86400: return f"{int(seconds / 3600)}h ago"
    return f"{diff.days}d ago"

def format_amount(amount: float, currency: str = "R$") -> str:
    """Formats a reward amount the way the dashboard shows it, e.g. 'R$ 2,500'."""
    if float(amount).is_integer():
        return f"{currency} {int(amount):,}"
    return f"{currency} {amount:,.2f}"
