"""
Study Streak Calculation

A streak counts consecutive calendar days with at least one progress update.

Logic:
- First activity ever: streak starts at 1
- Last update was yesterday: streak continues (+1)
- Last update was earlier today: unchanged (repeat actions don't count twice)
- Anything else (gap of 2+ days, or a last update dated in the future): reset to 1

Calendar days are taken in a single configured timezone (STREAK_TIMEZONE,
UTC by default), never from elapsed hours. Naive datetimes are read as UTC.
"""

from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Optional
import logging

from bootcamp_tracker.config import get_timezone

logger = logging.getLogger(__name__)


def calendar_date(moment: datetime, tz: Optional[tzinfo] = None) -> date:
    """
    Calendar date of a timestamp in the streak timezone

    Args:
        moment: Timestamp (naive values are treated as UTC)
        tz: Timezone override (defaults to STREAK_TIMEZONE)

    Returns:
        The local calendar date
    """
    if tz is None:
        tz = get_timezone()
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(tz).date()


def compute_streak(
    previous_streak: int,
    last_updated: Optional[datetime],
    now: datetime,
    tz: Optional[tzinfo] = None
) -> int:
    """
    Derive the new streak for an update happening at `now`

    Args:
        previous_streak: Streak stored on the account
        last_updated: Timestamp of the previous update (None if never)
        now: Timestamp of the current update
        tz: Timezone override (defaults to STREAK_TIMEZONE)

    Returns:
        New streak value (always >= 1)
    """
    if last_updated is None:
        return 1

    last_day = calendar_date(last_updated, tz)
    today = calendar_date(now, tz)

    if last_day == today - timedelta(days=1):
        return previous_streak + 1

    if last_day == today:
        return previous_streak

    logger.debug(
        f"Streak reset: last activity {last_day.isoformat()}, "
        f"current {today.isoformat()}, previous streak {previous_streak}"
    )
    return 1
