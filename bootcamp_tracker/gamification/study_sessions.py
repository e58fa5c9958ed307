"""
Study Timer Sessions

Pomodoro-style focus sessions are logged on the user document as
{date, duration, mode} entries, and their minutes are added to totalStudyTime.
"""

from datetime import datetime
from typing import Dict, List, Sequence, Tuple
import logging

from bootcamp_tracker.models.user import StudySession

logger = logging.getLogger(__name__)

FOCUS_MINUTES = 25
BREAK_MINUTES = 5
STUDY_MODES = ("focus", "break")
RECENT_SESSIONS_SHOWN = 5


def record_study_session(
    sessions: Sequence[StudySession],
    total_study_time: int,
    duration: int,
    now: datetime,
    mode: str = "focus"
) -> Tuple[List[StudySession], int]:
    """
    Append a session and add its minutes to the running total

    Args:
        sessions: Sessions already on the account (not modified)
        total_study_time: Current total, in minutes
        duration: Session length in minutes (> 0)
        now: When the session finished
        mode: 'focus' or 'break'

    Returns:
        (new session list, new total minutes)
    """
    if duration <= 0:
        raise ValueError(f"Study session duration must be positive, got {duration}")
    if mode not in STUDY_MODES:
        raise ValueError(f"Unknown study mode '{mode}'")

    session = StudySession(date=now, duration=duration, mode=mode)
    return [*sessions, session], total_study_time + duration


def summarize_study_time(
    sessions: Sequence[StudySession],
    total_study_time: int
) -> Dict[str, object]:
    """
    Study time summary for display

    Returns:
        {
            'total_minutes': int,
            'hours': int,
            'minutes': int,
            'display': str,  # "2 hr 5 min" or "45 min"
            'session_count': int,
            'recent_sessions': [dict]  # newest first
        }
    """
    hours, minutes = divmod(total_study_time, 60)
    display = f"{hours} hr {minutes} min" if hours > 0 else f"{total_study_time} min"

    recent = list(reversed(sessions))[:RECENT_SESSIONS_SHOWN]

    return {
        "total_minutes": total_study_time,
        "hours": hours,
        "minutes": minutes,
        "display": display,
        "session_count": len(sessions),
        "recent_sessions": [session.model_dump(mode="json") for session in recent],
    }
