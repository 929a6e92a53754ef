from datetime import datetime, timedelta
from typing import Optional

from ..config import PREDICTION_CUTOFF_MINUTES
from ..database import as_utc, utcnow
from ..models.match import Match


def prediction_deadline(match_date: datetime, cutoff_minutes: int = PREDICTION_CUTOFF_MINUTES) -> datetime:
    """Moment predictions close for a kickoff at ``match_date``."""
    return as_utc(match_date) - timedelta(minutes=cutoff_minutes)


def can_predict(
    match_date: datetime,
    now: datetime,
    cutoff_minutes: int = PREDICTION_CUTOFF_MINUTES
) -> bool:
    """
    True while predictions are open: strictly before ``cutoff_minutes`` ahead of kickoff.

    Exactly on the deadline is already closed.
    """
    return as_utc(now) < prediction_deadline(match_date, cutoff_minutes)


def is_match_open(match: Match, now: Optional[datetime] = None) -> bool:
    """Finished matches are closed regardless of their kickoff time."""
    if match.is_finished:
        return False
    return can_predict(match.match_date, now or utcnow())
