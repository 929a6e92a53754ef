from typing import Any, Dict, List, Optional

from sqlmodel import Session, col, func, select

from ..database import fallback_on_unavailable
from ..models.match import Match
from ..models.prediction import Prediction
from ..models.user import User
from ..models.user_score import UserScore


def _zero_score(user_id: Optional[int] = None) -> Dict[str, Any]:
    return {
        "user_id": user_id,
        "total_points": 0,
        "correct_results": 0,
        "correct_scores": 0,
        "total_predictions": 0,
    }


@fallback_on_unavailable(list)
def list_leaderboard(db: Session, limit: int = 100) -> List[Dict[str, Any]]:
    """
    Ranked user scores.

    Ordered by total points, ties broken by the lower user id so the order
    is stable between calls.
    """
    statement = (
        select(UserScore, User.username, User.name, User.profile_photo)
        .join(User, User.id == UserScore.user_id)
        .order_by(col(UserScore.total_points).desc(), UserScore.user_id)
        .limit(limit)
    )
    results = db.exec(statement).all()

    return [
        {
            "rank": i + 1,
            "user_id": score.user_id,
            "username": username,
            "name": name,
            "profile_photo": profile_photo,
            "total_points": score.total_points,
            "correct_results": score.correct_results,
            "correct_scores": score.correct_scores,
            "total_predictions": score.total_predictions,
        }
        for i, (score, username, name, profile_photo) in enumerate(results)
    ]


def user_score(db: Session, user_id: int) -> Dict[str, Any]:
    """Aggregate for one user; all zeros if nothing has been scored yet."""
    score = _find_score(db, user_id)
    if not score:
        return _zero_score(user_id)

    return {
        "user_id": user_id,
        "total_points": score.total_points,
        "correct_results": score.correct_results,
        "correct_scores": score.correct_scores,
        "total_predictions": score.total_predictions,
    }


@fallback_on_unavailable(lambda: None)
def _find_score(db: Session, user_id: int) -> Optional[UserScore]:
    return db.exec(select(UserScore).where(UserScore.user_id == user_id)).first()


@fallback_on_unavailable(lambda: None)
def weekly_winner(db: Session, week: int) -> Optional[Dict[str, Any]]:
    """Best scorer of one gameweek, or None while nobody has points that week."""
    weekly_points = func.sum(Prediction.points_earned)
    statement = (
        select(User.id, User.username, User.name, User.profile_photo, weekly_points.label("weekly_points"))
        .join(Prediction, Prediction.user_id == User.id)
        .join(Match, Match.id == Prediction.match_id)
        .where(Match.week == week, Match.is_finished == True, col(Prediction.points_earned).is_not(None))
        .group_by(User.id, User.username, User.name, User.profile_photo)
        .having(weekly_points > 0)
        .order_by(weekly_points.desc(), User.id)
        .limit(1)
    )
    row = db.exec(statement).first()
    if not row:
        return None

    user_id, username, name, profile_photo, points = row
    return {
        "week": week,
        "user_id": user_id,
        "username": username,
        "name": name,
        "profile_photo": profile_photo,
        "weekly_points": points,
    }
