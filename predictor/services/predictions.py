from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.dialects import postgresql, sqlite
from sqlmodel import Session, func, select

from ..database import as_utc, fallback_on_unavailable, utcnow
from ..errors import NotFound, ValidationError
from ..models.match import Match
from ..models.prediction import RESULTS, Prediction
from ..models.user import User
from .window import can_predict

_INSERTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


def _upsert_statement(db: Session, values: Dict[str, Any]):
    """INSERT ... ON CONFLICT (user_id, match_id) DO UPDATE for the bound dialect."""
    dialect = db.get_bind().dialect.name
    insert = _INSERTS.get(dialect)
    if insert is None:
        raise RuntimeError(f"Prediction upsert is not supported on {dialect}")

    statement = insert(Prediction.__table__).values(**values)
    return statement.on_conflict_do_update(
        index_elements=["user_id", "match_id"],
        set_={
            "predicted_home_score": statement.excluded.predicted_home_score,
            "predicted_away_score": statement.excluded.predicted_away_score,
            "predicted_result": statement.excluded.predicted_result,
            "updated_at": statement.excluded.updated_at,
        }
    )


def submit_prediction(
    db: Session,
    user_id: int,
    match_id: int,
    home_score: int,
    away_score: int,
    result: str,
    now: Optional[datetime] = None
) -> Prediction:
    """
    Create or overwrite the user's prediction for a match.

    ``result`` is stored as given even when it disagrees with the score pair.
    Rejected once the prediction window has closed.
    """
    if home_score < 0 or away_score < 0:
        raise ValidationError("Scores cannot be negative")
    if result not in RESULTS:
        raise ValidationError(f"Result must be one of: {', '.join(RESULTS)}")

    match = db.get(Match, match_id)
    if not match:
        raise NotFound("Match not found")

    now = as_utc(now) if now else utcnow()
    if match.is_finished or not can_predict(match.match_date, now):
        raise ValidationError("Predictions are closed for this match")

    db.exec(_upsert_statement(db, {
        "user_id": user_id,
        "match_id": match_id,
        "predicted_home_score": home_score,
        "predicted_away_score": away_score,
        "predicted_result": result,
        "points_earned": None,
        "is_correct_result": False,
        "is_exact_score": False,
        "created_at": now,
        "updated_at": now,
    }))
    db.commit()

    return get_user_prediction(db, user_id, match_id)


@fallback_on_unavailable(lambda: None)
def get_user_prediction(db: Session, user_id: int, match_id: int) -> Optional[Prediction]:
    statement = select(Prediction).where(
        Prediction.user_id == user_id,
        Prediction.match_id == match_id
    )
    return db.exec(statement).first()


def _with_authors(rows) -> List[Dict[str, Any]]:
    return [
        {
            **prediction.model_dump(),
            "username": username,
            "name": name,
            "profile_photo": profile_photo,
        }
        for prediction, username, name, profile_photo in rows
    ]


def _prediction_query():
    return (
        select(Prediction, User.username, User.name, User.profile_photo)
        .join(User, User.id == Prediction.user_id)
    )


@fallback_on_unavailable(list)
def get_for_user(db: Session, user_id: int) -> List[Dict[str, Any]]:
    """All predictions of one user, with the author's display fields."""
    statement = _prediction_query().where(Prediction.user_id == user_id).order_by(Prediction.match_id)
    return _with_authors(db.exec(statement).all())


@fallback_on_unavailable(list)
def get_for_match(db: Session, match_id: int) -> List[Dict[str, Any]]:
    """All predictions on one match, with the author's display fields."""
    statement = _prediction_query().where(Prediction.match_id == match_id).order_by(Prediction.created_at, Prediction.id)
    return _with_authors(db.exec(statement).all())


@fallback_on_unavailable(list)
def list_all(db: Session) -> List[Dict[str, Any]]:
    """Every prediction, newest first (admin view)."""
    statement = _prediction_query().order_by(Prediction.created_at.desc(), Prediction.id.desc())
    return _with_authors(db.exec(statement).all())


def _empty_stats() -> Dict[str, Any]:
    return {
        "total": 0,
        "home_wins": 0,
        "draws": 0,
        "away_wins": 0,
        "avg_home_score": 0.0,
        "avg_away_score": 0.0,
    }


@fallback_on_unavailable(_empty_stats)
def match_stats(db: Session, match_id: int) -> Dict[str, Any]:
    """Distribution of predicted results and mean predicted score for a match."""
    counts = db.exec(
        select(Prediction.predicted_result, func.count(Prediction.id))
        .where(Prediction.match_id == match_id)
        .group_by(Prediction.predicted_result)
    ).all()
    by_result = {result: count for result, count in counts}

    total = sum(by_result.values())
    stats = _empty_stats()
    stats.update(
        total=total,
        home_wins=by_result.get("home", 0),
        draws=by_result.get("draw", 0),
        away_wins=by_result.get("away", 0),
    )

    if total:
        avg_home, avg_away = db.exec(
            select(func.avg(Prediction.predicted_home_score), func.avg(Prediction.predicted_away_score))
            .where(Prediction.match_id == match_id)
        ).one()
        stats["avg_home_score"] = round(float(avg_home), 1)
        stats["avg_away_score"] = round(float(avg_away), 1)

    return stats
