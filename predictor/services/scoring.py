from typing import Iterable, Optional

from sqlalchemy import case, delete
from sqlmodel import Session, col, func, select

from ..database import utcnow
from ..logging import get_logger
from ..models.match import Match
from ..models.prediction import Prediction
from ..models.user_score import UserScore

log = get_logger(__name__)

EXACT_SCORE_POINTS = 3
CORRECT_RESULT_POINTS = 1


def determine_result(home_score: int, away_score: int) -> str:
    if home_score > away_score:
        return "home"
    if home_score < away_score:
        return "away"
    return "draw"


def calculate_points(prediction: Prediction, match: Match) -> dict:
    """
    Calculate points for a single prediction.

    Scoring:
    - Exact score: 3 points (counts as a correct result too)
    - Correct result (home win / draw / away win): 1 point
    - Anything else: 0 points

    The result is read from ``predicted_result``, not derived from the
    predicted score pair; the two are allowed to disagree.
    """
    if not match.has_score:
        return {"points": 0, "status": "pending", "outcome_correct": False, "score_correct": False}

    actual_result = determine_result(match.home_score, match.away_score)

    if (prediction.predicted_home_score == match.home_score and
            prediction.predicted_away_score == match.away_score):
        return {"points": EXACT_SCORE_POINTS, "status": "complete", "outcome_correct": True, "score_correct": True}

    if prediction.predicted_result == actual_result:
        return {"points": CORRECT_RESULT_POINTS, "status": "complete", "outcome_correct": True, "score_correct": False}

    return {"points": 0, "status": "complete", "outcome_correct": False, "score_correct": False}


def recompute_user_scores(db: Session, user_ids: Optional[Iterable[int]] = None) -> None:
    """
    Rebuild ``UserScore`` rows from scored predictions on finished matches.

    Aggregates are derived, never accumulated, so this can run any number
    of times. With ``user_ids`` only those users are rebuilt. Does not commit.
    """
    query = (
        select(
            Prediction.user_id,
            func.coalesce(func.sum(Prediction.points_earned), 0),
            func.sum(case((col(Prediction.is_correct_result), 1), else_=0)),
            func.sum(case((col(Prediction.is_exact_score), 1), else_=0)),
            func.count(Prediction.id)
        )
        .join(Match, Match.id == Prediction.match_id)
        .where(Match.is_finished == True, col(Prediction.points_earned).is_not(None))
        .group_by(Prediction.user_id)
    )
    existing_query = select(UserScore)

    if user_ids is not None:
        user_ids = set(user_ids)
        if not user_ids:
            return
        query = query.where(col(Prediction.user_id).in_(user_ids))
        existing_query = existing_query.where(col(UserScore.user_id).in_(user_ids))

    aggregates = {row[0]: row for row in db.exec(query).all()}
    existing = {score.user_id: score for score in db.exec(existing_query).all()}

    for user_id in set(aggregates) | set(existing):
        row = aggregates.get(user_id)
        score = existing.get(user_id)

        if row is None:
            # Nothing scored any more (e.g. the match was deleted)
            db.delete(score)
            continue

        if score is None:
            score = UserScore(user_id=user_id)

        score.total_points = row[1] or 0
        score.correct_results = row[2] or 0
        score.correct_scores = row[3] or 0
        score.total_predictions = row[4] or 0
        score.updated_at = utcnow()
        db.add(score)


def score_match(db: Session, match: Match) -> int:
    """
    Calculate and store points for all predictions on a finished match.

    Called whenever an admin enters or corrects a final score. Every
    prediction is re-evaluated from scratch, so correcting a score never
    double counts. Returns the number of predictions scored.
    """
    if not match.is_finished or not match.has_score:
        return 0

    predictions = db.exec(select(Prediction).where(Prediction.match_id == match.id)).all()

    for prediction in predictions:
        result = calculate_points(prediction, match)
        prediction.points_earned = result["points"]
        prediction.is_correct_result = result["outcome_correct"]
        prediction.is_exact_score = result["score_correct"]
        db.add(prediction)

    recompute_user_scores(db, {p.user_id for p in predictions})
    db.commit()

    log.info(
        "match_scored",
        match_id=match.id,
        home_score=match.home_score,
        away_score=match.away_score,
        predictions=len(predictions)
    )
    return len(predictions)


def clear_match_points(db: Session, match: Match) -> None:
    """Remove points from a match that is no longer finished."""
    predictions = db.exec(select(Prediction).where(Prediction.match_id == match.id)).all()

    for prediction in predictions:
        prediction.points_earned = None
        prediction.is_correct_result = False
        prediction.is_exact_score = False
        db.add(prediction)

    recompute_user_scores(db, {p.user_id for p in predictions})
    db.commit()

    log.info("match_points_cleared", match_id=match.id, predictions=len(predictions))


def reset_scores(db: Session) -> int:
    """
    Delete every ``UserScore`` row and clear per-prediction points.

    Administrative escape hatch; follow with ``rescore_all`` to rebuild.
    Returns the number of score rows removed.
    """
    removed = len(db.exec(select(UserScore.id)).all())
    db.exec(delete(UserScore))

    for prediction in db.exec(select(Prediction).where(col(Prediction.points_earned).is_not(None))).all():
        prediction.points_earned = None
        prediction.is_correct_result = False
        prediction.is_exact_score = False
        db.add(prediction)

    db.commit()

    log.warning("scores_reset", user_scores_removed=removed)
    return removed


def rescore_all(db: Session) -> int:
    """Score every finished match again. Returns the number of matches scored."""
    matches = db.exec(select(Match).where(Match.is_finished == True)).all()

    scored = 0
    for match in matches:
        if match.has_score:
            score_match(db, match)
            scored += 1

    log.info("rescore_all_completed", matches=scored)
    return scored
