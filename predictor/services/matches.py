from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import delete
from sqlmodel import Session, col, select

from ..database import as_utc, fallback_on_unavailable, utcnow
from ..errors import NotFound, ValidationError
from ..logging import get_logger
from ..models.comment import Comment
from ..models.match import Match
from ..models.prediction import Prediction
from ..models.team_stat import FORM_ALPHABET, FORM_LENGTH, TeamStat
from .scoring import clear_match_points, recompute_user_scores, score_match
from .window import is_match_open

log = get_logger(__name__)

MATCH_FIELDS = ("home_team", "away_team", "match_date", "week", "day", "home_score", "away_score", "is_finished")


def validate_form(form: str) -> str:
    """A form string is exactly five results out of G (win), B (draw), M (loss)."""
    form = form.upper()
    if len(form) != FORM_LENGTH or not set(form) <= FORM_ALPHABET:
        raise ValidationError(f"Form must be {FORM_LENGTH} characters of G, B or M")
    return form


def _validate_scores(home_score: Optional[int], away_score: Optional[int]) -> None:
    if (home_score is None) != (away_score is None):
        raise ValidationError("Home and away score must be set together")
    if home_score is not None and (home_score < 0 or away_score < 0):
        raise ValidationError("Scores cannot be negative")


def _forms_by_match(db: Session, match_ids: List[int]) -> Dict[int, Dict[str, str]]:
    if not match_ids:
        return {}
    stats = db.exec(select(TeamStat).where(col(TeamStat.match_id).in_(match_ids))).all()
    forms: Dict[int, Dict[str, str]] = {}
    for stat in stats:
        forms.setdefault(stat.match_id, {})[stat.team_name] = stat.last_five_form
    return forms


def _enrich(matches: List[Match], db: Session) -> List[Dict[str, Any]]:
    forms = _forms_by_match(db, [m.id for m in matches])
    now = utcnow()
    return [
        {
            **match.model_dump(),
            "home_form": forms.get(match.id, {}).get(match.home_team),
            "away_form": forms.get(match.id, {}).get(match.away_team),
            "can_predict": is_match_open(match, now),
        }
        for match in matches
    ]


@fallback_on_unavailable(list)
def list_matches(db: Session) -> List[Dict[str, Any]]:
    """All matches, latest kickoff first, each with both teams' form."""
    matches = db.exec(select(Match).order_by(Match.match_date.desc(), Match.id.desc())).all()
    return _enrich(matches, db)


@fallback_on_unavailable(list)
def matches_by_week(db: Session, week: int) -> List[Dict[str, Any]]:
    matches = db.exec(select(Match).where(Match.week == week).order_by(Match.match_date, Match.id)).all()
    return _enrich(matches, db)


def get_match(db: Session, match_id: int) -> Match:
    match = db.get(Match, match_id)
    if not match:
        raise NotFound("Match not found")
    return match


@fallback_on_unavailable(lambda: None)
def _find_match_with_stats(db: Session, match_id: int) -> Optional[Dict[str, Any]]:
    match = db.get(Match, match_id)
    if not match:
        return None
    stats = db.exec(select(TeamStat).where(TeamStat.match_id == match_id)).all()
    return {"match": _enrich([match], db)[0], "stats": [stat.model_dump() for stat in stats]}


def get_match_with_stats(db: Session, match_id: int) -> Dict[str, Any]:
    """Match with its team stats; an unreachable store reads as a missing match."""
    details = _find_match_with_stats(db, match_id)
    if details is None:
        raise NotFound("Match not found")
    return details


def _set_form(db: Session, match: Match, team_name: str, form: str) -> None:
    statement = select(TeamStat).where(TeamStat.match_id == match.id, TeamStat.team_name == team_name)
    stat = db.exec(statement).first()
    if stat:
        stat.last_five_form = form
        stat.updated_at = utcnow()
    else:
        stat = TeamStat(match_id=match.id, team_name=team_name, last_five_form=form)
    db.add(stat)


def _rename_stats(db: Session, match: Match, renames: Dict[str, str]) -> None:
    """Move team forms over to renamed teams."""
    stats = db.exec(select(TeamStat).where(TeamStat.match_id == match.id)).all()
    moved = [(renames[stat.team_name], stat.last_five_form) for stat in stats if stat.team_name in renames]
    if not moved:
        return

    # Delete first so a home/away swap never trips the (match, team) constraint
    for stat in stats:
        if stat.team_name in renames:
            db.delete(stat)
    db.flush()

    for team_name, form in moved:
        db.add(TeamStat(match_id=match.id, team_name=team_name, last_five_form=form))


def create_match(
    db: Session,
    home_team: str,
    away_team: str,
    match_date: datetime,
    week: int,
    day: str,
    home_form: Optional[str] = None,
    away_form: Optional[str] = None
) -> Match:
    """Create a fixture and its team stats in one transaction."""
    if home_form is not None:
        home_form = validate_form(home_form)
    if away_form is not None:
        away_form = validate_form(away_form)

    match = Match(
        home_team=home_team,
        away_team=away_team,
        match_date=as_utc(match_date),
        week=week,
        day=day,
        is_finished=False
    )
    # One commit for the match and its stats
    db.add(match)
    db.flush()

    if home_form:
        db.add(TeamStat(match_id=match.id, team_name=home_team, last_five_form=home_form))
    if away_form:
        db.add(TeamStat(match_id=match.id, team_name=away_team, last_five_form=away_form))

    db.commit()
    db.refresh(match)
    log.info("match_created", match_id=match.id, home_team=home_team, away_team=away_team, week=week)
    return match


def update_match(
    db: Session,
    match_id: int,
    changes: Dict[str, Any],
    home_form: Optional[str] = None,
    away_form: Optional[str] = None
) -> Match:
    """
    Apply a partial update to a match.

    A match that ends up finished with a score has all its predictions
    rescored, whether it just finished or its score was corrected. A match
    that is un-finished loses its points again.
    """
    match = get_match(db, match_id)
    was_finished = match.is_finished

    unknown = set(changes) - set(MATCH_FIELDS)
    if unknown:
        raise ValidationError(f"Unknown match fields: {', '.join(sorted(unknown))}")

    if home_form is not None:
        home_form = validate_form(home_form)
    if away_form is not None:
        away_form = validate_form(away_form)

    home_score = changes.get("home_score", match.home_score)
    away_score = changes.get("away_score", match.away_score)
    _validate_scores(home_score, away_score)

    is_finished = changes.get("is_finished", match.is_finished)
    if is_finished and home_score is None:
        raise ValidationError("A finished match needs a final score")

    renames = {
        getattr(match, side): changes[side]
        for side in ("home_team", "away_team")
        if side in changes and changes[side] != getattr(match, side)
    }

    for field, value in changes.items():
        if field == "match_date":
            value = as_utc(value)
        setattr(match, field, value)
    match.updated_at = utcnow()
    db.add(match)

    if renames:
        _rename_stats(db, match, renames)
    if home_form:
        _set_form(db, match, match.home_team, home_form)
    if away_form:
        _set_form(db, match, match.away_team, away_form)

    if match.is_finished:
        score_match(db, match)
    elif was_finished:
        clear_match_points(db, match)
    else:
        db.commit()

    db.refresh(match)
    log.info("match_updated", match_id=match.id, fields=sorted(changes), is_finished=match.is_finished)
    return match


def delete_match(db: Session, match_id: int) -> None:
    """Delete a match with its team stats, predictions and comments."""
    match = get_match(db, match_id)

    affected_users = set(db.exec(select(Prediction.user_id).where(Prediction.match_id == match_id)).all())

    db.exec(delete(TeamStat).where(col(TeamStat.match_id) == match_id))
    db.exec(delete(Prediction).where(col(Prediction.match_id) == match_id))
    db.exec(delete(Comment).where(col(Comment.match_id) == match_id))
    db.delete(match)
    db.flush()

    recompute_user_scores(db, affected_users)
    db.commit()

    log.info("match_deleted", match_id=match_id, affected_users=len(affected_users))
