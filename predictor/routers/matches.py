from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlmodel import Session

from ..database import get_session
from ..dependencies import require_admin
from ..models.user import User
from ..services.matches import (
    create_match,
    delete_match,
    get_match_with_stats,
    list_matches,
    matches_by_week,
    update_match,
)

router = APIRouter(prefix="/api/matches", tags=["matches"])

NULLABLE_FIELDS = ("home_score", "away_score")


class MatchCreate(BaseModel):
    home_team: str = Field(min_length=1, max_length=100)
    away_team: str = Field(min_length=1, max_length=100)
    match_date: datetime
    week: int = Field(ge=1)
    day: str = Field(min_length=1, max_length=50)
    home_form: Optional[str] = None
    away_form: Optional[str] = None


class MatchUpdate(BaseModel):
    home_team: Optional[str] = Field(default=None, min_length=1, max_length=100)
    away_team: Optional[str] = Field(default=None, min_length=1, max_length=100)
    match_date: Optional[datetime] = None
    week: Optional[int] = Field(default=None, ge=1)
    day: Optional[str] = Field(default=None, min_length=1, max_length=50)
    home_score: Optional[int] = None
    away_score: Optional[int] = None
    is_finished: Optional[bool] = None
    home_form: Optional[str] = None
    away_form: Optional[str] = None


@router.get("")
async def get_matches(db: Session = Depends(get_session)):
    """All matches with both teams' recent form."""
    return list_matches(db)


@router.get("/week/{week}")
async def get_matches_for_week(week: int, db: Session = Depends(get_session)):
    return matches_by_week(db, week)


@router.get("/{match_id}")
async def get_match_detail(match_id: int, db: Session = Depends(get_session)):
    """Match with its team stats."""
    return get_match_with_stats(db, match_id)


@router.post("")
async def post_match(
    payload: MatchCreate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_session)
):
    return create_match(
        db,
        home_team=payload.home_team,
        away_team=payload.away_team,
        match_date=payload.match_date,
        week=payload.week,
        day=payload.day,
        home_form=payload.home_form,
        away_form=payload.away_form
    )


@router.patch("/{match_id}")
async def patch_match(
    match_id: int,
    payload: MatchUpdate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_session)
):
    """Partial update; entering a final score rescores the match."""
    changes = payload.model_dump(exclude_unset=True, exclude={"home_form", "away_form"})
    # Only the scores may be cleared with an explicit null
    changes = {
        field: value for field, value in changes.items()
        if value is not None or field in NULLABLE_FIELDS
    }
    return update_match(
        db,
        match_id,
        changes,
        home_form=payload.home_form,
        away_form=payload.away_form
    )


@router.delete("/{match_id}")
async def remove_match(
    match_id: int,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_session)
):
    delete_match(db, match_id)
    return {"success": True}
