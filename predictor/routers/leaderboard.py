from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from ..database import get_session
from ..dependencies import require_user
from ..models.user import User
from ..services.leaderboard import list_leaderboard, user_score, weekly_winner

router = APIRouter(prefix="/api/leaderboard", tags=["leaderboard"])


@router.get("")
async def leaderboard(
    limit: int = Query(default=100, ge=1, le=500),
    db: Session = Depends(get_session)
):
    return list_leaderboard(db, limit)


@router.get("/me")
async def my_score(
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
):
    return user_score(db, current_user.id)


@router.get("/user/{user_id}")
async def score_for_user(user_id: int, db: Session = Depends(get_session)):
    return user_score(db, user_id)


@router.get("/week/{week}")
async def winner_of_week(week: int, db: Session = Depends(get_session)):
    """Top scorer of a gameweek, null while nobody has points."""
    return weekly_winner(db, week)
