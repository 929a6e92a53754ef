from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlmodel import Session

from ..database import get_session
from ..dependencies import require_admin, require_user
from ..models.user import User
from ..services import predictions as prediction_service

router = APIRouter(prefix="/api/predictions", tags=["predictions"])


class PredictionCreate(BaseModel):
    match_id: int
    predicted_home_score: int
    predicted_away_score: int
    predicted_result: str  # home, draw, away


@router.post("")
async def submit_prediction(
    payload: PredictionCreate,
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
):
    """Create or update the current user's prediction for a match."""
    return prediction_service.submit_prediction(
        db,
        user_id=current_user.id,
        match_id=payload.match_id,
        home_score=payload.predicted_home_score,
        away_score=payload.predicted_away_score,
        result=payload.predicted_result
    )


@router.get("/mine")
async def my_predictions(
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
):
    return prediction_service.get_for_user(db, current_user.id)


@router.get("/match/{match_id}/mine")
async def my_prediction_for_match(
    match_id: int,
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
):
    """The current user's prediction for one match, or null."""
    return prediction_service.get_user_prediction(db, current_user.id, match_id)


@router.get("/match/{match_id}/stats")
async def prediction_stats(match_id: int, db: Session = Depends(get_session)):
    return prediction_service.match_stats(db, match_id)


@router.get("/user/{user_id}")
async def predictions_by_user(user_id: int, db: Session = Depends(get_session)):
    return prediction_service.get_for_user(db, user_id)


@router.get("/match/{match_id}")
async def predictions_by_match(
    match_id: int,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_session)
):
    return prediction_service.get_for_match(db, match_id)


@router.get("")
async def all_predictions(
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_session)
):
    return prediction_service.list_all(db)
