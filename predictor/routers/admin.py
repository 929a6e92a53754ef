from fastapi import APIRouter, Depends
from sqlmodel import Session

from ..database import get_session
from ..dependencies import require_admin
from ..models.user import User
from ..services.scoring import rescore_all, reset_scores
from ..services.users import delete_user, list_users

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.get("/users")
async def admin_users(
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_session)
):
    return list_users(db)


@router.delete("/users/{user_id}")
async def admin_delete_user(
    user_id: int,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_session)
):
    delete_user(db, user_id, current_user)
    return {"success": True}


@router.post("/scores/reset")
async def admin_reset_scores(
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_session)
):
    """Wipe all user scores; follow with /scores/rescore to rebuild them."""
    removed = reset_scores(db)
    return {"success": True, "removed": removed}


@router.post("/scores/rescore")
async def admin_rescore(
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_session)
):
    matches = rescore_all(db)
    return {"success": True, "matches": matches}
