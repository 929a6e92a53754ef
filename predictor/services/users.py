from typing import Any, Dict, List

from sqlalchemy import delete
from sqlmodel import Session, col, select

from ..database import fallback_on_unavailable, utcnow
from ..errors import NotFound, ValidationError
from ..logging import get_logger
from ..models.comment import Comment
from ..models.prediction import Prediction
from ..models.session import Session as UserSession
from ..models.user import User
from ..models.user_score import UserScore

log = get_logger(__name__)


def public_user(user: User) -> Dict[str, Any]:
    """User fields safe to send to the browser."""
    return {
        "id": user.id,
        "username": user.username,
        "name": user.name,
        "role": user.role,
        "profile_photo": user.profile_photo,
        "created_at": user.created_at,
        "last_signed_in": user.last_signed_in,
    }


@fallback_on_unavailable(list)
def list_users(db: Session) -> List[Dict[str, Any]]:
    """All users with their score aggregates, newest account first."""
    statement = (
        select(User, UserScore)
        .outerjoin(UserScore, UserScore.user_id == User.id)
        .order_by(User.created_at.desc(), User.id.desc())
    )
    return [
        {
            **public_user(user),
            "total_points": score.total_points if score else 0,
            "total_predictions": score.total_predictions if score else 0,
        }
        for user, score in db.exec(statement).all()
    ]


def delete_user(db: Session, user_id: int, acting_admin: User) -> None:
    """Delete a user with their sessions, predictions, comments and score."""
    if user_id == acting_admin.id:
        raise ValidationError("You cannot delete your own account")

    user = db.get(User, user_id)
    if not user:
        raise NotFound("User not found")

    db.exec(delete(UserSession).where(col(UserSession.user_id) == user_id))
    db.exec(delete(Prediction).where(col(Prediction.user_id) == user_id))
    db.exec(delete(Comment).where(col(Comment.user_id) == user_id))
    db.exec(delete(UserScore).where(col(UserScore.user_id) == user_id))
    db.delete(user)
    db.commit()

    log.info("user_deleted", user_id=user_id, username=user.username, deleted_by=acting_admin.id)


def set_profile_photo(db: Session, user: User, url: str) -> User:
    user.profile_photo = url
    user.updated_at = utcnow()
    db.add(user)
    db.commit()
    db.refresh(user)
    return user
