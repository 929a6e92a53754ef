from typing import Optional
from fastapi import APIRouter, Depends, File, Request, Response, UploadFile
from pydantic import BaseModel, Field
from sqlmodel import Session

from ..config import MAX_PHOTO_BYTES, SESSION_COOKIE_NAME, SESSION_EXPIRE_DAYS
from ..database import get_session
from ..dependencies import get_current_user, get_photo_storage, require_user
from ..logging import get_logger
from ..models.user import User
from ..services.auth import authenticate_user, create_session, create_user, delete_session
from ..services.storage import PhotoStorage, store_profile_photo
from ..services.users import public_user, set_profile_photo

router = APIRouter(prefix="/api/auth", tags=["auth"])
log = get_logger(__name__)


class RegisterRequest(BaseModel):
    username: str = Field(min_length=3, max_length=50)
    password: str = Field(min_length=6, max_length=72)
    name: Optional[str] = Field(default=None, max_length=100)


class LoginRequest(BaseModel):
    username: str
    password: str


def _set_session_cookie(response: Response, session_token: str) -> None:
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=session_token,
        httponly=True,
        max_age=SESSION_EXPIRE_DAYS * 24 * 60 * 60,
        samesite="lax"
    )


@router.post("/register")
async def register(
    payload: RegisterRequest,
    response: Response,
    db: Session = Depends(get_session)
):
    """Create a local account and sign it in."""
    user = create_user(db, payload.username, payload.password, name=payload.name)
    session = create_session(db, user.id)
    _set_session_cookie(response, session.session_token)
    return {"success": True, "user": public_user(user)}


@router.post("/login")
async def login(
    payload: LoginRequest,
    response: Response,
    db: Session = Depends(get_session)
):
    user = authenticate_user(db, payload.username, payload.password)
    session = create_session(db, user.id)
    _set_session_cookie(response, session.session_token)
    return {"success": True, "user": public_user(user)}


@router.post("/logout")
async def logout(
    request: Request,
    response: Response,
    db: Session = Depends(get_session)
):
    session_token = request.cookies.get(SESSION_COOKIE_NAME)
    if session_token:
        delete_session(db, session_token)

    response.delete_cookie(key=SESSION_COOKIE_NAME)
    return {"success": True}


@router.get("/me")
async def me(current_user: Optional[User] = Depends(get_current_user)):
    return public_user(current_user) if current_user else None


@router.post("/profile-photo")
async def upload_profile_photo(
    file: UploadFile = File(...),
    current_user: User = Depends(require_user),
    storage: PhotoStorage = Depends(get_photo_storage),
    db: Session = Depends(get_session)
):
    """Store an uploaded image and make it the user's profile photo."""
    data = await file.read(MAX_PHOTO_BYTES + 1)
    url = store_profile_photo(storage, file.filename or "", file.content_type or "", data)
    set_profile_photo(db, current_user, url)

    log.info("profile_photo_updated", user_id=current_user.id, url=url)
    return {"url": url}
