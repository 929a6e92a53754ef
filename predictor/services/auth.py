import secrets
from datetime import timedelta
from typing import Optional

import bcrypt
from sqlmodel import Session, select

from ..config import SESSION_EXPIRE_DAYS
from ..database import utcnow
from ..errors import Conflict, Unauthorized, ValidationError
from ..logging import get_logger
from ..models.session import Session as UserSession
from ..models.user import User

log = get_logger(__name__)

USERNAME_MIN, USERNAME_MAX = 3, 50
PASSWORD_MIN, PASSWORD_MAX = 6, 72


def _password_bytes(password: str) -> bytes:
    # Bcrypt has a 72-byte limit on the password bytes
    return password.encode("utf-8")[:72]


def hash_password(password: str) -> str:
    """Hash a password using bcrypt. Truncates to 72 bytes for bcrypt compatibility."""
    return bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against a hash."""
    return bcrypt.checkpw(_password_bytes(plain_password), hashed_password.encode("utf-8"))


def create_session(db: Session, user_id: int) -> UserSession:
    """Create a new session for a user."""
    user_session = UserSession(
        user_id=user_id,
        session_token=secrets.token_urlsafe(32),
        expires_at=utcnow() + timedelta(days=SESSION_EXPIRE_DAYS)
    )
    db.add(user_session)
    db.commit()
    db.refresh(user_session)
    return user_session


def get_user_by_session_token(db: Session, session_token: str) -> Optional[User]:
    """Get user by session token if session is valid."""
    statement = select(UserSession).where(UserSession.session_token == session_token)
    user_session = db.exec(statement).first()

    if not user_session:
        return None

    if user_session.expires_at < utcnow():
        db.delete(user_session)
        db.commit()
        return None

    return db.get(User, user_session.user_id)


def delete_session(db: Session, session_token: str) -> bool:
    """Delete a session (logout)."""
    statement = select(UserSession).where(UserSession.session_token == session_token)
    user_session = db.exec(statement).first()

    if user_session:
        db.delete(user_session)
        db.commit()
        return True

    return False


def get_user_by_username(db: Session, username: str) -> Optional[User]:
    return db.exec(select(User).where(User.username == username)).first()


def create_user(
    db: Session,
    username: str,
    password: str,
    name: Optional[str] = None,
    is_admin: bool = False
) -> User:
    """Create a local user; the username must be free."""
    if not USERNAME_MIN <= len(username) <= USERNAME_MAX:
        raise ValidationError(f"Username must be {USERNAME_MIN}-{USERNAME_MAX} characters")
    if not PASSWORD_MIN <= len(password) <= PASSWORD_MAX:
        raise ValidationError(f"Password must be {PASSWORD_MIN}-{PASSWORD_MAX} characters")

    if get_user_by_username(db, username):
        raise Conflict("Username already exists")

    user = User(
        username=username,
        password_hash=hash_password(password),
        name=name or username,
        is_admin=is_admin
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    log.info("user_registered", user_id=user.id, username=username, is_admin=is_admin)
    return user


def authenticate_user(db: Session, username: str, password: str) -> User:
    """Authenticate a user by username and password."""
    user = get_user_by_username(db, username)

    if not user or not verify_password(password, user.password_hash):
        log.info("login_failed", username=username)
        raise Unauthorized("Invalid username or password")

    user.last_signed_in = utcnow()
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def ensure_admin(db: Session, username: str, password: str, name: Optional[str] = None) -> User:
    """Create the admin account, or promote an existing user to admin."""
    user = get_user_by_username(db, username)
    if user:
        if not user.is_admin:
            user.is_admin = True
            user.updated_at = utcnow()
            db.add(user)
            db.commit()
            db.refresh(user)
            log.info("user_promoted_to_admin", user_id=user.id, username=username)
        return user

    return create_user(db, username, password, name=name or "Admin User", is_admin=True)
