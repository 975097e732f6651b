"""Authentication and authorization utilities and routes."""
from datetime import datetime, timedelta
from typing import Dict, Optional

import bcrypt
import secrets
from fastapi import APIRouter, Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from . import schemas
from .config import LOCKOUT_ATTEMPTS, LOCKOUT_MINUTES, TOKEN_EXPIRY_MINUTES
from .database import get_db
from .logging_config import configure_logging
from .models import User
from ..shared.utils import is_password_strong

router = APIRouter(prefix="/auth", tags=["auth"])
logger = configure_logging()

# In-memory token store: token -> {"user_id": int, "expires": datetime}
TOKEN_STORE: Dict[str, Dict[str, datetime | int]] = {}


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


@router.post("/register", response_model=schemas.UserOut, status_code=201)
def register(payload: schemas.RegisterRequest, db: Session = Depends(get_db)):
    if not is_password_strong(payload.password):
        raise HTTPException(status_code=400, detail="Password does not meet policy requirements")
    if db.query(User).filter(User.login == payload.login).first():
        raise HTTPException(status_code=400, detail="Login already exists")

    user = User(
        login=payload.login,
        name=payload.name,
        image=payload.image,
        password_hash=hash_password(payload.password),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("REGISTER_SUCCESS login=%s user_id=%s", user.login, user.id)
    return user


def _register_failed_attempt(db: Session, user: User) -> None:
    user.failed_login_attempts = (user.failed_login_attempts or 0) + 1
    if user.failed_login_attempts >= LOCKOUT_ATTEMPTS:
        user.lock_until = datetime.utcnow() + timedelta(minutes=LOCKOUT_MINUTES)
        logger.warning("ACCOUNT_BLOCKED login=%s locked_until=%s", user.login, user.lock_until)
    db.commit()


@router.post("/login", response_model=schemas.LoginResponse)
def login(payload: schemas.LoginRequest, db: Session = Depends(get_db)):
    user: Optional[User] = db.query(User).filter(User.login == payload.login).first()
    if not user:
        logger.info("LOGIN_FAIL login=%s reason=not_found", payload.login)
        raise HTTPException(status_code=401, detail="Invalid credentials")

    if user.lock_until and user.lock_until > datetime.utcnow():
        logger.warning("ACCOUNT_BLOCKED login=%s locked_until=%s", payload.login, user.lock_until)
        raise HTTPException(status_code=403, detail=f"Account locked until {user.lock_until}")

    if not bcrypt.checkpw(payload.password.encode(), user.password_hash.encode()):
        _register_failed_attempt(db, user)
        logger.info("LOGIN_FAIL login=%s reason=bad_password", payload.login)
        raise HTTPException(status_code=401, detail="Invalid credentials")

    user.failed_login_attempts = 0
    user.lock_until = None
    db.commit()

    token = secrets.token_urlsafe(32)
    TOKEN_STORE[token] = {"user_id": user.id, "expires": datetime.utcnow() + timedelta(minutes=TOKEN_EXPIRY_MINUTES)}
    logger.info("LOGIN_SUCCESS login=%s user_id=%s", user.login, user.id)
    return schemas.LoginResponse(token=token, user=schemas.UserOut.model_validate(user))


def _extract_token(header: str | None) -> str:
    if not header or not header.startswith("Bearer "):
        logger.warning("UNAUTHORIZED_ACCESS reason=missing_token")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing token")
    return header.split(" ", 1)[1]


def _validate_token(header: str | None) -> int:
    token = _extract_token(header)
    token_data = TOKEN_STORE.get(token)
    if not token_data:
        logger.warning("UNAUTHORIZED_ACCESS reason=unknown_token")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    if token_data["expires"] < datetime.utcnow():
        logger.warning("UNAUTHORIZED_ACCESS reason=expired_token")
        TOKEN_STORE.pop(token, None)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token expired")
    return int(token_data["user_id"])


def get_current_user_id(authorization: str | None = Header(default=None)) -> int:
    """FastAPI dependency returning authenticated user's id."""
    return _validate_token(authorization)


@router.post("/logout")
def logout(authorization: str | None = Header(default=None)):
    user_id = _validate_token(authorization)
    TOKEN_STORE.pop(_extract_token(authorization), None)
    logger.info("LOGOUT user_id=%s", user_id)
    return {"message": "Logged out"}
