"""User listing and lookup routes."""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from . import schemas
from .auth import get_current_user_id
from .database import get_db
from .models import User

router = APIRouter(prefix="/users", tags=["users"])


def get_user_or_404(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.get("", response_model=List[schemas.UserOut])
def list_users(name: Optional[str] = None, db: Session = Depends(get_db), _: int = Depends(get_current_user_id)):
    query = db.query(User)
    if name:
        query = query.filter(User.name.ilike(f"%{name}%"))
    return query.order_by(User.id).all()


@router.get("/me", response_model=schemas.UserOut)
def get_me(db: Session = Depends(get_db), current_user_id: int = Depends(get_current_user_id)):
    return get_user_or_404(db, current_user_id)


@router.get("/{user_id}", response_model=schemas.UserOut)
def get_user(user_id: int, db: Session = Depends(get_db), _: int = Depends(get_current_user_id)):
    return get_user_or_404(db, user_id)
