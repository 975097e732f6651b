"""Friendship routes: requests, acceptance and status lookups."""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from . import schemas
from .auth import get_current_user_id
from .database import get_db
from .logging_config import configure_logging
from .models import Friendship, friendship_pair_key
from .users import get_user_or_404
from ..shared.dto import FriendStatus

router = APIRouter(prefix="/friends", tags=["friends"])
logger = configure_logging()


def find_friendship(db: Session, user_id: int, other_id: int) -> Optional[Friendship]:
    """Return the friendship between two users regardless of who asked."""
    return (
        db.query(Friendship)
        .filter(Friendship.pair_key == friendship_pair_key(user_id, other_id))
        .first()
    )


def _friend_out(friendship: Friendship, current_user_id: int) -> schemas.FriendOut:
    if friendship.status == FriendStatus.ACCEPTED:
        status = "accepted"
    elif friendship.requester_id == current_user_id:
        status = "pending_sent"
    else:
        status = "pending_received"
    other = friendship.addressee if friendship.requester_id == current_user_id else friendship.requester
    return schemas.FriendOut(
        id=friendship.id,
        user=schemas.UserOut.model_validate(other),
        status=status,
        added_at=friendship.created_at,
    )


def _get_pending_request(db: Session, friendship_id: int, current_user_id: int) -> Friendship:
    friendship = (
        db.query(Friendship)
        .filter(
            Friendship.id == friendship_id,
            Friendship.addressee_id == current_user_id,
            Friendship.status == FriendStatus.PENDING,
        )
        .first()
    )
    if not friendship:
        raise HTTPException(status_code=404, detail="Friend request not found")
    return friendship


@router.get("", response_model=List[schemas.FriendOut])
def list_friends(db: Session = Depends(get_db), current_user_id: int = Depends(get_current_user_id)):
    """List accepted friends and pending requests in both directions."""
    friendships = (
        db.query(Friendship)
        .filter((Friendship.requester_id == current_user_id) | (Friendship.addressee_id == current_user_id))
        .order_by(Friendship.id)
        .all()
    )
    return [_friend_out(friendship, current_user_id) for friendship in friendships]


@router.get("/{user_id}/status", response_model=schemas.FriendStatusOut)
def get_friend_status(
    user_id: int,
    db: Session = Depends(get_db),
    current_user_id: int = Depends(get_current_user_id),
):
    get_user_or_404(db, user_id)
    friendship = find_friendship(db, current_user_id, user_id)
    if not friendship:
        return schemas.FriendStatusOut(user_id=user_id)
    return schemas.FriendStatusOut(
        user_id=user_id,
        status=friendship.status,
        friendship_id=friendship.id,
        requested_by_me=friendship.requester_id == current_user_id,
    )


@router.post("/requests", response_model=schemas.FriendOut, status_code=201)
def send_friend_request(
    payload: schemas.FriendRequestCreate,
    db: Session = Depends(get_db),
    current_user_id: int = Depends(get_current_user_id),
):
    target_id = payload.target_user_id
    if target_id == current_user_id:
        raise HTTPException(status_code=400, detail="Cannot send a friend request to yourself")
    get_user_or_404(db, target_id)

    existing = find_friendship(db, current_user_id, target_id)
    if existing and existing.status == FriendStatus.PENDING and existing.addressee_id == current_user_id:
        # The other side already asked: accept instead of creating a duplicate.
        existing.status = FriendStatus.ACCEPTED
        db.commit()
        db.refresh(existing)
        logger.info("FRIEND_REQUEST_ACCEPTED friendship_id=%s user_id=%s", existing.id, current_user_id)
        return _friend_out(existing, current_user_id)
    if existing:
        raise HTTPException(status_code=409, detail="Friendship already exists")

    friendship = Friendship(requester_id=current_user_id, addressee_id=target_id, status=FriendStatus.PENDING)
    db.add(friendship)
    try:
        db.commit()
    except IntegrityError:
        # A request in the other direction was stored after the lookup above.
        db.rollback()
        logger.info("FRIEND_REQUEST_CONFLICT requester_id=%s addressee_id=%s", current_user_id, target_id)
        raise HTTPException(status_code=409, detail="Friendship already exists")
    db.refresh(friendship)
    logger.info(
        "FRIEND_REQUEST_SENT requester_id=%s addressee_id=%s friendship_id=%s",
        current_user_id,
        target_id,
        friendship.id,
    )
    return _friend_out(friendship, current_user_id)


@router.post("/requests/{friendship_id}/accept", response_model=schemas.FriendOut)
def accept_friend_request(
    friendship_id: int,
    db: Session = Depends(get_db),
    current_user_id: int = Depends(get_current_user_id),
):
    friendship = _get_pending_request(db, friendship_id, current_user_id)
    friendship.status = FriendStatus.ACCEPTED
    db.commit()
    db.refresh(friendship)
    logger.info("FRIEND_REQUEST_ACCEPTED friendship_id=%s user_id=%s", friendship.id, current_user_id)
    return _friend_out(friendship, current_user_id)


@router.delete("/requests/{friendship_id}/decline", status_code=204)
def decline_friend_request(
    friendship_id: int,
    db: Session = Depends(get_db),
    current_user_id: int = Depends(get_current_user_id),
):
    friendship = _get_pending_request(db, friendship_id, current_user_id)
    db.delete(friendship)
    db.commit()
    logger.info("FRIEND_REQUEST_DECLINED friendship_id=%s user_id=%s", friendship_id, current_user_id)
