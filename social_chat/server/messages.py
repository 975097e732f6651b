"""Message-related API routes."""
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session, joinedload

from . import schemas
from .auth import get_current_user_id
from .database import get_db
from .friends import find_friendship
from .logging_config import configure_logging
from .models import Message
from .users import get_user_or_404
from ..shared.dto import FriendStatus
from ..shared.utils import clean_message

router = APIRouter(prefix="/messages", tags=["messages"])
logger = configure_logging()


@router.get("/{friend_id}", response_model=List[schemas.MessageOut])
def get_messages_between_users(
    friend_id: int,
    after_message_id: int = 0,
    db: Session = Depends(get_db),
    current_user_id: int = Depends(get_current_user_id),
):
    """Return the conversation with ``friend_id``, oldest message first."""
    get_user_or_404(db, friend_id)
    friendship = find_friendship(db, current_user_id, friend_id)
    if not friendship:
        return []
    return (
        db.query(Message)
        .options(joinedload(Message.sender))
        .filter(Message.friendship_id == friendship.id, Message.id > after_message_id)
        .order_by(Message.created_at, Message.id)
        .all()
    )


@router.post("/{friend_id}", response_model=schemas.MessageOut, status_code=201)
def send_message(
    friend_id: int,
    payload: schemas.MessageCreate,
    db: Session = Depends(get_db),
    current_user_id: int = Depends(get_current_user_id),
):
    content = clean_message(payload.content)
    if not content:
        raise HTTPException(status_code=400, detail="Message cannot be empty")
    get_user_or_404(db, friend_id)
    friendship = find_friendship(db, current_user_id, friend_id)
    if not friendship or friendship.status != FriendStatus.ACCEPTED:
        logger.warning("MESSAGE_REJECTED sender_id=%s recipient_id=%s reason=not_friends", current_user_id, friend_id)
        raise HTTPException(status_code=403, detail="You need to be friends to send messages")

    message = Message(content=content, sender_id=current_user_id, friendship_id=friendship.id)
    db.add(message)
    db.commit()
    db.refresh(message)
    logger.info(
        "MESSAGE_SENT sender_id=%s recipient_id=%s friendship_id=%s message_id=%s",
        current_user_id,
        friend_id,
        friendship.id,
        message.id,
    )
    return message
