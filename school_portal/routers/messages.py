# school_portal/routers/messages.py
from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.dependencies import get_current_session
from ..core.security import SessionData
from ..models.message import Message
from ..models.user import User
from ..schemas.message_schemas import MessageCreate, MessageReadUpdate, MessagesReadUpdate
from ..services.message_service import MessageService

router = APIRouter(prefix="/api/messages", tags=["Messages"])


def format_person(user: User) -> dict:
    return {"id": str(user.id), "name": user.name, "role": user.role.value}


def format_message(message: Message) -> dict:
    return {
        "id": str(message.id),
        "subject": message.subject,
        "content": message.content,
        "read": message.read,
        "read_at": message.read_at,
        "created_at": message.created_at,
        "sender": format_person(message.sender),
        "receiver": format_person(message.receiver),
    }


@router.get("", response_model=dict)
async def list_messages(
    folder: str = Query("inbox", pattern="^(inbox|sent)$"),
    search: Optional[str] = Query(None),
    unread: Optional[bool] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    session: SessionData = Depends(get_current_session),
    db: AsyncSession = Depends(get_db)
):
    service = MessageService(db)
    result = await service.list_messages(
        UUID(session.user_id),
        folder=folder,
        search=search,
        unread=unread,
        page=page,
        limit=limit,
    )
    return {
        "messages": [format_message(m) for m in result["items"]],
        "unread_count": result["unread_count"],
        "meta": result["meta"],
    }


@router.post("", response_model=dict)
async def send_message(
    message_data: MessageCreate,
    session: SessionData = Depends(get_current_session),
    db: AsyncSession = Depends(get_db)
):
    service = MessageService(db)
    message = await service.send_message(UUID(session.user_id), message_data.model_dump())
    return format_message(message)


@router.get("/unread-count", response_model=dict)
async def unread_count(
    session: SessionData = Depends(get_current_session),
    db: AsyncSession = Depends(get_db)
):
    service = MessageService(db)
    return {"unread_count": await service.unread_count(UUID(session.user_id))}


@router.get("/unread", response_model=dict)
async def unread_messages(
    limit: int = Query(5, ge=1, le=50),
    session: SessionData = Depends(get_current_session),
    db: AsyncSession = Depends(get_db)
):
    service = MessageService(db)
    messages = await service.unread(UUID(session.user_id), limit=limit)
    return {"messages": [format_message(m) for m in messages], "count": len(messages)}


@router.patch("/read", response_model=dict)
async def mark_messages(
    read_data: MessagesReadUpdate,
    session: SessionData = Depends(get_current_session),
    db: AsyncSession = Depends(get_db)
):
    """Bulk read/unread; ids the caller did not receive are ignored"""
    service = MessageService(db)
    updated = await service.mark_many(UUID(session.user_id), read_data.message_ids, read_data.read)
    return {"message": "Messages updated successfully", "updated": updated}


@router.patch("/read/all", response_model=dict)
async def mark_all_read(
    session: SessionData = Depends(get_current_session),
    db: AsyncSession = Depends(get_db)
):
    service = MessageService(db)
    updated = await service.mark_all_read(UUID(session.user_id))
    return {"message": "All messages marked as read", "updated": updated}


@router.get("/conversations", response_model=dict)
async def list_conversations(
    session: SessionData = Depends(get_current_session),
    db: AsyncSession = Depends(get_db)
):
    service = MessageService(db)
    threads = await service.conversations(UUID(session.user_id))
    return {
        "conversations": [
            {
                "user": format_person(thread["user"]),
                "last_message": format_message(thread["last_message"]),
                "unread_count": thread["unread_count"],
            }
            for thread in threads
        ],
        "count": len(threads),
    }


@router.get("/conversations/{user_id}", response_model=dict)
async def get_conversation(
    user_id: UUID,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
    session: SessionData = Depends(get_current_session),
    db: AsyncSession = Depends(get_db)
):
    service = MessageService(db)
    partner, result = await service.conversation(UUID(session.user_id), user_id, page=page, limit=limit)
    return {
        "user": format_person(partner),
        "messages": [format_message(m) for m in result["items"]],
        "meta": result["meta"],
    }


@router.get("/{message_id}", response_model=dict)
async def get_message(
    message_id: UUID,
    session: SessionData = Depends(get_current_session),
    db: AsyncSession = Depends(get_db)
):
    """Opening a received message marks it read"""
    service = MessageService(db)
    message = await service.open_message(UUID(session.user_id), message_id)
    return format_message(message)


@router.patch("/{message_id}", response_model=dict)
async def set_read_status(
    message_id: UUID,
    read_data: MessageReadUpdate,
    session: SessionData = Depends(get_current_session),
    db: AsyncSession = Depends(get_db)
):
    service = MessageService(db)
    message = await service.set_read(UUID(session.user_id), message_id, read_data.read)
    return format_message(message)


@router.patch("/{message_id}/mark-unread", response_model=dict)
async def mark_unread(
    message_id: UUID,
    session: SessionData = Depends(get_current_session),
    db: AsyncSession = Depends(get_db)
):
    service = MessageService(db)
    message = await service.set_read(UUID(session.user_id), message_id, False)
    return format_message(message)


@router.delete("/{message_id}")
async def delete_message(
    message_id: UUID,
    session: SessionData = Depends(get_current_session),
    db: AsyncSession = Depends(get_db)
):
    service = MessageService(db)
    await service.delete_message(UUID(session.user_id), message_id)
    return {"message": "Message deleted successfully", "id": str(message_id)}
