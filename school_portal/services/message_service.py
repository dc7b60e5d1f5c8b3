# school_portal/services/message_service.py
"""Direct messages between portal users of any role."""
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID
from datetime import datetime, timezone
import logging

from sqlalchemy import select, update, func, or_, and_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from .base_service import BaseService
from ..core.exceptions import NotFoundError, PermissionDenied, ValidationException
from ..models.message import Message
from ..models.user import User

logger = logging.getLogger(__name__)


class MessageService(BaseService[Message]):
    def __init__(self, db: AsyncSession):
        super().__init__(Message, db)

    def _with_people(self, stmt):
        return stmt.options(selectinload(Message.sender), selectinload(Message.receiver))

    async def get_with_details(self, message_id: Any) -> Optional[Message]:
        stmt = self._with_people(
            select(Message).where(Message.id == message_id)
        ).execution_options(populate_existing=True)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def list_messages(
        self,
        user_id: UUID,
        folder: str = "inbox",
        search: Optional[str] = None,
        unread: Optional[bool] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Dict[str, Any]:
        stmt = self._with_people(select(Message))
        if folder == "sent":
            stmt = stmt.where(Message.sender_id == user_id)
        else:
            stmt = stmt.where(Message.receiver_id == user_id)
        if search:
            pattern = f"%{search.strip()}%"
            stmt = stmt.where(or_(Message.subject.ilike(pattern), Message.content.ilike(pattern)))
        if unread is not None:
            stmt = stmt.where(Message.read.is_(not unread))
        page_data = await self.get_paginated(stmt, page=page, limit=limit, order_by="created_at", sort="desc")
        page_data["unread_count"] = await self.unread_count(user_id)
        return page_data

    async def unread_count(self, user_id: UUID) -> int:
        stmt = select(func.count()).select_from(Message).where(
            Message.receiver_id == user_id, Message.read.is_(False)
        )
        return (await self.db.execute(stmt)).scalar() or 0

    async def unread(self, user_id: UUID, limit: int = 5) -> List[Message]:
        stmt = (
            self._with_people(select(Message))
            .where(Message.receiver_id == user_id, Message.read.is_(False))
            .order_by(Message.created_at.desc())
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def send_message(self, sender_id: UUID, data: Dict[str, Any]) -> Message:
        if data["receiver_id"] == sender_id:
            raise ValidationException("You cannot send a message to yourself")
        if not await self.db.get(User, data["receiver_id"]):
            raise NotFoundError("Receiver", data["receiver_id"])

        try:
            message = await self.create(dict(data, sender_id=sender_id))
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to send message from {sender_id}: {e}")
            raise
        logger.info(f"User {sender_id} sent message {message.id}")
        return await self.get_with_details(message.id)

    async def _participant_message(self, user_id: UUID, message_id: UUID) -> Message:
        message = await self.get_with_details(message_id)
        if not message:
            raise NotFoundError("Message", message_id)
        if user_id not in (message.sender_id, message.receiver_id):
            raise PermissionDenied("You do not have access to this message")
        return message

    async def open_message(self, user_id: UUID, message_id: UUID) -> Message:
        """Fetch a message; the receiver opening it marks it read"""
        message = await self._participant_message(user_id, message_id)
        if message.receiver_id == user_id and not message.read:
            return await self.set_read(user_id, message.id, True)
        return message

    async def set_read(self, user_id: UUID, message_id: UUID, read: bool) -> Message:
        message = await self._participant_message(user_id, message_id)
        if message.receiver_id != user_id:
            raise PermissionDenied("Only the receiver can change the read status")

        try:
            await self.update(message.id, {
                "read": read,
                "read_at": datetime.now(timezone.utc) if read else None,
            })
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to update read status of message {message_id}: {e}")
            raise
        return await self.get_with_details(message.id)

    async def _mark(self, user_id: UUID, read: bool, *criteria) -> int:
        stmt = (
            update(Message)
            .where(Message.receiver_id == user_id, *criteria)
            .values(read=read, read_at=datetime.now(timezone.utc) if read else None)
            .execution_options(synchronize_session=False)
        )
        try:
            result = await self.db.execute(stmt)
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to update read status for user {user_id}: {e}")
            raise
        return result.rowcount

    async def mark_many(self, user_id: UUID, message_ids: List[UUID], read: bool = True) -> int:
        """Only messages the user received are touched"""
        return await self._mark(user_id, read, Message.id.in_(message_ids))

    async def mark_all_read(self, user_id: UUID) -> int:
        return await self._mark(user_id, True, Message.read.is_(False))

    async def conversations(self, user_id: UUID) -> List[Dict[str, Any]]:
        stmt = (
            self._with_people(select(Message))
            .where(or_(Message.sender_id == user_id, Message.receiver_id == user_id))
            .order_by(Message.created_at.desc())
        )
        result = await self.db.execute(stmt)

        threads: Dict[UUID, Dict[str, Any]] = {}
        for message in result.scalars().all():
            partner = message.receiver if message.sender_id == user_id else message.sender
            thread = threads.get(partner.id)
            if thread is None:
                thread = threads[partner.id] = {"user": partner, "last_message": message, "unread_count": 0}
            if message.receiver_id == user_id and not message.read:
                thread["unread_count"] += 1
        return list(threads.values())

    async def conversation(
        self, user_id: UUID, partner_id: UUID, page: int = 1, limit: int = 50
    ) -> Tuple[User, Dict[str, Any]]:
        """Messages exchanged with one user, oldest first; theirs are marked read"""
        partner = await self.db.get(User, partner_id)
        if not partner:
            raise NotFoundError("User", partner_id)

        await self._mark(user_id, True, Message.sender_id == partner_id, Message.read.is_(False))

        stmt = self._with_people(select(Message)).where(
            or_(
                and_(Message.sender_id == user_id, Message.receiver_id == partner_id),
                and_(Message.sender_id == partner_id, Message.receiver_id == user_id),
            )
        ).execution_options(populate_existing=True)
        return partner, await self.get_paginated(stmt, page=page, limit=limit, order_by="created_at")

    async def delete_message(self, user_id: UUID, message_id: UUID) -> None:
        message = await self._participant_message(user_id, message_id)
        await self.delete(message.id)
        logger.info(f"User {user_id} deleted message {message_id}")
