"""Notification creation and delivery.

Notifications are:
1. Persisted once per (recipient, sender, type, post); the unique index rejects repeats
2. Pushed live to the recipient's current connection, if the presence map has one
3. Never allowed to fail the write that triggered them

Types: like, comment, follow, mention
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from connectblog.background import BackgroundDispatcher
from connectblog.db.models import NOTIFICATION_TYPES, Notification, User
from connectblog.social.mentions import extract_mentions
from connectblog.social.presence import PresenceMap
from connectblog.ws.manager import ConnectionManager

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], AbstractAsyncContextManager[AsyncSession]]


@dataclass(frozen=True)
class Actor:
    """Snapshot of the user performing an action, safe to hand to another task."""

    id: int
    username: str

    @classmethod
    def of(cls, user: User) -> Actor:
        return cls(id=user.id, username=user.username)


async def record_notification(
    db: AsyncSession,
    recipient_id: int,
    sender_id: int,
    type_: str,
    post_id: int | None = None,
) -> Notification | None:
    """Insert a notification; returns None if the same event was already recorded.

    The insert itself is the dedup check, so two concurrent identical events
    cannot both succeed.
    """
    if type_ not in NOTIFICATION_TYPES:
        raise ValueError(f"Invalid notification type: {type_}. Must be one of {NOTIFICATION_TYPES}")

    notification = Notification(
        recipient_id=recipient_id,
        sender_id=sender_id,
        type=type_,
        post_id=post_id,
        is_read=False,
    )
    db.add(notification)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        logger.debug("Duplicate %s notification %s -> %s (post %s)", type_, sender_id, recipient_id, post_id)
        return None
    return notification


class NotificationEngine:
    """Records notifications and fans them out to live connections."""

    def __init__(
        self,
        session_factory: SessionFactory,
        presence: PresenceMap,
        connections: ConnectionManager,
        dispatcher: BackgroundDispatcher,
    ) -> None:
        self._session_factory = session_factory
        self._presence = presence
        self._connections = connections
        self._dispatcher = dispatcher

    async def notify(
        self,
        actor: Actor,
        recipient_id: int,
        type_: str,
        post_id: int | None = None,
    ) -> Notification | None:
        """Record one event and push it live. Self-notifications are dropped."""
        if recipient_id == actor.id:
            return None

        async with self._session_factory() as db:
            notification = await record_notification(db, recipient_id, actor.id, type_, post_id)
        if notification is None:
            return None

        await self._push(recipient_id, {"type": type_, "from": actor.username})
        return notification

    async def notify_mentions(self, actor: Actor, text: str | None, post_id: int) -> int:
        """Send a mention notification to every existing user @-named in ``text``.

        Unknown usernames are ignored. Returns how many notifications were recorded.
        """
        usernames = extract_mentions(text)
        if not usernames:
            return 0

        async with self._session_factory() as db:
            result = await db.execute(select(User.id).where(User.username.in_(usernames)))
            recipient_ids = list(result.scalars().all())

        recorded = 0
        for recipient_id in recipient_ids:
            try:
                notification = await self.notify(actor, recipient_id, "mention", post_id)
            except Exception:
                # One failed recipient must not cost the others their mention.
                logger.warning("Mention notification to user %s failed", recipient_id, exc_info=True)
                continue
            if notification is not None:
                recorded += 1
        return recorded

    async def _push(self, recipient_id: int, event: dict) -> None:
        conn_id = self._presence.resolve(recipient_id)
        if conn_id is None:
            return
        delivered = await self._connections.send(conn_id, {"type": "newNotification", "data": event})
        if not delivered:
            logger.info("Live delivery to user %s missed (connection %s gone)", recipient_id, conn_id)

    # --- fire-and-forget entry points used by routers ---

    def dispatch(self, actor: Actor, recipient_id: int, type_: str, post_id: int | None = None) -> None:
        """Schedule :meth:`notify` without waiting for it."""
        if recipient_id == actor.id:
            return
        self._dispatcher.spawn(
            self.notify(actor, recipient_id, type_, post_id),
            name=f"notify:{type_}:{recipient_id}",
        )

    def dispatch_mentions(self, actor: Actor, text: str | None, post_id: int) -> None:
        """Schedule :meth:`notify_mentions` without waiting for it."""
        if not extract_mentions(text):
            return
        self._dispatcher.spawn(self.notify_mentions(actor, text, post_id), name=f"mentions:{post_id}")


async def get_notifications(db: AsyncSession, user_id: int, limit: int = 20) -> list[Notification]:
    """Most recent notifications for a recipient, sender and post resolved."""
    result = await db.execute(
        select(Notification)
        .where(Notification.recipient_id == user_id)
        .options(selectinload(Notification.sender), selectinload(Notification.post))
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


async def mark_all_as_read(db: AsyncSession, user_id: int) -> int:
    """Mark all unread notifications as read. Returns count updated."""
    result = await db.execute(
        update(Notification)
        .where(Notification.recipient_id == user_id, Notification.is_read.is_(False))
        .values(is_read=True)
    )
    await db.flush()
    return result.rowcount


async def get_unread_count(db: AsyncSession, user_id: int) -> int:
    """Get count of unread notifications."""
    result = await db.execute(
        select(func.count())
        .select_from(Notification)
        .where(Notification.recipient_id == user_id, Notification.is_read.is_(False))
    )
    return result.scalar_one()
