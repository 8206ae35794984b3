"""
Track sharing: share lifecycle, permission checks, access/activity logs,
comments and notification fan-out.

Share status transitions:

    PENDING  -> ACCEPTED | DECLINED   (recipient, exactly once)
    PENDING  -> REVOKED               (owner)
    ACCEPTED -> REVOKED               (owner)

Transitions are applied with a conditional UPDATE on the expected current
status, so concurrent requests cannot both move the same share.
"""

import logging
import uuid
import datetime
from typing import Any, Iterable, List, Optional, Sequence

from sqlalchemy import delete, or_, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from balltalk.core.clock import utcnow, ensure_utc
from balltalk.core.config import settings
from balltalk.core.exceptions import (
    BadRequestError,
    ConflictError,
    ForbiddenError,
    NotFoundException,
    ShareExpiredError,
)
from balltalk.models.notification import NotificationType, TrackShareNotification
from balltalk.models.song import Song
from balltalk.models.track_share import (
    OPEN_STATUSES,
    ActivityType,
    ACTIVITY_PERMISSIONS,
    SharedTrackAccess,
    SharedTrackActivity,
    SharedTrackComment,
    ShareStatus,
    TrackShare,
    TrackShareResponse,
    normalize_permissions,
)
from balltalk.models.user import User
from balltalk.schemas.track_share import TrackShareUpdate

logger = logging.getLogger(__name__)

# Activities by the recipient that the owner hears about.
_ACTIVITY_NOTIFICATIONS = {
    ActivityType.EDIT: NotificationType.TRACK_EDITED,
    ActivityType.REMIX: NotificationType.TRACK_REMIXED,
}


class TrackSharingService:
    def __init__(self, db_session: AsyncSession):
        self.db = db_session

    # --- Share lifecycle ---

    async def share_track(
        self,
        track_id: uuid.UUID,
        owner_id: uuid.UUID,
        recipient_id: uuid.UUID,
        permissions: Iterable,
        message: Optional[str] = None,
        expires_at: Optional[datetime.datetime] = None,
    ) -> TrackShare:
        """
        Share a track with another user.

        The track must belong to owner_id. The share starts PENDING and the
        recipient is notified.
        """
        song = await self.db.get(Song, track_id)
        if song is None:
            raise NotFoundException("Track", track_id)
        if song.artist_id != owner_id:
            raise ForbiddenError(f"User {owner_id} does not own track {track_id}")
        if recipient_id == owner_id:
            raise BadRequestError("A track cannot be shared with its owner")
        if await self.db.get(User, recipient_id) is None:
            raise NotFoundException("User", recipient_id)

        granted = normalize_permissions(permissions)
        if not granted:
            raise BadRequestError("A share needs at least one permission")

        now = utcnow()
        expires_at = ensure_utc(expires_at)
        if expires_at is not None and expires_at <= now:
            raise BadRequestError("Expiration date must be in the future")

        result = await self.db.execute(
            select(TrackShare).where(
                TrackShare.track_id == track_id,
                TrackShare.recipient_id == recipient_id,
                TrackShare.status.in_(OPEN_STATUSES)
            )
        )
        if any(not existing.expired_at(now) for existing in result.scalars().all()):
            raise ConflictError(f"Track {track_id} is already shared with user {recipient_id}")

        share = TrackShare(
            track_id=track_id,
            owner_id=owner_id,
            recipient_id=recipient_id,
            permissions=granted,
            message=message,
            status=ShareStatus.PENDING.value,
            expires_at=expires_at,
            created_at=now,
            updated_at=now,
            access_count=0
        )
        self.db.add(share)
        await self.db.flush()

        self._notify(
            recipient_id,
            NotificationType.SHARE_RECEIVED,
            share,
            sender_id=owner_id,
            message=f"{song.title} has been shared with you"
        )
        await self.db.commit()
        await self.db.refresh(share)
        logger.info(f"Track {track_id} shared by {owner_id} with {recipient_id} as share {share.id}")
        return share

    async def get_share(self, share_id: uuid.UUID) -> TrackShare:
        share = await self.db.get(TrackShare, share_id)
        if share is None:
            raise NotFoundException("Share", share_id)
        return share

    async def get_share_for_user(self, share_id: uuid.UUID, user_id: uuid.UUID) -> TrackShare:
        """Fetch a share the user takes part in."""
        share = await self.get_share(share_id)
        if not share.is_participant(user_id):
            raise ForbiddenError(f"User {user_id} is not a participant of share {share_id}")
        return share

    async def update_share(self, share_id: uuid.UUID, user_id: uuid.UUID, updates: TrackShareUpdate) -> TrackShare:
        """Change permissions, message or expiration. Only the owner may, and only on open shares."""
        share = await self.get_share(share_id)
        if share.owner_id != user_id:
            raise ForbiddenError(f"User {user_id} does not own share {share_id}")
        if share.status not in OPEN_STATUSES:
            raise ConflictError(f"Share {share_id} is {share.status} and can no longer be changed")

        now = utcnow()
        update_data = updates.model_dump(exclude_unset=True)
        if "permissions" in update_data:
            granted = normalize_permissions(update_data["permissions"] or [])
            if not granted:
                raise BadRequestError("A share needs at least one permission")
            update_data["permissions"] = granted
        if "expires_at" in update_data:
            expires_at = ensure_utc(update_data["expires_at"])
            if expires_at is not None and expires_at <= now:
                raise BadRequestError("Expiration date must be in the future")
            update_data["expires_at"] = expires_at

        # Only applies while the share is still open, even if it was revoked since it was read
        result = await self.db.execute(
            update(TrackShare)
            .where(TrackShare.id == share_id, TrackShare.status.in_(OPEN_STATUSES))
            .values(**update_data, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise ConflictError(f"Share {share_id} was closed before the change could be applied")

        await self.db.commit()
        await self.db.refresh(share)
        return share

    async def revoke_share(self, share_id: uuid.UUID, user_id: uuid.UUID) -> TrackShare:
        share = await self.get_share(share_id)
        if share.owner_id != user_id:
            raise ForbiddenError(f"User {user_id} does not own share {share_id}")

        now = utcnow()
        moved = await self._transition(share_id, OPEN_STATUSES, ShareStatus.REVOKED, now)
        if not moved:
            await self.db.refresh(share)
            raise ConflictError(f"Share {share_id} is already {share.status}")

        title = await self._track_title(share)
        self._notify(
            share.recipient_id,
            NotificationType.SHARE_REVOKED,
            share,
            sender_id=user_id,
            message=f"Access to {title} has been revoked"
        )
        await self.db.commit()
        await self.db.refresh(share)
        logger.info(f"Share {share_id} revoked by {user_id}")
        return share

    async def respond_to_share(
        self,
        share_id: uuid.UUID,
        user_id: uuid.UUID,
        status: ShareStatus,
        message: Optional[str] = None
    ) -> TrackShare:
        """Accept or decline a pending share. The recipient answers exactly once."""
        status = ShareStatus(status)
        if status not in (ShareStatus.ACCEPTED, ShareStatus.DECLINED):
            raise BadRequestError("A share can only be accepted or declined")

        share = await self.get_share(share_id)
        if share.recipient_id != user_id:
            raise ForbiddenError(f"User {user_id} is not the recipient of share {share_id}")
        if share.status != ShareStatus.PENDING.value:
            raise ConflictError(f"Share {share_id} is not pending")

        now = utcnow()
        if status == ShareStatus.ACCEPTED and share.expired_at(now):
            raise ShareExpiredError(share_id)

        moved = await self._transition(share_id, (ShareStatus.PENDING.value,), status, now)
        if not moved:
            raise ConflictError(f"Share {share_id} is not pending")

        response = TrackShareResponse(
            share_id=share_id,
            recipient_id=user_id,
            status=status.value,
            message=message,
            created_at=now
        )
        self.db.add(response)
        await self.db.flush()

        title = await self._track_title(share)
        if status == ShareStatus.ACCEPTED:
            notification_type = NotificationType.SHARE_ACCEPTED
            notification_message = f"Your share of {title} has been accepted"
        else:
            notification_type = NotificationType.SHARE_DECLINED
            notification_message = f"Your share of {title} has been declined"

        self._notify(
            share.owner_id,
            notification_type,
            share,
            sender_id=user_id,
            message=notification_message,
            data={"response_id": str(response.id)}
        )
        await self.db.commit()
        await self.db.refresh(share)
        logger.info(f"Share {share_id} {status.value} by {user_id}")
        return share

    async def get_share_response(self, share_id: uuid.UUID, user_id: uuid.UUID) -> TrackShareResponse:
        """The recipient's answer to a share, visible to both participants."""
        await self.get_share_for_user(share_id, user_id)
        result = await self.db.execute(
            select(TrackShareResponse)
            .where(TrackShareResponse.share_id == share_id)
            .order_by(TrackShareResponse.created_at.desc())
            .limit(1)
        )
        response = result.scalar_one_or_none()
        if response is None:
            raise NotFoundException("Response to share", share_id)
        return response

    async def _transition(
        self,
        share_id: uuid.UUID,
        from_statuses: Sequence[str],
        to_status: ShareStatus,
        now: datetime.datetime
    ) -> bool:
        result = await self.db.execute(
            update(TrackShare)
            .where(TrackShare.id == share_id, TrackShare.status.in_(from_statuses))
            .values(status=to_status.value, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    # --- Listings ---

    async def get_shares_by_track(self, track_id: uuid.UUID) -> List[TrackShare]:
        return await self._list_shares(TrackShare.track_id == track_id)

    async def get_shares_by_owner(self, user_id: uuid.UUID, status: Optional[ShareStatus] = None) -> List[TrackShare]:
        return await self._list_shares(TrackShare.owner_id == user_id, status=status)

    async def get_shares_by_recipient(self, user_id: uuid.UUID, status: Optional[ShareStatus] = None) -> List[TrackShare]:
        return await self._list_shares(TrackShare.recipient_id == user_id, status=status)

    async def get_recent_shares(self, user_id: uuid.UUID, limit: Optional[int] = None) -> List[TrackShare]:
        """Most recent shares sent by user_id."""
        return await self._list_shares(
            TrackShare.owner_id == user_id,
            limit=limit or settings.RECENT_SHARES_LIMIT
        )

    async def _list_shares(self, condition, status: Optional[ShareStatus] = None, limit: Optional[int] = None) -> List[TrackShare]:
        query = select(TrackShare).where(condition)
        if status is not None:
            query = query.where(TrackShare.status == ShareStatus(status).value)
        query = query.order_by(TrackShare.created_at.desc())
        if limit is not None:
            query = query.limit(limit)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_active_share(self, track_id: uuid.UUID, recipient_id: uuid.UUID) -> Optional[TrackShare]:
        """The accepted, unexpired share of track_id held by recipient_id, if any."""
        result = await self.db.execute(
            select(TrackShare).where(
                TrackShare.track_id == track_id,
                TrackShare.recipient_id == recipient_id,
                TrackShare.status == ShareStatus.ACCEPTED.value
            )
        )
        now = utcnow()
        return next((s for s in result.scalars().all() if not s.expired_at(now)), None)

    # --- Access, activity and comments ---

    def _ensure_active(self, share: TrackShare, user_id: uuid.UUID) -> None:
        if not share.is_participant(user_id):
            raise ForbiddenError(f"User {user_id} is not authorized for share {share.id}")
        if share.status != ShareStatus.ACCEPTED.value:
            raise ConflictError(f"Share {share.id} is not accepted")
        if share.is_expired:
            raise ShareExpiredError(share.id)

    async def record_access(
        self,
        share_id: uuid.UUID,
        user_id: uuid.UUID,
        device_info: Optional[str] = None,
        ip_address: Optional[str] = None,
        location: Optional[dict] = None
    ) -> SharedTrackAccess:
        share = await self.get_share(share_id)
        self._ensure_active(share, user_id)

        now = utcnow()
        access = SharedTrackAccess(
            share_id=share_id,
            user_id=user_id,
            accessed_at=now,
            device_info=device_info,
            ip_address=ip_address,
            location=location or None
        )
        self.db.add(access)
        await self.db.flush()

        await self.db.execute(
            update(TrackShare)
            .where(TrackShare.id == share_id)
            .values(
                last_accessed_at=now,
                access_count=TrackShare.access_count + 1,
                updated_at=now
            )
            .execution_options(synchronize_session=False)
        )

        if user_id == share.recipient_id:
            title = await self._track_title(share)
            self._notify(
                share.owner_id,
                NotificationType.TRACK_ACCESSED,
                share,
                sender_id=user_id,
                message=f"Your shared track {title} was accessed",
                data={"access_id": str(access.id)}
            )
        await self.db.commit()
        await self.db.refresh(share)
        return access

    async def record_activity(
        self,
        share_id: uuid.UUID,
        user_id: uuid.UUID,
        activity_type: ActivityType,
        details: Optional[dict[str, Any]] = None
    ) -> SharedTrackActivity:
        activity_type = ActivityType(activity_type)
        share = await self.get_share(share_id)
        self._ensure_active(share, user_id)
        self._ensure_allowed(share, user_id, activity_type)

        activity = self._log_activity(share, user_id, activity_type, details)
        await self.db.flush()

        notification_type = _ACTIVITY_NOTIFICATIONS.get(activity_type)
        if notification_type and user_id == share.recipient_id:
            title = await self._track_title(share)
            self._notify(
                share.owner_id,
                notification_type,
                share,
                sender_id=user_id,
                message=f"Your shared track {title} was {'edited' if activity_type == ActivityType.EDIT else 'remixed'}",
                data={"activity_id": str(activity.id)}
            )
        await self.db.commit()
        await self.db.refresh(activity)
        return activity

    def _ensure_allowed(self, share: TrackShare, user_id: uuid.UUID, activity_type: ActivityType) -> None:
        if not share.allows(user_id, activity_type):
            required = ACTIVITY_PERMISSIONS[activity_type]
            raise ForbiddenError(
                f"Share {share.id} does not grant {required.value if required else 'any'} permission"
            )

    def _log_activity(
        self,
        share: TrackShare,
        user_id: uuid.UUID,
        activity_type: ActivityType,
        details: Optional[dict[str, Any]] = None
    ) -> SharedTrackActivity:
        activity = SharedTrackActivity(
            share_id=share.id,
            track_id=share.track_id,
            user_id=user_id,
            activity_type=activity_type.value,
            timestamp=utcnow(),
            details=details or None
        )
        self.db.add(activity)
        return activity

    async def add_comment(
        self,
        share_id: uuid.UUID,
        user_id: uuid.UUID,
        text: str,
        is_private: bool = False,
        parent_id: Optional[uuid.UUID] = None,
        mentions: Optional[Iterable[uuid.UUID]] = None,
        timestamp_position: Optional[float] = None
    ) -> SharedTrackComment:
        share = await self.get_share(share_id)
        self._ensure_active(share, user_id)
        self._ensure_allowed(share, user_id, ActivityType.COMMENT)

        if parent_id is not None:
            parent = await self.db.get(SharedTrackComment, parent_id)
            if parent is None or parent.share_id != share.id:
                raise BadRequestError(f"Comment {parent_id} does not belong to share {share_id}")

        mentioned: List[uuid.UUID] = []
        for mention in mentions or []:
            if mention not in mentioned:
                mentioned.append(mention)

        comment = SharedTrackComment(
            share_id=share.id,
            track_id=share.track_id,
            user_id=user_id,
            text=text,
            timestamp=utcnow(),
            is_private=is_private,
            parent_id=parent_id,
            mentions=[str(m) for m in mentioned],
            timestamp_position=timestamp_position
        )
        self.db.add(comment)
        await self.db.flush()

        self._log_activity(share, user_id, ActivityType.COMMENT, {"comment_id": str(comment.id)})

        # A private comment is only visible to the owner and its author.
        audience = {share.owner_id, user_id} if is_private else {share.owner_id, share.recipient_id}
        title = await self._track_title(share)
        notified = set()
        for mention in mentioned:
            if mention == user_id or mention not in audience:
                continue
            self._notify(
                mention,
                NotificationType.TRACK_COMMENTED,
                share,
                sender_id=user_id,
                message=f"You were mentioned in a comment on {title}",
                data={"comment_id": str(comment.id)}
            )
            notified.add(mention)

        other_party = share.other_party(user_id)
        if other_party not in notified and other_party in audience:
            self._notify(
                other_party,
                NotificationType.TRACK_COMMENTED,
                share,
                sender_id=user_id,
                message=f"New comment on {title}",
                data={"comment_id": str(comment.id)}
            )

        await self.db.commit()
        await self.db.refresh(comment)
        return comment

    async def get_comments(self, share_id: uuid.UUID, user_id: uuid.UUID) -> List[SharedTrackComment]:
        """
        Comments on a share, oldest first. The owner sees everything, anyone
        else sees public comments plus their own private ones.
        """
        share = await self.get_share_for_user(share_id, user_id)
        query = select(SharedTrackComment).where(SharedTrackComment.share_id == share.id)
        if user_id != share.owner_id:
            query = query.where(
                or_(SharedTrackComment.is_private == False, SharedTrackComment.user_id == user_id)  # noqa: E712
            )
        result = await self.db.execute(query.order_by(SharedTrackComment.timestamp.asc()))
        return list(result.scalars().all())

    # --- Notifications ---

    def _notify(
        self,
        user_id: uuid.UUID,
        notification_type: NotificationType,
        share: TrackShare,
        sender_id: uuid.UUID,
        message: Optional[str] = None,
        data: Optional[dict[str, Any]] = None
    ) -> TrackShareNotification:
        """Queue a notification in the current transaction."""
        notification = TrackShareNotification(
            user_id=user_id,
            type=notification_type.value,
            share_id=share.id,
            track_id=share.track_id,
            sender_id=sender_id,
            message=message,
            is_read=False,
            timestamp=utcnow(),
            data=data
        )
        self.db.add(notification)
        return notification

    async def get_notifications(
        self,
        user_id: uuid.UUID,
        unread_only: bool = False,
        limit: Optional[int] = None
    ) -> List[TrackShareNotification]:
        query = select(TrackShareNotification).where(TrackShareNotification.user_id == user_id)
        if unread_only:
            query = query.where(TrackShareNotification.is_read == False)  # noqa: E712
        query = query.order_by(TrackShareNotification.timestamp.desc()).limit(limit or settings.NOTIFICATIONS_LIMIT)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def mark_notification_as_read(self, notification_id: uuid.UUID, user_id: uuid.UUID) -> TrackShareNotification:
        notification = await self.db.get(TrackShareNotification, notification_id)
        if notification is None:
            raise NotFoundException("Notification", notification_id)
        if notification.user_id != user_id:
            raise ForbiddenError(f"User {user_id} is not the recipient of notification {notification_id}")
        notification.is_read = True
        await self.db.commit()
        await self.db.refresh(notification)
        return notification

    async def mark_all_notifications_as_read(self, user_id: uuid.UUID) -> int:
        result = await self.db.execute(
            update(TrackShareNotification)
            .where(TrackShareNotification.user_id == user_id, TrackShareNotification.is_read == False)  # noqa: E712
            .values(is_read=True)
            .execution_options(synchronize_session=False)
        )
        updated = result.rowcount
        await self.db.commit()
        return updated

    # --- Housekeeping ---

    async def delete_shares(self, condition) -> int:
        """Delete the shares matching condition with everything recorded against them."""
        result = await self.db.execute(select(TrackShare.id).where(condition))
        share_ids = list(result.scalars().all())
        if not share_ids:
            return 0

        for model in (
            TrackShareNotification,
            SharedTrackComment,
            SharedTrackActivity,
            SharedTrackAccess,
            TrackShareResponse,
        ):
            await self.db.execute(
                delete(model)
                .where(model.share_id.in_(share_ids))
                .execution_options(synchronize_session=False)
            )
        await self.db.execute(
            delete(TrackShare)
            .where(TrackShare.id.in_(share_ids))
            .execution_options(synchronize_session=False)
        )
        logger.info(f"Deleted {len(share_ids)} shares")
        return len(share_ids)

    async def _track_title(self, share: TrackShare) -> str:
        song = await self.db.get(Song, share.track_id)
        return song.title if song else str(share.track_id)
