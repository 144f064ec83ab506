"""Notification service: the single entry point for raising and managing notifications.

Every mutation follows the same sequence:

1. durable write through :class:`NotificationRepository` (errors propagate);
2. live recount of the owner's unread notifications;
3. best-effort push of the event and the new counter.

Steps 2 and 3 never undo step 1. Counter and push failures are logged only.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.application.ports import NotificationPublisher, NullNotificationPublisher
from app.domain.entities import (
    NOTIFICATION_CATEGORY_INFO,
    NOTIFICATION_PRIORITY_MEDIUM,
    Notification,
    NotificationFilter,
    NotificationPage,
    RelatedRefs,
)
from app.domain.entities.notification import DEFAULT_ICON
from app.domain.errors import (
    NotificationAccessDeniedError,
    NotificationNotFoundError,
    UserNotFoundError,
)
from app.infrastructure.repositories import NotificationRepository, UserRepository
from app.utils import now_in_app_timezone

from .validators import (
    ensure_valid_category,
    ensure_valid_priority,
    validate_action_text,
    validate_action_url,
    validate_icon,
    validate_message,
    validate_pagination,
    validate_title,
)

logger = logging.getLogger(__name__)


class NotificationService:
    """Create, read and update notifications while keeping live clients in sync."""

    def __init__(
        self,
        session: Session,
        publisher: NotificationPublisher | None = None,
        *,
        repository: NotificationRepository | None = None,
        user_repository: UserRepository | None = None,
    ) -> None:
        self.session = session
        self._publisher = publisher or NullNotificationPublisher()
        self._repository = repository or NotificationRepository(session)
        self._users = user_repository or UserRepository(session)

    # -- fan-out -----------------------------------------------------------

    def notify(
        self,
        user_id: int,
        title: str,
        message: str,
        category: str = NOTIFICATION_CATEGORY_INFO,
        related: RelatedRefs | None = None,
        *,
        action_url: str | None = None,
        action_text: str | None = None,
        icon: str | None = DEFAULT_ICON,
        priority: str = NOTIFICATION_PRIORITY_MEDIUM,
        expires_at: datetime | None = None,
    ) -> Notification:
        """Persist a notification for ``user_id`` and push it to live sessions."""

        notification = Notification(
            id=None,
            user_id=user_id,
            title=validate_title(title),
            message=validate_message(message),
            category=ensure_valid_category(category),
            read=False,
            read_at=None,
            related=related or RelatedRefs(),
            action_url=validate_action_url(action_url),
            action_text=validate_action_text(action_text),
            icon=validate_icon(icon) or DEFAULT_ICON,
            priority=ensure_valid_priority(priority),
            expires_at=expires_at,
        )
        if not self._users.exists(user_id):
            raise UserNotFoundError(f"Usuario destinatario {user_id} no encontrado")

        saved = self._repository.create(notification)
        logger.info(
            "Notification %s (%s) created for user %s", saved.id, saved.category, user_id
        )

        count = self._recount(user_id)
        self._push_notification(saved)
        if count is not None:
            self._push_count(user_id, count)
        return saved

    def notify_many(
        self,
        user_ids: Iterable[int],
        title: str,
        message: str,
        category: str = NOTIFICATION_CATEGORY_INFO,
        related: RelatedRefs | None = None,
        **options,
    ) -> list[Notification]:
        """Apply :meth:`notify` to each target independently.

        A target that cannot be stored is logged and skipped; the others still
        receive their notification. Invalid payloads are rejected up front since
        they would fail for every target.
        """

        validate_title(title)
        validate_message(message)
        ensure_valid_category(category)

        created: list[Notification] = []
        seen: set[int] = set()
        for user_id in user_ids:
            if not user_id or user_id in seen:
                continue
            seen.add(user_id)
            try:
                created.append(
                    self.notify(user_id, title, message, category, related, **options)
                )
            except UserNotFoundError as exc:
                logger.warning("Skipping notification for missing user %s: %s", user_id, exc)
            except SQLAlchemyError:
                logger.exception("Could not store notification for user %s", user_id)
        return created

    # -- read state --------------------------------------------------------

    def get(self, notification_id: int, requesting_user_id: int) -> Notification:
        """Return the notification if it exists and belongs to the requester."""

        notification = self._repository.get(notification_id)
        if notification is None:
            raise NotificationNotFoundError("Notificación no encontrada")
        if not notification.is_owned_by(requesting_user_id):
            raise NotificationAccessDeniedError("Acceso no autorizado a la notificación")
        return notification

    def mark_read(self, notification_id: int, requesting_user_id: int) -> Notification:
        """Mark one notification as read. Already read notifications are returned as is."""

        notification = self.get(notification_id, requesting_user_id)
        if notification.read:
            return notification
        updated = self._repository.mark_read(notification_id)
        self._refresh_counter(updated.user_id)
        return updated

    def mark_all_read(self, user_id: int) -> int:
        updated = self._repository.mark_all_read(user_id)
        logger.info("Marked %s notifications as read for user %s", updated, user_id)
        self._refresh_counter(user_id)
        return updated

    # -- deletion ----------------------------------------------------------

    def delete(self, notification_id: int, requesting_user_id: int) -> None:
        notification = self.get(notification_id, requesting_user_id)
        self._repository.delete(notification.id)
        self._refresh_counter(notification.user_id)

    def delete_all(
        self, user_id: int, filters: NotificationFilter | None = None
    ) -> int:
        filters = self._normalize_filter(filters)
        deleted = self._repository.delete_all(user_id, filters=filters)
        logger.info("Deleted %s notifications for user %s", deleted, user_id)
        self._refresh_counter(user_id)
        return deleted

    def delete_related(
        self,
        *,
        task_id: int | None = None,
        application_id: int | None = None,
        payment_id: int | None = None,
    ) -> int:
        """Cascade-delete notifications linked to a removed marketplace entity."""

        per_user = self._repository.delete_related(
            RelatedRefs(
                task_id=task_id, application_id=application_id, payment_id=payment_id
            )
        )
        for user_id in per_user:
            self._refresh_counter(user_id)
        return sum(per_user.values())

    def purge_expired(
        self, now: datetime | None = None, *, title: str | None = None
    ) -> int:
        """Remove expired notifications (and, optionally, every one titled ``title``)."""

        per_user = self._repository.delete_expired(
            now or now_in_app_timezone(), title=title
        )
        for user_id in per_user:
            self._refresh_counter(user_id)
        return sum(per_user.values())

    # -- queries -----------------------------------------------------------

    def list(
        self,
        user_id: int,
        *,
        page: int = 1,
        limit: int = 20,
        filters: NotificationFilter | None = None,
    ) -> NotificationPage:
        """Return one page of notifications, newest first."""

        page, limit = validate_pagination(page, limit)
        filters = self._normalize_filter(filters)
        items = self._repository.list_for_user(
            user_id, filters=filters, offset=(page - 1) * limit, limit=limit
        )
        return NotificationPage(
            items=list(items),
            page=page,
            limit=limit,
            total=self._repository.count_for_user(user_id, filters=filters),
            unread_count=self._repository.count_unread(user_id),
        )

    def count_unread(self, user_id: int) -> int:
        return self._repository.count_unread(user_id)

    # -- helpers -----------------------------------------------------------

    @staticmethod
    def _normalize_filter(filters: NotificationFilter | None) -> NotificationFilter | None:
        if filters is None or filters.category is None:
            return filters
        return NotificationFilter(
            category=ensure_valid_category(filters.category), read=filters.read
        )

    def _refresh_counter(self, user_id: int) -> int | None:
        count = self._recount(user_id)
        if count is not None:
            self._push_count(user_id, count)
        return count

    def _recount(self, user_id: int) -> int | None:
        try:
            return self._repository.count_unread(user_id)
        except SQLAlchemyError:
            logger.exception("Could not recompute unread count for user %s", user_id)
            self.session.rollback()
            return None

    def _push_notification(self, notification: Notification) -> None:
        try:
            self._publisher.push_notification(notification.user_id, notification)
        except Exception as exc:  # push is best-effort, the write already happened
            logger.warning(
                "Push of notification %s to user %s failed: %s",
                notification.id,
                notification.user_id,
                exc,
            )

    def _push_count(self, user_id: int, count: int) -> None:
        try:
            self._publisher.push_unread_count(user_id, count)
        except Exception as exc:  # push is best-effort, the write already happened
            logger.warning("Push of unread count to user %s failed: %s", user_id, exc)


__all__ = ["NotificationService"]
