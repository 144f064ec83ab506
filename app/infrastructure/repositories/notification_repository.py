"""Persistence helpers for notification entities."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session

from app.domain.entities import Notification, NotificationFilter, RelatedRefs
from app.infrastructure.models import NotificationModel
from app.utils import (
    ensure_app_naive_datetime,
    ensure_app_timezone,
    now_in_app_timezone,
)


class NotificationRepository:
    """Provide CRUD operations for :class:`Notification` objects.

    Every mutating method commits its own unit of work and rolls the session
    back before re-raising when the database rejects it.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, notification_id: int) -> Notification | None:
        model = self.session.get(NotificationModel, notification_id)
        return self._to_entity(model) if model else None

    def list_for_user(
        self,
        user_id: int,
        *,
        filters: NotificationFilter | None = None,
        offset: int = 0,
        limit: int | None = 20,
    ) -> Sequence[Notification]:
        query = self._filtered_query(user_id, filters)
        query = query.order_by(
            NotificationModel.created_at.desc(), NotificationModel.id.desc()
        )
        if offset:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)
        return [self._to_entity(model) for model in query.all()]

    def count_for_user(
        self, user_id: int, *, filters: NotificationFilter | None = None
    ) -> int:
        return self._filtered_query(user_id, filters).count()

    def count_unread(self, user_id: int) -> int:
        return (
            self.session.query(func.count(NotificationModel.id))
            .filter(NotificationModel.user_id == user_id)
            .filter(NotificationModel.read.is_(False))
            .scalar()
            or 0
        )

    def create(self, notification: Notification) -> Notification:
        model = NotificationModel()
        self._apply_entity_to_model(model, notification)
        now = ensure_app_naive_datetime(now_in_app_timezone())
        model.created_at = ensure_app_naive_datetime(notification.created_at) or now
        model.updated_at = now
        self.session.add(model)
        self._commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def mark_read(self, notification_id: int) -> Notification:
        model = self.session.get(NotificationModel, notification_id)
        if model is None:
            msg = f"Notification with id {notification_id} not found"
            raise ValueError(msg)
        if not model.read:
            model.read = True
            model.read_at = ensure_app_naive_datetime(now_in_app_timezone())
            self.session.add(model)
            self._commit()
            self.session.refresh(model)
        return self._to_entity(model)

    def mark_all_read(self, user_id: int) -> int:
        now = ensure_app_naive_datetime(now_in_app_timezone())
        updated = (
            self.session.query(NotificationModel)
            .filter(NotificationModel.user_id == user_id)
            .filter(NotificationModel.read.is_(False))
            .update(
                {
                    NotificationModel.read: True,
                    NotificationModel.read_at: now,
                    NotificationModel.updated_at: now,
                },
                synchronize_session=False,
            )
        )
        self._commit()
        return int(updated or 0)

    def delete(self, notification_id: int) -> None:
        model = self.session.get(NotificationModel, notification_id)
        if model is None:
            msg = f"Notification with id {notification_id} not found"
            raise ValueError(msg)
        self.session.delete(model)
        self._commit()

    def delete_all(
        self, user_id: int, *, filters: NotificationFilter | None = None
    ) -> int:
        deleted = self._filtered_query(user_id, filters).delete(
            synchronize_session=False
        )
        self._commit()
        return int(deleted or 0)

    def delete_related(self, related: RelatedRefs) -> dict[int, int]:
        """Delete notifications pointing to any of the ``related`` entities.

        Returns the number of deleted rows per owning user.
        """

        if related.is_empty():
            return {}

        conditions = []
        if related.task_id is not None:
            conditions.append(NotificationModel.related_task_id == related.task_id)
        if related.application_id is not None:
            conditions.append(
                NotificationModel.related_application_id == related.application_id
            )
        if related.payment_id is not None:
            conditions.append(
                NotificationModel.related_payment_id == related.payment_id
            )
        return self._delete_grouped_by_user(or_(*conditions))

    def delete_expired(self, now: datetime, *, title: str | None = None) -> dict[int, int]:
        """Delete notifications whose ``expires_at`` is not after ``now``."""

        condition = NotificationModel.expires_at <= ensure_app_naive_datetime(now)
        if title is not None:
            condition = condition | (NotificationModel.title == title)
        return self._delete_grouped_by_user(condition)

    def _delete_grouped_by_user(self, condition) -> dict[int, int]:
        counts = (
            self.session.query(NotificationModel.user_id, func.count(NotificationModel.id))
            .filter(condition)
            .group_by(NotificationModel.user_id)
            .all()
        )
        if not counts:
            return {}
        self.session.query(NotificationModel).filter(condition).delete(
            synchronize_session=False
        )
        self._commit()
        return {user_id: int(count) for user_id, count in counts}

    def _filtered_query(
        self, user_id: int, filters: NotificationFilter | None
    ) -> Query:
        query = self.session.query(NotificationModel).filter(
            NotificationModel.user_id == user_id
        )
        if filters is not None:
            if filters.category:
                query = query.filter(NotificationModel.category == filters.category)
            if filters.read is not None:
                query = query.filter(NotificationModel.read.is_(filters.read))
        return query

    def _commit(self) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            raise

    @staticmethod
    def _apply_entity_to_model(
        model: NotificationModel, notification: Notification
    ) -> None:
        related = notification.related or RelatedRefs()
        model.user_id = notification.user_id
        model.title = notification.title
        model.message = notification.message
        model.category = notification.category
        model.read = notification.read
        model.read_at = ensure_app_naive_datetime(notification.read_at)
        model.related_task_id = related.task_id
        model.related_application_id = related.application_id
        model.related_payment_id = related.payment_id
        model.action_url = notification.action_url
        model.action_text = notification.action_text
        model.icon = notification.icon
        model.priority = notification.priority
        model.expires_at = ensure_app_naive_datetime(notification.expires_at)

    @staticmethod
    def _to_entity(model: NotificationModel) -> Notification:
        return Notification(
            id=model.id,
            user_id=model.user_id,
            title=model.title,
            message=model.message,
            category=model.category,
            read=bool(model.read),
            read_at=ensure_app_timezone(model.read_at),
            related=RelatedRefs(
                task_id=model.related_task_id,
                application_id=model.related_application_id,
                payment_id=model.related_payment_id,
            ),
            action_url=model.action_url,
            action_text=model.action_text,
            icon=model.icon,
            priority=model.priority,
            expires_at=ensure_app_timezone(model.expires_at),
            created_at=ensure_app_timezone(model.created_at),
            updated_at=ensure_app_timezone(model.updated_at),
        )


__all__ = ["NotificationRepository"]
