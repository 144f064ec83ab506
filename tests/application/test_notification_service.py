"""Tests for the notification service: store writes, unread counter and push fan-out."""

from __future__ import annotations

from datetime import timedelta

import pytest
from sqlalchemy.exc import SQLAlchemyError

from app.application.use_cases.notifications import NotificationService
from app.domain.entities import NotificationFilter, RelatedRefs
from app.domain.errors import (
    NotificationAccessDeniedError,
    NotificationNotFoundError,
    NotificationValidationError,
    UserNotFoundError,
)
from app.infrastructure.models import NotificationModel
from app.infrastructure.notifications import (
    NotificationConnectionManager,
    WebSocketNotificationPublisher,
)
from app.infrastructure.repositories import NotificationRepository
from app.utils import now_in_app_timezone


def _stored_unread(session, user_id: int) -> int:
    session.expire_all()
    return (
        session.query(NotificationModel)
        .filter(NotificationModel.user_id == user_id, NotificationModel.read.is_(False))
        .count()
    )


@pytest.fixture
def alice(make_user) -> int:
    return make_user(email="alice@example.com", name="Alice")


@pytest.fixture
def bob(make_user) -> int:
    return make_user(email="bob@example.com", name="Bob", role="enterprise")


@pytest.fixture
def service(db_session, recording_publisher) -> NotificationService:
    return NotificationService(db_session, recording_publisher)


def test_notify_persists_unread_notification_and_pushes_in_order(
    service, recording_publisher, alice
):
    notification = service.notify(
        alice,
        "  Nueva postulación  ",
        "Bob se postuló a tu tarea",
        "info",
        RelatedRefs(task_id=3, application_id=9),
    )

    assert notification.id is not None
    assert notification.title == "Nueva postulación"
    assert notification.read is False
    assert notification.read_at is None
    assert notification.icon == "bell"
    assert notification.priority == "medium"
    assert notification.related == RelatedRefs(task_id=3, application_id=9)
    assert notification.created_at is not None
    assert recording_publisher.events == [
        ("notification", alice, notification.id),
        ("count", alice, 1),
    ]


@pytest.mark.parametrize(
    ("title", "message", "category"),
    [
        ("", "mensaje", "info"),
        ("x" * 101, "mensaje", "info"),
        ("título", "   ", "info"),
        ("título", "m" * 501, "info"),
        ("título", "mensaje", "urgent"),
    ],
)
def test_notify_rejects_invalid_payload(
    service, db_session, recording_publisher, alice, title, message, category
):
    with pytest.raises(NotificationValidationError):
        service.notify(alice, title, message, category)

    assert _stored_unread(db_session, alice) == 0
    assert recording_publisher.events == []


def test_notify_accepts_boundary_lengths(service, alice):
    notification = service.notify(alice, "t" * 100, "m" * 500, "warning")

    assert len(notification.title) == 100
    assert len(notification.message) == 500


def test_notify_rejects_unknown_priority(service, alice):
    with pytest.raises(NotificationValidationError):
        service.notify(alice, "Título", "Mensaje", priority="critical")


def test_notify_unknown_user_fails_without_push(service, recording_publisher):
    with pytest.raises(UserNotFoundError):
        service.notify(999, "Título", "Mensaje")

    assert recording_publisher.events == []


def test_notify_without_live_connection_succeeds(db_session, bob):
    publisher = WebSocketNotificationPublisher(NotificationConnectionManager())
    service = NotificationService(db_session, publisher)

    notification = service.notify(bob, "Task posted", "Your task is live", "success")

    assert notification.id is not None
    assert service.count_unread(bob) == 1


def test_failing_push_does_not_affect_durability(db_session, failing_publisher, alice):
    service = NotificationService(db_session, failing_publisher)

    notification = service.notify(alice, "Pago recibido", "Recibiste un pago", "success")

    page = service.list(alice)
    assert [item.id for item in page.items] == [notification.id]
    assert service.count_unread(alice) == 1

    service.mark_read(notification.id, alice)
    assert service.count_unread(alice) == 0


def test_store_failure_propagates_and_skips_push(db_session, recording_publisher, alice):
    class BrokenRepository(NotificationRepository):
        def create(self, notification):
            raise SQLAlchemyError("database unavailable")

    service = NotificationService(
        db_session, recording_publisher, repository=BrokenRepository(db_session)
    )

    with pytest.raises(SQLAlchemyError):
        service.notify(alice, "Título", "Mensaje")

    assert recording_publisher.events == []


def test_counter_failure_keeps_the_notification(db_session, recording_publisher, alice):
    class FlakyCountRepository(NotificationRepository):
        def count_unread(self, user_id):
            raise SQLAlchemyError("count timed out")

    service = NotificationService(
        db_session, recording_publisher, repository=FlakyCountRepository(db_session)
    )

    notification = service.notify(alice, "Título", "Mensaje")

    assert recording_publisher.events == [("notification", alice, notification.id)]
    assert _stored_unread(db_session, alice) == 1


def test_mark_read_is_idempotent(service, recording_publisher, alice):
    created = service.notify(alice, "Título", "Mensaje")

    first = service.mark_read(created.id, alice)
    second = service.mark_read(created.id, alice)

    assert first.read is True
    assert first.read_at is not None
    assert second.read is True
    assert second.read_at == first.read_at
    assert service.count_unread(alice) == 0
    assert recording_publisher.counts_for(alice) == [1, 0]


def test_mark_read_by_another_user_is_forbidden(service, db_session, alice, bob):
    created = service.notify(alice, "Título", "Mensaje")

    with pytest.raises(NotificationAccessDeniedError):
        service.mark_read(created.id, bob)

    stored = service.get(created.id, alice)
    assert stored.read is False
    assert stored.read_at is None
    assert _stored_unread(db_session, alice) == 1


def test_missing_notification_is_reported_as_not_found(service, alice):
    with pytest.raises(NotificationNotFoundError):
        service.mark_read(12345, alice)
    with pytest.raises(NotificationNotFoundError):
        service.delete(12345, alice)
    with pytest.raises(NotificationNotFoundError):
        service.get(12345, alice)


def test_mark_all_read_clears_the_counter(service, recording_publisher, alice, bob):
    created = [service.notify(alice, f"Aviso {index}", "Mensaje") for index in range(3)]
    service.notify(bob, "Otro usuario", "Mensaje")

    updated = service.mark_all_read(alice)

    assert updated == 3
    assert service.count_unread(alice) == 0
    assert service.count_unread(bob) == 1
    for notification in created:
        stored = service.get(notification.id, alice)
        assert stored.read is True
        assert stored.read_at is not None
    assert recording_publisher.counts_for(alice)[-1] == 0


def test_mark_all_read_pushes_counter_even_when_nothing_changed(
    service, recording_publisher, alice
):
    assert service.mark_all_read(alice) == 0
    assert recording_publisher.counts_for(alice) == [0]


def test_deleting_unread_notification_decrements_the_counter(service, alice):
    unread = service.notify(alice, "Sin leer", "Mensaje")
    service.notify(alice, "Otra", "Mensaje")

    service.delete(unread.id, alice)

    assert service.count_unread(alice) == 1


def test_deleting_read_notification_leaves_the_counter(service, alice):
    read = service.notify(alice, "Leída", "Mensaje")
    service.notify(alice, "Sin leer", "Mensaje")
    service.mark_read(read.id, alice)

    service.delete(read.id, alice)

    assert service.count_unread(alice) == 1


def test_delete_by_another_user_is_forbidden(service, db_session, alice, bob):
    created = service.notify(alice, "Título", "Mensaje")

    with pytest.raises(NotificationAccessDeniedError):
        service.delete(created.id, bob)

    assert service.get(created.id, alice).id == created.id
    assert _stored_unread(db_session, alice) == 1


def test_delete_all_honours_filters(service, alice):
    read_info = service.notify(alice, "Info leída", "Mensaje", "info")
    service.notify(alice, "Info", "Mensaje", "info")
    service.notify(alice, "Error", "Mensaje", "error")
    service.mark_read(read_info.id, alice)

    assert service.delete_all(alice, NotificationFilter(read=True)) == 1
    assert service.count_unread(alice) == 2

    assert service.delete_all(alice, NotificationFilter(category="error")) == 1
    assert service.count_unread(alice) == 1

    assert service.delete_all(alice) == 1
    assert service.count_unread(alice) == 0


def test_delete_all_rejects_unknown_category(service, alice):
    with pytest.raises(NotificationValidationError):
        service.delete_all(alice, NotificationFilter(category="spam"))


def test_list_paginates_newest_first_and_filters(service, alice, bob):
    created = [service.notify(alice, f"Aviso {index}", "Mensaje") for index in range(5)]
    service.notify(alice, "Alerta", "Mensaje", "warning")
    service.notify(bob, "Ajena", "Mensaje")
    service.mark_read(created[0].id, alice)

    first_page = service.list(alice, page=1, limit=4)
    second_page = service.list(alice, page=2, limit=4)

    assert first_page.total == 6
    assert first_page.pages == 2
    assert first_page.unread_count == 5
    assert len(first_page.items) == 4
    assert len(second_page.items) == 2
    ids = [item.id for item in first_page.items + second_page.items]
    assert ids == sorted(ids, reverse=True)
    assert all(item.user_id == alice for item in first_page.items + second_page.items)

    warnings = service.list(alice, filters=NotificationFilter(category="warning"))
    assert [item.title for item in warnings.items] == ["Alerta"]

    read_only = service.list(alice, filters=NotificationFilter(read=True))
    assert [item.id for item in read_only.items] == [created[0].id]


def test_list_rejects_invalid_pagination(service, alice):
    with pytest.raises(NotificationValidationError):
        service.list(alice, page=0)
    with pytest.raises(NotificationValidationError):
        service.list(alice, limit=101)


def test_notify_many_isolates_failures(db_session, recording_publisher, make_user):
    user_a = make_user(email="a@example.com")
    user_b = make_user(email="b@example.com")
    user_c = make_user(email="c@example.com")

    class FailingForB(NotificationRepository):
        def create(self, notification):
            if notification.user_id == user_b:
                raise SQLAlchemyError("write rejected")
            return super().create(notification)

    service = NotificationService(
        db_session, recording_publisher, repository=FailingForB(db_session)
    )

    created = service.notify_many(
        [user_a, user_b, user_c, user_a], "Tarea publicada", "Hay una tarea nueva", "success"
    )

    assert [notification.user_id for notification in created] == [user_a, user_c]
    assert service.count_unread(user_a) == 1
    assert service.count_unread(user_b) == 0
    assert service.count_unread(user_c) == 1


def test_notify_many_skips_missing_users(service, alice):
    created = service.notify_many([alice, 4242], "Título", "Mensaje")

    assert [notification.user_id for notification in created] == [alice]


def test_unread_counter_tracks_the_store_through_mixed_operations(
    service, db_session, alice
):
    first = service.notify(alice, "Uno", "Mensaje")
    second = service.notify(alice, "Dos", "Mensaje", "error")
    third = service.notify(alice, "Tres", "Mensaje")
    assert service.count_unread(alice) == _stored_unread(db_session, alice) == 3

    service.mark_read(first.id, alice)
    assert service.count_unread(alice) == _stored_unread(db_session, alice) == 2

    service.delete(second.id, alice)
    assert service.count_unread(alice) == _stored_unread(db_session, alice) == 1

    service.notify(alice, "Cuatro", "Mensaje")
    service.mark_all_read(alice)
    assert service.count_unread(alice) == _stored_unread(db_session, alice) == 0

    service.notify(alice, "Cinco", "Mensaje")
    service.delete(third.id, alice)
    assert service.count_unread(alice) == _stored_unread(db_session, alice) == 1

    service.delete_all(alice)
    assert service.count_unread(alice) == _stored_unread(db_session, alice) == 0


def test_delete_related_removes_notifications_of_every_owner(
    service, recording_publisher, alice, bob
):
    service.notify(alice, "Postulación", "Mensaje", related=RelatedRefs(task_id=7))
    service.notify(bob, "Tarea", "Mensaje", related=RelatedRefs(task_id=7))
    kept = service.notify(alice, "Otra tarea", "Mensaje", related=RelatedRefs(task_id=8))

    deleted = service.delete_related(task_id=7)

    assert deleted == 2
    assert [item.id for item in service.list(alice).items] == [kept.id]
    assert service.count_unread(bob) == 0
    assert recording_publisher.counts_for(alice)[-1] == 1
    assert recording_publisher.counts_for(bob)[-1] == 0


def test_delete_related_without_references_is_a_no_op(service, alice):
    service.notify(alice, "Título", "Mensaje")

    assert RelatedRefs().is_empty()
    assert service.delete_related() == 0
    assert service.count_unread(alice) == 1


def test_purge_expired_only_removes_expired_notifications(service, alice):
    now = now_in_app_timezone()
    service.notify(alice, "Vencida", "Mensaje", expires_at=now - timedelta(hours=1))
    alive = service.notify(alice, "Vigente", "Mensaje", expires_at=now + timedelta(days=1))
    forever = service.notify(alice, "Sin vencimiento", "Mensaje")

    assert service.purge_expired(now) == 1
    remaining = {item.id for item in service.list(alice).items}
    assert remaining == {alive.id, forever.id}


def test_purge_can_also_remove_by_title(service, alice):
    service.notify(alice, "Tarea publicada", "Mensaje")
    kept = service.notify(alice, "Pago recibido", "Mensaje")

    assert service.purge_expired(title="Tarea publicada") == 1
    assert [item.id for item in service.list(alice).items] == [kept.id]
