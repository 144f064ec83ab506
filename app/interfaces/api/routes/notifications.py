"""Endpoints and websocket handler for user notifications."""

from __future__ import annotations

import logging
from typing import NoReturn

from anyio import to_thread
from fastapi import (
    APIRouter,
    Depends,
    HTTPException,
    Query,
    Response,
    WebSocket,
    status,
)
from sqlalchemy.exc import SQLAlchemyError

from app.application.use_cases.notifications import NotificationService
from app.domain.entities import NotificationFilter, User
from app.domain.errors import (
    NotificationAccessDeniedError,
    NotificationNotFoundError,
    NotificationValidationError,
)
from app.infrastructure import database
from app.infrastructure.notifications import unread_count_message
from app.infrastructure.repositories import NotificationRepository
from app.interfaces.api.dependencies import (
    get_current_active_user,
    get_notification_service,
    resolve_current_user,
)
from app.interfaces.api.schemas import (
    BulkDeleteResponse,
    MarkAllReadResponse,
    NotificationPageRead,
    NotificationRead,
    PaginationRead,
    UnreadCountRead,
)

router = APIRouter(prefix="/notifications", tags=["notifications"])
logger = logging.getLogger(__name__)

_POLICY_VIOLATION = 1008
_INTERNAL_ERROR = 1011


def _raise_http_error(exc: ValueError) -> NoReturn:
    if isinstance(exc, NotificationNotFoundError):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    if isinstance(exc, NotificationAccessDeniedError):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


@router.get("/", response_model=NotificationPageRead)
def list_notifications(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    category: str | None = Query(None, description="info, success, warning o error"),
    read: bool | None = Query(None, description="Filtra por estado de lectura"),
    service: NotificationService = Depends(get_notification_service),
    current_user: User = Depends(get_current_active_user),
) -> NotificationPageRead:
    """Devuelve las notificaciones del usuario autenticado, de la más reciente a la más antigua."""

    try:
        result = service.list(
            current_user.id,
            page=page,
            limit=limit,
            filters=NotificationFilter(category=category, read=read),
        )
    except NotificationValidationError as exc:
        _raise_http_error(exc)

    return NotificationPageRead(
        notifications=[NotificationRead.from_entity(item) for item in result.items],
        pagination=PaginationRead(
            page=result.page,
            limit=result.limit,
            total=result.total,
            pages=result.pages,
        ),
        unread_count=result.unread_count,
    )


@router.get("/unread-count", response_model=UnreadCountRead)
def read_unread_count(
    service: NotificationService = Depends(get_notification_service),
    current_user: User = Depends(get_current_active_user),
) -> UnreadCountRead:
    """Devuelve la cantidad de notificaciones sin leer."""

    return UnreadCountRead(unread_count=service.count_unread(current_user.id))


@router.put("/read-all", response_model=MarkAllReadResponse)
def mark_all_notifications_read(
    service: NotificationService = Depends(get_notification_service),
    current_user: User = Depends(get_current_active_user),
) -> MarkAllReadResponse:
    """Marca todas las notificaciones del usuario como leídas."""

    updated = service.mark_all_read(current_user.id)
    return MarkAllReadResponse(
        updated=updated, unread_count=service.count_unread(current_user.id)
    )


@router.delete("/all", response_model=BulkDeleteResponse)
def delete_all_notifications(
    category: str | None = Query(None, description="info, success, warning o error"),
    read: bool | None = Query(None, description="Filtra por estado de lectura"),
    service: NotificationService = Depends(get_notification_service),
    current_user: User = Depends(get_current_active_user),
) -> BulkDeleteResponse:
    """Elimina las notificaciones del usuario, opcionalmente filtradas."""

    try:
        deleted = service.delete_all(
            current_user.id, NotificationFilter(category=category, read=read)
        )
    except NotificationValidationError as exc:
        _raise_http_error(exc)

    return BulkDeleteResponse(
        deleted=deleted, unread_count=service.count_unread(current_user.id)
    )


@router.get("/{notification_id}", response_model=NotificationRead)
def read_notification(
    notification_id: int,
    service: NotificationService = Depends(get_notification_service),
    current_user: User = Depends(get_current_active_user),
) -> NotificationRead:
    """Obtiene una notificación propia."""

    try:
        notification = service.get(notification_id, current_user.id)
    except ValueError as exc:
        _raise_http_error(exc)
    return NotificationRead.from_entity(notification)


@router.put("/{notification_id}/read", response_model=NotificationRead)
def mark_notification_read(
    notification_id: int,
    service: NotificationService = Depends(get_notification_service),
    current_user: User = Depends(get_current_active_user),
) -> NotificationRead:
    """Marca una notificación como leída. Repetir la llamada no tiene efecto."""

    try:
        notification = service.mark_read(notification_id, current_user.id)
    except ValueError as exc:
        _raise_http_error(exc)
    return NotificationRead.from_entity(notification)


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_notification(
    notification_id: int,
    service: NotificationService = Depends(get_notification_service),
    current_user: User = Depends(get_current_active_user),
) -> Response:
    """Elimina una notificación propia."""

    try:
        service.delete(notification_id, current_user.id)
    except ValueError as exc:
        _raise_http_error(exc)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


def _authenticate_socket(token: str) -> User:
    """Resolve an active user for the websocket ``token`` or raise ``HTTPException``."""

    with database.SessionLocal() as session:
        user = resolve_current_user(token, session)
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Cuenta desactivada")
    return user


def _count_unread(user_id: int) -> int:
    with database.SessionLocal() as session:
        return NotificationRepository(session).count_unread(user_id)


@router.websocket("/ws")
async def notifications_websocket(websocket: WebSocket) -> None:
    """Canal en tiempo real que entrega notificaciones y el contador de no leídas."""

    manager = websocket.app.state.notification_manager

    token = websocket.query_params.get("token")
    if not token:
        await websocket.close(code=_POLICY_VIOLATION)
        return

    try:
        user = await to_thread.run_sync(_authenticate_socket, token)
    except HTTPException:
        await websocket.close(code=_POLICY_VIOLATION)
        return
    except SQLAlchemyError:
        logger.exception("No se pudo autenticar la conexión en tiempo real")
        await websocket.close(code=_INTERNAL_ERROR)
        return

    # Register before counting: a notification stored meanwhile is either in
    # the count or pushed through this session afterwards.
    push_session = await manager.connect(user.id, websocket)
    try:
        # Count and enqueue without yielding so no concurrent push lands between them.
        push_session.enqueue(unread_count_message(_count_unread(user.id)))
    except SQLAlchemyError:
        logger.exception("No se pudo calcular el contador inicial del usuario %s", user.id)
        manager.disconnect(push_session)
        await websocket.close(code=_INTERNAL_ERROR)
        return

    try:
        # Client frames carry no meaning on this channel; they are drained
        # only to notice the disconnect.
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
    finally:
        manager.disconnect(push_session)
