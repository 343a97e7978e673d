"""
Notifications Routes
"""
from fastapi import APIRouter, HTTPException, Depends
from sqlalchemy.exc import SQLAlchemyError
import logging

from app.requests.application.use_cases import (
    ListNotificationsUseCase,
    MarkAllNotificationsReadUseCase,
    MarkNotificationReadUseCase,
)
from app.requests.domain.errors import DomainError
from app.requests.domain.models import CurrentUser
from app.requests.presentation.response_mapper import notification_feed_to_response
from routes.auth_routes import get_current_context
from routes.dependencies import get_notification_repository, to_http_error

logger = logging.getLogger(__name__)

# Create router
notifications_router = APIRouter(prefix="/api", tags=["Notifications"])

STORAGE_ERROR = "Erreur lors de l'accès aux notifications"


@notifications_router.get("/notifications")
async def get_notifications(
    current_user: CurrentUser = Depends(get_current_context),
    repository=Depends(get_notification_repository),
):
    """Notifications addressed to the user or to the user's role"""
    try:
        feed = await ListNotificationsUseCase(repository).execute(current_user)
    except SQLAlchemyError:
        logger.exception(f"Notification feed failed for {current_user.uid}")
        raise HTTPException(status_code=500, detail=STORAGE_ERROR)
    return notification_feed_to_response(feed)


@notifications_router.post("/notifications/read-all")
async def mark_all_notifications_read(
    current_user: CurrentUser = Depends(get_current_context),
    repository=Depends(get_notification_repository),
):
    try:
        count = await MarkAllNotificationsReadUseCase(repository).execute(current_user)
    except SQLAlchemyError:
        logger.exception(f"Marking notifications read failed for {current_user.uid}")
        raise HTTPException(status_code=500, detail=STORAGE_ERROR)
    return {"message": "Notifications marquées comme lues", "count": count}


@notifications_router.post("/notifications/{notification_id}/read")
async def mark_notification_read(
    notification_id: str,
    current_user: CurrentUser = Depends(get_current_context),
    repository=Depends(get_notification_repository),
):
    try:
        await MarkNotificationReadUseCase(repository).execute(notification_id, current_user)
    except DomainError as exc:
        raise to_http_error(exc)
    except SQLAlchemyError:
        logger.exception(f"Marking notification {notification_id} read failed")
        raise HTTPException(status_code=500, detail=STORAGE_ERROR)
    return {"message": "Notification marquée comme lue"}
