"""
Shared route dependencies - repositories, clock and domain error mapping
"""
from fastapi import Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from datetime import datetime, timezone
from typing import Optional
import uuid

from database import get_postgres_session
from app.requests.domain.errors import DomainError, InvalidRequest, NotFound, PermissionDenied
from app.requests.infrastructure.sqlalchemy_repository import (
    SqlAlchemyNotificationRepository,
    SqlAlchemyRequestRepository,
    SqlAlchemyUserProfileRepository,
)


def new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.utcnow()


def get_id_generator():
    return new_id


def get_clock():
    return utcnow


async def get_request_repository(session: AsyncSession = Depends(get_postgres_session)):
    return SqlAlchemyRequestRepository(session)


async def get_notification_repository(session: AsyncSession = Depends(get_postgres_session)):
    return SqlAlchemyNotificationRepository(session)


async def get_user_profile_repository(session: AsyncSession = Depends(get_postgres_session)):
    return SqlAlchemyUserProfileRepository(session)


def to_http_error(exc: DomainError) -> HTTPException:
    if isinstance(exc, PermissionDenied):
        return HTTPException(status_code=403, detail=exc.message)
    if isinstance(exc, NotFound):
        return HTTPException(status_code=404, detail=exc.message)
    if isinstance(exc, InvalidRequest):
        return HTTPException(status_code=400, detail=exc.message)
    return HTTPException(status_code=400, detail=exc.message)


def naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Stored timestamps are naive UTC; aware input is converted to match."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
