"""
Access policy for orders and maintenance requests.

Every route and use case goes through these functions; nothing here holds
state, so the answer always reflects the user and request as passed in.
"""
from typing import Optional

from app.requests.domain.errors import PermissionDenied
from app.requests.domain.models import (
    MANAGER_ROLES,
    CurrentUser,
    Department,
    Request,
    RequestStatus,
    UserRole,
)

ALL_RESTAURANTS = "ALL"

REPORT_ROLES = frozenset({UserRole.MAINTENANCE.value, UserRole.RESTAURANT_MANAGER.value})


def is_maintenance(user: CurrentUser) -> bool:
    return user.role == UserRole.MAINTENANCE


def resolve_scope(user: CurrentUser) -> str:
    """Restaurant id the user's queries are narrowed to, or ``ALL_RESTAURANTS``."""
    if is_maintenance(user):
        return user.active_restaurant_id or ALL_RESTAURANTS
    return user.restaurant_id


def in_scope(request: Request, scope: str) -> bool:
    return scope == ALL_RESTAURANTS or request.restaurant_id == scope


def can_view(user: CurrentUser, request: Request) -> bool:
    return in_scope(request, resolve_scope(user))


def can_edit(user: CurrentUser, request: Request) -> bool:
    if is_maintenance(user):
        return True
    if user.role in MANAGER_ROLES and request.restaurant_id == user.restaurant_id:
        return True
    # The creator keeps the hand until someone acts on the request.
    if user.uid == request.created_by and request.status == RequestStatus.PENDING:
        return True
    return False


def can_switch_to(user: CurrentUser, target_restaurant_id: Optional[str]) -> bool:
    """``None`` as target means "all restaurants", which only maintenance may pick."""
    if is_maintenance(user):
        return True
    return target_restaurant_id is not None and target_restaurant_id == user.restaurant_id


def can_view_reports(user: CurrentUser) -> bool:
    return user.role in REPORT_ROLES


def default_department(role: str) -> str:
    if role == UserRole.ROOM_MANAGER:
        return Department.ROOM.value
    if role == UserRole.BAR_MANAGER:
        return Department.BAR.value
    return Department.GENERAL.value


def ensure_can_edit(user: CurrentUser, request: Request) -> None:
    if not can_edit(user, request):
        raise PermissionDenied("Vous n'avez pas les droits pour modifier cette demande.")


def ensure_can_switch_to(user: CurrentUser, target_restaurant_id: Optional[str]) -> None:
    if not can_switch_to(user, target_restaurant_id):
        raise PermissionDenied("Vous n'avez pas les droits pour accéder à ce restaurant.")


def ensure_can_view_reports(user: CurrentUser) -> None:
    if not can_view_reports(user):
        raise PermissionDenied("Vous n'avez pas accès aux rapports.")
