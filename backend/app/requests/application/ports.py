from datetime import datetime
from typing import Optional, Protocol, Sequence

from app.requests.domain.models import (
    MaintenanceRequest,
    Notification,
    Order,
    RequestFilters,
)


class RequestRepository(Protocol):
    async def add_order(self, order: Order) -> None:
        ...

    async def get_order(self, order_id: str) -> Optional[Order]:
        ...

    async def list_orders(self, filters: RequestFilters) -> Sequence[Order]:
        ...

    async def save_order(self, order: Order) -> None:
        ...

    async def add_maintenance_request(self, request: MaintenanceRequest) -> None:
        ...

    async def get_maintenance_request(self, request_id: str) -> Optional[MaintenanceRequest]:
        ...

    async def list_maintenance_requests(
        self, filters: RequestFilters
    ) -> Sequence[MaintenanceRequest]:
        ...

    async def save_maintenance_request(self, request: MaintenanceRequest) -> None:
        ...

    async def add_notification(self, notification: Notification) -> None:
        ...

    async def commit(self) -> None:
        ...


class NotificationRepository(Protocol):
    async def list_notifications(self, recipients: Sequence[str]) -> Sequence[Notification]:
        ...

    async def get_notification(self, notification_id: str) -> Optional[Notification]:
        ...

    async def mark_read(self, notification_ids: Sequence[str]) -> None:
        ...

    async def commit(self) -> None:
        ...


class UserProfileRepository(Protocol):
    async def set_active_restaurant(
        self, uid: str, restaurant_id: Optional[str], updated_at: datetime
    ) -> None:
        ...

    async def commit(self) -> None:
        ...
