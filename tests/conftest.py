import sys
from dataclasses import replace
from datetime import datetime
from pathlib import Path

import pytest


BACKEND_PATH = Path(__file__).resolve().parents[1] / "backend"
if str(BACKEND_PATH) not in sys.path:
    sys.path.append(str(BACKEND_PATH))

from app.requests.domain.models import (  # noqa: E402
    CurrentUser,
    MaintenanceRequest,
    Order,
    OrderItem,
)


def _matches(request, filters):
    if filters.restaurant_id and request.restaurant_id != filters.restaurant_id:
        return False
    if filters.status and request.status != filters.status:
        return False
    if filters.created_from and request.created_at < filters.created_from:
        return False
    if filters.created_to and request.created_at > filters.created_to:
        return False
    return True


class FakeRequestRepository:
    """In-memory store evaluating only the equality predicates, like the database."""

    def __init__(self) -> None:
        self.orders = {}
        self.maintenance_requests = {}
        self.notifications = []
        self.commits = 0
        self.last_filters = None
        self.fail_notifications = False

    async def add_order(self, order):
        self.orders[order.id] = order

    async def get_order(self, order_id):
        return self.orders.get(order_id)

    async def list_orders(self, filters):
        self.last_filters = filters
        return [order for order in self.orders.values() if _matches(order, filters)]

    async def save_order(self, order):
        self.orders[order.id] = order

    async def add_maintenance_request(self, request):
        self.maintenance_requests[request.id] = request

    async def get_maintenance_request(self, request_id):
        return self.maintenance_requests.get(request_id)

    async def list_maintenance_requests(self, filters):
        self.last_filters = filters
        return [
            request
            for request in self.maintenance_requests.values()
            if _matches(request, filters)
        ]

    async def save_maintenance_request(self, request):
        self.maintenance_requests[request.id] = request

    async def add_notification(self, notification):
        if self.fail_notifications:
            raise RuntimeError("notification store unavailable")
        self.notifications.append(notification)

    async def commit(self):
        self.commits += 1


class FakeNotificationRepository:
    def __init__(self, notifications=None) -> None:
        self.notifications = {n.id: n for n in notifications or []}
        self.committed = False

    async def list_notifications(self, recipients):
        return [n for n in self.notifications.values() if n.recipient in recipients]

    async def get_notification(self, notification_id):
        return self.notifications.get(notification_id)

    async def mark_read(self, notification_ids):
        for notification_id in notification_ids:
            self.notifications[notification_id] = replace(
                self.notifications[notification_id], read=True
            )

    async def commit(self):
        self.committed = True


class FakeUserProfileRepository:
    def __init__(self) -> None:
        self.active_restaurants = {}
        self.committed = False

    async def set_active_restaurant(self, uid, restaurant_id, updated_at):
        self.active_restaurants[uid] = restaurant_id

    async def commit(self):
        self.committed = True


NOW = datetime(2026, 3, 10, 12, 0, 0)


def make_order(order_id="order-1", **overrides):
    values = dict(
        id=order_id,
        created_at=NOW,
        updated_at=NOW,
        created_by="creator-1",
        restaurant_id="1",
        status="pending",
        priority="normal",
        department="bar",
        category="alcohol",
        items=[OrderItem(name="Vin rouge", quantity=12, unit="bottles")],
    )
    values.update(overrides)
    return Order(**values)


def make_maintenance(request_id="maint-1", **overrides):
    values = dict(
        id=request_id,
        created_at=NOW,
        updated_at=NOW,
        created_by="creator-1",
        restaurant_id="1",
        status="pending",
        priority="normal",
        department="kitchen",
        category="plumbing",
        location="Cuisine",
        description="Fuite sous l'évier",
    )
    values.update(overrides)
    return MaintenanceRequest(**values)


@pytest.fixture
def repository():
    return FakeRequestRepository()


@pytest.fixture
def maintenance_user():
    return CurrentUser(uid="maint-user", role="maintenance")


@pytest.fixture
def room_manager():
    return CurrentUser(uid="room-manager", role="room_manager", restaurant_id="2")


@pytest.fixture
def order_factory():
    return make_order


@pytest.fixture
def maintenance_factory():
    return make_maintenance


@pytest.fixture
def notification_repository_factory():
    return FakeNotificationRepository


@pytest.fixture
def profile_repository():
    return FakeUserProfileRepository()
