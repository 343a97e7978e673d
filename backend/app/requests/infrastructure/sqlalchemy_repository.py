import uuid
from datetime import datetime
from typing import Optional, Sequence

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.requests.application.ports import (
    NotificationRepository,
    RequestRepository,
    UserProfileRepository,
)
from app.requests.domain.models import (
    MaintenanceRequest,
    Notification,
    Order,
    OrderItem,
    RequestFilters,
)
from database import (
    MaintenanceRequest as MaintenanceRequestModel,
    Notification as NotificationModel,
    Order as OrderModel,
    OrderItem as OrderItemModel,
    User,
)


def _apply_filters(query, model, filters: RequestFilters):
    if filters.restaurant_id:
        query = query.where(model.restaurant_id == filters.restaurant_id)
    if filters.status:
        query = query.where(model.status == filters.status)
    if filters.created_from:
        query = query.where(model.created_at >= filters.created_from)
    if filters.created_to:
        query = query.where(model.created_at <= filters.created_to)
    return query


def _to_notification(row: NotificationModel) -> Notification:
    return Notification(
        id=row.id,
        recipient=row.recipient,
        title=row.title,
        message=row.message,
        created_at=row.created_at,
        related_type=row.related_type,
        related_id=row.related_id,
        read=row.read,
    )


def _to_maintenance_request(row: MaintenanceRequestModel) -> MaintenanceRequest:
    return MaintenanceRequest(
        id=row.id,
        created_at=row.created_at,
        updated_at=row.updated_at,
        created_by=row.created_by,
        restaurant_id=row.restaurant_id,
        status=row.status,
        priority=row.priority,
        department=row.department,
        category=row.category,
        location=row.location,
        description=row.description,
        comments=row.comments or "",
        photo_urls=list(row.photo_urls or []),
        estimated_completion_date=row.estimated_completion_date,
        actual_completion_date=row.actual_completion_date,
        assigned_to=row.assigned_to,
        updated_by=row.updated_by,
    )


def _to_order(row: OrderModel, items: Sequence[OrderItem]) -> Order:
    return Order(
        id=row.id,
        created_at=row.created_at,
        updated_at=row.updated_at,
        created_by=row.created_by,
        restaurant_id=row.restaurant_id,
        status=row.status,
        priority=row.priority,
        department=row.department,
        category=row.category,
        items=list(items),
        comments=row.comments or "",
        photo_urls=list(row.photo_urls or []),
        is_recurring=row.is_recurring,
        recurring_frequency=row.recurring_frequency,
        estimated_delivery_date=row.estimated_delivery_date,
        actual_delivery_date=row.actual_delivery_date,
        assigned_to=row.assigned_to,
        updated_by=row.updated_by,
    )


class SqlAlchemyRequestRepository(RequestRepository):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def _items_by_order(self, order_ids: Sequence[str]) -> dict[str, list[OrderItem]]:
        items_by_order: dict[str, list[OrderItem]] = {}
        if not order_ids:
            return items_by_order

        items_result = await self._session.execute(
            select(OrderItemModel)
            .where(OrderItemModel.order_id.in_(order_ids))
            .order_by(OrderItemModel.order_id, OrderItemModel.item_index)
        )
        for item in items_result.scalars().all():
            items_by_order.setdefault(item.order_id, []).append(
                OrderItem(
                    name=item.name,
                    quantity=item.quantity,
                    unit=item.unit,
                    notes=item.notes,
                )
            )
        return items_by_order

    async def add_order(self, order: Order) -> None:
        self._session.add(
            OrderModel(
                id=order.id,
                restaurant_id=order.restaurant_id,
                created_by=order.created_by,
                status=order.status,
                priority=order.priority,
                department=order.department,
                category=order.category,
                comments=order.comments,
                photo_urls=list(order.photo_urls),
                is_recurring=order.is_recurring,
                recurring_frequency=order.recurring_frequency,
                created_at=order.created_at,
                updated_at=order.updated_at,
            )
        )

        for index, item in enumerate(order.items):
            self._session.add(
                OrderItemModel(
                    id=str(uuid.uuid4()),
                    order_id=order.id,
                    name=item.name,
                    quantity=item.quantity,
                    unit=item.unit,
                    notes=item.notes,
                    item_index=index,
                )
            )

    async def get_order(self, order_id: str) -> Optional[Order]:
        result = await self._session.execute(select(OrderModel).where(OrderModel.id == order_id))
        row = result.scalar_one_or_none()
        if row is None:
            return None
        items_by_order = await self._items_by_order([row.id])
        return _to_order(row, items_by_order.get(row.id, []))

    async def list_orders(self, filters: RequestFilters) -> Sequence[Order]:
        result = await self._session.execute(_apply_filters(select(OrderModel), OrderModel, filters))
        rows = result.scalars().all()
        items_by_order = await self._items_by_order([row.id for row in rows])
        return [_to_order(row, items_by_order.get(row.id, [])) for row in rows]

    async def save_order(self, order: Order) -> None:
        # Items are fixed at creation; only the editable columns are written back.
        await self._session.execute(
            update(OrderModel)
            .where(OrderModel.id == order.id)
            .values(
                status=order.status,
                priority=order.priority,
                comments=order.comments,
                assigned_to=order.assigned_to,
                estimated_delivery_date=order.estimated_delivery_date,
                actual_delivery_date=order.actual_delivery_date,
                updated_by=order.updated_by,
                updated_at=order.updated_at,
            )
        )

    async def add_maintenance_request(self, request: MaintenanceRequest) -> None:
        self._session.add(
            MaintenanceRequestModel(
                id=request.id,
                restaurant_id=request.restaurant_id,
                created_by=request.created_by,
                status=request.status,
                priority=request.priority,
                department=request.department,
                category=request.category,
                location=request.location,
                description=request.description,
                comments=request.comments,
                photo_urls=list(request.photo_urls),
                created_at=request.created_at,
                updated_at=request.updated_at,
            )
        )

    async def get_maintenance_request(self, request_id: str) -> Optional[MaintenanceRequest]:
        result = await self._session.execute(
            select(MaintenanceRequestModel).where(MaintenanceRequestModel.id == request_id)
        )
        row = result.scalar_one_or_none()
        if row is None:
            return None
        return _to_maintenance_request(row)

    async def list_maintenance_requests(
        self, filters: RequestFilters
    ) -> Sequence[MaintenanceRequest]:
        result = await self._session.execute(
            _apply_filters(select(MaintenanceRequestModel), MaintenanceRequestModel, filters)
        )
        return [_to_maintenance_request(row) for row in result.scalars().all()]

    async def save_maintenance_request(self, request: MaintenanceRequest) -> None:
        await self._session.execute(
            update(MaintenanceRequestModel)
            .where(MaintenanceRequestModel.id == request.id)
            .values(
                status=request.status,
                priority=request.priority,
                comments=request.comments,
                assigned_to=request.assigned_to,
                estimated_completion_date=request.estimated_completion_date,
                actual_completion_date=request.actual_completion_date,
                updated_by=request.updated_by,
                updated_at=request.updated_at,
            )
        )

    async def add_notification(self, notification: Notification) -> None:
        self._session.add(
            NotificationModel(
                id=notification.id,
                recipient=notification.recipient,
                title=notification.title,
                message=notification.message,
                related_type=notification.related_type,
                related_id=notification.related_id,
                read=notification.read,
                created_at=notification.created_at,
            )
        )

    async def commit(self) -> None:
        await self._session.commit()


class SqlAlchemyNotificationRepository(NotificationRepository):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_notifications(self, recipients: Sequence[str]) -> Sequence[Notification]:
        result = await self._session.execute(
            select(NotificationModel).where(NotificationModel.recipient.in_(list(recipients)))
        )
        return [_to_notification(row) for row in result.scalars().all()]

    async def get_notification(self, notification_id: str) -> Optional[Notification]:
        result = await self._session.execute(
            select(NotificationModel).where(NotificationModel.id == notification_id)
        )
        row = result.scalar_one_or_none()
        return _to_notification(row) if row is not None else None

    async def mark_read(self, notification_ids: Sequence[str]) -> None:
        await self._session.execute(
            update(NotificationModel)
            .where(NotificationModel.id.in_(list(notification_ids)))
            .values(read=True)
        )

    async def commit(self) -> None:
        await self._session.commit()


class SqlAlchemyUserProfileRepository(UserProfileRepository):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def set_active_restaurant(
        self, uid: str, restaurant_id: Optional[str], updated_at: datetime
    ) -> None:
        await self._session.execute(
            update(User)
            .where(User.id == uid)
            .values(active_restaurant_id=restaurant_id, updated_at=updated_at)
        )

    async def commit(self) -> None:
        await self._session.commit()
