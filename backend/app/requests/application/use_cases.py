from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Callable, Dict, List, Optional, Sequence, Type

from app.requests.application.ports import (
    NotificationRepository,
    RequestRepository,
    UserProfileRepository,
)
from app.requests.domain import policy, query
from app.requests.domain.errors import InvalidRequest, NotFound
from app.requests.domain.labels import (
    MAINTENANCE_CATEGORY_LABELS,
    ORDER_CATEGORY_LABELS,
    STATUS_LABELS,
    label,
    restaurant_name,
)
from app.requests.domain.models import (
    RESTAURANTS,
    CurrentUser,
    Department,
    MaintenanceCategory,
    MaintenanceRequest,
    Notification,
    Order,
    OrderCategory,
    OrderItem,
    Priority,
    RecurringFrequency,
    Request,
    RequestFilters,
    RequestPredicates,
    RequestStatus,
    UserRole,
)

ORDER = "order"
MAINTENANCE = "maintenance"
REQUEST_KINDS = (ORDER, MAINTENANCE)

MAX_PHOTOS = 5


@dataclass(frozen=True)
class OrderItemInput:
    name: str
    quantity: int
    unit: str
    notes: Optional[str] = None


@dataclass(frozen=True)
class CreateOrderCommand:
    category: str
    items: Sequence[OrderItemInput]
    priority: str = Priority.NORMAL.value
    department: Optional[str] = None
    comments: str = ""
    photo_urls: Sequence[str] = field(default_factory=list)
    is_recurring: bool = False
    recurring_frequency: Optional[str] = None


@dataclass(frozen=True)
class CreateMaintenanceRequestCommand:
    category: str
    location: str
    description: str
    priority: str = Priority.NORMAL.value
    department: Optional[str] = None
    comments: str = ""
    photo_urls: Sequence[str] = field(default_factory=list)


@dataclass(frozen=True)
class UpdateRequestCommand:
    """Edit form payload. ``None`` leaves the field untouched.

    A blank ``assigned_to`` unassigns the request. Dates can be set or moved
    but not cleared.

    ``estimated_date`` / ``actual_date`` map to the delivery dates of an
    order and the completion dates of a maintenance request.
    """

    status: Optional[str] = None
    priority: Optional[str] = None
    comments: Optional[str] = None
    assigned_to: Optional[str] = None
    estimated_date: Optional[datetime] = None
    actual_date: Optional[datetime] = None


@dataclass(frozen=True)
class ListRequestsQuery:
    predicates: RequestPredicates = field(default_factory=RequestPredicates)
    sort_key: str = query.DEFAULT_SORT_KEY
    direction: str = query.DEFAULT_SORT_DIRECTION


@dataclass(frozen=True)
class ReportQuery:
    period: str = "month"
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    restaurant_id: Optional[str] = None


@dataclass(frozen=True)
class DashboardSummary:
    scope: str
    pending_orders_count: int
    pending_orders: Sequence[Order]
    pending_maintenance_count: int
    pending_maintenance: Sequence[MaintenanceRequest]
    recent_requests: Sequence[Request]


@dataclass(frozen=True)
class RequestReport:
    scope: str
    start: datetime
    end: datetime
    orders: Sequence[Order]
    maintenance_requests: Sequence[MaintenanceRequest]
    orders_by_restaurant: Dict[str, int]
    orders_by_category: Dict[str, int]
    maintenance_by_status: Dict[str, int]
    maintenance_by_category: Dict[str, int]
    average_resolution_days: float
    pending_maintenance_count: int


@dataclass(frozen=True)
class NotificationFeed:
    notifications: Sequence[Notification]
    unread_count: int


IdGenerator = Callable[[], str]
Clock = Callable[[], datetime]


def _choice(value: str, choices: Type, message: str) -> str:
    try:
        return choices(value).value
    except ValueError:
        raise InvalidRequest(message)


def _creation_restaurant(current_user: CurrentUser) -> str:
    scope = policy.resolve_scope(current_user)
    if not scope or scope == policy.ALL_RESTAURANTS:
        raise InvalidRequest("Vous devez sélectionner un restaurant")
    return scope


def _check_photos(photo_urls: Sequence[str]) -> List[str]:
    if len(photo_urls) > MAX_PHOTOS:
        raise InvalidRequest(f"{MAX_PHOTOS} photos maximum")
    return list(photo_urls)


def _store_filters(scope: str, **extra) -> RequestFilters:
    restaurant_id = None if scope == policy.ALL_RESTAURANTS else scope
    return RequestFilters(restaurant_id=restaurant_id, **extra)


async def _fetch(
    repository: RequestRepository, kind: str, filters: RequestFilters
) -> Sequence[Request]:
    if kind == ORDER:
        return await repository.list_orders(filters)
    return await repository.list_maintenance_requests(filters)


async def _get(repository: RequestRepository, kind: str, request_id: str) -> Optional[Request]:
    if kind == ORDER:
        return await repository.get_order(request_id)
    return await repository.get_maintenance_request(request_id)


async def _save(repository: RequestRepository, request: Request) -> None:
    if isinstance(request, Order):
        await repository.save_order(request)
    else:
        await repository.save_maintenance_request(request)


def _check_kind(kind: str) -> str:
    if kind not in REQUEST_KINDS:
        raise ValueError(f"unknown request kind: {kind}")
    return kind


class CreateOrderUseCase:
    def __init__(
        self,
        repository: RequestRepository,
        id_generator: IdGenerator,
        clock: Clock,
    ) -> None:
        self._repository = repository
        self._id_generator = id_generator
        self._clock = clock

    async def execute(self, command: CreateOrderCommand, current_user: CurrentUser) -> Order:
        restaurant_id = _creation_restaurant(current_user)

        category = _choice(command.category, OrderCategory, "Catégorie requise")
        priority = _choice(command.priority, Priority, "Priorité requise")
        department = _choice(
            command.department or policy.default_department(current_user.role),
            Department,
            "Département requis",
        )

        if not command.items:
            raise InvalidRequest("Au moins un article est requis")

        for item in command.items:
            if not item.name.strip():
                raise InvalidRequest("Nom requis")
            if not item.unit.strip():
                raise InvalidRequest("Unité requise")
            if item.quantity < 1:
                raise InvalidRequest("Quantité minimum : 1")

        recurring_frequency = None
        if command.is_recurring:
            if not command.recurring_frequency:
                raise InvalidRequest("Fréquence requise")
            recurring_frequency = _choice(
                command.recurring_frequency, RecurringFrequency, "Fréquence requise"
            )

        now = self._clock()
        order = Order(
            id=self._id_generator(),
            created_at=now,
            updated_at=now,
            created_by=current_user.uid,
            restaurant_id=restaurant_id,
            status=RequestStatus.PENDING.value,
            priority=priority,
            department=department,
            category=category,
            items=[
                OrderItem(
                    name=item.name.strip(),
                    quantity=item.quantity,
                    unit=item.unit.strip(),
                    notes=item.notes or None,
                )
                for item in command.items
            ],
            comments=command.comments or "",
            photo_urls=_check_photos(command.photo_urls),
            is_recurring=command.is_recurring,
            recurring_frequency=recurring_frequency,
        )

        await self._repository.add_order(order)
        await self._repository.commit()

        # Separate write: a failure here leaves the order in place.
        await self._repository.add_notification(
            Notification(
                id=self._id_generator(),
                recipient=UserRole.MAINTENANCE.value,
                title="Nouvelle commande",
                message=f"{restaurant_name(restaurant_id)} - {label(ORDER_CATEGORY_LABELS, category)}",
                created_at=now,
                related_type=ORDER,
                related_id=order.id,
            )
        )
        await self._repository.commit()

        return order


class CreateMaintenanceRequestUseCase:
    def __init__(
        self,
        repository: RequestRepository,
        id_generator: IdGenerator,
        clock: Clock,
    ) -> None:
        self._repository = repository
        self._id_generator = id_generator
        self._clock = clock

    async def execute(
        self,
        command: CreateMaintenanceRequestCommand,
        current_user: CurrentUser,
    ) -> MaintenanceRequest:
        restaurant_id = _creation_restaurant(current_user)

        category = _choice(command.category, MaintenanceCategory, "Catégorie requise")
        priority = _choice(command.priority, Priority, "Priorité requise")
        department = _choice(
            command.department or policy.default_department(current_user.role),
            Department,
            "Département requis",
        )
        if not command.location.strip():
            raise InvalidRequest("Emplacement requis")
        if not command.description.strip():
            raise InvalidRequest("Description requise")

        now = self._clock()
        request = MaintenanceRequest(
            id=self._id_generator(),
            created_at=now,
            updated_at=now,
            created_by=current_user.uid,
            restaurant_id=restaurant_id,
            status=RequestStatus.PENDING.value,
            priority=priority,
            department=department,
            category=category,
            location=command.location.strip(),
            description=command.description.strip(),
            comments=command.comments or "",
            photo_urls=_check_photos(command.photo_urls),
        )

        await self._repository.add_maintenance_request(request)
        await self._repository.commit()

        await self._repository.add_notification(
            Notification(
                id=self._id_generator(),
                recipient=UserRole.MAINTENANCE.value,
                title="Nouvelle demande de maintenance",
                message=(
                    f"{restaurant_name(restaurant_id)} - "
                    f"{label(MAINTENANCE_CATEGORY_LABELS, category)}"
                ),
                created_at=now,
                related_type=MAINTENANCE,
                related_id=request.id,
            )
        )
        await self._repository.commit()

        return request


class GetRequestUseCase:
    def __init__(self, repository: RequestRepository, kind: str) -> None:
        self._repository = repository
        self._kind = _check_kind(kind)

    async def execute(self, request_id: str, current_user: CurrentUser) -> Request:
        request = await _get(self._repository, self._kind, request_id)
        # Requests outside the user's reach look the same as missing ones.
        if request is None or not (
            policy.can_view(current_user, request) or policy.can_edit(current_user, request)
        ):
            raise NotFound("Demande introuvable")
        return request


class UpdateRequestUseCase:
    def __init__(
        self,
        repository: RequestRepository,
        kind: str,
        id_generator: IdGenerator,
        clock: Clock,
    ) -> None:
        self._repository = repository
        self._kind = _check_kind(kind)
        self._id_generator = id_generator
        self._clock = clock

    async def execute(
        self,
        request_id: str,
        command: UpdateRequestCommand,
        current_user: CurrentUser,
    ) -> Request:
        existing = await _get(self._repository, self._kind, request_id)
        if existing is None:
            raise NotFound("Demande introuvable")

        policy.ensure_can_edit(current_user, existing)

        changes = {}
        if command.status is not None:
            changes["status"] = _choice(command.status, RequestStatus, "Statut invalide")
        if command.priority is not None:
            changes["priority"] = _choice(command.priority, Priority, "Priorité invalide")
        if command.comments is not None:
            changes["comments"] = command.comments
        if command.assigned_to is not None:
            changes["assigned_to"] = command.assigned_to.strip() or None

        new_status = changes.get("status", existing.status)
        if isinstance(existing, Order):
            if command.estimated_date is not None:
                changes["estimated_delivery_date"] = command.estimated_date
            if command.actual_date is not None:
                changes["actual_delivery_date"] = command.actual_date
        else:
            if command.estimated_date is not None:
                changes["estimated_completion_date"] = command.estimated_date
            # A completion date only sticks to a completed request.
            if command.actual_date is not None and new_status == RequestStatus.COMPLETED:
                changes["actual_completion_date"] = command.actual_date

        now = self._clock()
        updated = replace(existing, updated_at=now, updated_by=current_user.uid, **changes)
        await _save(self._repository, updated)

        if new_status != existing.status and existing.created_by != current_user.uid:
            noun = "commande" if self._kind == ORDER else "demande de maintenance"
            await self._repository.add_notification(
                Notification(
                    id=self._id_generator(),
                    recipient=existing.created_by,
                    title=f"Mise à jour de votre {noun}",
                    message=(
                        f"{restaurant_name(existing.restaurant_id)} - "
                        f"{label(STATUS_LABELS, new_status)}"
                    ),
                    created_at=now,
                    related_type=self._kind,
                    related_id=existing.id,
                )
            )

        await self._repository.commit()
        return updated


class ListRequestsUseCase:
    def __init__(self, repository: RequestRepository, kind: str) -> None:
        self._repository = repository
        self._kind = _check_kind(kind)

    async def execute(
        self,
        list_query: ListRequestsQuery,
        current_user: CurrentUser,
    ) -> List[Request]:
        scope = policy.resolve_scope(current_user)
        fetched = await _fetch(
            self._repository,
            self._kind,
            _store_filters(scope, status=list_query.predicates.status),
        )
        visible = query.filter_by_scope(fetched, scope)
        narrowed = query.filter_by_predicates(visible, list_query.predicates)
        return query.sort_by(narrowed, list_query.sort_key, list_query.direction)


class DashboardUseCase:
    def __init__(self, repository: RequestRepository) -> None:
        self._repository = repository

    async def execute(self, current_user: CurrentUser) -> DashboardSummary:
        scope = policy.resolve_scope(current_user)
        filters = _store_filters(scope)

        orders = query.filter_by_scope(await self._repository.list_orders(filters), scope)
        maintenance = query.filter_by_scope(
            await self._repository.list_maintenance_requests(filters), scope
        )

        pending = RequestPredicates(status=RequestStatus.PENDING.value)
        pending_orders = query.sort_by(query.filter_by_predicates(orders, pending))
        pending_maintenance = query.sort_by(query.filter_by_predicates(maintenance, pending))
        recent = query.sort_by([*orders, *maintenance])

        return DashboardSummary(
            scope=scope,
            pending_orders_count=len(pending_orders),
            pending_orders=query.top_n(pending_orders),
            pending_maintenance_count=len(pending_maintenance),
            pending_maintenance=query.top_n(pending_maintenance),
            recent_requests=query.top_n(recent),
        )


class ReportUseCase:
    def __init__(self, repository: RequestRepository, clock: Clock) -> None:
        self._repository = repository
        self._clock = clock

    async def execute(self, report_query: ReportQuery, current_user: CurrentUser) -> RequestReport:
        policy.ensure_can_view_reports(current_user)

        scope = policy.resolve_scope(current_user)
        if report_query.restaurant_id:
            if report_query.restaurant_id not in RESTAURANTS:
                raise InvalidRequest("Restaurant inconnu")
            policy.ensure_can_switch_to(current_user, report_query.restaurant_id)
            scope = report_query.restaurant_id

        if report_query.start and report_query.end:
            start, end = report_query.start, report_query.end
            if start > end:
                raise InvalidRequest("La date de début doit précéder la date de fin")
        else:
            start, end = query.report_window(report_query.period, self._clock())

        filters = _store_filters(scope, created_from=start, created_to=end)
        window = RequestPredicates(start=start, end=end)
        orders = query.filter_by_predicates(
            query.filter_by_scope(await self._repository.list_orders(filters), scope), window
        )
        maintenance = query.filter_by_predicates(
            query.filter_by_scope(
                await self._repository.list_maintenance_requests(filters), scope
            ),
            window,
        )

        orders_by_restaurant = {restaurant_id: 0 for restaurant_id in RESTAURANTS}
        orders_by_restaurant.update(query.group_count(orders, lambda order: order.restaurant_id))

        return RequestReport(
            scope=scope,
            start=start,
            end=end,
            orders=query.sort_by(orders),
            maintenance_requests=query.sort_by(maintenance),
            orders_by_restaurant=orders_by_restaurant,
            orders_by_category=query.group_count(orders, lambda order: order.category),
            maintenance_by_status=query.group_count(maintenance, lambda request: request.status),
            maintenance_by_category=query.group_count(
                maintenance, lambda request: request.category
            ),
            average_resolution_days=query.average_resolution_days(maintenance),
            pending_maintenance_count=len(
                [request for request in maintenance if request.status == RequestStatus.PENDING]
            ),
        )


class SwitchRestaurantUseCase:
    def __init__(self, repository: UserProfileRepository, clock: Clock) -> None:
        self._repository = repository
        self._clock = clock

    async def execute(
        self, restaurant_id: Optional[str], current_user: CurrentUser
    ) -> CurrentUser:
        if restaurant_id is not None and restaurant_id not in RESTAURANTS:
            raise InvalidRequest("Restaurant inconnu")

        policy.ensure_can_switch_to(current_user, restaurant_id)

        # Assigned roles can only "switch" to their own restaurant: nothing to store.
        if not policy.is_maintenance(current_user):
            return current_user

        await self._repository.set_active_restaurant(
            current_user.uid, restaurant_id, self._clock()
        )
        await self._repository.commit()
        return replace(current_user, active_restaurant_id=restaurant_id)


def _recipients(current_user: CurrentUser) -> List[str]:
    return [current_user.uid, current_user.role]


class ListNotificationsUseCase:
    def __init__(self, repository: NotificationRepository) -> None:
        self._repository = repository

    async def execute(self, current_user: CurrentUser) -> NotificationFeed:
        notifications = sorted(
            await self._repository.list_notifications(_recipients(current_user)),
            key=lambda notification: notification.created_at,
            reverse=True,
        )
        return NotificationFeed(
            notifications=notifications,
            unread_count=len([n for n in notifications if not n.read]),
        )


class MarkNotificationReadUseCase:
    def __init__(self, repository: NotificationRepository) -> None:
        self._repository = repository

    async def execute(self, notification_id: str, current_user: CurrentUser) -> None:
        notification = await self._repository.get_notification(notification_id)
        if notification is None or notification.recipient not in _recipients(current_user):
            raise NotFound("Notification introuvable")
        await self._repository.mark_read([notification.id])
        await self._repository.commit()


class MarkAllNotificationsReadUseCase:
    def __init__(self, repository: NotificationRepository) -> None:
        self._repository = repository

    async def execute(self, current_user: CurrentUser) -> int:
        notifications = await self._repository.list_notifications(_recipients(current_user))
        unread_ids = [n.id for n in notifications if not n.read]
        if unread_ids:
            await self._repository.mark_read(unread_ids)
            await self._repository.commit()
        return len(unread_ids)
