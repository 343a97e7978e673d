"""
Supply Orders Routes
"""
from fastapi import APIRouter, HTTPException, Depends
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime
from sqlalchemy.exc import SQLAlchemyError
import logging

from app.requests.application.use_cases import (
    ORDER,
    CreateOrderCommand,
    CreateOrderUseCase,
    GetRequestUseCase,
    ListRequestsQuery,
    ListRequestsUseCase,
    OrderItemInput,
    UpdateRequestCommand,
    UpdateRequestUseCase,
)
from app.requests.domain import policy
from app.requests.domain.errors import DomainError
from app.requests.domain.models import (
    CurrentUser,
    Department,
    OrderCategory,
    Priority,
    RecurringFrequency,
    RequestPredicates,
    RequestStatus,
)
from app.requests.presentation.csv_export import orders_to_csv
from app.requests.presentation.response_mapper import order_to_response
from routes.auth_routes import get_current_context
from routes.dependencies import (
    get_clock,
    get_id_generator,
    get_request_repository,
    naive_utc,
    to_http_error,
)

logger = logging.getLogger(__name__)

# Create router
orders_router = APIRouter(prefix="/api", tags=["Orders"])


# ==================== PYDANTIC MODELS ====================

class OrderItemCreate(BaseModel):
    name: str = Field(..., min_length=1)
    quantity: int = Field(..., ge=1)
    unit: str = Field(..., min_length=1)
    notes: Optional[str] = None


class OrderCreate(BaseModel):
    category: OrderCategory
    items: List[OrderItemCreate] = Field(..., min_length=1)
    priority: Priority = Priority.NORMAL
    department: Optional[Department] = None
    comments: str = ""
    photo_urls: List[str] = Field(default_factory=list, max_length=5)
    is_recurring: bool = False
    recurring_frequency: Optional[RecurringFrequency] = None


class OrderUpdate(BaseModel):
    status: Optional[RequestStatus] = None
    priority: Optional[Priority] = None
    comments: Optional[str] = None
    assigned_to: Optional[str] = None
    estimated_delivery_date: Optional[datetime] = None
    actual_delivery_date: Optional[datetime] = None


def _value(choice):
    return choice.value if choice is not None else None


def _list_query(search, status, priority, category, start, end, sort, direction) -> ListRequestsQuery:
    return ListRequestsQuery(
        predicates=RequestPredicates(
            search_term=search,
            status=_value(status),
            priority=_value(priority),
            category=_value(category),
            start=naive_utc(start),
            end=naive_utc(end),
        ),
        sort_key=sort,
        direction=direction,
    )


# ==================== ORDERS ROUTES ====================

@orders_router.post("/orders")
async def create_order(
    order_data: OrderCreate,
    current_user: CurrentUser = Depends(get_current_context),
    repository=Depends(get_request_repository),
    id_generator=Depends(get_id_generator),
    clock=Depends(get_clock),
):
    """Create a supply order for the current restaurant"""
    use_case = CreateOrderUseCase(repository=repository, id_generator=id_generator, clock=clock)
    command = CreateOrderCommand(
        category=order_data.category.value,
        items=[
            OrderItemInput(name=item.name, quantity=item.quantity, unit=item.unit, notes=item.notes)
            for item in order_data.items
        ],
        priority=order_data.priority.value,
        department=_value(order_data.department),
        comments=order_data.comments,
        photo_urls=order_data.photo_urls,
        is_recurring=order_data.is_recurring,
        recurring_frequency=_value(order_data.recurring_frequency),
    )

    try:
        order = await use_case.execute(command, current_user)
    except DomainError as exc:
        raise to_http_error(exc)
    except SQLAlchemyError:
        logger.exception("Order creation failed")
        raise HTTPException(status_code=500, detail="Erreur lors de la création de la commande")

    logger.info(f"Order {order.id} created for restaurant {order.restaurant_id}")
    return order_to_response(order)


@orders_router.get("/orders")
async def get_orders(
    search: Optional[str] = None,
    status: Optional[RequestStatus] = None,
    priority: Optional[Priority] = None,
    category: Optional[OrderCategory] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    sort: str = "created_at",
    direction: str = "desc",
    current_user: CurrentUser = Depends(get_current_context),
    repository=Depends(get_request_repository),
):
    """List orders visible to the current user"""
    use_case = ListRequestsUseCase(repository, ORDER)
    try:
        orders = await use_case.execute(
            _list_query(search, status, priority, category, start, end, sort, direction),
            current_user,
        )
    except DomainError as exc:
        raise to_http_error(exc)
    except SQLAlchemyError:
        logger.exception("Order lookup failed")
        raise HTTPException(status_code=500, detail="Erreur lors du chargement des commandes")

    return [order_to_response(order) for order in orders]


@orders_router.get("/orders/export")
async def export_orders(
    search: Optional[str] = None,
    status: Optional[RequestStatus] = None,
    priority: Optional[Priority] = None,
    category: Optional[OrderCategory] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    sort: str = "created_at",
    direction: str = "desc",
    current_user: CurrentUser = Depends(get_current_context),
    repository=Depends(get_request_repository),
):
    """Export the filtered order list to CSV"""
    use_case = ListRequestsUseCase(repository, ORDER)
    try:
        orders = await use_case.execute(
            _list_query(search, status, priority, category, start, end, sort, direction),
            current_user,
        )
    except DomainError as exc:
        raise to_http_error(exc)
    except SQLAlchemyError:
        logger.exception("Order lookup failed")
        raise HTTPException(status_code=500, detail="Erreur lors du chargement des commandes")

    return StreamingResponse(
        iter([orders_to_csv(orders)]),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename=commandes_{datetime.now().strftime('%Y-%m-%d')}.csv"}
    )


@orders_router.get("/orders/{order_id}")
async def get_order(
    order_id: str,
    current_user: CurrentUser = Depends(get_current_context),
    repository=Depends(get_request_repository),
):
    """Get a single order"""
    use_case = GetRequestUseCase(repository, ORDER)
    try:
        order = await use_case.execute(order_id, current_user)
    except DomainError as exc:
        raise to_http_error(exc)
    except SQLAlchemyError:
        logger.exception("Order lookup failed")
        raise HTTPException(status_code=500, detail="Erreur lors du chargement des commandes")

    response = order_to_response(order)
    response["can_edit"] = policy.can_edit(current_user, order)
    return response


@orders_router.put("/orders/{order_id}")
async def update_order(
    order_id: str,
    update_data: OrderUpdate,
    current_user: CurrentUser = Depends(get_current_context),
    repository=Depends(get_request_repository),
    id_generator=Depends(get_id_generator),
    clock=Depends(get_clock),
):
    """Update status, priority, comments, assignment or delivery dates"""
    use_case = UpdateRequestUseCase(
        repository=repository, kind=ORDER, id_generator=id_generator, clock=clock
    )
    command = UpdateRequestCommand(
        status=_value(update_data.status),
        priority=_value(update_data.priority),
        comments=update_data.comments,
        assigned_to=update_data.assigned_to,
        estimated_date=naive_utc(update_data.estimated_delivery_date),
        actual_date=naive_utc(update_data.actual_delivery_date),
    )

    try:
        order = await use_case.execute(order_id, command, current_user)
    except DomainError as exc:
        raise to_http_error(exc)
    except SQLAlchemyError:
        logger.exception(f"Order {order_id} update failed")
        raise HTTPException(status_code=500, detail="Erreur lors de la mise à jour de la commande")

    logger.info(f"Order {order_id} updated by {current_user.uid} (status={order.status})")
    response = order_to_response(order)
    response["can_edit"] = policy.can_edit(current_user, order)
    return response
