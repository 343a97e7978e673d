"""
Maintenance Requests Routes
"""
from fastapi import APIRouter, HTTPException, Depends
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime
from sqlalchemy.exc import SQLAlchemyError
import logging

from app.requests.application.use_cases import (
    MAINTENANCE,
    CreateMaintenanceRequestCommand,
    CreateMaintenanceRequestUseCase,
    GetRequestUseCase,
    ListRequestsQuery,
    ListRequestsUseCase,
    UpdateRequestCommand,
    UpdateRequestUseCase,
)
from app.requests.domain import policy
from app.requests.domain.errors import DomainError
from app.requests.domain.models import (
    CurrentUser,
    Department,
    MaintenanceCategory,
    Priority,
    RequestPredicates,
    RequestStatus,
)
from app.requests.presentation.csv_export import maintenance_requests_to_csv
from app.requests.presentation.response_mapper import maintenance_request_to_response
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
maintenance_router = APIRouter(prefix="/api", tags=["Maintenance"])


# ==================== PYDANTIC MODELS ====================

class MaintenanceRequestCreate(BaseModel):
    category: MaintenanceCategory
    location: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    priority: Priority = Priority.NORMAL
    department: Optional[Department] = None
    comments: Optional[str] = ""
    photo_urls: List[str] = Field(default_factory=list, max_length=5)


class MaintenanceRequestUpdate(BaseModel):
    status: Optional[RequestStatus] = None
    priority: Optional[Priority] = None
    comments: Optional[str] = None
    assigned_to: Optional[str] = None
    estimated_completion_date: Optional[datetime] = None
    actual_completion_date: Optional[datetime] = None


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


# ==================== MAINTENANCE ROUTES ====================

@maintenance_router.post("/maintenance")
async def create_maintenance_request(
    request_data: MaintenanceRequestCreate,
    current_user: CurrentUser = Depends(get_current_context),
    repository=Depends(get_request_repository),
    id_generator=Depends(get_id_generator),
    clock=Depends(get_clock),
):
    """Open a maintenance ticket for the current restaurant"""
    use_case = CreateMaintenanceRequestUseCase(
        repository=repository, id_generator=id_generator, clock=clock
    )
    command = CreateMaintenanceRequestCommand(
        category=request_data.category.value,
        location=request_data.location,
        description=request_data.description,
        priority=request_data.priority.value,
        department=_value(request_data.department),
        comments=request_data.comments or "",
        photo_urls=request_data.photo_urls,
    )

    try:
        request = await use_case.execute(command, current_user)
    except DomainError as exc:
        raise to_http_error(exc)
    except SQLAlchemyError:
        logger.exception("Maintenance request creation failed")
        raise HTTPException(
            status_code=500, detail="Erreur lors de la création de la demande de maintenance"
        )

    logger.info(f"Maintenance request {request.id} created for restaurant {request.restaurant_id}")
    return maintenance_request_to_response(request)


@maintenance_router.get("/maintenance")
async def get_maintenance_requests(
    search: Optional[str] = None,
    status: Optional[RequestStatus] = None,
    priority: Optional[Priority] = None,
    category: Optional[MaintenanceCategory] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    sort: str = "created_at",
    direction: str = "desc",
    current_user: CurrentUser = Depends(get_current_context),
    repository=Depends(get_request_repository),
):
    """List maintenance requests visible to the current user"""
    use_case = ListRequestsUseCase(repository, MAINTENANCE)
    try:
        requests = await use_case.execute(
            _list_query(search, status, priority, category, start, end, sort, direction),
            current_user,
        )
    except DomainError as exc:
        raise to_http_error(exc)
    except SQLAlchemyError:
        logger.exception("Maintenance request lookup failed")
        raise HTTPException(
            status_code=500, detail="Erreur lors du chargement des demandes de maintenance"
        )

    return [maintenance_request_to_response(request) for request in requests]


@maintenance_router.get("/maintenance/export")
async def export_maintenance_requests(
    search: Optional[str] = None,
    status: Optional[RequestStatus] = None,
    priority: Optional[Priority] = None,
    category: Optional[MaintenanceCategory] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    sort: str = "created_at",
    direction: str = "desc",
    current_user: CurrentUser = Depends(get_current_context),
    repository=Depends(get_request_repository),
):
    """Export the filtered maintenance list to CSV"""
    use_case = ListRequestsUseCase(repository, MAINTENANCE)
    try:
        requests = await use_case.execute(
            _list_query(search, status, priority, category, start, end, sort, direction),
            current_user,
        )
    except DomainError as exc:
        raise to_http_error(exc)
    except SQLAlchemyError:
        logger.exception("Maintenance request lookup failed")
        raise HTTPException(
            status_code=500, detail="Erreur lors du chargement des demandes de maintenance"
        )

    return StreamingResponse(
        iter([maintenance_requests_to_csv(requests)]),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename=maintenance_{datetime.now().strftime('%Y-%m-%d')}.csv"}
    )


@maintenance_router.get("/maintenance/{request_id}")
async def get_maintenance_request(
    request_id: str,
    current_user: CurrentUser = Depends(get_current_context),
    repository=Depends(get_request_repository),
):
    """Get a single maintenance request"""
    use_case = GetRequestUseCase(repository, MAINTENANCE)
    try:
        request = await use_case.execute(request_id, current_user)
    except DomainError as exc:
        raise to_http_error(exc)
    except SQLAlchemyError:
        logger.exception("Maintenance request lookup failed")
        raise HTTPException(
            status_code=500, detail="Erreur lors du chargement des demandes de maintenance"
        )

    response = maintenance_request_to_response(request)
    response["can_edit"] = policy.can_edit(current_user, request)
    return response


@maintenance_router.put("/maintenance/{request_id}")
async def update_maintenance_request(
    request_id: str,
    update_data: MaintenanceRequestUpdate,
    current_user: CurrentUser = Depends(get_current_context),
    repository=Depends(get_request_repository),
    id_generator=Depends(get_id_generator),
    clock=Depends(get_clock),
):
    """Update status, priority, comments, assignment or completion dates"""
    use_case = UpdateRequestUseCase(
        repository=repository, kind=MAINTENANCE, id_generator=id_generator, clock=clock
    )
    command = UpdateRequestCommand(
        status=_value(update_data.status),
        priority=_value(update_data.priority),
        comments=update_data.comments,
        assigned_to=update_data.assigned_to,
        estimated_date=naive_utc(update_data.estimated_completion_date),
        actual_date=naive_utc(update_data.actual_completion_date),
    )

    try:
        request = await use_case.execute(request_id, command, current_user)
    except DomainError as exc:
        raise to_http_error(exc)
    except SQLAlchemyError:
        logger.exception(f"Maintenance request {request_id} update failed")
        raise HTTPException(status_code=500, detail="Erreur lors de la mise à jour")

    logger.info(f"Maintenance request {request_id} updated by {current_user.uid} (status={request.status})")
    response = maintenance_request_to_response(request)
    response["can_edit"] = policy.can_edit(current_user, request)
    return response
