"""
Dashboard and Reports Routes
"""
from fastapi import APIRouter, HTTPException, Depends
from fastapi.responses import StreamingResponse
from typing import Optional
from datetime import datetime
from enum import Enum
from sqlalchemy.exc import SQLAlchemyError
import logging

from app.requests.application.use_cases import DashboardUseCase, ReportQuery, ReportUseCase
from app.requests.domain.errors import DomainError
from app.requests.domain.models import CurrentUser
from app.requests.presentation.csv_export import maintenance_requests_to_csv, orders_to_csv
from app.requests.presentation.response_mapper import dashboard_to_response, report_to_response
from routes.auth_routes import get_current_context
from routes.dependencies import get_clock, get_request_repository, naive_utc, to_http_error

logger = logging.getLogger(__name__)

# Create router
reports_router = APIRouter(prefix="/api", tags=["Dashboard & Reports"])


class ReportPeriod(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"
    CUSTOM = "custom"


class ExportKind(str, Enum):
    ORDERS = "orders"
    MAINTENANCE = "maintenance"


async def _build_report(period, start, end, restaurant_id, current_user, repository, clock):
    if period == ReportPeriod.CUSTOM and not (start and end):
        raise HTTPException(status_code=400, detail="Dates de début et de fin requises")

    use_case = ReportUseCase(repository=repository, clock=clock)
    report_query = ReportQuery(
        period=period.value,
        start=naive_utc(start) if period == ReportPeriod.CUSTOM else None,
        end=naive_utc(end) if period == ReportPeriod.CUSTOM else None,
        restaurant_id=restaurant_id,
    )
    try:
        return await use_case.execute(report_query, current_user)
    except DomainError as exc:
        raise to_http_error(exc)
    except SQLAlchemyError:
        logger.exception(f"Report build failed for {current_user.uid}")
        raise HTTPException(status_code=500, detail="Erreur lors du calcul du rapport")


@reports_router.get("/dashboard")
async def get_dashboard(
    current_user: CurrentUser = Depends(get_current_context),
    repository=Depends(get_request_repository),
):
    """Pending counts and most recent requests for the current scope"""
    try:
        summary = await DashboardUseCase(repository).execute(current_user)
    except SQLAlchemyError:
        logger.exception(f"Dashboard failed for {current_user.uid}")
        raise HTTPException(status_code=500, detail="Erreur lors du chargement du tableau de bord")
    return dashboard_to_response(summary)


@reports_router.get("/reports")
async def get_report(
    period: ReportPeriod = ReportPeriod.MONTH,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    restaurant_id: Optional[str] = None,
    current_user: CurrentUser = Depends(get_current_context),
    repository=Depends(get_request_repository),
    clock=Depends(get_clock),
):
    """Aggregated statistics - maintenance and restaurant managers only"""
    report = await _build_report(period, start, end, restaurant_id, current_user, repository, clock)
    return report_to_response(report)


@reports_router.get("/reports/export/{kind}")
async def export_report(
    kind: ExportKind,
    period: ReportPeriod = ReportPeriod.MONTH,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    restaurant_id: Optional[str] = None,
    current_user: CurrentUser = Depends(get_current_context),
    repository=Depends(get_request_repository),
    clock=Depends(get_clock),
):
    """Export the report's orders or maintenance requests to CSV"""
    report = await _build_report(period, start, end, restaurant_id, current_user, repository, clock)

    if kind == ExportKind.ORDERS:
        rows, content = report.orders, orders_to_csv(report.orders)
    else:
        rows, content = report.maintenance_requests, maintenance_requests_to_csv(report.maintenance_requests)

    if not rows:
        raise HTTPException(status_code=404, detail="Aucune donnée à exporter")

    return StreamingResponse(
        iter([content]),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={kind.value}_{datetime.now().strftime('%Y-%m-%d')}.csv"}
    )
