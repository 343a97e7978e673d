from datetime import datetime
from typing import Any, Dict, Optional

from app.requests.application.use_cases import DashboardSummary, NotificationFeed, RequestReport
from app.requests.domain.labels import restaurant_name
from app.requests.domain.models import MaintenanceRequest, Notification, Order, Request


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _base_fields(request: Request) -> Dict[str, Any]:
    return {
        "id": request.id,
        "type": request.type,
        "restaurant_id": request.restaurant_id,
        "restaurant_name": restaurant_name(request.restaurant_id),
        "created_by": request.created_by,
        "updated_by": request.updated_by,
        "status": request.status,
        "priority": request.priority,
        "department": request.department,
        "category": request.category,
        "comments": request.comments,
        "photo_urls": list(request.photo_urls),
        "assigned_to": request.assigned_to,
        "created_at": _iso(request.created_at),
        "updated_at": _iso(request.updated_at),
    }


def order_to_response(order: Order) -> Dict[str, Any]:
    response = _base_fields(order)
    response.update(
        {
            "items": [
                {
                    "name": item.name,
                    "quantity": item.quantity,
                    "unit": item.unit,
                    "notes": item.notes,
                }
                for item in order.items
            ],
            "is_recurring": order.is_recurring,
            "recurring_frequency": order.recurring_frequency,
            "estimated_delivery_date": _iso(order.estimated_delivery_date),
            "actual_delivery_date": _iso(order.actual_delivery_date),
        }
    )
    return response


def maintenance_request_to_response(request: MaintenanceRequest) -> Dict[str, Any]:
    response = _base_fields(request)
    response.update(
        {
            "location": request.location,
            "description": request.description,
            "estimated_completion_date": _iso(request.estimated_completion_date),
            "actual_completion_date": _iso(request.actual_completion_date),
        }
    )
    return response


def request_to_response(request: Request) -> Dict[str, Any]:
    if isinstance(request, Order):
        return order_to_response(request)
    return maintenance_request_to_response(request)


def notification_to_response(notification: Notification) -> Dict[str, Any]:
    return {
        "id": notification.id,
        "title": notification.title,
        "message": notification.message,
        "read": notification.read,
        "created_at": _iso(notification.created_at),
        "related_to": {"type": notification.related_type, "id": notification.related_id},
    }


def notification_feed_to_response(feed: NotificationFeed) -> Dict[str, Any]:
    return {
        "unread_count": feed.unread_count,
        "notifications": [notification_to_response(n) for n in feed.notifications],
    }


def dashboard_to_response(summary: DashboardSummary) -> Dict[str, Any]:
    return {
        "scope": summary.scope,
        "pending_orders_count": summary.pending_orders_count,
        "pending_orders": [order_to_response(order) for order in summary.pending_orders],
        "pending_maintenance_count": summary.pending_maintenance_count,
        "pending_maintenance": [
            maintenance_request_to_response(request) for request in summary.pending_maintenance
        ],
        "recent_requests": [request_to_response(request) for request in summary.recent_requests],
    }


def report_to_response(report: RequestReport) -> Dict[str, Any]:
    return {
        "scope": report.scope,
        "start": _iso(report.start),
        "end": _iso(report.end),
        "stats": {
            "total_orders": len(report.orders),
            "total_maintenance": len(report.maintenance_requests),
            "average_resolution_days": round(report.average_resolution_days, 1),
            "pending_maintenance": report.pending_maintenance_count,
        },
        "orders_by_restaurant": [
            {"id": restaurant_id, "name": restaurant_name(restaurant_id), "value": count}
            for restaurant_id, count in report.orders_by_restaurant.items()
        ],
        "orders_by_category": [
            {"name": name, "value": count} for name, count in report.orders_by_category.items()
        ],
        "maintenance_by_status": [
            {"name": name, "value": count} for name, count in report.maintenance_by_status.items()
        ],
        "maintenance_by_category": [
            {"name": name, "value": count}
            for name, count in report.maintenance_by_category.items()
        ],
    }
