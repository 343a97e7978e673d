import csv
import io
from typing import Iterable

from app.requests.domain.labels import (
    MAINTENANCE_CATEGORY_LABELS,
    ORDER_CATEGORY_LABELS,
    PRIORITY_LABELS,
    STATUS_LABELS,
    label,
    restaurant_name,
)
from app.requests.domain.models import MaintenanceRequest, Order

ORDER_HEADERS = ['ID', 'Date', 'Restaurant', 'Catégorie', 'Priorité', 'Statut', 'Articles', 'Commentaires']
MAINTENANCE_HEADERS = [
    'ID', 'Date', 'Restaurant', 'Catégorie', 'Priorité', 'Statut',
    'Emplacement', 'Description', 'Commentaires',
]

DATE_FORMAT = "%d/%m/%Y"


def _write(headers, rows) -> str:
    output = io.StringIO()
    writer = csv.writer(output, quoting=csv.QUOTE_ALL)
    writer.writerow(headers)
    writer.writerows(rows)
    return output.getvalue()


def orders_to_csv(orders: Iterable[Order]) -> str:
    return _write(
        ORDER_HEADERS,
        (
            [
                order.id,
                order.created_at.strftime(DATE_FORMAT),
                restaurant_name(order.restaurant_id),
                label(ORDER_CATEGORY_LABELS, order.category),
                label(PRIORITY_LABELS, order.priority),
                label(STATUS_LABELS, order.status),
                ", ".join(f"{item.quantity} {item.unit} {item.name}" for item in order.items),
                order.comments or '',
            ]
            for order in orders
        ),
    )


def maintenance_requests_to_csv(requests: Iterable[MaintenanceRequest]) -> str:
    return _write(
        MAINTENANCE_HEADERS,
        (
            [
                request.id,
                request.created_at.strftime(DATE_FORMAT),
                restaurant_name(request.restaurant_id),
                label(MAINTENANCE_CATEGORY_LABELS, request.category),
                label(PRIORITY_LABELS, request.priority),
                label(STATUS_LABELS, request.status),
                request.location,
                request.description,
                request.comments or '',
            ]
            for request in requests
        ),
    )
