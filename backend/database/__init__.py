"""
Database package: settings, session lifecycle and the request tables
"""
from .config import postgres_settings, auth_settings
from .connection import (
    Base,
    get_engine,
    init_postgres_db,
    get_postgres_session,
    close_postgres_db
)
from .models import (
    User,
    Order,
    OrderItem,
    MaintenanceRequest,
    Notification
)

__all__ = [
    "postgres_settings",
    "auth_settings",
    "Base",
    "get_engine",
    "init_postgres_db",
    "get_postgres_session",
    "close_postgres_db",
    "User",
    "Order",
    "OrderItem",
    "MaintenanceRequest",
    "Notification"
]
