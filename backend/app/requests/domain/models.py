import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import ClassVar, Optional, Sequence, Union


class UserRole(str, enum.Enum):
    MAINTENANCE = "maintenance"
    RESTAURANT_MANAGER = "restaurant_manager"
    ROOM_MANAGER = "room_manager"
    BAR_MANAGER = "bar_manager"
    EMPLOYEE = "employee"


class RequestStatus(str, enum.Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Priority(str, enum.Enum):
    URGENT = "urgent"
    NORMAL = "normal"
    PLANNED = "planned"


class Department(str, enum.Enum):
    ROOM = "room"
    BAR = "bar"
    KITCHEN = "kitchen"
    GENERAL = "general"


class OrderCategory(str, enum.Enum):
    GLASSWARE = "glassware"
    ALCOHOL = "alcohol"
    FOOD = "food"
    DRINKS = "drinks"
    CLEANING_SUPPLIES = "cleaning_supplies"
    TABLEWARE = "tableware"
    KITCHEN_SUPPLIES = "kitchen_supplies"
    BAR_SUPPLIES = "bar_supplies"
    OTHER = "other"


class MaintenanceCategory(str, enum.Enum):
    PLUMBING = "plumbing"
    ELECTRICAL = "electrical"
    HVAC = "hvac"
    FURNITURE = "furniture"
    APPLIANCE = "appliance"
    STRUCTURAL = "structural"
    OTHER = "other"


class RecurringFrequency(str, enum.Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


RESTAURANTS = {
    "1": "Monsieur Mouettes",
    "2": "Gigio",
    "3": "Tigers",
    "4": "La Tétrade",
}

# Role values as stored on user rows.
MANAGER_ROLES = frozenset(
    role.value
    for role in (UserRole.RESTAURANT_MANAGER, UserRole.ROOM_MANAGER, UserRole.BAR_MANAGER)
)


@dataclass(frozen=True)
class CurrentUser:
    """The authenticated actor a use case runs on behalf of.

    ``restaurant_id`` is the fixed assignment (``None`` only for maintenance).
    ``active_restaurant_id`` is the restaurant a maintenance user currently
    has selected; ``None`` means all restaurants.
    """

    uid: str
    role: str
    restaurant_id: Optional[str] = None
    active_restaurant_id: Optional[str] = None
    display_name: Optional[str] = None


@dataclass(frozen=True)
class OrderItem:
    name: str
    quantity: int
    unit: str
    notes: Optional[str] = None


@dataclass(frozen=True)
class BaseRequest:
    id: str
    created_at: datetime
    updated_at: datetime
    created_by: str
    restaurant_id: str
    status: str
    priority: str
    department: str


@dataclass(frozen=True)
class Order(BaseRequest):
    type: ClassVar[str] = "order"

    category: str
    items: Sequence[OrderItem] = field(default_factory=list)
    comments: str = ""
    photo_urls: Sequence[str] = field(default_factory=list)
    is_recurring: bool = False
    recurring_frequency: Optional[str] = None
    estimated_delivery_date: Optional[datetime] = None
    actual_delivery_date: Optional[datetime] = None
    assigned_to: Optional[str] = None
    updated_by: Optional[str] = None


@dataclass(frozen=True)
class MaintenanceRequest(BaseRequest):
    type: ClassVar[str] = "maintenance"

    category: str
    location: str
    description: str
    comments: str = ""
    photo_urls: Sequence[str] = field(default_factory=list)
    estimated_completion_date: Optional[datetime] = None
    actual_completion_date: Optional[datetime] = None
    assigned_to: Optional[str] = None
    updated_by: Optional[str] = None


Request = Union[Order, MaintenanceRequest]


@dataclass(frozen=True)
class Notification:
    id: str
    recipient: str
    title: str
    message: str
    created_at: datetime
    related_type: str
    related_id: str
    read: bool = False


@dataclass(frozen=True)
class RequestFilters:
    """Equality predicates the store evaluates server-side."""

    restaurant_id: Optional[str] = None
    status: Optional[str] = None
    created_from: Optional[datetime] = None
    created_to: Optional[datetime] = None


@dataclass(frozen=True)
class RequestPredicates:
    """In-memory narrowing applied after fetch."""

    search_term: Optional[str] = None
    status: Optional[str] = None
    priority: Optional[str] = None
    category: Optional[str] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None
