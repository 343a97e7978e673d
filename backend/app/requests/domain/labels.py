"""French display labels shared by notifications and CSV exports."""
from app.requests.domain.models import RESTAURANTS

STATUS_LABELS = {
    "pending": "En attente",
    "in_progress": "En cours",
    "completed": "Terminé",
    "cancelled": "Annulé",
}

PRIORITY_LABELS = {
    "urgent": "Urgent",
    "normal": "Normal",
    "planned": "Planifié",
}

ORDER_CATEGORY_LABELS = {
    "glassware": "Verrerie",
    "alcohol": "Alcool",
    "food": "Produits alimentaires",
    "drinks": "Boissons",
    "cleaning_supplies": "Produits d'entretien",
    "tableware": "Vaisselle",
    "kitchen_supplies": "Fournitures de cuisine",
    "bar_supplies": "Fournitures de bar",
    "other": "Autre",
}

MAINTENANCE_CATEGORY_LABELS = {
    "plumbing": "Plomberie",
    "electrical": "Électricité",
    "hvac": "Climatisation/Chauffage",
    "furniture": "Mobilier",
    "appliance": "Appareils",
    "structural": "Structure",
    "other": "Autre",
}


def label(labels: dict, value) -> str:
    if value is None:
        return ""
    return labels.get(value, value)


def restaurant_name(restaurant_id: str) -> str:
    return RESTAURANTS.get(restaurant_id, f"Restaurant {restaurant_id}")
