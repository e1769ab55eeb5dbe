"""Standard printing products offered on the order form."""

from decimal import Decimal
from typing import Any, Dict, List

PRINTING_PRODUCTS: List[Dict[str, Any]] = [
    {"name": "Business Cards", "description": "350gsm Premium", "unit_price": Decimal("25"), "icon": "💼", "category": "Marketing"},
    {"name": "Flyers A4", "description": "130gsm Gloss", "unit_price": Decimal("15"), "icon": "📄", "category": "Marketing"},
    {"name": "Brochures", "description": "150gsm Tri-fold", "unit_price": Decimal("35"), "icon": "📖", "category": "Marketing"},
    {"name": "Posters A3", "description": "200gsm Satin", "unit_price": Decimal("12"), "icon": "🖼️", "category": "Display"},
    {"name": "Banners", "description": "Vinyl Weather-proof", "unit_price": Decimal("45"), "icon": "🎌", "category": "Display"},
    {"name": "Stickers", "description": "Vinyl Die-cut", "unit_price": Decimal("20"), "icon": "🏷️", "category": "Specialty"},
    {"name": "Digital Prints", "description": "High Resolution", "unit_price": Decimal("8"), "icon": "🖨️", "category": "Digital"},
    {"name": "Custom Job", "description": "Bespoke Solution", "unit_price": Decimal("0"), "icon": "⚙️", "category": "Custom"},
]


def as_product_payload(product: Dict[str, Any], quantity: int = 1) -> Dict[str, Any]:
    """Shape a catalog entry like a ``products[]`` entry of the orders API."""
    return {
        "name": product["name"],
        "description": product["description"],
        "quantity": quantity,
        "price": str(product["unit_price"]),
    }
