"""Product catalog constants."""

from django.db import models


class ProductStatus(models.TextChoices):
    ACTIVE = "active", "Active"
    INACTIVE = "inactive", "Inactive"


class ProductCategory(models.TextChoices):
    SEEDS = "seeds", "Seeds"
    FERTILIZERS = "fertilizers", "Fertilizers"
    PESTICIDES = "pesticides", "Pesticides"
    TOOLS = "tools", "Tools"
    EQUIPMENT = "equipment", "Equipment"
    OTHERS = "others", "Others"


class Unit(models.TextChoices):
    KG = "kg", "Kilogram"
    G = "g", "Gram"
    L = "l", "Litre"
    ML = "ml", "Millilitre"
    PIECE = "piece", "Piece"
    PACKET = "packet", "Packet"
    BAG = "bag", "Bag"
    BOX = "box", "Box"
    BOTTLE = "bottle", "Bottle"
    CAN = "can", "Can"


GST_RATES: tuple[int, ...] = (0, 5, 12, 18, 28)

DEFAULT_GST_RATE = 18

# Written only by the inventory engine's compare-and-swap update.
STOCK_FIELDS: frozenset[str] = frozenset({"stock_total", "stock_reserved"})
