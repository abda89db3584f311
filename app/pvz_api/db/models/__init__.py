from app.pvz_api.db.models.base import Base
from app.pvz_api.db.models.pvz import City, PVZ
from app.pvz_api.db.models.reception import OPEN_RECEPTION_INDEX, Reception, ReceptionStatus
from app.pvz_api.db.models.product import Product, ProductType
from app.pvz_api.db.models.user import User, UserRole

__all__ = [
    "Base",
    "City",
    "PVZ",
    "OPEN_RECEPTION_INDEX",
    "ReceptionStatus",
    "Reception",
    "ProductType",
    "Product",
    "UserRole",
    "User",
]
