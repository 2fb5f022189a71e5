from app.models.base import Base
from app.models.visit import Visit

__all__ = [
    "Base",
    "Visit",
]
