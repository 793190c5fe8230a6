"""SQLAlchemy models."""

from app.models.tenant import Tenant

__all__ = [
    "Tenant",
]
