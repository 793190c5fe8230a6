"""Tenant record access for the domain subsystem."""

import logging
from datetime import datetime, timezone
from typing import Any, Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.errors import NotFoundError
from app.models.tenant import Tenant

logger = logging.getLogger(__name__)


class TenantRepository(Protocol):
    """Read/update access to a tenant's plan and domain fields."""

    async def get(self, tenant_id: str) -> Tenant | None:
        ...

    async def update(self, tenant_id: str, fields: dict[str, Any]) -> Tenant:
        ...


class SqlAlchemyTenantRepository:
    """TenantRepository backed by the request's async SQLAlchemy session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, tenant_id: str) -> Tenant | None:
        """
        Get a tenant by id.

        Args:
            tenant_id: Tenant identifier

        Returns:
            Tenant if found, None otherwise
        """
        result = await self.db.execute(
            select(Tenant).where(Tenant.id == tenant_id)
        )
        return result.scalar_one_or_none()

    async def update(self, tenant_id: str, fields: dict[str, Any]) -> Tenant:
        """
        Overwrite the given fields on a tenant (last writer wins).

        Args:
            tenant_id: Tenant identifier
            fields: Mapping of Tenant attribute names to new values

        Returns:
            Updated tenant

        Raises:
            NotFoundError: If the tenant does not exist
        """
        tenant = await self.get(tenant_id)
        if tenant is None:
            raise NotFoundError(f"Tenant {tenant_id} not found")

        for name, value in fields.items():
            if not hasattr(Tenant, name):
                raise AttributeError(f"Tenant has no field {name!r}")
            setattr(tenant, name, value)
        tenant.updated_at = datetime.now(timezone.utc)

        await self.db.flush()
        await self.db.refresh(tenant)

        logger.debug(f"Tenant {tenant_id} updated: {sorted(fields)}")
        return tenant
