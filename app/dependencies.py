"""Shared FastAPI dependencies."""

import secrets

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_session
from app.services.domain_service import DomainLifecycleOrchestrator
from app.services.platform_client import PlatformDomainClient, create_platform_client
from app.services.tenant_repository import SqlAlchemyTenantRepository, TenantRepository

security = HTTPBasic()


def require_auth(credentials: HTTPBasicCredentials = Depends(security)) -> str:
    """Verify HTTP Basic Auth credentials against environment variables."""
    correct_username = secrets.compare_digest(credentials.username, settings.AUTH_USERNAME)
    correct_password = secrets.compare_digest(credentials.password, settings.AUTH_PASSWORD)
    if not (correct_username and correct_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Basic"},
        )
    return credentials.username


def get_platform_client(request: Request) -> PlatformDomainClient:
    """Return the app-wide platform client, creating it on first use."""
    client = getattr(request.app.state, "platform_client", None)
    if client is None:
        client = create_platform_client(settings)
        request.app.state.platform_client = client
    return client


def get_tenant_repository(db: AsyncSession = Depends(get_session)) -> TenantRepository:
    """Tenant repository bound to the request's database session."""
    return SqlAlchemyTenantRepository(db)


def get_orchestrator(
    platform: PlatformDomainClient = Depends(get_platform_client),
    repository: TenantRepository = Depends(get_tenant_repository),
) -> DomainLifecycleOrchestrator:
    """Domain lifecycle orchestrator wired with the configured collaborators."""
    return DomainLifecycleOrchestrator(
        platform=platform,
        repository=repository,
        allowed_plans=settings.custom_domain_plans_list,
        default_a_record=settings.PLATFORM_DEFAULT_A_RECORD,
        default_cname=settings.PLATFORM_DEFAULT_CNAME,
    )
