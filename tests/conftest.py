"""Test fixtures for the Storefront Domains Service test suite."""

import os
from collections.abc import AsyncGenerator
from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient, BasicAuth
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

# Set test environment variables BEFORE importing app modules
os.environ.update({
    "DATABASE_URL": "sqlite+aiosqlite:///./storefront_domains_unused.db",
    "PLATFORM_API_TOKEN": "test-platform-token",
    "PLATFORM_PROJECT_ID": "prj_test",
    "PLATFORM_TEAM_ID": "",
    "PLATFORM_API_BASE_URL": "https://platform.test",
    "PLATFORM_TIMEOUT_SECONDS": "1",
    "PLATFORM_MAX_ATTEMPTS": "2",
    "PLATFORM_RETRY_WAIT_SECONDS": "0",
    "CUSTOM_DOMAIN_PLANS": "pro,business",
    "AUTH_USERNAME": "test-user",
    "AUTH_PASSWORD": "test-password",
    "ENVIRONMENT": "test",
    "LOG_LEVEL": "WARNING",
})

from app import models  # noqa: E402,F401
from app.database import build_engine, get_session, init_db  # noqa: E402
from app.dependencies import get_platform_client  # noqa: E402
from app.main import create_app  # noqa: E402
from app.models.tenant import Tenant  # noqa: E402
from app.schemas.domain import VerificationChallenge  # noqa: E402
from app.schemas.platform import AttachResult, DomainConfig, DomainDetails  # noqa: E402
from app.services.domain_service import DomainLifecycleOrchestrator  # noqa: E402
from app.services.tenant_repository import SqlAlchemyTenantRepository  # noqa: E402

TEST_AUTH = BasicAuth("test-user", "test-password")


@pytest.fixture
async def db(tmp_path) -> AsyncGenerator[AsyncSession, None]:
    """Provide a session on a fresh SQLite database per test."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'tenants.db'}")
    await init_db(engine)
    factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    async with factory() as session:
        yield session
        await session.rollback()
    await engine.dispose()


@pytest.fixture
def make_tenant(db: AsyncSession):
    """Factory for tenants with a given plan and domain state."""

    async def _make(
        tenant_id: str = "store-1",
        plan_tier: str = "pro",
        custom_domain: str | None = None,
        domain_status: str = "unattached",
    ) -> Tenant:
        tenant = Tenant(
            id=tenant_id,
            plan_tier=plan_tier,
            custom_domain=custom_domain,
            domain_status=domain_status,
            domain_verification_challenges=[],
            domain_dns_records=[],
        )
        db.add(tenant)
        await db.flush()
        return tenant

    return _make


@pytest.fixture
def repository(db: AsyncSession) -> SqlAlchemyTenantRepository:
    return SqlAlchemyTenantRepository(db)


@pytest.fixture
def challenge() -> VerificationChallenge:
    return VerificationChallenge(
        type="TXT",
        domain="_vercel.shop.example.com",
        value="vc-domain-verify=shop.example.com,abc123",
    )


@pytest.fixture
def mock_platform(challenge: VerificationChallenge):
    """Mock the platform client to avoid real API calls."""
    mock = AsyncMock()
    mock.attach_domain.return_value = AttachResult(verified=False, challenges=[challenge])
    mock.attach_alias_with_redirect.return_value = None
    mock.get_domain_config.return_value = DomainConfig(
        recommended_a_records=["76.76.21.98"],
        recommended_cname="cname.vercel-dns-017.com.",
        misconfigured=True,
    )
    mock.get_domain_details.return_value = DomainDetails(verification=[challenge])
    mock.detach_domain.return_value = None
    return mock


@pytest.fixture
def orchestrator(mock_platform, repository) -> DomainLifecycleOrchestrator:
    return DomainLifecycleOrchestrator(
        platform=mock_platform,
        repository=repository,
        allowed_plans=["pro", "business"],
    )


@pytest.fixture
async def client(db: AsyncSession, mock_platform) -> AsyncGenerator[AsyncClient, None]:
    """Create a test HTTP client with database and platform overrides."""
    app = create_app()

    async def override_get_session():
        yield db

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_platform_client] = lambda: mock_platform

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test", auth=TEST_AUTH) as ac:
        yield ac

    app.dependency_overrides.clear()
