"""Custom domain lifecycle: attach, verify and detach a tenant's domain."""

import logging
from collections.abc import Awaitable, Iterable
from typing import TypeVar

from pydantic import BaseModel

from app.errors import AuthorizationError, NotFoundError, PlatformError, ValidationError
from app.models.tenant import Tenant
from app.schemas.domain import DnsRecord, DomainStatus, PlanTier, VerificationChallenge
from app.schemas.platform import DomainConfig, DomainDetails
from app.services.dns_reconciler import DEFAULT_A_RECORD, DEFAULT_CNAME, reconcile
from app.services.platform_client import PlatformDomainClient
from app.services.tenant_repository import TenantRepository
from app.utils.domain_validator import alias_for, validate_domain

logger = logging.getLogger(__name__)

T = TypeVar("T")

ALIAS_REDIRECT_STATUS = 308

# User-facing messages for platform codes the dashboard knows how to explain
PLATFORM_ERROR_MESSAGES = {
    "domain_already_in_use": "This domain is already in use by another project",
    "invalid_domain": "The domain is not valid",
}


class AttachOutcome(BaseModel):
    domain: str
    status: DomainStatus
    records: list[DnsRecord]
    challenges: list[VerificationChallenge]
    configured: bool


class VerifyOutcome(BaseModel):
    domain: str
    verified: bool
    status: DomainStatus
    records: list[DnsRecord]
    challenges: list[VerificationChallenge]


async def try_optional(label: str, call: Awaitable[T], default: T) -> T:
    """
    Await a secondary platform call, degrading to ``default`` on failure.

    This is the only place where platform failures are swallowed. Primary
    operations must call the platform client directly so errors propagate.
    """
    try:
        return await call
    except PlatformError as e:
        logger.warning(f"{label} failed (non-fatal): {e.code} - {e.message}")
    return default


def _normalize(domain: str | None) -> str:
    return (domain or "").strip().lower()


def _dump(items: Iterable[BaseModel]) -> list[dict]:
    return [item.model_dump() for item in items]


class DomainLifecycleOrchestrator:
    """
    Coordinates the platform client and tenant store for one request.

    Transitions only happen through explicit attach/verify/detach calls;
    the tenant's domain fields are a cached projection of platform state.
    """

    def __init__(
        self,
        platform: PlatformDomainClient,
        repository: TenantRepository,
        allowed_plans: Iterable[str] = (PlanTier.PRO.value, PlanTier.BUSINESS.value),
        default_a_record: str = DEFAULT_A_RECORD,
        default_cname: str = DEFAULT_CNAME,
    ):
        self.platform = platform
        self.repository = repository
        self.allowed_plans = {p.lower() for p in allowed_plans}
        self.default_a_record = default_a_record
        self.default_cname = default_cname

    async def _load_tenant(self, tenant_id: str) -> Tenant:
        tenant = await self.repository.get(tenant_id)
        if tenant is None:
            raise NotFoundError(f"Tenant {tenant_id} not found")
        return tenant

    def _ensure_owner(self, tenant: Tenant, domain: str) -> str:
        """Return the normalized domain if it is the tenant's attached domain."""
        normalized = _normalize(domain)
        if not tenant.custom_domain or tenant.custom_domain != normalized:
            logger.warning(f"Tenant {tenant.id} does not own domain {domain}")
            raise AuthorizationError(
                "Domain does not belong to tenant", code="DOMAIN_NOT_OWNED",
            )
        return normalized

    def _reconcile(
        self,
        domain: str,
        config: DomainConfig,
        details: DomainDetails | None,
    ) -> list[DnsRecord]:
        return reconcile(
            domain,
            config,
            details,
            default_a_record=self.default_a_record,
            default_cname=self.default_cname,
        )

    async def attach(self, tenant_id: str, raw_domain: str) -> AttachOutcome:
        """
        Attach a custom domain to a tenant.

        Args:
            tenant_id: Tenant identifier
            raw_domain: Domain as entered by the tenant

        Returns:
            Attached domain with DNS records and ownership challenges

        Raises:
            NotFoundError: Tenant does not exist
            AuthorizationError: Plan does not allow custom domains
            ValidationError: Malformed domain
            PlatformError: Platform rejected the apex domain (code preserved)
        """
        tenant = await self._load_tenant(tenant_id)

        if (tenant.plan_tier or "").lower() not in self.allowed_plans:
            logger.info(f"Tenant {tenant_id} on plan {tenant.plan_tier} cannot attach domains")
            raise AuthorizationError("Plan required for custom domains", code="PLAN_REQUIRED")

        domain, error = validate_domain(raw_domain)
        if error:
            raise ValidationError(error, code="INVALID_DOMAIN")

        if tenant.custom_domain and tenant.custom_domain != domain:
            # TODO: decide whether attach should reject or auto-detach here;
            # the previous domain currently stays registered on the platform.
            logger.warning(
                f"Tenant {tenant_id} attaching {domain} while {tenant.custom_domain} "
                f"is still attached; previous domain will be left on the platform"
            )

        try:
            result = await self.platform.attach_domain(domain)
        except PlatformError as e:
            message = PLATFORM_ERROR_MESSAGES.get(e.code, e.message)
            logger.error(f"Failed to attach {domain} for tenant {tenant_id}: {e.code}")
            raise PlatformError(message, code=e.code, http_status=e.http_status) from e

        await try_optional(
            f"Alias {alias_for(domain)}",
            self.platform.attach_alias_with_redirect(
                alias_for(domain), domain, ALIAS_REDIRECT_STATUS,
            ),
            None,
        )

        config = await try_optional(
            f"Config lookup for {domain}",
            self.platform.get_domain_config(domain),
            DomainConfig(),
        )
        details = await try_optional(
            f"Details lookup for {domain}",
            self.platform.get_domain_details(domain),
            None,
        )

        records = self._reconcile(domain, config, details)

        await self.repository.update(tenant_id, {
            "custom_domain": domain,
            "domain_status": DomainStatus.PENDING_VERIFICATION.value,
            "domain_verification_challenges": _dump(result.challenges),
            "domain_dns_records": _dump(records),
        })

        logger.info(f"Domain {domain} attached for tenant {tenant_id}")
        return AttachOutcome(
            domain=domain,
            status=DomainStatus.PENDING_VERIFICATION,
            records=records,
            challenges=result.challenges,
            configured=result.verified,
        )

    async def verify(self, tenant_id: str, domain: str) -> VerifyOutcome:
        """
        Refresh a tenant's domain status from the platform.

        A domain the platform no longer knows is reported as ``not_found``
        rather than raised. Only an explicit ``misconfigured: false`` from
        the platform yields ``verified``.

        Raises:
            NotFoundError: Tenant does not exist
            AuthorizationError: Domain is not the tenant's attached domain
            PlatformError: Transport/auth failure; tenant state is unchanged
        """
        tenant = await self._load_tenant(tenant_id)
        domain = self._ensure_owner(tenant, domain)

        details = await self.platform.get_domain_details(domain)
        if details is None:
            await self.repository.update(tenant_id, {
                "domain_status": DomainStatus.NOT_FOUND.value,
            })
            logger.warning(f"Domain {domain} of tenant {tenant_id} missing on platform")
            return VerifyOutcome(
                domain=domain,
                verified=False,
                status=DomainStatus.NOT_FOUND,
                records=[],
                challenges=[],
            )

        try:
            config = await self.platform.get_domain_config(domain)
        except PlatformError as e:
            if e.is_transient:
                raise
            logger.warning(
                f"Config lookup for {domain} failed ({e.code}); treating DNS state as unknown"
            )
            config = DomainConfig()

        records = self._reconcile(domain, config, details)

        is_configured = config.misconfigured is False
        status = DomainStatus.VERIFIED if is_configured else DomainStatus.PENDING_VERIFICATION

        await self.repository.update(tenant_id, {
            "domain_status": status.value,
            "domain_verification_challenges": _dump(details.verification),
            "domain_dns_records": _dump(records),
        })

        logger.info(f"Domain {domain} of tenant {tenant_id} status: {status.value}")
        return VerifyOutcome(
            domain=domain,
            verified=is_configured,
            status=status,
            records=records,
            challenges=details.verification,
        )

    async def detach(self, tenant_id: str, domain: str) -> None:
        """
        Remove a tenant's custom domain from the platform and the tenant.

        Raises:
            NotFoundError: Tenant does not exist
            AuthorizationError: Domain is not the tenant's attached domain
            PlatformError: Platform refused to remove the apex domain
        """
        tenant = await self._load_tenant(tenant_id)
        domain = self._ensure_owner(tenant, domain)

        await self.platform.detach_domain(domain)

        await try_optional(
            f"Alias removal for {alias_for(domain)}",
            self.platform.detach_domain(alias_for(domain)),
            None,
        )

        await self.repository.update(tenant_id, {
            "custom_domain": None,
            "domain_status": DomainStatus.UNATTACHED.value,
            "domain_verification_challenges": [],
            "domain_dns_records": [],
        })

        logger.info(f"Domain {domain} detached from tenant {tenant_id}")

    async def dns_records(self, raw_domain: str) -> tuple[str, list[DnsRecord]]:
        """
        Look up the routing records for a domain without touching any tenant.

        Returns:
            Tuple of (normalized domain, A and CNAME records)
        """
        domain, error = validate_domain(raw_domain)
        if error:
            raise ValidationError(error, code="INVALID_DOMAIN")

        config = await self.platform.get_domain_config(domain)
        return domain, self._reconcile(domain, config, None)

    async def domain_state(self, tenant_id: str) -> Tenant:
        """Return the tenant with its cached domain fields."""
        return await self._load_tenant(tenant_id)
