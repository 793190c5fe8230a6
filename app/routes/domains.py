"""Custom domain API routes."""

import logging

from fastapi import APIRouter, Depends, status

from app.dependencies import get_orchestrator, require_auth
from app.errors import (
    AuthorizationError,
    ConfigurationError,
    DomainServiceError,
    NotFoundError,
    PlatformError,
    ValidationError,
)
from app.schemas.common import raise_api_error
from app.schemas.domain import (
    AttachDomainRequest,
    AttachDomainResponse,
    DetachDomainResponse,
    DnsRecord,
    DnsRecordsRequest,
    DnsRecordsResponse,
    DomainStatus,
    TenantDomainRequest,
    TenantDomainStateResponse,
    VerificationChallenge,
    VerifyDomainResponse,
)
from app.services.domain_service import DomainLifecycleOrchestrator

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_auth)])

# Platform statuses that describe the caller's input and are passed through
PASSTHROUGH_PLATFORM_STATUSES = {400, 409, 422}

VERIFY_MESSAGES = {
    DomainStatus.VERIFIED: "Domain verified - DNS configured",
    DomainStatus.PENDING_VERIFICATION: "Pending DNS configuration",
    DomainStatus.NOT_FOUND: "Domain not found on hosting platform",
}


def _raise_domain_error(e: DomainServiceError) -> None:
    """Translate a domain service error into the standard API error response."""
    if isinstance(e, ValidationError):
        status_code = status.HTTP_400_BAD_REQUEST
    elif isinstance(e, AuthorizationError):
        status_code = status.HTTP_403_FORBIDDEN
    elif isinstance(e, NotFoundError):
        status_code = status.HTTP_404_NOT_FOUND
    elif isinstance(e, PlatformError) and e.http_status in PASSTHROUGH_PLATFORM_STATUSES:
        status_code = e.http_status
    else:
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    if isinstance(e, ConfigurationError):
        logger.error(f"Configuration error: {e.message}")
    elif status_code >= 500:
        logger.error(f"Domain operation failed: {e.code} - {e.message}")

    details = {"http_status": e.http_status} if isinstance(e, PlatformError) else None
    raise_api_error(
        code=e.code,
        message=e.message,
        status_code=status_code,
        details=details,
    )


@router.post("/domains/attach", response_model=AttachDomainResponse)
async def attach_domain(
    request: AttachDomainRequest,
    orchestrator: DomainLifecycleOrchestrator = Depends(get_orchestrator),
) -> AttachDomainResponse:
    """
    Attach a custom domain to a tenant's storefront.

    Registers the apex domain on the hosting platform, adds a `www` alias
    redirecting to it (best effort), and returns the DNS records the tenant
    must publish. The tenant moves to `pending_verification`.

    **Error Codes:**
    - `PLAN_REQUIRED`: Tenant plan does not include custom domains (403)
    - `INVALID_DOMAIN`: Malformed domain, or rejected by the platform (400)
    - `domain_already_in_use`: Domain is attached to another project (400/409)
    - `TENANT_NOT_FOUND`: Unknown tenant (404)
    - `CONFIGURATION_ERROR`: Platform credentials are missing (500)
    """
    try:
        outcome = await orchestrator.attach(request.tenant_id, request.domain)
    except DomainServiceError as e:
        _raise_domain_error(e)

    return AttachDomainResponse(
        domain=outcome.domain,
        status=outcome.status,
        dns_records=outcome.records,
        challenges=outcome.challenges,
        configured=outcome.configured,
        message="Configure the DNS records below, then verify the domain",
    )


@router.post("/domains/verify", response_model=VerifyDomainResponse)
async def verify_domain(
    request: TenantDomainRequest,
    orchestrator: DomainLifecycleOrchestrator = Depends(get_orchestrator),
) -> VerifyDomainResponse:
    """
    Refresh the tenant's domain status from the hosting platform.

    **Statuses:**
    - `verified`: DNS is correctly configured
    - `pending_verification`: DNS not yet configured (or state unknown)
    - `not_found`: The platform no longer has the domain; this is a normal
      response, not an error
    """
    try:
        outcome = await orchestrator.verify(request.tenant_id, request.domain)
    except DomainServiceError as e:
        _raise_domain_error(e)

    return VerifyDomainResponse(
        domain=outcome.domain,
        verified=outcome.verified,
        status=outcome.status,
        dns_records=outcome.records,
        challenges=outcome.challenges,
        message=VERIFY_MESSAGES[outcome.status],
    )


@router.post("/domains/detach", response_model=DetachDomainResponse)
async def detach_domain(
    request: TenantDomainRequest,
    orchestrator: DomainLifecycleOrchestrator = Depends(get_orchestrator),
) -> DetachDomainResponse:
    """
    Remove the tenant's custom domain and its `www` alias from the platform.

    A domain the platform has already forgotten is removed without error.
    """
    try:
        await orchestrator.detach(request.tenant_id, request.domain)
    except DomainServiceError as e:
        _raise_domain_error(e)

    return DetachDomainResponse(ok=True, message="Domain removed successfully")


@router.post("/domains/dns-records", response_model=DnsRecordsResponse)
async def get_dns_records(
    request: DnsRecordsRequest,
    orchestrator: DomainLifecycleOrchestrator = Depends(get_orchestrator),
) -> DnsRecordsResponse:
    """
    Look up the apex A and `www` CNAME records for a domain.

    Read-only: no tenant is updated.
    """
    try:
        domain, records = await orchestrator.dns_records(request.domain)
    except DomainServiceError as e:
        _raise_domain_error(e)

    return DnsRecordsResponse(domain=domain, dns_records=records)


@router.get("/tenants/{tenant_id}/domain", response_model=TenantDomainStateResponse)
async def get_tenant_domain(
    tenant_id: str,
    orchestrator: DomainLifecycleOrchestrator = Depends(get_orchestrator),
) -> TenantDomainStateResponse:
    """
    Get the tenant's cached domain state.

    Reflects the last attach/verify call; use `/domains/verify` to refresh.
    """
    try:
        tenant = await orchestrator.domain_state(tenant_id)
    except DomainServiceError as e:
        _raise_domain_error(e)

    return TenantDomainStateResponse(
        tenant_id=tenant.id,
        custom_domain=tenant.custom_domain,
        status=DomainStatus(tenant.domain_status),
        dns_records=[DnsRecord(**r) for r in tenant.domain_dns_records or []],
        challenges=[VerificationChallenge(**c) for c in tenant.domain_verification_challenges or []],
        updated_at=tenant.updated_at,
    )
