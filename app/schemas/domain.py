"""Domain-related Pydantic schemas."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class DomainStatus(str, Enum):
    """Cached projection of the platform's view of a tenant's custom domain."""

    UNATTACHED = "unattached"
    PENDING_VERIFICATION = "pending_verification"
    VERIFIED = "verified"
    NOT_FOUND = "not_found"


class PlanTier(str, Enum):
    """Subscription tiers known to the tenant store."""

    FREE = "free"
    PRO = "pro"
    BUSINESS = "business"


class DnsRecord(BaseModel):
    """A single DNS record the tenant must publish."""

    type: str = Field(..., description="DNS record type (A, CNAME or TXT)")
    name: str = Field(..., description="Zone-relative name (@, www, or a verification label)")
    value: str = Field(..., description="DNS record value")


class VerificationChallenge(BaseModel):
    """Ownership challenge as reported by the hosting platform."""

    type: str = Field(..., description="DNS record type of the challenge (usually TXT)")
    domain: str = Field(..., description="Fully qualified record name, e.g. _vercel.example.com")
    value: str = Field(..., description="Expected record value")


class AttachDomainRequest(BaseModel):
    """Request schema for attaching a custom domain to a tenant."""

    tenant_id: str = Field(..., min_length=1, description="Tenant (store) identifier")
    domain: str = Field(..., min_length=1, description="Domain name to attach (e.g., shop.example.com)")


class TenantDomainRequest(BaseModel):
    """Request schema for operations on a tenant's current domain."""

    tenant_id: str = Field(..., min_length=1, description="Tenant (store) identifier")
    domain: str = Field(..., min_length=1, description="Domain currently attached to the tenant")


class DnsRecordsRequest(BaseModel):
    """Request schema for a read-only DNS record lookup."""

    domain: str = Field(..., min_length=1, description="Domain name to look up")


class AttachDomainResponse(BaseModel):
    """Response for domain attachment."""

    domain: str
    status: DomainStatus
    dns_records: list[DnsRecord]
    challenges: list[VerificationChallenge]
    configured: bool
    message: str


class VerifyDomainResponse(BaseModel):
    """Response for domain verification."""

    domain: str
    verified: bool
    status: DomainStatus
    dns_records: list[DnsRecord]
    challenges: list[VerificationChallenge]
    message: str


class DetachDomainResponse(BaseModel):
    """Response for domain detachment."""

    ok: bool = True
    message: str


class DnsRecordsResponse(BaseModel):
    """Response for a DNS record lookup."""

    domain: str
    dns_records: list[DnsRecord]


class TenantDomainStateResponse(BaseModel):
    """Cached domain state of a tenant, as last refreshed by attach/verify."""

    tenant_id: str
    custom_domain: str | None
    status: DomainStatus
    dns_records: list[DnsRecord]
    challenges: list[VerificationChallenge]
    updated_at: datetime | None
