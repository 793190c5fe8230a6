"""Tenant model holding the storefront's custom domain state."""

from datetime import datetime

from sqlalchemy import JSON, DateTime, String, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base
from app.schemas.domain import DomainStatus, PlanTier

# JSONB on Postgres, plain JSON elsewhere
JSONType = JSON().with_variant(JSONB(), "postgresql")


class Tenant(Base):
    """A store on the storefront platform (subset of fields used here)."""

    __tablename__ = "tenants"

    # Document-store tenant id
    id: Mapped[str] = mapped_column(
        String(128),
        primary_key=True,
    )

    # Subscription plan tier
    plan_tier: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=PlanTier.FREE.value,
    )

    # Attached custom domain (null iff status is unattached)
    custom_domain: Mapped[str | None] = mapped_column(
        String(253),
        nullable=True,
        index=True,
    )

    domain_status: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default=DomainStatus.UNATTACHED.value,
    )

    # Platform ownership challenges, as reported
    domain_verification_challenges: Mapped[list] = mapped_column(
        JSONType,
        nullable=False,
        default=list,
    )

    # Reconciled DNS records to show the tenant
    domain_dns_records: Mapped[list] = mapped_column(
        JSONType,
        nullable=False,
        default=list,
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<Tenant(id={self.id}, domain={self.custom_domain}, status={self.domain_status})>"
