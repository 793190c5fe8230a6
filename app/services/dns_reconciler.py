"""Merge platform config and domain details into the DNS records a tenant must publish."""

from app.schemas.domain import DnsRecord
from app.schemas.platform import DomainConfig, DomainDetails

DEFAULT_A_RECORD = "76.76.21.21"
DEFAULT_CNAME = "cname.vercel-dns.com"


def relative_label(fqdn: str, domain: str) -> str:
    """
    Convert a fully qualified record name to a zone-relative label.

    ``example.com`` becomes ``@``, ``_vercel.example.com`` becomes
    ``_vercel``; names outside the zone are returned unchanged.
    """
    name = fqdn.rstrip(".")
    lowered = name.lower()
    zone = domain.lower()

    if lowered == zone:
        return "@"
    suffix = f".{zone}"
    if lowered.endswith(suffix):
        return name[: -len(suffix)]
    return name


def reconcile(
    domain: str,
    config: DomainConfig,
    details: DomainDetails | None,
    default_a_record: str = DEFAULT_A_RECORD,
    default_cname: str = DEFAULT_CNAME,
) -> list[DnsRecord]:
    """
    Build the ordered DNS record list for a domain.

    Order is apex A record, www CNAME, then verification records in the
    order the platform reported them. Duplicate challenges are kept.

    Args:
        domain: Apex domain the records belong to
        config: Platform DNS config (may be empty if the lookup failed)
        details: Platform domain details, or None if unavailable
        default_a_record: Apex address used when the platform recommends none
        default_cname: Alias target used when the platform recommends none

    Returns:
        List of DNS records to configure
    """
    records = []

    a_value = config.recommended_a_records[0] if config.recommended_a_records else default_a_record
    records.append(DnsRecord(type="A", name="@", value=a_value))

    cname_value = config.recommended_cname.rstrip(".") if config.recommended_cname else ""
    records.append(DnsRecord(type="CNAME", name="www", value=cname_value or default_cname))

    if details is not None:
        for challenge in details.verification:
            records.append(DnsRecord(
                type=challenge.type,
                name=relative_label(challenge.domain, domain),
                value=challenge.value,
            ))

    return records
