"""Domain name validation utilities."""

import re
from typing import Tuple

# One or more hostname labels followed by an alphabetic TLD of 2+ characters
DOMAIN_REGEX = re.compile(
    r"^(?:[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?\.)+[a-z]{2,}$"
)

INVALID_DOMAIN_MESSAGE = "Invalid domain format"


def validate_domain(raw: str | None) -> Tuple[str | None, str | None]:
    """
    Normalize and validate a domain name.

    Args:
        raw: Domain as entered by the tenant

    Returns:
        Tuple of (normalized_domain, error_message)
        If valid, error_message is None; if invalid, normalized_domain is None
    """
    if raw is None or not raw.strip():
        return None, "Domain is required"

    domain = raw.strip().lower()

    if len(domain) > 253:
        return None, INVALID_DOMAIN_MESSAGE

    if not DOMAIN_REGEX.match(domain):
        return None, INVALID_DOMAIN_MESSAGE

    return domain, None


def alias_for(domain: str) -> str:
    """Return the www alias of an apex domain."""
    return f"www.{domain}"
