"""Typed results of hosting platform API calls."""

from typing import Any

from pydantic import BaseModel, Field

from app.schemas.domain import VerificationChallenge


def _parse_challenges(payload: dict[str, Any]) -> list[VerificationChallenge]:
    """Extract verification challenges, skipping malformed entries."""
    challenges = []
    for entry in payload.get("verification") or []:
        if not isinstance(entry, dict):
            continue
        if not entry.get("domain") or entry.get("value") is None:
            continue
        challenges.append(VerificationChallenge(
            type=entry.get("type") or "TXT",
            domain=entry["domain"],
            value=entry["value"],
        ))
    return challenges


def _rank_key(entry: dict[str, Any]) -> float:
    rank = entry.get("rank", 1)
    if isinstance(rank, bool) or not isinstance(rank, (int, float)):
        return float("inf")
    return rank


def _rank_one(entries: Any) -> Any:
    """Return the value of the top-ranked recommendation, if any.

    Entries with a missing or non-numeric rank sort last.
    """
    if not isinstance(entries, list):
        return None
    ranked = [e for e in entries if isinstance(e, dict)]
    if not ranked:
        return None
    best = min(ranked, key=_rank_key)
    return best.get("value")


class AttachResult(BaseModel):
    """Outcome of registering a domain on the platform project."""

    verified: bool = False
    challenges: list[VerificationChallenge] = Field(default_factory=list)

    @classmethod
    def from_platform(cls, payload: dict[str, Any]) -> "AttachResult":
        return cls(
            verified=bool(payload.get("verified", False)),
            challenges=_parse_challenges(payload),
        )


class DomainDetails(BaseModel):
    """Project-level domain record, including pending ownership challenges."""

    verification: list[VerificationChallenge] = Field(default_factory=list)

    @classmethod
    def from_platform(cls, payload: dict[str, Any]) -> "DomainDetails":
        return cls(
            verification=_parse_challenges(payload),
        )


class DomainConfig(BaseModel):
    """
    DNS configuration the platform expects for a domain.

    ``misconfigured`` is tri-state: ``False`` means DNS is correctly
    published, ``True`` means it is not, and ``None`` means unknown
    (field absent or the lookup failed).
    """

    recommended_a_records: list[str] = Field(default_factory=list)
    recommended_cname: str = ""
    misconfigured: bool | None = None

    @classmethod
    def from_platform(cls, payload: dict[str, Any]) -> "DomainConfig":
        """
        Build a config from either response shape the platform has used.

        Legacy responses carry ``aValues`` and ``cnameTarget``; current ones
        carry ranked ``recommendedIPv4`` / ``recommendedCNAME`` lists where
        rank 1 is the platform's top recommendation.
        """
        a_records: list[str] = []
        ranked_ipv4 = _rank_one(payload.get("recommendedIPv4"))
        if isinstance(ranked_ipv4, list):
            a_records = [str(v) for v in ranked_ipv4 if v]
        elif isinstance(ranked_ipv4, str) and ranked_ipv4:
            a_records = [ranked_ipv4]
        if not a_records:
            a_records = [str(v) for v in payload.get("aValues") or [] if v]

        cname = payload.get("recommendedCNAME")
        if isinstance(cname, list):
            cname = _rank_one(cname)
        if not isinstance(cname, str) or not cname:
            cname = payload.get("cnameTarget") or ""

        misconfigured = payload.get("misconfigured")
        if not isinstance(misconfigured, bool):
            misconfigured = None

        return cls(
            recommended_a_records=a_records,
            recommended_cname=cname,
            misconfigured=misconfigured,
        )
