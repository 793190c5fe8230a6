"""Hosting platform API client for custom domain management."""

import asyncio
import logging
from typing import Any, Callable, TypeVar

import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    stop_after_attempt,
    wait_fixed,
)

from app.config import Settings
from app.errors import ConfigurationError, PlatformError
from app.schemas.platform import AttachResult, DomainConfig, DomainDetails

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Methods that are safe to re-send after the request may have reached the platform
IDEMPOTENT_METHODS = frozenset({"GET", "HEAD", "DELETE"})


class _CallTimeout(Exception):
    """Raised when a single attempt exceeds the total call timeout."""


def _is_retryable(exc: BaseException) -> bool:
    """Retry transport failures and 5xx responses; never 4xx."""
    if isinstance(exc, (httpx.TransportError, _CallTimeout)):
        return True
    return isinstance(exc, PlatformError) and exc.is_transient


def _is_retryable_unsent(exc: BaseException) -> bool:
    """Retry only failures where the request never reached the platform, plus 5xx."""
    if isinstance(exc, (httpx.ConnectError, httpx.ConnectTimeout)):
        return True
    return isinstance(exc, PlatformError) and exc.is_transient


def _parse(response: httpx.Response, parser: Callable[[dict[str, Any]], T]) -> T:
    """
    Decode a successful response body with ``parser``.

    Raises:
        PlatformError: If the body is not a JSON object or does not parse
    """
    try:
        body = response.json()
        if not isinstance(body, dict):
            raise ValueError(f"expected a JSON object, got {type(body).__name__}")
        return parser(body)
    except (ValueError, TypeError) as e:
        logger.error(f"Unreadable platform response ({response.status_code}): {e}")
        raise PlatformError(
            "Unreadable platform response", code="invalid_response", http_status=502,
        )


def _error_from_response(response: httpx.Response, fallback: str) -> PlatformError:
    """Build a PlatformError from the platform's ``{"error": {code, message}}`` body."""
    try:
        body = response.json()
    except ValueError:
        body = {}

    error = body.get("error") if isinstance(body, dict) else None
    if not isinstance(error, dict):
        error = {}

    return PlatformError(
        message=error.get("message") or fallback,
        code=error.get("code") or "platform_error",
        http_status=response.status_code,
    )


class PlatformDomainClient:
    """
    Async wrapper for the hosting platform's domain endpoints.

    Stateless apart from the pooled HTTP connection, so a single instance
    can be shared across concurrent requests.
    """

    def __init__(
        self,
        token: str,
        project_id: str,
        team_id: str = "",
        base_url: str = "https://api.vercel.com",
        timeout: float = 10.0,
        max_attempts: int = 2,
        retry_wait: float = 1.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize the client.

        Args:
            token: Bearer credential for the platform API
            project_id: Project the domains are attached to
            team_id: Optional team/account scope sent as ``teamId``
            base_url: Platform API base URL
            timeout: Total timeout in seconds for each attempt of a call
            max_attempts: Attempts per call on transient failures
            retry_wait: Seconds to wait between attempts
            transport: Optional httpx transport (used by tests)
        """
        self.token = token
        self.project_id = project_id
        self.team_id = team_id
        self.timeout = timeout
        self.max_attempts = max(1, max_attempts)
        self.retry_wait = retry_wait
        self._http = httpx.AsyncClient(
            base_url=base_url,
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    async def aclose(self) -> None:
        """Release pooled connections."""
        await self._http.aclose()

    def _ensure_configured(self) -> None:
        if not self.token or not self.project_id:
            logger.error("Missing hosting platform configuration (token or project id)")
            raise ConfigurationError("Server configuration error")

    async def _request(
        self,
        method: str,
        path: str,
        json: dict[str, Any] | None = None,
    ) -> httpx.Response:
        """
        Issue one platform call with timeout and bounded retry.

        Each attempt is bounded by ``self.timeout`` as a whole, not per
        phase. Idempotent methods retry on any transport failure; other
        methods retry only when the connection was never established, so a
        POST that may have reached the platform is not sent twice.

        Returns the response for any status below 500; callers decide how
        to interpret 4xx.

        Raises:
            ConfigurationError: If credentials are missing (no request is made)
            PlatformError: On timeout, network failure or 5xx after retries
        """
        self._ensure_configured()

        headers = {"Authorization": f"Bearer {self.token}"}
        params = {"teamId": self.team_id} if self.team_id else None

        retrying = AsyncRetrying(
            retry=retry_if_exception(
                _is_retryable if method in IDEMPOTENT_METHODS else _is_retryable_unsent
            ),
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_fixed(self.retry_wait),
            reraise=True,
        )

        try:
            async for attempt in retrying:
                with attempt:
                    try:
                        response = await asyncio.wait_for(
                            self._http.request(
                                method, path, json=json, params=params, headers=headers,
                            ),
                            timeout=self.timeout,
                        )
                    except asyncio.TimeoutError:
                        raise _CallTimeout(f"no response within {self.timeout}s")
                    if response.status_code >= 500:
                        raise _error_from_response(
                            response, f"Platform returned {response.status_code}"
                        )
        except (httpx.TimeoutException, _CallTimeout) as e:
            logger.error(f"Platform {method} {path} timed out: {e}")
            raise PlatformError(
                "Hosting platform timed out", code="platform_timeout", http_status=504,
            )
        except httpx.TransportError as e:
            logger.error(f"Platform {method} {path} unreachable: {e}")
            raise PlatformError(
                "Hosting platform unreachable", code="platform_unreachable", http_status=502,
            )

        return response

    async def attach_domain(self, domain: str) -> AttachResult:
        """
        Register a domain on the platform project.

        Raises:
            PlatformError: With the platform's code (e.g. ``domain_already_in_use``)
        """
        response = await self._request(
            "POST",
            f"/v10/projects/{self.project_id}/domains",
            json={"name": domain},
        )
        if not response.is_success:
            error = _error_from_response(response, "Failed to add domain on hosting platform")
            logger.error(f"Platform rejected domain {domain}: {error.code} - {error.message}")
            raise error

        return _parse(response, AttachResult.from_platform)

    async def attach_alias_with_redirect(
        self,
        alias: str,
        target: str,
        redirect_code: int = 308,
    ) -> None:
        """Register an alias that redirects to ``target``."""
        response = await self._request(
            "POST",
            f"/v10/projects/{self.project_id}/domains",
            json={
                "name": alias,
                "redirect": target,
                "redirectStatusCode": redirect_code,
            },
        )
        if not response.is_success:
            raise _error_from_response(response, f"Failed to add alias {alias}")

    async def get_domain_config(self, domain: str) -> DomainConfig:
        """Fetch the DNS configuration the platform expects for a domain."""
        response = await self._request("GET", f"/v6/domains/{domain}/config")
        if not response.is_success:
            raise _error_from_response(response, "Failed to fetch domain config")

        return _parse(response, DomainConfig.from_platform)

    async def get_domain_details(self, domain: str) -> DomainDetails | None:
        """
        Fetch the project-level domain record.

        Returns:
            Domain details, or None if the platform has no record of the domain
        """
        response = await self._request(
            "GET", f"/v9/projects/{self.project_id}/domains/{domain}",
        )
        if response.status_code == 404:
            logger.info(f"Domain {domain} not found on hosting platform")
            return None
        if not response.is_success:
            raise _error_from_response(response, "Failed to fetch domain details")

        return _parse(response, DomainDetails.from_platform)

    async def detach_domain(self, domain: str) -> None:
        """Remove a domain from the project. Already-absent domains succeed."""
        response = await self._request(
            "DELETE", f"/v9/projects/{self.project_id}/domains/{domain}",
        )
        if response.status_code == 404:
            logger.info(f"Domain {domain} already absent from hosting platform")
            return
        if not response.is_success:
            raise _error_from_response(response, "Failed to remove domain from hosting platform")


def create_platform_client(
    settings: Settings,
    transport: httpx.AsyncBaseTransport | None = None,
) -> PlatformDomainClient:
    """Build a platform client from application settings."""
    return PlatformDomainClient(
        token=settings.PLATFORM_API_TOKEN,
        project_id=settings.PLATFORM_PROJECT_ID,
        team_id=settings.PLATFORM_TEAM_ID,
        base_url=settings.PLATFORM_API_BASE_URL,
        timeout=settings.PLATFORM_TIMEOUT_SECONDS,
        max_attempts=settings.PLATFORM_MAX_ATTEMPTS,
        retry_wait=settings.PLATFORM_RETRY_WAIT_SECONDS,
        transport=transport,
    )
