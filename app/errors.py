"""Error taxonomy for the custom domain subsystem."""


class DomainServiceError(Exception):
    """Base exception carrying a machine-readable code."""

    code = "DOMAIN_SERVICE_ERROR"

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class ValidationError(DomainServiceError):
    """Bad input. Raised before any network or store access."""

    code = "VALIDATION_ERROR"


class AuthorizationError(DomainServiceError):
    """Insufficient plan or domain ownership mismatch."""

    code = "FORBIDDEN"


class NotFoundError(DomainServiceError):
    """Tenant does not exist."""

    code = "TENANT_NOT_FOUND"


class ConfigurationError(DomainServiceError):
    """Operator-fixable misconfiguration such as missing platform credentials."""

    code = "CONFIGURATION_ERROR"


class PlatformError(DomainServiceError):
    """The hosting platform rejected a request or could not be reached."""

    code = "platform_error"

    def __init__(self, message: str, code: str | None = None, http_status: int = 500):
        super().__init__(message, code)
        self.http_status = http_status

    @property
    def is_transient(self) -> bool:
        """Timeouts, network failures and 5xx responses."""
        return self.http_status >= 500

    def __repr__(self) -> str:
        return f"<PlatformError(code={self.code}, status={self.http_status}, message={self.message!r})>"
