"""Domain-specific exceptions — framework-independent."""

from enum import Enum


class ProviderErrorKind(str, Enum):
    """Failure classes reported by text-completion and embedding providers."""

    RATE_LIMIT = "rate_limit"
    TIMEOUT = "timeout"
    AUTHENTICATION = "authentication"
    CONFIGURATION = "configuration"
    SERVER = "server"
    INVALID_RESPONSE = "invalid_response"


_TRANSIENT_KINDS = frozenset({ProviderErrorKind.RATE_LIMIT, ProviderErrorKind.TIMEOUT})


class ProviderError(Exception):
    """Raised when a text-completion or embedding provider call fails.

    Provider-agnostic: works for OpenRouter, DeepInfra, Gemini, etc.
    """

    def __init__(
        self,
        provider: str,
        status_code: int,
        message: str,
        kind: ProviderErrorKind = ProviderErrorKind.SERVER,
    ):
        self.provider = provider
        self.status_code = status_code
        self.message = message
        self.kind = kind
        super().__init__(f"[{provider}] {status_code} ({kind.value}): {message}")

    @property
    def is_transient(self) -> bool:
        """Rate limits and timeouts are retried and never trip the breaker."""
        return self.kind in _TRANSIENT_KINDS


class EmbeddingDimensionError(ProviderError):
    """Raised when an embedding vector does not have the expected shape."""

    def __init__(self, provider: str, expected: int, actual: int, message: str = ""):
        self.expected = expected
        self.actual = actual
        super().__init__(
            provider=provider,
            status_code=200,
            message=message or f"expected {expected} dimensions, got {actual}",
            kind=ProviderErrorKind.INVALID_RESPONSE,
        )


class AllProvidersFailedError(Exception):
    """Raised when every configured provider failed or was circuit-open."""

    def __init__(self, operation: str, failures: dict[str, str]):
        self.operation = operation
        self.failures = failures
        if failures:
            details = "; ".join(f"{name}: {reason}" for name, reason in failures.items())
        else:
            details = "no providers configured"
        super().__init__(f"All {operation} providers failed: {details}")


class ExtractionParseError(Exception):
    """Raised when a generative reply cannot be parsed even after a corrective retry."""

    def __init__(self, raw: str, reason: str):
        self.raw = raw
        self.reason = reason
        super().__init__(f"Could not parse generative extraction: {reason}")


class InvalidSearchRequestError(Exception):
    """Raised when a search request is malformed (empty query, bad paging)."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)
