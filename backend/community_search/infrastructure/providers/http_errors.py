"""Shared HTTP → ProviderError mapping for provider adapters."""

import httpx

from community_search.domain.exceptions import ProviderError, ProviderErrorKind

_CONFIGURATION_STATUSES = frozenset({400, 404, 422})
_AUTH_STATUSES = frozenset({401, 403})


def kind_for_status(status_code: int) -> ProviderErrorKind:
    """Failure class for a non-2xx HTTP status."""
    if status_code == 429:
        return ProviderErrorKind.RATE_LIMIT
    if status_code in (408, 504):
        return ProviderErrorKind.TIMEOUT
    if status_code in _AUTH_STATUSES:
        return ProviderErrorKind.AUTHENTICATION
    if status_code in _CONFIGURATION_STATUSES:
        return ProviderErrorKind.CONFIGURATION
    return ProviderErrorKind.SERVER


def error_message(response: httpx.Response) -> str:
    """Best-effort error text from an OpenAI- or Google-style error body."""
    try:
        data = response.json()
    except ValueError:
        return response.text[:500]

    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str):
            return error
        if data.get("message"):
            return str(data["message"])
    return response.text[:500]


def raise_for_response(provider: str, response: httpx.Response) -> None:
    """Raise a classified ProviderError for any non-2xx response."""
    if response.is_success:
        return
    raise ProviderError(
        provider=provider,
        status_code=response.status_code,
        message=error_message(response),
        kind=kind_for_status(response.status_code),
    )


def transport_error(provider: str, exc: httpx.HTTPError) -> ProviderError:
    """Translate an httpx transport exception into a ProviderError."""
    if isinstance(exc, httpx.TimeoutException):
        return ProviderError(
            provider=provider,
            status_code=504,
            message=f"request timed out ({type(exc).__name__})",
            kind=ProviderErrorKind.TIMEOUT,
        )
    return ProviderError(
        provider=provider,
        status_code=503,
        message=f"transport error: {exc}",
        kind=ProviderErrorKind.SERVER,
    )


def invalid_response(provider: str, message: str) -> ProviderError:
    return ProviderError(
        provider=provider,
        status_code=200,
        message=message,
        kind=ProviderErrorKind.INVALID_RESPONSE,
    )
