"""Provider factory — ordered failover over text-completion and embedding providers.

Every provider gets its own circuit breaker. A breaker opens after
``failure_threshold`` consecutive non-transient failures and closes again once
``reset_timeout`` seconds have passed since the last one. Rate limits and
timeouts never count toward the threshold; they are retried in-call with
exponential backoff before the factory moves on to the next provider.
"""

import asyncio
import logging
import math
import time
from collections.abc import Awaitable, Callable, Sequence
from typing import Any, TypeVar

from community_search.application.interfaces import ChatProvider, EmbeddingProvider
from community_search.domain.entities import ChatCompletionResult, ChatMessage
from community_search.domain.entities.provider_circuit import (
    ProviderCircuitState,
    cool_down,
    is_open,
    record_failure,
    record_success,
)
from community_search.domain.exceptions import (
    AllProvidersFailedError,
    EmbeddingDimensionError,
    ProviderError,
    ProviderErrorKind,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

CHAT = "chat"
EMBEDDING = "embedding"

DEFAULT_FAILURE_THRESHOLD = 5
DEFAULT_RESET_TIMEOUT = 60.0
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_BASE_DELAY = 1.0
DEFAULT_RETRY_MAX_DELAY = 8.0

_MIN_EMBEDDING_NORM = 1e-6


def validate_embeddings(
    provider: str,
    vectors: list[list[float]],
    expected_count: int,
    dimensions: int,
) -> None:
    """Reject embedding batches with the wrong count, length or non-finite values."""
    if len(vectors) != expected_count:
        raise ProviderError(
            provider=provider,
            status_code=200,
            message=f"expected {expected_count} embeddings, got {len(vectors)}",
            kind=ProviderErrorKind.INVALID_RESPONSE,
        )
    for vector in vectors:
        if len(vector) != dimensions:
            raise EmbeddingDimensionError(provider, expected=dimensions, actual=len(vector))
        if not all(math.isfinite(v) for v in vector):
            raise EmbeddingDimensionError(
                provider,
                expected=dimensions,
                actual=len(vector),
                message="embedding contains non-finite values",
            )
        norm = math.sqrt(sum(v * v for v in vector))
        if norm < _MIN_EMBEDDING_NORM:
            logger.warning("Provider %s returned a near-zero embedding (norm=%.2e)", provider, norm)


class ProviderFactory:
    """Owns the provider lists and their circuit-breaker state.

    One instance is shared by all requests in the process so breaker state
    survives between queries. Each breaker is guarded by its own lock.
    """

    def __init__(
        self,
        chat_providers: Sequence[ChatProvider] = (),
        embedding_providers: Sequence[EmbeddingProvider] = (),
        *,
        embedding_dimensions: int | None = None,
        failure_threshold: int = DEFAULT_FAILURE_THRESHOLD,
        reset_timeout: float = DEFAULT_RESET_TIMEOUT,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_base_delay: float = DEFAULT_RETRY_BASE_DELAY,
        retry_max_delay: float = DEFAULT_RETRY_MAX_DELAY,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self._chat_providers = list(chat_providers)
        self._embedding_providers = list(embedding_providers)
        self._embedding_dimensions = embedding_dimensions
        self._failure_threshold = failure_threshold
        self._reset_timeout = reset_timeout
        self._max_retries = max_retries
        self._retry_base_delay = retry_base_delay
        self._retry_max_delay = retry_max_delay
        self._clock = clock
        self._sleep = sleep

        self._states: dict[str, ProviderCircuitState] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        for operation, providers in (
            (CHAT, self._chat_providers),
            (EMBEDDING, self._embedding_providers),
        ):
            for provider in providers:
                key = self._key(operation, provider.provider_name)
                self._states[key] = ProviderCircuitState(provider=provider.provider_name)
                self._locks[key] = asyncio.Lock()

    @property
    def has_chat_providers(self) -> bool:
        return bool(self._chat_providers)

    @property
    def has_embedding_providers(self) -> bool:
        return bool(self._embedding_providers)

    # ── Public operations ────────────────────────────────────────────

    async def generate(
        self,
        messages: list[ChatMessage],
        *,
        temperature: float | None = None,
        max_tokens: int | None = None,
        stop: list[str] | None = None,
    ) -> ChatCompletionResult:
        """Run a completion on the first healthy provider that succeeds."""

        async def call(provider: ChatProvider) -> ChatCompletionResult:
            return await provider.complete(
                messages,
                temperature=temperature,
                max_tokens=max_tokens,
                stop=stop,
            )

        return await self._run(CHAT, self._chat_providers, call)

    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Embed a batch of texts with failover; vectors are validated before returning."""

        async def call(provider: EmbeddingProvider) -> list[list[float]]:
            vectors = await provider.generate_embeddings(texts)
            validate_embeddings(
                provider.provider_name,
                vectors,
                expected_count=len(texts),
                dimensions=self._embedding_dimensions or provider.dimensions,
            )
            return vectors

        return await self._run(EMBEDDING, self._embedding_providers, call)

    async def embed_query(self, text: str) -> list[float]:
        vectors = await self.embed([text])
        return vectors[0]

    def provider_status(self) -> list[dict[str, Any]]:
        """Snapshot of every breaker, in failover order."""
        now = self._clock()
        status = []
        for key, state in self._states.items():
            operation = key.split(":", 1)[0]
            status.append({
                "name": state.provider,
                "kind": operation,
                "failures": state.failures,
                "open": is_open(state, now, self._reset_timeout),
                "last_failure_age_seconds": (
                    round(now - state.last_failure_at, 1)
                    if state.last_failure_at is not None
                    else None
                ),
            })
        return status

    # ── Failover loop ────────────────────────────────────────────────

    async def _run(
        self,
        operation: str,
        providers: Sequence[Any],
        call: Callable[[Any], Awaitable[T]],
    ) -> T:
        failures: dict[str, str] = {}

        for provider in providers:
            name = provider.provider_name
            key = self._key(operation, name)

            if await self._breaker_open(key):
                logger.info("Skipping %s provider '%s': circuit open", operation, name)
                failures[name] = "circuit open"
                continue

            try:
                result = await self._call_with_retries(provider, call)
            except ProviderError as exc:
                if not exc.is_transient:
                    await self._record_failure(key)
                failures[name] = f"{exc.kind.value}: {exc.message}"
                logger.warning(
                    "%s provider '%s' failed (%s): %s",
                    operation.capitalize(),
                    name,
                    exc.kind.value,
                    exc.message,
                )
                continue
            except Exception as exc:
                logger.exception("%s provider '%s' raised unexpectedly", operation.capitalize(), name)
                await self._record_failure(key)
                failures[name] = f"{type(exc).__name__}: {exc}"
                continue

            await self._record_success(key)
            return result

        logger.error("All %s providers failed: %s", operation, failures)
        raise AllProvidersFailedError(operation, failures)

    async def _call_with_retries(self, provider: Any, call: Callable[[Any], Awaitable[T]]) -> T:
        attempt = 0
        while True:
            try:
                return await call(provider)
            except ProviderError as exc:
                if not exc.is_transient or attempt >= self._max_retries:
                    raise
                delay = min(self._retry_max_delay, self._retry_base_delay * (2 ** attempt))
                attempt += 1
                logger.warning(
                    "Provider '%s' %s, retry %d/%d in %.1fs",
                    provider.provider_name,
                    exc.kind.value,
                    attempt,
                    self._max_retries,
                    delay,
                )
                await self._sleep(delay)

    # ── Breaker bookkeeping ──────────────────────────────────────────

    @staticmethod
    def _key(operation: str, provider_name: str) -> str:
        return f"{operation}:{provider_name}"

    async def _breaker_open(self, key: str) -> bool:
        async with self._locks[key]:
            now = self._clock()
            state = self._states[key]
            if is_open(state, now, self._reset_timeout):
                return True
            cooled = cool_down(state, now, self._reset_timeout)
            if cooled is not state:
                logger.info("Circuit for '%s' closed after cool-down", key)
                self._states[key] = cooled
            return False

    async def _record_failure(self, key: str) -> None:
        async with self._locks[key]:
            before = self._states[key]
            after = record_failure(before, self._clock(), self._failure_threshold)
            self._states[key] = after
            if after.opened and not before.opened:
                logger.warning(
                    "Circuit for '%s' opened after %d consecutive failures",
                    key,
                    after.failures,
                )

    async def _record_success(self, key: str) -> None:
        async with self._locks[key]:
            self._states[key] = record_success(self._states[key])
