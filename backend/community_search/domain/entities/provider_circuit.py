"""Circuit-breaker state for one text or embedding provider.

The state object is immutable; the provider factory swaps it for the value
returned by the transition functions below.
"""

from dataclasses import dataclass, replace


@dataclass(frozen=True)
class ProviderCircuitState:
    """Failure bookkeeping for a single provider."""

    provider: str
    failures: int = 0
    last_failure_at: float | None = None
    opened: bool = False


def record_success(state: ProviderCircuitState) -> ProviderCircuitState:
    """A successful call closes the breaker and clears the counter."""
    return replace(state, failures=0, last_failure_at=None, opened=False)


def record_failure(
    state: ProviderCircuitState,
    now: float,
    threshold: int,
) -> ProviderCircuitState:
    """Count one non-transient failure; opens the breaker at ``threshold``."""
    failures = state.failures + 1
    return replace(
        state,
        failures=failures,
        last_failure_at=now,
        opened=failures >= threshold,
    )


def is_open(state: ProviderCircuitState, now: float, reset_timeout: float) -> bool:
    """True while the breaker is open and the cool-down has not elapsed."""
    if not state.opened or state.last_failure_at is None:
        return False
    return (now - state.last_failure_at) < reset_timeout


def cool_down(
    state: ProviderCircuitState,
    now: float,
    reset_timeout: float,
) -> ProviderCircuitState:
    """Close an open breaker whose cool-down window has passed."""
    if state.opened and not is_open(state, now, reset_timeout):
        return replace(state, failures=0, opened=False)
    return state
