"""Unit tests for the in-memory conversation store."""

import pytest

from community_search.domain.entities import ExtractedEntities, Intent
from community_search.infrastructure.session import InMemoryConversationStore


class FakeClock:
    def __init__(self, now: float = 10_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


async def _record(store, key: str, query: str, count: int = 3) -> None:
    await store.record_turn(
        key,
        query=query,
        intent=Intent.FIND_BUSINESS,
        entities=ExtractedEntities(),
        result_count=count,
    )


@pytest.mark.asyncio
async def test_unknown_session_has_no_context():
    store = InMemoryConversationStore()

    assert await store.build_context("nobody") == ""


@pytest.mark.asyncio
async def test_context_lists_recent_turns_with_age():
    clock = FakeClock()
    store = InMemoryConversationStore(clock=clock)

    await _record(store, "s1", "python developers", count=4)
    clock.now += 120
    await _record(store, "s1", "in Chennai", count=2)
    clock.now += 10

    context = await store.build_context("s1")

    assert context.splitlines() == [
        "Previous conversation:",
        '1. "python developers" (2 minutes ago, 4 results)',
        '2. "in Chennai" (just now, 2 results)',
    ]


@pytest.mark.asyncio
async def test_history_is_bounded():
    store = InMemoryConversationStore(max_history=2)

    for query in ("one", "two", "three"):
        await _record(store, "s1", query)

    assert [turn.query for turn in await store.history("s1")] == ["two", "three"]


@pytest.mark.asyncio
async def test_sessions_expire_after_inactivity():
    clock = FakeClock()
    store = InMemoryConversationStore(ttl_seconds=60, clock=clock)

    await _record(store, "old", "first")
    clock.now += 61
    await _record(store, "new", "second")

    assert await store.history("old") == []
    assert store.active_sessions == 1


@pytest.mark.asyncio
async def test_sessions_are_isolated():
    store = InMemoryConversationStore()

    await _record(store, "a", "alpha")
    await _record(store, "b", "beta")

    assert "beta" not in await store.build_context("a")
