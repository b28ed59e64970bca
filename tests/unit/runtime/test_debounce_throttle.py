"""Timing behavior of event handlers: trailing debounce and leading throttle."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from pagewright.runtime.context import RenderContext
from pagewright.runtime.engine import RenderEngine
from pagewright.runtime.events import HandlerFailed
from pagewright.runtime.executor import EventExecutor
from pagewright.runtime.registry import FunctionRegistry
from pagewright.runtime.schema import EventHandler, Schema

from tests.fixtures.schemas import make_schema


class ManualClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def stamp_handler(event: str, **timing: Any) -> EventHandler:
    """Handler that calls ``stamp`` with the event's ``n`` value."""
    return EventHandler.model_validate(
        {
            "event": event,
            "actions": [
                {"type": "callFunction", "config": {"function": "stamp", "args": ["{{ eventData.n }}"]}}
            ],
            **timing,
        }
    )


@pytest.fixture
def stamps(functions: FunctionRegistry) -> list[tuple[Any, float]]:
    """(value, loop time) for every ``stamp`` call."""
    seen: list[tuple[Any, float]] = []

    def stamp(value: Any) -> None:
        seen.append((value, asyncio.get_running_loop().time()))

    functions.register("stamp", stamp)
    return seen


class TestDebounce:
    @pytest.mark.asyncio
    async def test_burst_fires_once_with_last_payload(
        self, executor: EventExecutor, stamps: list[tuple[Any, float]]
    ) -> None:
        executor.register("search", "input", stamp_handler("input", debounce=100))
        loop = asyncio.get_running_loop()
        started = loop.time()

        first = await executor.execute("input", {"n": 1})
        await asyncio.sleep(0.05)
        await executor.execute("input", {"n": 2})
        await asyncio.sleep(0.03)
        await executor.execute("input", {"n": 3})

        assert first.scheduled == 1
        assert first.executed == 0
        assert stamps == []
        assert executor.pending_count == 1

        await executor.drain()

        assert [value for value, _ in stamps] == [3]
        # Fires one window after the last call, which came ~80ms in.
        assert stamps[0][1] - started >= 0.17
        assert executor.pending_count == 0

    @pytest.mark.asyncio
    async def test_separate_bursts_fire_separately(
        self, executor: EventExecutor, stamps: list[tuple[Any, float]]
    ) -> None:
        executor.register("search", "input", stamp_handler("input", debounce=20))

        await executor.execute("input", {"n": 1})
        await executor.drain()
        await executor.execute("input", {"n": 2})
        await executor.drain()

        assert [value for value, _ in stamps] == [1, 2]

    @pytest.mark.asyncio
    async def test_debounced_state_write_uses_context(self, executor: EventExecutor) -> None:
        executor.register(
            "field",
            "change",
            EventHandler.model_validate(
                {
                    "event": "change",
                    "debounce": 10,
                    "actions": [{"type": "setState", "config": {"key": "query", "value": "{{ eventData }}"}}],
                }
            ),
        )
        context = RenderContext()
        await executor.execute("change", "lam", context)
        await executor.execute("change", "lamp", context)
        await executor.drain()
        assert context.state["query"] == "lamp"

    @pytest.mark.asyncio
    async def test_unregister_cancels_pending_call(
        self, executor: EventExecutor, stamps: list[tuple[Any, float]]
    ) -> None:
        executor.register("search", "input", stamp_handler("input", debounce=20))
        await executor.execute("input", {"n": 1})

        executor.unregister("search")
        await executor.drain()
        await asyncio.sleep(0.04)

        assert stamps == []

    @pytest.mark.asyncio
    async def test_reset_cancels_pending_call(
        self, executor: EventExecutor, stamps: list[tuple[Any, float]]
    ) -> None:
        executor.register("search", "input", stamp_handler("input", debounce=20))
        await executor.execute("input", {"n": 1})

        executor.reset()
        await asyncio.sleep(0.04)

        assert stamps == []
        assert executor.handlers_for("input") == []

    @pytest.mark.asyncio
    async def test_deferred_failure_is_notified(self, executor: EventExecutor, recorded: Any) -> None:
        executor.register("search", "input", stamp_handler("input", debounce=10))

        result = await executor.execute("input", {"n": 1})
        await executor.drain()

        assert result.success
        [failed] = recorded.of_type(HandlerFailed)
        assert failed.node_id == "search"
        assert "stamp" in failed.error


class TestThrottle:
    @pytest.fixture
    def clock(self) -> ManualClock:
        return ManualClock()

    @pytest.fixture
    def throttled(
        self, clock: ManualClock, api_client: Any, intents: Any, functions: FunctionRegistry
    ) -> EventExecutor:
        return EventExecutor(
            api_client=api_client, intent_handler=intents, functions=functions, clock=clock
        )

    @pytest.mark.asyncio
    async def test_first_call_runs_rest_of_window_dropped(
        self,
        throttled: EventExecutor,
        clock: ManualClock,
        stamps: list[tuple[Any, float]],
    ) -> None:
        throttled.register("list", "scroll", stamp_handler("scroll", throttle=100))

        first = await throttled.execute("scroll", {"n": 1})
        clock.now = 0.05
        second = await throttled.execute("scroll", {"n": 2})
        clock.now = 0.1
        third = await throttled.execute("scroll", {"n": 3})

        assert (first.executed, second.suppressed, third.executed) == (1, 1, 1)
        assert [value for value, _ in stamps] == [1, 3]

    @pytest.mark.asyncio
    async def test_windows_are_per_handler(
        self,
        throttled: EventExecutor,
        clock: ManualClock,
        stamps: list[tuple[Any, float]],
    ) -> None:
        throttled.register("a", "scroll", stamp_handler("scroll", throttle=100))
        throttled.register("b", "scroll", stamp_handler("scroll", throttle=100))

        await throttled.execute("scroll", {"n": 1})
        clock.now = 0.01
        result = await throttled.execute("scroll", {"n": 2})

        assert result.suppressed == 2
        assert len(stamps) == 2

    @pytest.mark.asyncio
    async def test_suppressed_call_is_not_a_failure(
        self, throttled: EventExecutor, stamps: list[tuple[Any, float]]
    ) -> None:
        throttled.register("list", "scroll", stamp_handler("scroll", throttle=1000))
        await throttled.execute("scroll", {"n": 1})
        result = await throttled.execute("scroll", {"n": 2})
        assert result.success
        assert result.suppressed == 1


def search_schema(**timing: Any) -> Schema:
    """A single input node whose ``input`` handler stamps ``eventData.n``."""
    handlers: list[dict[str, Any]] = []
    if timing:
        handlers.append(
            {
                "event": "input",
                "actions": [
                    {"type": "callFunction", "config": {"function": "stamp", "args": ["{{ eventData.n }}"]}}
                ],
                **timing,
            }
        )
    return make_schema(
        {
            "id": "root",
            "type": "Container",
            "children": [{"id": "search", "type": "Input", "events": handlers}],
        },
        schema_id="search",
    )


class TestReRegistration:
    @pytest.mark.asyncio
    async def test_pending_debounce_survives_rerender(
        self, engine: RenderEngine, stamps: list[tuple[Any, float]]
    ) -> None:
        schema = search_schema(debounce=50)
        context = RenderContext()
        await engine.render(schema, context)

        result = await engine.dispatch("input", {"n": 1}, context)
        await engine.render(schema, context)
        await engine.events.drain()

        assert result.scheduled == 1
        assert [value for value, _ in stamps] == [1]

    @pytest.mark.asyncio
    async def test_debounce_after_rerender_replaces_pending_call(
        self, executor: EventExecutor, stamps: list[tuple[Any, float]]
    ) -> None:
        schema = search_schema(debounce=30)
        executor.register_schema(schema)
        await executor.execute("input", {"n": 1})

        executor.register_schema(schema)
        await executor.execute("input", {"n": 2})
        await executor.drain()

        assert [value for value, _ in stamps] == [2]

    @pytest.mark.asyncio
    async def test_removed_handler_still_cancels_pending_call(
        self, executor: EventExecutor, stamps: list[tuple[Any, float]]
    ) -> None:
        executor.register_schema(search_schema(debounce=20))
        await executor.execute("input", {"n": 1})

        executor.register_schema(search_schema())
        await executor.drain()
        await asyncio.sleep(0.04)

        assert stamps == []
        assert executor.handlers_for("input") == []

    @pytest.mark.asyncio
    async def test_throttle_window_survives_rerender(
        self,
        api_client: Any,
        intents: Any,
        functions: FunctionRegistry,
        stamps: list[tuple[Any, float]],
    ) -> None:
        clock = ManualClock()
        executor = EventExecutor(
            api_client=api_client, intent_handler=intents, functions=functions, clock=clock
        )
        schema = search_schema(throttle=10000)
        executor.register_schema(schema)

        first = await executor.execute("input", {"n": 1})
        executor.register_schema(schema)
        clock.now = 1.0
        second = await executor.execute("input", {"n": 2})

        assert (first.executed, second.executed, second.suppressed) == (1, 0, 1)
        assert [value for value, _ in stamps] == [1]

    def test_positions_count_handlers_per_node_and_event(
        self, executor: EventExecutor
    ) -> None:
        first = executor.register("search", "input", stamp_handler("input"))
        second = executor.register("search", "input", stamp_handler("input"))
        other = executor.register("filter", "input", stamp_handler("input"))

        assert first.key == ("search", "input", 0)
        assert second.key == ("search", "input", 1)
        assert other.key == ("filter", "input", 0)
