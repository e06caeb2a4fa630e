from __future__ import annotations

import asyncio
from typing import Any

import pytest

from brain.agent.loop import LOOP_EXCEEDED_MESSAGE, LoopState, ToolLoop, gather_in_order
from brain.llm.anthropic import ModelResponse
from brain.tools.executor import ToolExecutor


def _text(text: str) -> ModelResponse:
    return ModelResponse(stop_reason="end_turn", content=[{"type": "text", "text": text}])


def _tool_use(*calls: tuple[str, str, dict[str, Any]], text: str | None = None) -> ModelResponse:
    content: list[dict[str, Any]] = []
    if text:
        content.append({"type": "text", "text": text})
    for call_id, name, arguments in calls:
        content.append({"type": "tool_use", "id": call_id, "name": name, "input": arguments})
    return ModelResponse(stop_reason="tool_use", content=content)


class ScriptedModel:
    def __init__(self, responses: list[ModelResponse]) -> None:
        self._responses = list(responses)
        self.requests: list[dict[str, Any]] = []

    async def create_message(self, *, system: str, messages: list[dict[str, Any]], tools=None) -> ModelResponse:
        self.requests.append({"system": system, "messages": list(messages), "tools": tools})
        if len(self._responses) == 1:
            return self._responses[0]
        return self._responses.pop(0)


class FakeToolSession:
    def __init__(self, results: dict[str, str] | None = None, delays: dict[str, float] | None = None) -> None:
        self._results = results or {}
        self._delays = delays or {}
        self.calls: list[tuple[str, dict[str, Any]]] = []

    async def call_tool(self, name: str, arguments: dict[str, Any]) -> str:
        self.calls.append((name, arguments))
        await asyncio.sleep(self._delays.get(name, 0))
        if name not in self._results:
            raise ConnectionError(f"network down while calling {name}")
        return self._results[name]


def _loop(model: ScriptedModel, session: FakeToolSession, **kwargs: Any) -> ToolLoop:
    return ToolLoop(model, ToolExecutor(session), [], system_prompt="system", **kwargs)


@pytest.mark.asyncio
async def test_final_answer_takes_one_model_call() -> None:
    model = ScriptedModel(
        [
            ModelResponse(
                stop_reason="end_turn",
                content=[{"type": "text", "text": "  Hello "}, {"type": "text", "text": "there  "}],
            )
        ]
    )

    outcome = await _loop(model, FakeToolSession()).run("hi")

    assert outcome.state is LoopState.DONE
    assert outcome.model_calls == 1
    assert outcome.text == "Hello \nthere"
    assert model.requests[0]["messages"] == [{"role": "user", "content": "hi"}]
    assert model.requests[0]["system"] == "system"


@pytest.mark.asyncio
async def test_every_tool_request_gets_one_result_in_request_order() -> None:
    model = ScriptedModel(
        [
            _tool_use(
                ("call-slow", "slow_tool", {"a": 1}),
                ("call-fast", "fast_tool", {"b": 2}),
                text="Looking that up",
            ),
            _text("done"),
        ]
    )
    session = FakeToolSession(
        results={"slow_tool": "slow result", "fast_tool": "fast result"},
        delays={"slow_tool": 0.05},
    )

    outcome = await _loop(model, session).run("go")

    assert outcome.text == "done"
    assert outcome.model_calls == 2
    second_call = model.requests[1]["messages"]
    assert len(second_call) == 3
    assert second_call[1]["role"] == "assistant"
    assert [block["type"] for block in second_call[1]["content"]] == ["text", "tool_use", "tool_use"]
    assert second_call[2] == {
        "role": "user",
        "content": [
            {"type": "tool_result", "tool_use_id": "call-slow", "content": "slow result"},
            {"type": "tool_result", "tool_use_id": "call-fast", "content": "fast result"},
        ],
    }


@pytest.mark.asyncio
async def test_tool_requests_in_one_turn_run_concurrently() -> None:
    model = ScriptedModel(
        [
            _tool_use(*[(f"call-{i}", f"tool_{i}", {}) for i in range(5)]),
            _text("ok"),
        ]
    )
    session = FakeToolSession(
        results={f"tool_{i}": str(i) for i in range(5)},
        delays={f"tool_{i}": 0.2 for i in range(5)},
    )

    started = asyncio.get_running_loop().time()
    await _loop(model, session).run("fan out")
    elapsed = asyncio.get_running_loop().time() - started

    assert len(session.calls) == 5
    assert elapsed < 0.8


@pytest.mark.asyncio
async def test_failed_tool_becomes_error_result_and_loop_continues() -> None:
    model = ScriptedModel(
        [
            _tool_use(("call-1", "get_typefully_scheduled", {})),
            _text("Sorry, Typefully is unreachable right now."),
        ]
    )

    outcome = await _loop(model, FakeToolSession()).run("/queue")

    assert outcome.state is LoopState.DONE
    assert outcome.model_calls == 2
    result = model.requests[1]["messages"][2]["content"][0]
    assert result["tool_use_id"] == "call-1"
    assert result["is_error"] is True
    assert result["content"].startswith("Error:")
    assert "network down" in result["content"]


@pytest.mark.asyncio
async def test_loop_aborts_at_iteration_ceiling() -> None:
    model = ScriptedModel([_tool_use(("call-x", "skills", {}))])
    session = FakeToolSession(results={"skills": "menu"})

    outcome = await _loop(model, session).run("loop forever")

    assert outcome.state is LoopState.ABORTED
    assert outcome.text == LOOP_EXCEEDED_MESSAGE
    assert outcome.model_calls == 10
    assert len(model.requests) == 10
    assert len(session.calls) == 10


@pytest.mark.asyncio
async def test_iteration_ceiling_is_configurable() -> None:
    model = ScriptedModel([_tool_use(("call-x", "skills", {}))])

    outcome = await _loop(model, FakeToolSession(results={"skills": "menu"}), max_iterations=3).run("x")

    assert outcome.state is LoopState.ABORTED
    assert len(model.requests) == 3


@pytest.mark.asyncio
async def test_queue_with_no_drafts_returns_empty_state_text() -> None:
    empty_queue = "No scheduled drafts in Typefully."
    model = ScriptedModel(
        [
            _tool_use(("call-q", "get_typefully_scheduled", {})),
            _text(empty_queue),
        ]
    )
    session = FakeToolSession(results={"get_typefully_scheduled": empty_queue})

    outcome = await _loop(model, session).run("/queue")

    assert outcome.text == empty_queue
    assert session.calls == [("get_typefully_scheduled", {})]
    assert outcome.model_calls == 2


@pytest.mark.asyncio
async def test_draft_loads_brand_context_before_generating_copy() -> None:
    model = ScriptedModel(
        [
            _tool_use(("call-1", "get_brand_context", {"brand_name": "Definitive"})),
            _tool_use(("call-2", "get_saved_posts", {"save_reason": "Top Performer"})),
            _text("Variant 1: ..."),
        ]
    )
    session = FakeToolSession(results={"get_brand_context": "## Brand", "get_saved_posts": "No posts found."})

    outcome = await ToolLoop(
        model,
        ToolExecutor(session),
        [],
        system_prompt="Always call get_brand_context before drafting.",
    ).run("/draft rally")

    assert session.calls[0][0] == "get_brand_context"
    assert outcome.text == "Variant 1: ..."
    assert "get_brand_context" in model.requests[0]["system"]


@pytest.mark.asyncio
async def test_gather_in_order_keeps_input_order() -> None:
    async def delayed(value: int, delay: float) -> int:
        await asyncio.sleep(delay)
        return value

    assert await gather_in_order([delayed(1, 0.03), delayed(2, 0.0), delayed(3, 0.01)]) == [1, 2, 3]


def test_max_iterations_must_be_positive() -> None:
    with pytest.raises(ValueError):
        ToolLoop(ScriptedModel([_text("x")]), ToolExecutor(FakeToolSession()), [], system_prompt="", max_iterations=0)
