from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Iterable, TypeVar

from brain.llm.anthropic import AnthropicClient
from brain.tools.executor import ToolExecutor
from brain.types import ToolResult

LOGGER = logging.getLogger(__name__)

DEFAULT_MAX_ITERATIONS = 10
LOOP_EXCEEDED_MESSAGE = "Error: tool loop exceeded maximum iterations. Please try again."

T = TypeVar("T")


class LoopState(str, Enum):
    AWAITING_MODEL = "AWAITING_MODEL"
    EXECUTING_TOOLS = "EXECUTING_TOOLS"
    DONE = "DONE"
    ABORTED = "ABORTED"


@dataclass(frozen=True)
class LoopOutcome:
    text: str
    state: LoopState
    model_calls: int


async def gather_in_order(awaitables: Iterable[Awaitable[T]]) -> list[T]:
    """Run all awaitables concurrently and wait for every one of them.

    Results come back in the order the awaitables were given, not the order
    they finished in.
    """
    return list(await asyncio.gather(*awaitables))


class ToolLoop:
    """Drives one conversation between the model and the tool server.

    The loop owns its conversation for the lifetime of a single `run` call:
    each model response either finishes the run (no tool requests) or has all
    of its tool requests executed concurrently, after which the assistant turn
    and a single user turn bundling every result are appended before the next
    model call. The number of model calls is capped; hitting the cap returns
    `LOOP_EXCEEDED_MESSAGE` as ordinary text instead of raising.
    """

    def __init__(
        self,
        model: AnthropicClient,
        executor: ToolExecutor,
        tools: list[dict[str, Any]],
        *,
        system_prompt: str,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
    ) -> None:
        if max_iterations < 1:
            raise ValueError("max_iterations must be at least 1")
        self._model = model
        self._executor = executor
        self._tools = tools
        self._system_prompt = system_prompt
        self._max_iterations = max_iterations

    async def run(self, prompt: str) -> LoopOutcome:
        messages: list[dict[str, Any]] = [{"role": "user", "content": prompt}]
        model_calls = 0

        while model_calls < self._max_iterations:
            model_calls += 1
            response = await self._model.create_message(
                system=self._system_prompt,
                tools=self._tools,
                messages=messages,
            )

            calls = response.tool_calls
            if not calls:
                LOGGER.info("Tool loop finished after %s model call(s)", model_calls)
                return LoopOutcome(text=response.text, state=LoopState.DONE, model_calls=model_calls)

            LOGGER.info(
                "Model call %s requested %s tool(s): %s",
                model_calls,
                len(calls),
                ", ".join(call.name for call in calls),
            )
            results: list[ToolResult] = await gather_in_order(
                self._executor.execute(call) for call in calls
            )

            messages.append({"role": "assistant", "content": response.content})
            messages.append({"role": "user", "content": [result.to_block() for result in results]})

        LOGGER.warning("Tool loop aborted after %s model calls", model_calls)
        return LoopOutcome(text=LOOP_EXCEEDED_MESSAGE, state=LoopState.ABORTED, model_calls=model_calls)
