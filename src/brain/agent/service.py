from __future__ import annotations

import logging

from brain.agent.loop import LoopOutcome, ToolLoop
from brain.config import BrainSettings
from brain.llm.anthropic import AnthropicClient
from brain.prompt.system_prompt import build_system_prompt
from brain.tools.executor import ToolExecutor
from brain.tools.registry import ToolRegistry
from brain.tools.session import open_tool_session

LOGGER = logging.getLogger(__name__)


async def handle_request(settings: BrainSettings, prompt: str) -> LoopOutcome:
    """Answer one inbound prompt using a tool session scoped to this request."""
    model = AnthropicClient(settings.anthropic)
    system_prompt = build_system_prompt(settings.prompt.workspace_dir)

    async with open_tool_session(settings.tool_server) as session:
        registry = await ToolRegistry.load(session)
        LOGGER.info("Loaded %s tools from %s", len(registry.list()), settings.tool_server.url)
        loop = ToolLoop(
            model,
            ToolExecutor(session),
            registry.model_tools(),
            system_prompt=system_prompt,
            max_iterations=settings.loop.max_iterations,
        )
        return await loop.run(prompt)
