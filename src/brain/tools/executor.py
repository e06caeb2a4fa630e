from __future__ import annotations

import logging

from brain.tools.session import ToolCallFailed, ToolSession
from brain.types import ToolCall, ToolResult

LOGGER = logging.getLogger(__name__)


class ToolExecutor:
    """Runs one tool call against the tool server and never raises."""

    def __init__(self, caller: ToolSession) -> None:
        self._caller = caller

    async def execute(self, call: ToolCall) -> ToolResult:
        try:
            content = await self._caller.call_tool(call.name, call.arguments)
        except ToolCallFailed as exc:
            LOGGER.info("Tool %s reported an error: %s", call.name, exc)
            message = str(exc)
            if not message.startswith("Error:"):
                message = f"Error: {message}"
            return ToolResult(tool_use_id=call.id, content=message, is_error=True)
        except Exception as exc:
            LOGGER.warning("Tool %s failed: %s", call.name, exc)
            return ToolResult(tool_use_id=call.id, content=f"Error: {exc}", is_error=True)
        return ToolResult(tool_use_id=call.id, content=content)
