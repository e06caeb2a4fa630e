from __future__ import annotations

import asyncio
import logging
from contextlib import AsyncExitStack, asynccontextmanager
from typing import Any, AsyncIterator

from mcp import ClientSession
from mcp.client.streamable_http import streamable_http_client

from brain.config import ToolServerSettings
from brain.types import ToolDescriptor

LOGGER = logging.getLogger(__name__)


class ToolServerUnavailable(RuntimeError):
    pass


class ToolCallFailed(RuntimeError):
    """The tool server answered, but flagged the call result as an error."""


class ToolSession:
    """One MCP client connection to the tool server, scoped to one request."""

    def __init__(self, session: ClientSession) -> None:
        self._session = session

    async def list_tools(self) -> list[ToolDescriptor]:
        result = await self._session.list_tools()
        return [
            ToolDescriptor(
                name=tool.name,
                description=tool.description or "",
                input_schema=dict(tool.inputSchema or {"type": "object", "properties": {}}),
            )
            for tool in result.tools
        ]

    async def call_tool(self, name: str, arguments: dict[str, Any]) -> str:
        result = await self._session.call_tool(name, arguments)
        text = "\n".join(
            block.text for block in result.content if getattr(block, "type", None) == "text"
        )
        if result.isError:
            raise ToolCallFailed(text or f"Tool {name} failed")
        return text


async def _connect(url: str) -> tuple[AsyncExitStack, ClientSession]:
    stack = AsyncExitStack()
    try:
        read_stream, write_stream, _ = await stack.enter_async_context(streamable_http_client(url))
        session = await stack.enter_async_context(ClientSession(read_stream, write_stream))
        await session.initialize()
    except BaseException:
        await stack.aclose()
        raise
    return stack, session


async def connect_with_retry(settings: ToolServerSettings) -> tuple[AsyncExitStack, ClientSession]:
    attempts = max(1, settings.connect_attempts)
    for attempt in range(1, attempts + 1):
        try:
            return await _connect(settings.url)
        except Exception as exc:
            if attempt == attempts:
                raise ToolServerUnavailable(
                    f"Could not connect to tool server at {settings.url}: {exc}"
                ) from exc
            delay = attempt * settings.backoff_seconds
            LOGGER.warning(
                "Tool server connection attempt %s/%s failed (%s); retrying in %.1fs",
                attempt,
                attempts,
                exc,
                delay,
            )
            await asyncio.sleep(delay)
    raise ToolServerUnavailable(f"Could not connect to tool server at {settings.url}")


@asynccontextmanager
async def open_tool_session(settings: ToolServerSettings) -> AsyncIterator[ToolSession]:
    """Connect once, yield the session, and always close the connection."""
    stack, session = await connect_with_retry(settings)
    async with stack:
        yield ToolSession(session)
