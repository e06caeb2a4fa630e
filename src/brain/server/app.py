from __future__ import annotations

import argparse
import contextlib
import logging
from typing import Any, AsyncIterator

import mcp.types as types
import uvicorn
from mcp.server.lowlevel import Server
from mcp.server.streamable_http_manager import StreamableHTTPSessionManager
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route
from starlette.types import Receive, Scope, Send

from brain.config import BrainSettings, load_settings
from brain.integrations import NotionClient, TypefullyClient, XClient
from brain.prompt.system_prompt import SKILLS_PROMPT
from brain.server.catalog import INSTRUCTIONS_PROMPT_NAME, SERVER_NAME
from brain.server.handlers import ContentTools, ToolSpec, build_tool_specs, dispatch

LOGGER = logging.getLogger(__name__)

INSTRUCTIONS_DESCRIPTION = "Skills and behavior instructions for the Definitive Brain."


class ToolFailure(RuntimeError):
    pass


def create_mcp_server(specs: dict[str, ToolSpec]) -> Server:
    server: Server = Server(SERVER_NAME)

    @server.list_tools()
    async def list_tools() -> list[types.Tool]:
        return [
            types.Tool(
                name=spec.descriptor.name,
                description=spec.descriptor.description,
                inputSchema=spec.descriptor.input_schema,
            )
            for spec in specs.values()
        ]

    @server.call_tool()
    async def call_tool(name: str, arguments: dict[str, Any]) -> list[types.TextContent]:
        try:
            text = await dispatch(specs, name, arguments)
        except Exception as exc:
            LOGGER.warning("Tool %s failed: %s", name, exc)
            # The MCP server turns a raised exception into an isError result.
            raise ToolFailure(f"Error: {exc}") from exc
        return [types.TextContent(type="text", text=text)]

    @server.list_prompts()
    async def list_prompts() -> list[types.Prompt]:
        return [
            types.Prompt(
                name=INSTRUCTIONS_PROMPT_NAME,
                description=INSTRUCTIONS_DESCRIPTION,
                arguments=[],
            )
        ]

    @server.get_prompt()
    async def get_prompt(name: str, arguments: dict[str, str] | None) -> types.GetPromptResult:
        if name != INSTRUCTIONS_PROMPT_NAME:
            raise ValueError(f"Unknown prompt: {name}")
        return types.GetPromptResult(
            description=INSTRUCTIONS_DESCRIPTION,
            messages=[
                types.PromptMessage(
                    role="user",
                    content=types.TextContent(type="text", text=SKILLS_PROMPT),
                )
            ],
        )

    return server


class StreamableHTTPEndpoint:
    """ASGI endpoint handing /mcp requests to the session manager."""

    def __init__(self, manager: StreamableHTTPSessionManager) -> None:
        self._manager = manager

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        await self._manager.handle_request(scope, receive, send)


def create_app(specs: dict[str, ToolSpec]) -> Starlette:
    # The manager keeps the live session map keyed by Mcp-Session-Id.
    manager = StreamableHTTPSessionManager(app=create_mcp_server(specs))

    @contextlib.asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        async with manager.run():
            LOGGER.info("Definitive Brain tool server ready with %s tools", len(specs))
            yield

    async def health(request: Request) -> JSONResponse:
        return JSONResponse({"status": "ok", "tools": len(specs)})

    return Starlette(
        routes=[
            Route("/health", health),
            Route("/mcp", endpoint=StreamableHTTPEndpoint(manager)),
        ],
        lifespan=lifespan,
    )


def create_app_from_settings(settings: BrainSettings) -> Starlette:
    tools = ContentTools(
        NotionClient(settings.notion),
        XClient(settings.x),
        TypefullyClient(settings.typefully),
    )
    return create_app(build_tool_specs(tools))


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    parser = argparse.ArgumentParser(description="Run the Definitive Brain tool server")
    parser.add_argument("--config", default="config/example.yaml")
    args = parser.parse_args()
    settings = load_settings(args.config)
    uvicorn.run(
        create_app_from_settings(settings),
        host=settings.tool_server.host,
        port=settings.tool_server.port,
    )


if __name__ == "__main__":
    main()
