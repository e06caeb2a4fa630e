from __future__ import annotations

import uvicorn
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import PlainTextResponse
from starlette.routing import Route

from brain.config import HealthSettings


async def _ok(request: Request) -> PlainTextResponse:
    return PlainTextResponse("ok")


def create_health_app() -> Starlette:
    return Starlette(routes=[Route("/", _ok), Route("/health", _ok)])


def create_health_server(settings: HealthSettings) -> uvicorn.Server:
    config = uvicorn.Config(
        create_health_app(),
        host=settings.host,
        port=settings.port,
        log_level="warning",
    )
    return uvicorn.Server(config)
