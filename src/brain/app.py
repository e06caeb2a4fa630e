from __future__ import annotations

import argparse
import asyncio
import contextlib
import logging

from brain.config import load_settings
from brain.health import create_health_server
from brain.telegram.bot import TelegramBotApp
from brain.temporal.client import ContentRequestRunner, connect_temporal
from brain.worker import build_worker

LOGGER = logging.getLogger(__name__)


async def run_app(config_path: str) -> None:
    settings = load_settings(config_path)
    temporal_client = await connect_temporal(settings.temporal)
    bot = TelegramBotApp(settings, ContentRequestRunner(temporal_client, settings))
    health_server = create_health_server(settings.health)

    worker_task = asyncio.create_task(build_worker(temporal_client, settings).run(), name="brain-worker")
    health_task = asyncio.create_task(health_server.serve(), name="brain-health")
    LOGGER.info("Definitive Brain bot running; health check on port %s", settings.health.port)

    try:
        await bot.run_forever()
    finally:
        health_server.should_exit = True
        worker_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await worker_task
        await health_task


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    parser = argparse.ArgumentParser(description="Run Definitive Brain bot + worker in one loop")
    parser.add_argument("--config", default="config/example.yaml")
    args = parser.parse_args()
    asyncio.run(run_app(args.config))


if __name__ == "__main__":
    main()
