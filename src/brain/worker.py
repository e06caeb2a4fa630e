from __future__ import annotations

import argparse
import asyncio
import logging

from temporalio.client import Client
from temporalio.worker import Worker

from brain.config import BrainSettings, load_settings
from brain.temporal.activities import ContentActivities
from brain.temporal.client import connect_temporal
from brain.temporal.workflows import ContentRequestWorkflow


def build_worker(client: Client, settings: BrainSettings) -> Worker:
    activities = ContentActivities(settings)
    return Worker(
        client,
        task_queue=settings.temporal.task_queue,
        workflows=[ContentRequestWorkflow],
        activities=[activities.run_content_request],
    )


async def run_worker(config_path: str) -> None:
    settings = load_settings(config_path)
    client = await connect_temporal(settings.temporal)
    await build_worker(client, settings).run()


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    parser = argparse.ArgumentParser(description="Run Definitive Brain Temporal worker")
    parser.add_argument("--config", default="config/example.yaml")
    args = parser.parse_args()
    asyncio.run(run_worker(args.config))


if __name__ == "__main__":
    main()
