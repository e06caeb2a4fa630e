from __future__ import annotations

import uuid
from datetime import timedelta

from temporalio.client import Client, WorkflowFailureError
from temporalio.exceptions import ApplicationError

from brain.config import BrainSettings, TemporalSettings
from brain.temporal.types import ContentReply, ContentRequest
from brain.temporal.workflows import ContentRequestWorkflow


async def connect_temporal(settings: TemporalSettings) -> Client:
    return await Client.connect(settings.address, namespace=settings.namespace)


def describe_failure(exc: BaseException) -> str:
    """Return the user-facing message of a Temporal failure chain.

    The outermost `ApplicationError` is the error the activity raised on
    purpose; its own causes are the low-level details behind it. Without
    one, the innermost cause is used.
    """
    current: BaseException = exc
    seen: set[int] = set()
    while id(current) not in seen:
        seen.add(id(current))
        if isinstance(current, ApplicationError):
            break
        nested = getattr(current, "cause", None) or current.__cause__
        if nested is None:
            break
        current = nested
    if isinstance(current, ApplicationError):
        return current.message or type(current).__name__
    return str(current) or type(current).__name__


class ContentRequestRunner:
    """Executes one ContentRequestWorkflow per prompt and returns its text."""

    def __init__(self, client: Client, settings: BrainSettings, *, user_id: int | None = None) -> None:
        self._client = client
        self._settings = settings
        self._user_id = user_id

    def for_user(self, user_id: int | None) -> "ContentRequestRunner":
        return ContentRequestRunner(self._client, self._settings, user_id=user_id)

    async def __call__(self, prompt: str) -> str:
        timeout_seconds = self._settings.workflow.request_timeout_seconds
        workflow_id = f"brain-{self._user_id or 'anon'}-{uuid.uuid4().hex[:8]}"
        try:
            reply = await self._client.execute_workflow(
                ContentRequestWorkflow.run,
                ContentRequest(
                    prompt=prompt,
                    user_id=self._user_id,
                    timeout_seconds=timeout_seconds,
                ),
                id=workflow_id,
                task_queue=self._settings.temporal.task_queue,
                run_timeout=timedelta(seconds=timeout_seconds + 60),
                result_type=ContentReply,
            )
        except WorkflowFailureError as exc:
            raise RuntimeError(describe_failure(exc)) from exc
        return reply.text
