from __future__ import annotations

from datetime import timedelta

from temporalio import workflow
from temporalio.common import RetryPolicy

with workflow.unsafe.imports_passed_through():
    from brain.temporal.types import ContentReply, ContentRequest


@workflow.defn
class ContentRequestWorkflow:
    """Runs exactly one tool-use loop for one inbound chat request."""

    @workflow.run
    async def run(self, request: ContentRequest) -> ContentReply:
        # Single attempt; tool server connection retries live in the activity.
        return await workflow.execute_activity(
            "run_content_request",
            request,
            result_type=ContentReply,
            start_to_close_timeout=timedelta(seconds=request.timeout_seconds),
            retry_policy=RetryPolicy(maximum_attempts=1),
        )
