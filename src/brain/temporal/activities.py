from __future__ import annotations

import logging

from temporalio import activity
from temporalio.exceptions import ApplicationError

from brain.agent.service import handle_request
from brain.config import BrainSettings
from brain.llm.anthropic import AnthropicError
from brain.temporal.types import ContentReply, ContentRequest
from brain.tools.session import ToolServerUnavailable

LOGGER = logging.getLogger(__name__)


class ContentActivities:
    def __init__(self, settings: BrainSettings) -> None:
        self._settings = settings

    @activity.defn(name="run_content_request")
    async def run_content_request(self, request: ContentRequest) -> ContentReply:
        LOGGER.info("Running content request for user %s", request.user_id)
        try:
            outcome = await handle_request(self._settings, request.prompt)
        except (ToolServerUnavailable, AnthropicError) as exc:
            raise ApplicationError(
                str(exc),
                type=type(exc).__name__,
                non_retryable=True,
            ) from exc
        return ContentReply(
            text=outcome.text,
            state=outcome.state.value,
            model_calls=outcome.model_calls,
        )
