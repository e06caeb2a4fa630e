from __future__ import annotations

import logging
from typing import Awaitable, Callable

from telegram import Message

from brain.utils.chunking import DEFAULT_CHUNK_SIZE, chunk_text

LOGGER = logging.getLogger(__name__)

EMPTY_RESPONSE_TEXT = "(empty response)"

PromptRunner = Callable[[str], Awaitable[str]]


class PartialDeliveryError(RuntimeError):
    """A follow-up chunk failed after the placeholder already held the answer."""

    def __init__(self, message: str, delivered: list[tuple[int, str]]) -> None:
        super().__init__(message)
        self.delivered = delivered


async def deliver_chunked(
    placeholder: Message,
    text: str,
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> list[tuple[int, str]]:
    """Replace the placeholder with the first chunk and post the rest after it."""
    chunks = chunk_text(text, chunk_size) or [EMPTY_RESPONSE_TEXT]

    await placeholder.edit_text(chunks[0])
    delivered = [(placeholder.message_id, chunks[0])]
    for index, chunk in enumerate(chunks[1:], start=2):
        try:
            sent = await placeholder.reply_text(chunk)
        except Exception as exc:
            raise PartialDeliveryError(
                f"Chunk {index} of {len(chunks)} failed: {exc}", delivered
            ) from exc
        delivered.append((sent.message_id, chunk))
    return delivered


async def run_and_deliver(
    placeholder: Message,
    prompt: str,
    runner: PromptRunner,
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> list[tuple[int, str]]:
    """Run a prompt and reconcile the placeholder with its result.

    A failure before the placeholder was edited replaces it with the raw
    error message. Once the placeholder holds the first chunk it is left
    alone, and a failed follow-up is only logged.
    """
    try:
        result = await runner(prompt)
        return await deliver_chunked(placeholder, result, chunk_size=chunk_size)
    except PartialDeliveryError as exc:
        LOGGER.exception("Delivery stopped after %s chunk(s)", len(exc.delivered))
        return exc.delivered
    except Exception as exc:
        LOGGER.exception("Request failed for prompt %r", prompt[:80])
        await placeholder.edit_text(f"Error: {exc}")
        return []
