from __future__ import annotations

from collections import OrderedDict, deque
from dataclasses import dataclass

from brain.utils.commands import strip_mentions

DEFAULT_HISTORY_LIMIT = 50
DEFAULT_MAX_THREADS = 1000


@dataclass(frozen=True)
class ThreadMessage:
    message_id: int
    sender: str
    text: str
    from_bot: bool = False


class ThreadHistory:
    """In-memory record of recent messages per reply thread.

    Telegram has no API for reading back a reply chain, so the bot records
    every text message it sees. A thread is keyed by the chat and the id of
    the first message of the reply chain; each thread keeps only its most
    recent `limit` messages and the least recently used threads are forgotten past
    `max_threads`. Nothing survives a restart.
    """

    def __init__(
        self,
        limit: int = DEFAULT_HISTORY_LIMIT,
        max_threads: int = DEFAULT_MAX_THREADS,
    ) -> None:
        self._limit = limit
        self._max_threads = max_threads
        self._threads: OrderedDict[tuple[int, int], deque[ThreadMessage]] = OrderedDict()
        self._members: dict[tuple[int, int], list[int]] = {}
        self._roots: dict[tuple[int, int], int] = {}

    def root_of(self, chat_id: int, message_id: int) -> int:
        return self._roots.get((chat_id, message_id), message_id)

    def knows(self, chat_id: int, message_id: int) -> bool:
        return (chat_id, message_id) in self._roots

    def record(
        self,
        chat_id: int,
        message: ThreadMessage,
        *,
        reply_to_id: int | None = None,
    ) -> int:
        root = message.message_id if reply_to_id is None else self.root_of(chat_id, reply_to_id)
        key = (chat_id, root)
        if key in self._threads:
            self._threads.move_to_end(key)
        else:
            self._threads[key] = deque(maxlen=self._limit)
            self._members[key] = []
            self._evict()

        if (chat_id, message.message_id) not in self._roots:
            self._roots[(chat_id, message.message_id)] = root
            self._members[key].append(message.message_id)
        thread = self._threads[key]
        if not any(existing.message_id == message.message_id for existing in thread):
            thread.append(message)
        return root

    def _evict(self) -> None:
        while len(self._threads) > self._max_threads:
            key, _ = self._threads.popitem(last=False)
            chat_id, _ = key
            for message_id in self._members.pop(key, ()):
                self._roots.pop((chat_id, message_id), None)

    def messages(self, chat_id: int, root_id: int) -> list[ThreadMessage]:
        return list(self._threads.get((chat_id, root_id), ()))

    def render(self, chat_id: int, root_id: int, *, bot_username: str | None = None) -> str | None:
        lines: list[str] = []
        for message in self.messages(chat_id, root_id):
            sender = "Bot" if message.from_bot else (message.sender or "User")
            text = strip_mentions(message.text, bot_username)
            if text:
                lines.append(f"{sender}: {text}")
        return "\n".join(lines) if len(lines) > 1 else None


def build_thread_prompt(request: str, transcript: str | None) -> str:
    if not transcript:
        return request
    return (
        "Here is the chat thread conversation for context:\n\n"
        f"{transcript}\n\n---\n\nUser request: {request}"
    )
