from __future__ import annotations

import asyncio
import logging
import platform
import signal
from importlib.metadata import PackageNotFoundError, version

from telegram import Message, Update
from telegram.constants import ChatType
from telegram.ext import Application, CommandHandler, ContextTypes, MessageHandler, filters

from brain.config import BrainSettings
from brain.telegram.delivery import run_and_deliver
from brain.telegram.threads import ThreadHistory, ThreadMessage, build_thread_prompt
from brain.temporal.client import ContentRequestRunner
from brain.utils.commands import (
    SKILL_COMMANDS,
    build_prompt_from_command,
    mentions_user,
    parse_command,
    strip_mentions,
)

LOGGER = logging.getLogger(__name__)


def _get_brain_version() -> str:
    try:
        return version("definitive-brain")
    except PackageNotFoundError:
        return "unknown"


def format_status_block(config: BrainSettings) -> str:
    python_version = platform.python_version()
    brain_version = _get_brain_version()
    allowed = ",".join(str(user_id) for user_id in config.telegram.allowed_users) or "<everyone>"
    lines = [
        "status:",
        f"model: {config.anthropic.model}",
        (
            "temporal: "
            f"address={config.temporal.address} "
            f"namespace={config.temporal.namespace} "
            f"task_queue={config.temporal.task_queue}"
        ),
        f"tool_server: {config.tool_server.url}",
        f"max_iterations: {config.loop.max_iterations}",
        f"chunk_size: {config.loop.chunk_size}",
        f"allowed_users: {allowed}",
        f"python_version: {python_version}",
        f"brain_version: {brain_version}",
    ]
    return "\n".join(lines)


def _sender_name(message: Message) -> str:
    user = message.from_user
    if user is None:
        return "User"
    return user.username or user.first_name or "User"


class TelegramBotApp:
    def __init__(self, config: BrainSettings, runner: ContentRequestRunner):
        self._config = config
        self._runner = runner
        self._history = ThreadHistory(limit=config.loop.thread_history_limit)
        self._app = (
            Application.builder().token(config.telegram.token).concurrent_updates(True).build()
        )
        self._stop_event = asyncio.Event()

        self._app.add_handler(MessageHandler(filters.TEXT, self._on_any_text), group=-1)
        for command in SKILL_COMMANDS:
            self._app.add_handler(CommandHandler(command, self._on_skill))
        self._app.add_handler(CommandHandler("status", self._on_status))
        self._app.add_handler(MessageHandler(filters.TEXT & ~filters.COMMAND, self._on_mention))
        self._app.add_error_handler(self._on_error)

    async def start(self) -> None:
        await self._app.initialize()
        await self._app.start()
        await self._app.updater.start_polling(drop_pending_updates=True)

    async def stop(self) -> None:
        if self._app.updater:
            await self._app.updater.stop()
        await self._app.stop()
        await self._app.shutdown()

    async def run_forever(self) -> None:
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, self._stop_event.set)
            except NotImplementedError:
                pass

        await self.start()
        try:
            await self._stop_event.wait()
        finally:
            await self.stop()

    async def _on_any_text(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        message = update.effective_message
        chat = update.effective_chat
        if message is None or chat is None or not message.text:
            return

        parent = message.reply_to_message
        if parent is not None and parent.text and not self._history.knows(chat.id, parent.message_id):
            self._history.record(chat.id, self._to_thread_message(parent, context))

        self._history.record(
            chat.id,
            self._to_thread_message(message, context),
            reply_to_id=parent.message_id if parent is not None else None,
        )

    async def _on_skill(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        if not self._is_allowed_user(update):
            return
        message = update.effective_message
        if message is None:
            return
        parsed = parse_command(message.text or "")
        if parsed is None:
            return

        prompt = build_prompt_from_command(parsed.slash_command, parsed.args)
        LOGGER.info("Skill %s from chat %s", parsed.slash_command, message.chat_id)
        placeholder = await message.reply_text(f"Running {parsed.slash_command}...")
        await self._process(update, message, placeholder, prompt)

    async def _on_mention(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        if not self._is_allowed_user(update):
            return
        message = update.effective_message
        chat = update.effective_chat
        if message is None or chat is None:
            return

        text = message.text or ""
        bot_username = context.bot.username
        parent = message.reply_to_message
        replying_to_bot = (
            parent is not None
            and parent.from_user is not None
            and parent.from_user.id == context.bot.id
        )
        if not (chat.type == ChatType.PRIVATE or replying_to_bot or mentions_user(text, bot_username)):
            return

        request = strip_mentions(text, bot_username)
        if not request:
            return

        LOGGER.info("Mention from chat %s", chat.id)
        placeholder = await message.reply_text("Thinking...")

        prompt = request
        if parent is not None:
            root = self._history.root_of(chat.id, message.message_id)
            transcript = self._history.render(chat.id, root, bot_username=bot_username)
            prompt = build_thread_prompt(request, transcript)

        await self._process(update, message, placeholder, prompt)

    async def _on_status(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        if not self._is_allowed_user(update):
            return
        message = update.effective_message
        if message is None:
            return
        await message.reply_text(format_status_block(self._config))

    async def _on_error(self, update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
        LOGGER.error("Unhandled error while processing update", exc_info=context.error)

    async def _process(self, update: Update, message: Message, placeholder: Message, prompt: str) -> None:
        user_id = update.effective_user.id if update.effective_user else None
        delivered = await run_and_deliver(
            placeholder,
            prompt,
            self._runner.for_user(user_id),
            chunk_size=self._config.loop.chunk_size,
        )
        for message_id, text in delivered:
            self._history.record(
                message.chat_id,
                ThreadMessage(message_id=message_id, sender="Bot", text=text, from_bot=True),
                reply_to_id=message.message_id,
            )

    def _to_thread_message(self, message: Message, context: ContextTypes.DEFAULT_TYPE) -> ThreadMessage:
        user = message.from_user
        from_bot = user is not None and user.id == context.bot.id
        return ThreadMessage(
            message_id=message.message_id,
            sender=_sender_name(message),
            text=message.text or "",
            from_bot=from_bot,
        )

    def _is_allowed_user(self, update: Update) -> bool:
        user = update.effective_user
        if user is None:
            return False
        allowed = self._config.telegram.allowed_users
        return not allowed or user.id in allowed
