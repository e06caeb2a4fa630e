from __future__ import annotations

import re
from dataclasses import dataclass


SKILL_COMMANDS = ("morning", "audit", "draft", "save", "schedule", "queue", "skills", "help")

_COMMAND_RE = re.compile(
    r"^/(?P<command>[a-z0-9_]+)(?:@[A-Za-z0-9_]+)?(?:\s+(?P<args>.*))?$",
    re.IGNORECASE | re.DOTALL,
)


@dataclass(frozen=True)
class ParsedCommand:
    command: str
    args: str

    @property
    def slash_command(self) -> str:
        return f"/{self.command}"


def parse_command(text: str) -> ParsedCommand | None:
    if not text:
        return None
    stripped = text.strip()
    match = _COMMAND_RE.match(stripped)
    if not match:
        return None
    command = match.group("command").lower()
    args = (match.group("args") or "").strip()
    return ParsedCommand(command=command, args=args)


def build_prompt_from_command(command: str, text: str = "") -> str:
    """Turn a skill command and its arguments into the prompt sent to the model."""
    args = (text or "").strip()
    if command in ("/morning", "/queue", "/skills"):
        return command
    if command in ("/audit", "/draft"):
        return f"{command} {args}"
    if command in ("/save", "/schedule"):
        return f"{command} {args}" if args else command
    return args or command


def strip_mentions(text: str, username: str | None) -> str:
    if not username:
        return text.strip()
    pattern = re.compile(rf"@{re.escape(username)}\b", re.IGNORECASE)
    return pattern.sub("", text).strip()


def mentions_user(text: str, username: str | None) -> bool:
    if not username or not text:
        return False
    return re.search(rf"@{re.escape(username)}\b", text, re.IGNORECASE) is not None
