from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ContentRequest:
    prompt: str
    user_id: int | None = None
    timeout_seconds: int = 600


@dataclass
class ContentReply:
    text: str
    state: str
    model_calls: int
