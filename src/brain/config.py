from __future__ import annotations

from dataclasses import dataclass, field
import os
from pathlib import Path
from typing import Any

import yaml


@dataclass
class TelegramSettings:
    token: str
    allowed_users: list[int] = field(default_factory=list)


@dataclass
class TemporalSettings:
    address: str = "localhost:7233"
    namespace: str = "default"
    task_queue: str = "brain-requests"


@dataclass
class WorkflowSettings:
    request_timeout_seconds: int = 600


@dataclass
class AnthropicSettings:
    api_key: str
    model: str = "claude-sonnet-4-6"
    max_tokens: int = 4096
    base_url: str = "https://api.anthropic.com"
    timeout_seconds: float = 120.0


@dataclass
class LoopSettings:
    max_iterations: int = 10
    chunk_size: int = 2900
    thread_history_limit: int = 50


@dataclass
class ToolServerSettings:
    url: str = "http://localhost:3000/mcp"
    connect_attempts: int = 3
    backoff_seconds: float = 1.0
    host: str = "0.0.0.0"
    port: int = 3000


@dataclass
class NotionSettings:
    api_key: str = ""
    brand_profiles_db: str = ""
    voice_rules_db: str = ""
    saved_posts_db: str = ""
    timeout_seconds: float = 20.0


@dataclass
class XSettings:
    bearer_token: str = ""
    timeout_seconds: float = 20.0


@dataclass
class TypefullySettings:
    api_key: str = ""
    timeout_seconds: float = 20.0


@dataclass
class HealthSettings:
    host: str = "0.0.0.0"
    port: int = 3001


@dataclass
class PromptSettings:
    workspace_dir: Path | None = None


@dataclass
class BrainSettings:
    telegram: TelegramSettings
    anthropic: AnthropicSettings
    temporal: TemporalSettings = field(default_factory=TemporalSettings)
    workflow: WorkflowSettings = field(default_factory=WorkflowSettings)
    loop: LoopSettings = field(default_factory=LoopSettings)
    tool_server: ToolServerSettings = field(default_factory=ToolServerSettings)
    notion: NotionSettings = field(default_factory=NotionSettings)
    x: XSettings = field(default_factory=XSettings)
    typefully: TypefullySettings = field(default_factory=TypefullySettings)
    health: HealthSettings = field(default_factory=HealthSettings)
    prompt: PromptSettings = field(default_factory=PromptSettings)


def load_settings(path: str | Path) -> BrainSettings:
    raw = yaml.safe_load(Path(path).read_text()) or {}
    expanded = _expand_env(raw)
    prompt = expanded.get("prompt") or {}
    workspace_dir = prompt.get("workspace_dir")
    return BrainSettings(
        telegram=TelegramSettings(**expanded.get("telegram", {"token": ""})),
        anthropic=AnthropicSettings(**expanded.get("anthropic", {"api_key": ""})),
        temporal=TemporalSettings(**expanded.get("temporal", {})),
        workflow=WorkflowSettings(**expanded.get("workflow", {})),
        loop=LoopSettings(**expanded.get("loop", {})),
        tool_server=ToolServerSettings(**expanded.get("tool_server", {})),
        notion=NotionSettings(**expanded.get("notion", {})),
        x=XSettings(**expanded.get("x", {})),
        typefully=TypefullySettings(**expanded.get("typefully", {})),
        health=HealthSettings(**expanded.get("health", {})),
        prompt=PromptSettings(workspace_dir=Path(workspace_dir) if workspace_dir else None),
    )


def _expand_env(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: _expand_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_expand_env(v) for v in value]
    if isinstance(value, str):
        return _expand_env_str(value)
    return value


def _expand_env_str(value: str) -> str:
    if value.startswith("${") and value.endswith("}"):
        return os.getenv(value[2:-1], "")
    return value
