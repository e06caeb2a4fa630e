from __future__ import annotations

from typing import Any

from brain.tools.session import ToolSession
from brain.types import ToolDescriptor


class ToolRegistry:
    """Read-only view of the tool catalog fetched for one session."""

    def __init__(self, descriptors: list[ToolDescriptor]) -> None:
        self._descriptors = tuple(descriptors)

    @classmethod
    async def load(cls, session: ToolSession) -> "ToolRegistry":
        return cls(await session.list_tools())

    def list(self) -> tuple[ToolDescriptor, ...]:
        return self._descriptors

    def names(self) -> list[str]:
        return [descriptor.name for descriptor in self._descriptors]

    def model_tools(self) -> list[dict[str, Any]]:
        return [descriptor.to_model_tool() for descriptor in self._descriptors]
