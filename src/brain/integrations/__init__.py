"""Async clients for the Notion, X and Typefully APIs."""

from brain.integrations.notion import NotionClient, NotionError
from brain.integrations.typefully import TypefullyClient, TypefullyError
from brain.integrations.x import XApiError, XClient

__all__ = [
    "NotionClient",
    "NotionError",
    "TypefullyClient",
    "TypefullyError",
    "XApiError",
    "XClient",
]
