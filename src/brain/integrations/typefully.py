from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx

from brain.config import TypefullySettings

TYPEFULLY_BASE_URL = "https://api.typefully.com/v2"


class TypefullyError(RuntimeError):
    pass


@dataclass(frozen=True)
class TypefullyDraft:
    id: str
    text: str
    scheduled_date: str | None = None
    published_at: str | None = None


def _draft_text(draft: dict[str, Any]) -> str:
    if draft.get("text"):
        return draft["text"]
    if draft.get("preview"):
        return draft["preview"]
    posts = ((draft.get("platforms") or {}).get("x") or {}).get("posts") or []
    return "\n\n".join(post.get("text", "") for post in posts)


def _to_draft(draft: dict[str, Any]) -> TypefullyDraft:
    return TypefullyDraft(
        id=str(draft.get("id", "")),
        text=_draft_text(draft),
        scheduled_date=draft.get("scheduled_date") or draft.get("publish_at"),
        published_at=draft.get("published_at"),
    )


def split_thread(content: str) -> list[str]:
    return [part for part in content.split("\n\n") if part]


class TypefullyClient:
    """Typefully v2 drafts. Every call resolves the account's first social set."""

    def __init__(self, config: TypefullySettings):
        self._config = config

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        payload: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        headers = {
            "Authorization": f"Bearer {self._config.api_key}",
            "Content-Type": "application/json",
        }
        async with httpx.AsyncClient(timeout=self._config.timeout_seconds) as client:
            try:
                response = await client.request(
                    method,
                    f"{TYPEFULLY_BASE_URL}{path}",
                    headers=headers,
                    params=params,
                    json=payload,
                )
            except httpx.HTTPError as exc:
                raise TypefullyError(f"Typefully request failed: {exc}") from exc
        if response.status_code >= 400:
            raise TypefullyError(f"Typefully API error {response.status_code}: {response.text}")
        return response.json()

    async def get_social_set_id(self) -> str:
        data = await self._request("GET", "/social-sets")
        results = data.get("results") or []
        if not results:
            raise TypefullyError("No social sets found in Typefully account.")
        return str(results[0]["id"])

    async def create_draft(
        self,
        content: str,
        *,
        schedule_date: str | None = None,
        threadify: bool = False,
    ) -> TypefullyDraft:
        social_set_id = await self.get_social_set_id()
        texts = split_thread(content) if threadify else [content]
        body: dict[str, Any] = {
            "platforms": {"x": {"enabled": True, "posts": [{"text": text} for text in texts]}},
        }
        if schedule_date:
            body["publish_at"] = schedule_date

        data = await self._request("POST", f"/social-sets/{social_set_id}/drafts", payload=body)
        return _to_draft(data)

    async def list_drafts(self, status: str) -> list[TypefullyDraft]:
        social_set_id = await self.get_social_set_id()
        data = await self._request(
            "GET",
            f"/social-sets/{social_set_id}/drafts",
            params={"status": status},
        )
        return [_to_draft(draft) for draft in data.get("results") or []]

    async def get_scheduled(self) -> list[TypefullyDraft]:
        return await self.list_drafts("scheduled")

    async def get_published(self) -> list[TypefullyDraft]:
        return await self.list_drafts("published")
