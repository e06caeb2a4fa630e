from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any

import httpx

from brain.config import NotionSettings

NOTION_BASE_URL = "https://api.notion.com/v1"
NOTION_VERSION = "2022-06-28"

SAVE_REASONS = ("Top Performer", "Avoid", "Reference", "Voice Example")


class NotionError(RuntimeError):
    pass


@dataclass(frozen=True)
class BrandProfile:
    name: str
    handle: str
    industry: str
    follower_count: int
    content_pillars: str
    audience_description: str
    posting_frequency: str
    notes: str


@dataclass(frozen=True)
class VoiceRule:
    rule: str
    type: str
    description: str
    correct: str
    incorrect: str


@dataclass(frozen=True)
class SavedPost:
    text: str
    post_type: str
    impressions: int
    likes: int
    retweets: int
    why_it_worked: str
    save_reason: str


@dataclass
class NewSavedPost:
    text: str
    brand: str
    save_reason: str = "Reference"
    post_type: str = ""
    impressions: int = 0
    likes: int = 0
    retweets: int = 0
    why_it_worked: str = ""
    url: str = ""
    post_date: str | None = None


def _title(prop: dict[str, Any] | None) -> str:
    items = (prop or {}).get("title") or []
    return items[0].get("plain_text", "") if items else ""


def _text(prop: dict[str, Any] | None) -> str:
    items = (prop or {}).get("rich_text") or []
    return items[0].get("plain_text", "") if items else ""


def _select(prop: dict[str, Any] | None) -> str:
    select = (prop or {}).get("select") or {}
    return select.get("name", "")


def _number(prop: dict[str, Any] | None) -> int:
    return (prop or {}).get("number") or 0


def _rich_text(value: str) -> dict[str, Any]:
    return {"rich_text": [{"text": {"content": value}}]}


class NotionClient:
    """Knowledge base of brand profiles, voice rules and saved posts."""

    def __init__(self, config: NotionSettings):
        self._config = config

    async def _request(self, method: str, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        headers = {
            "Authorization": f"Bearer {self._config.api_key}",
            "Notion-Version": NOTION_VERSION,
            "Content-Type": "application/json",
        }
        async with httpx.AsyncClient(timeout=self._config.timeout_seconds) as client:
            try:
                response = await client.request(method, f"{NOTION_BASE_URL}{path}", headers=headers, json=payload)
            except httpx.HTTPError as exc:
                raise NotionError(f"Notion request failed: {exc}") from exc
        if response.status_code >= 400:
            raise NotionError(f"Notion API error {response.status_code}: {response.text}")
        return response.json()

    async def _query(self, database_id: str, **body: Any) -> list[dict[str, Any]]:
        payload = {key: value for key, value in body.items() if value is not None}
        data = await self._request("POST", f"/databases/{database_id}/query", payload)
        return data.get("results") or []

    async def get_brand_profile(self, brand_name: str) -> BrandProfile | None:
        results = await self._query(
            self._config.brand_profiles_db,
            filter={"property": "Name", "title": {"contains": brand_name}},
        )
        if not results:
            return None
        props = results[0].get("properties") or {}
        return BrandProfile(
            name=_title(props.get("Name")),
            handle=_text(props.get("X Handle")),
            industry=_select(props.get("Industry")),
            follower_count=_number(props.get("Follower Count")),
            content_pillars=_text(props.get("Content Pillars")),
            audience_description=_text(props.get("Audience Description")),
            posting_frequency=_select(props.get("Posting Frequency")),
            notes=_text(props.get("Notes")),
        )

    async def get_voice_rules(self) -> list[VoiceRule]:
        results = await self._query(self._config.voice_rules_db)
        rules = []
        for page in results:
            props = page.get("properties") or {}
            rules.append(
                VoiceRule(
                    rule=_title(props.get("Rule")),
                    type=_select(props.get("Type")),
                    description=_text(props.get("Description")),
                    correct=_text(props.get("Example Correct")),
                    incorrect=_text(props.get("Example Incorrect")),
                )
            )
        return rules

    async def get_saved_posts(self, save_reason: str | None = None) -> list[SavedPost]:
        query_filter = (
            {"property": "Save Reason", "rich_text": {"contains": save_reason}} if save_reason else None
        )
        results = await self._query(
            self._config.saved_posts_db,
            filter=query_filter,
            sorts=[{"property": "Impressions", "direction": "descending"}],
            page_size=10,
        )
        posts = []
        for page in results:
            props = page.get("properties") or {}
            posts.append(
                SavedPost(
                    text=_title(props.get("Post Text")),
                    post_type=_select(props.get("Post Type")) or _text(props.get("Post Type")),
                    impressions=_number(props.get("Impressions")),
                    likes=_number(props.get("Likes")),
                    retweets=_number(props.get("Retweets")),
                    why_it_worked=_text(props.get("Why It Worked")),
                    save_reason=_text(props.get("Save Reason")),
                )
            )
        return posts

    async def build_brand_context(self, brand_name: str) -> str | None:
        profile, rules, top_posts, avoid_posts = await asyncio.gather(
            self.get_brand_profile(brand_name),
            self.get_voice_rules(),
            self.get_saved_posts("Top Performer"),
            self.get_saved_posts("Avoid"),
        )
        if profile is None:
            return None
        return render_brand_context(profile, rules, top_posts, avoid_posts)

    async def save_post(self, post: NewSavedPost) -> None:
        properties: dict[str, Any] = {
            "Post Text": {"title": [{"text": {"content": post.text}}]},
            "Brand": {"select": {"name": post.brand}},
            "Post Type": _rich_text(post.post_type or ""),
            "Impressions": {"number": post.impressions or 0},
            "Likes": {"number": post.likes or 0},
            "Retweets": {"number": post.retweets or 0},
            "Why It Worked": _rich_text(post.why_it_worked or ""),
            "URL": _rich_text(post.url or ""),
            "Save Reason": _rich_text(post.save_reason or "Reference"),
        }
        if post.post_date:
            properties["Date"] = {"date": {"start": post.post_date}}
        await self._request(
            "POST",
            "/pages",
            {"parent": {"database_id": self._config.saved_posts_db}, "properties": properties},
        )


def render_brand_context(
    profile: BrandProfile,
    rules: list[VoiceRule],
    top_posts: list[SavedPost],
    avoid_posts: list[SavedPost],
) -> str:
    lines = [
        f"## Brand: {profile.name} ({profile.handle})",
        f"Industry: {profile.industry} | Followers: {profile.follower_count:,}",
        f"Content Pillars: {profile.content_pillars}",
        f"Audience: {profile.audience_description}",
    ]
    if profile.notes:
        lines.append(f"Notes: {profile.notes}")

    lines += ["", "## Voice Rules", "### DO:"]
    for rule in rules:
        if rule.type != "Do":
            continue
        lines.append(f"- {rule.rule}: {rule.description}")
        if rule.correct:
            lines.append(f'  ✓ "{rule.correct}"')

    lines += ["", "### DON'T:"]
    for rule in rules:
        if rule.type != "Don't":
            continue
        lines.append(f"- {rule.rule}: {rule.description}")
        if rule.incorrect:
            lines.append(f'  ✗ Avoid: "{rule.incorrect}"')
        if rule.correct:
            lines.append(f'  ✓ Instead: "{rule.correct}"')

    if top_posts:
        lines += ["", "## Top Performing Posts"]
        for post in top_posts[:3]:
            lines.append("---")
            lines.append(f'"{post.text}"')
            lines.append(f"{post.impressions:,} impressions | {post.likes} likes | {post.retweets} RTs")
            lines.append(f"Why it worked: {post.why_it_worked}")

    if avoid_posts:
        lines += ["", "## Underperforming Patterns (avoid)"]
        for post in avoid_posts:
            lines.append(f'- "{post.text}": {post.why_it_worked}')

    return "\n".join(lines) + "\n"
