from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Awaitable, Callable

from brain.integrations.notion import NewSavedPost, NotionClient
from brain.integrations.typefully import TypefullyClient
from brain.integrations.x import Trend, XClient, XPost
from brain.server.catalog import CATALOG, SKILLS_MENU
from brain.types import ToolDescriptor

LOGGER = logging.getLogger(__name__)

ToolHandler = Callable[[dict[str, Any]], Awaitable[str]]

SEPARATOR = "\n\n---\n\n"


class UnknownToolError(LookupError):
    pass


@dataclass(frozen=True)
class ToolSpec:
    descriptor: ToolDescriptor
    handler: ToolHandler


def _require(arguments: dict[str, Any], key: str) -> Any:
    value = arguments.get(key)
    if value is None or value == "":
        raise ValueError(f"Missing required argument: {key}")
    return value


def _int_arg(arguments: dict[str, Any], key: str, default: int) -> int:
    value = arguments.get(key)
    if value is None or value == "":
        return default
    return int(value)


def _trend_heading(now: datetime) -> str:
    return f"# US Trends: {now:%A, %B} {now.day}"


class ContentTools:
    """Handlers for every tool in the catalog, one method per tool name."""

    def __init__(self, notion: NotionClient, x: XClient, typefully: TypefullyClient) -> None:
        self._notion = notion
        self._x = x
        self._typefully = typefully

    async def get_brand_context(self, arguments: dict[str, Any]) -> str:
        brand_name = _require(arguments, "brand_name")
        context = await self._notion.build_brand_context(brand_name)
        if not context:
            return f'No brand profile found for "{brand_name}".'
        return context

    async def get_brand_profile(self, arguments: dict[str, Any]) -> str:
        brand_name = _require(arguments, "brand_name")
        profile = await self._notion.get_brand_profile(brand_name)
        if profile is None:
            return f'No profile found for "{brand_name}".'
        return "\n".join(
            [
                f"Name: {profile.name}",
                f"Handle: {profile.handle}",
                f"Industry: {profile.industry}",
                f"Followers: {profile.follower_count:,}",
                f"Content Pillars: {profile.content_pillars}",
                f"Audience: {profile.audience_description}",
                f"Posting Frequency: {profile.posting_frequency}",
                f"Notes: {profile.notes}",
            ]
        )

    async def get_saved_posts(self, arguments: dict[str, Any]) -> str:
        posts = await self._notion.get_saved_posts(arguments.get("save_reason"))
        if not posts:
            return "No posts found."
        return SEPARATOR.join(
            f"[{post.post_type} | {post.impressions:,} impressions | {post.likes} likes]\n"
            f'"{post.text}"\nWhy it worked: {post.why_it_worked}'
            for post in posts
        )

    async def save_post_to_notion(self, arguments: dict[str, Any]) -> str:
        text = _require(arguments, "text")
        await self._notion.save_post(
            NewSavedPost(
                text=text,
                brand=_require(arguments, "brand"),
                save_reason=arguments.get("save_reason") or "Reference",
                post_type=arguments.get("post_type") or "",
                impressions=_int_arg(arguments, "impressions", 0),
                likes=_int_arg(arguments, "likes", 0),
                retweets=_int_arg(arguments, "retweets", 0),
                why_it_worked=arguments.get("why_it_worked") or "",
                url=arguments.get("url") or "",
                post_date=arguments.get("post_date"),
            )
        )
        return f'✓ Saved to Notion: "{text[:60]}..."'

    async def analyze_trends(self, arguments: dict[str, Any]) -> str:
        brand_name = _require(arguments, "brand_name")
        trend_limit = _int_arg(arguments, "trend_limit", 20)
        posts_per_trend = _int_arg(arguments, "posts_per_trend", 3)

        trends, brand_context = await asyncio.gather(
            self._x.get_us_trends(trend_limit),
            self._notion.build_brand_context(brand_name),
        )
        if not trends:
            return "No trends returned from X API."
        if not brand_context:
            return f'No brand profile found for "{brand_name}".'

        lookups = await asyncio.gather(
            *(self._trend_posts(trend, posts_per_trend) for trend in trends)
        )
        failed = sum(1 for _, ok in lookups if not ok)
        blocks = [_render_trend(trend, posts) for trend, (posts, _) in zip(trends, lookups)]

        sections = [
            _trend_heading(datetime.now()),
            f"## Brand Context\n{brand_context}",
            "## Current US Trends + Top Posts\n" + "\n".join(blocks),
        ]
        if failed:
            sections.append(f"(Top posts unavailable for {failed} of {len(trends)} trends.)")
        sections.append(
            "---\n"
            "Score each trend for relevance to this brand's content pillars. Rank only trends worth acting on. "
            "For each: (1) relevance score 1-10, (2) why it fits, (3) specific draft angle in brand voice. "
            "Skip anything unrelated to DeFi/crypto/trading. If nothing is relevant today, say so directly. "
            'End with: "Type /draft [angle] to turn any of these into a post."'
        )
        return "\n\n".join(sections)

    async def _trend_posts(self, trend: Trend, count: int) -> tuple[list[XPost], bool]:
        try:
            return await self._x.search_posts(trend.search_query, count), True
        except Exception as exc:
            LOGGER.warning("Top posts lookup failed for trend %r: %s", trend.name, exc)
            return [], False

    async def audit_x_profile(self, arguments: dict[str, Any]) -> str:
        handle = _require(arguments, "handle")
        posts = await self._x.get_user_posts(handle, _int_arg(arguments, "count", 20))
        if not posts:
            return f"No posts found for {handle}."
        formatted = "\n\n".join(
            f"{index}. [{post.impressions:,} imp | {post.likes} likes | {post.retweets} RTs | "
            f'{post.replies} replies]\n"{post.text}"\n{post.url}'
            for index, post in enumerate(posts, start=1)
        )
        return f"{len(posts)} posts from {handle}:\n\n{formatted}"

    async def search_x_posts(self, arguments: dict[str, Any]) -> str:
        query = _require(arguments, "query")
        posts = await self._x.search_posts(query, _int_arg(arguments, "count", 20))
        if not posts:
            return f'No results for "{query}".'
        return "\n\n".join(
            f"{index}. @{post.author} [{post.impressions:,} imp | {post.likes} likes | "
            f'{post.retweets} RTs]\n"{post.text}"\n{post.url}'
            for index, post in enumerate(posts, start=1)
        )

    async def get_x_post_metrics(self, arguments: dict[str, Any]) -> str:
        posts = await self._x.get_post_metrics(_require(arguments, "post_ids"))
        if not posts:
            return "No posts found for those IDs."
        return SEPARATOR.join(
            f'"{post.text[:100]}..."\nImpressions: {post.impressions:,} | Likes: {post.likes} | '
            f"RTs: {post.retweets} | Replies: {post.replies}\n{post.url}"
            for post in posts
        )

    async def create_typefully_draft(self, arguments: dict[str, Any]) -> str:
        schedule_date = arguments.get("schedule_date") or None
        draft = await self._typefully.create_draft(
            _require(arguments, "content"),
            schedule_date=schedule_date,
            threadify=bool(arguments.get("threadify")),
        )
        where = f" (scheduled for {schedule_date})" if schedule_date else " (saved to queue)"
        return f"✓ Draft created in Typefully{where}.\nDraft ID: {draft.id}"

    async def get_typefully_scheduled(self, arguments: dict[str, Any]) -> str:
        drafts = await self._typefully.get_scheduled()
        if not drafts:
            return "No scheduled drafts in Typefully."
        return SEPARATOR.join(
            f'[{draft.scheduled_date or "unscheduled"}]\n"{draft.text[:120]}..."' for draft in drafts
        )

    async def get_typefully_published(self, arguments: dict[str, Any]) -> str:
        drafts = await self._typefully.get_published()
        if not drafts:
            return "No recently published posts found."
        return SEPARATOR.join(
            f'[Published: {draft.published_at or "unknown"}]\n"{draft.text[:120]}..."' for draft in drafts
        )

    async def skills(self, arguments: dict[str, Any]) -> str:
        return SKILLS_MENU


def _render_trend(trend: Trend, posts: list[XPost]) -> str:
    block = f"### {trend.rank}. {trend.name}"
    if trend.tweet_count:
        block += f" ({trend.tweet_count:,} posts)"
    block += "\n"
    if posts:
        block += "Top posts:\n"
        for post in posts:
            block += f'- @{post.author} [{post.likes} likes | {post.retweets} RTs]: "{post.text[:120]}"\n'
    return block


def build_tool_specs(tools: ContentTools) -> dict[str, ToolSpec]:
    return {
        descriptor.name: ToolSpec(descriptor=descriptor, handler=getattr(tools, descriptor.name))
        for descriptor in CATALOG
    }


async def dispatch(specs: dict[str, ToolSpec], name: str, arguments: dict[str, Any] | None) -> str:
    spec = specs.get(name)
    if spec is None:
        raise UnknownToolError(f"Unknown tool: {name}")
    return await spec.handler(arguments or {})
