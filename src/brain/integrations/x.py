from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx

from brain.config import XSettings

X_BASE_URL = "https://api.x.com/2"
US_WOEID = 23424977
MAX_RESULTS = 100


class XApiError(RuntimeError):
    pass


@dataclass(frozen=True)
class XPost:
    id: str
    text: str
    created_at: str
    impressions: int
    likes: int
    retweets: int
    replies: int
    url: str
    author: str = ""
    quotes: int = 0
    bookmarks: int = 0


@dataclass(frozen=True)
class Trend:
    rank: int
    name: str
    tweet_count: int | None
    search_query: str


def _metrics(post: dict[str, Any]) -> dict[str, int]:
    return post.get("public_metrics") or {}


def _clamp_count(count: int) -> int:
    # The recent search endpoint rejects max_results below 10.
    return max(10, min(int(count), MAX_RESULTS))


class XClient:
    """Read-only access to the X API v2 with an app-only bearer token."""

    def __init__(self, config: XSettings):
        self._config = config

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        headers = {"Authorization": f"Bearer {self._config.bearer_token}"}
        async with httpx.AsyncClient(timeout=self._config.timeout_seconds) as client:
            try:
                response = await client.get(f"{X_BASE_URL}{path}", headers=headers, params=params)
            except httpx.HTTPError as exc:
                raise XApiError(f"X API request failed: {exc}") from exc
        if response.status_code >= 400:
            raise XApiError(f"X API error {response.status_code}: {response.text}")
        return response.json()

    async def get_user_by_handle(self, handle: str) -> dict[str, Any] | None:
        username = handle.replace("@", "")
        data = await self._get(
            f"/users/by/username/{username}",
            {"user.fields": "public_metrics,description,created_at,verified"},
        )
        return data.get("data")

    async def get_user_posts(self, handle: str, count: int = 20) -> list[XPost]:
        user = await self.get_user_by_handle(handle)
        if not user:
            raise XApiError(f"User not found: {handle}")

        username = handle.replace("@", "")
        data = await self._get(
            f"/users/{user['id']}/tweets",
            {
                "max_results": _clamp_count(count),
                "tweet.fields": "public_metrics,created_at,text,entities",
                "exclude": "retweets,replies",
            },
        )
        posts = []
        for post in data.get("data") or []:
            metrics = _metrics(post)
            posts.append(
                XPost(
                    id=post["id"],
                    text=post.get("text", ""),
                    created_at=post.get("created_at", ""),
                    impressions=metrics.get("impression_count", 0),
                    likes=metrics.get("like_count", 0),
                    retweets=metrics.get("retweet_count", 0),
                    replies=metrics.get("reply_count", 0),
                    quotes=metrics.get("quote_count", 0),
                    bookmarks=metrics.get("bookmark_count", 0),
                    url=f"https://x.com/{username}/status/{post['id']}",
                    author=username,
                )
            )
        return posts[:count]

    async def search_posts(self, query: str, count: int = 20) -> list[XPost]:
        data = await self._get(
            "/tweets/search/recent",
            {
                "query": query,
                "max_results": _clamp_count(count),
                "tweet.fields": "public_metrics,created_at,text,author_id",
                "expansions": "author_id",
                "user.fields": "username,name",
            },
        )
        users = {user["id"]: user for user in (data.get("includes") or {}).get("users", [])}

        posts = []
        for post in data.get("data") or []:
            metrics = _metrics(post)
            author_id = post.get("author_id", "")
            username = users.get(author_id, {}).get("username")
            posts.append(
                XPost(
                    id=post["id"],
                    text=post.get("text", ""),
                    created_at=post.get("created_at", ""),
                    author=username or author_id,
                    impressions=metrics.get("impression_count", 0),
                    likes=metrics.get("like_count", 0),
                    retweets=metrics.get("retweet_count", 0),
                    replies=metrics.get("reply_count", 0),
                    url=f"https://x.com/{username or 'i'}/status/{post['id']}",
                )
            )
        return posts[:count]

    async def get_us_trends(self, limit: int = 20) -> list[Trend]:
        data = await self._get(f"/trends/by/woeid/{US_WOEID}")
        return [
            Trend(
                rank=index + 1,
                name=trend.get("trend_name", ""),
                tweet_count=trend.get("tweet_count") or None,
                search_query=trend.get("trend_name", ""),
            )
            for index, trend in enumerate((data.get("data") or [])[:limit])
        ]

    async def get_post_metrics(self, post_ids: list[str] | str) -> list[XPost]:
        ids = ",".join(post_ids) if isinstance(post_ids, list) else post_ids
        data = await self._get("/tweets", {"ids": ids, "tweet.fields": "public_metrics,created_at,text"})
        posts = []
        for post in data.get("data") or []:
            metrics = _metrics(post)
            posts.append(
                XPost(
                    id=post["id"],
                    text=post.get("text", ""),
                    created_at=post.get("created_at", ""),
                    impressions=metrics.get("impression_count", 0),
                    likes=metrics.get("like_count", 0),
                    retweets=metrics.get("retweet_count", 0),
                    replies=metrics.get("reply_count", 0),
                    url=f"https://x.com/i/status/{post['id']}",
                )
            )
        return posts
