from __future__ import annotations

from unittest.mock import patch

import httpx
import pytest

from brain.config import TypefullySettings, XSettings
from brain.integrations.notion import BrandProfile, SavedPost, VoiceRule, render_brand_context
from brain.integrations.typefully import TypefullyClient, TypefullyError, _to_draft, split_thread
from brain.integrations.x import XApiError, XClient


def _profile() -> BrandProfile:
    return BrandProfile(
        name="Definitive",
        handle="@DefinitiveFi",
        industry="DeFi",
        follower_count=48210,
        content_pillars="Trading, Contests",
        audience_description="Onchain traders",
        posting_frequency="Daily",
        notes="",
    )


def _saved(text: str, impressions: int) -> SavedPost:
    return SavedPost(
        text=text,
        post_type="Educational",
        impressions=impressions,
        likes=10,
        retweets=2,
        why_it_worked="clear hook",
        save_reason="Top Performer",
    )


def test_render_brand_context() -> None:
    rules = [
        VoiceRule(rule="Be direct", type="Do", description="Lead with the point", correct="Trade smarter.", incorrect=""),
        VoiceRule(rule="No hype", type="Don't", description="Skip moon talk", correct="Data says", incorrect="LFG 100x"),
    ]
    top = [_saved(f"top {i}", 10000 - i) for i in range(5)]
    avoid = [SavedPost("wen moon", "", 10, 0, 0, "felt spammy", "Avoid")]

    context = render_brand_context(_profile(), rules, top, avoid)

    assert context.startswith("## Brand: Definitive (@DefinitiveFi)\nIndustry: DeFi | Followers: 48,210\n")
    assert "Notes:" not in context
    assert '- Be direct: Lead with the point\n  ✓ "Trade smarter."' in context
    assert '- No hype: Skip moon talk\n  ✗ Avoid: "LFG 100x"\n  ✓ Instead: "Data says"' in context
    assert '"top 2"' in context
    assert '"top 3"' not in context
    assert '- "wen moon": felt spammy' in context
    assert context.endswith("\n")


def test_render_brand_context_without_posts() -> None:
    context = render_brand_context(_profile(), [], [], [])
    assert "## Top Performing Posts" not in context
    assert "## Underperforming Patterns" not in context


def test_split_thread_drops_empty_parts() -> None:
    assert split_thread("one\n\ntwo\n\n\n\nthree") == ["one", "two", "three"]


def test_to_draft_falls_back_to_thread_posts() -> None:
    draft = _to_draft(
        {
            "id": 7,
            "platforms": {"x": {"posts": [{"text": "first"}, {"text": "second"}]}},
            "publish_at": "2026-03-01T09:00:00Z",
        }
    )
    assert draft.id == "7"
    assert draft.text == "first\n\nsecond"
    assert draft.scheduled_date == "2026-03-01T09:00:00Z"


def test_to_draft_prefers_text_then_preview() -> None:
    assert _to_draft({"id": "1", "text": "plain", "preview": "p"}).text == "plain"
    assert _to_draft({"id": "1", "preview": "p"}).text == "p"


class FakeResponse:
    def __init__(self, status_code: int, payload: dict | None = None, text: str = "") -> None:
        self.status_code = status_code
        self._payload = payload or {}
        self.text = text

    def json(self) -> dict:
        return self._payload


@pytest.mark.asyncio
async def test_typefully_without_social_sets_raises() -> None:
    async def fake_request(*args, **kwargs):
        return FakeResponse(200, {"results": []})

    with patch("httpx.AsyncClient.request", side_effect=fake_request):
        with pytest.raises(TypefullyError, match="No social sets found in Typefully account."):
            await TypefullyClient(TypefullySettings(api_key="k")).get_scheduled()


@pytest.mark.asyncio
async def test_typefully_scheduled_resolves_social_set_each_call() -> None:
    seen: list[tuple[str, str]] = []

    async def fake_request(method, url, **kwargs):
        seen.append((method, url))
        if url.endswith("/social-sets"):
            return FakeResponse(200, {"results": [{"id": 99}]})
        return FakeResponse(200, {"results": [{"id": "d1", "text": "gm", "scheduled_date": "2026-03-01"}]})

    client = TypefullyClient(TypefullySettings(api_key="k"))
    with patch("httpx.AsyncClient.request", side_effect=fake_request):
        drafts = await client.get_scheduled()
        await client.get_published()

    assert drafts[0].text == "gm"
    assert [url.rsplit("/v2", 1)[1] for _, url in seen] == [
        "/social-sets",
        "/social-sets/99/drafts",
        "/social-sets",
        "/social-sets/99/drafts",
    ]


@pytest.mark.asyncio
async def test_x_search_clamps_count_and_resolves_authors() -> None:
    captured: dict = {}

    async def fake_get(url, **kwargs):
        captured.update(kwargs["params"])
        return FakeResponse(
            200,
            {
                "data": [
                    {"id": str(i), "text": f"t{i}", "author_id": "u1", "public_metrics": {"like_count": i}}
                    for i in range(10)
                ],
                "includes": {"users": [{"id": "u1", "username": "DefinitiveFi"}]},
            },
        )

    with patch("httpx.AsyncClient.get", side_effect=fake_get):
        posts = await XClient(XSettings(bearer_token="t")).search_posts("#Base", 3)

    assert captured["max_results"] == 10
    assert len(posts) == 3
    assert posts[0].author == "DefinitiveFi"
    assert posts[0].url == "https://x.com/DefinitiveFi/status/0"


@pytest.mark.asyncio
async def test_x_errors_carry_status() -> None:
    async def fake_get(url, **kwargs):
        return FakeResponse(429, text="Too Many Requests")

    with patch("httpx.AsyncClient.get", side_effect=fake_get):
        with pytest.raises(XApiError, match="X API error 429: Too Many Requests"):
            await XClient(XSettings(bearer_token="t")).get_us_trends()


@pytest.mark.asyncio
async def test_x_network_failure_is_wrapped() -> None:
    async def fake_get(url, **kwargs):
        raise httpx.ConnectError("connection refused")

    with patch("httpx.AsyncClient.get", side_effect=fake_get):
        with pytest.raises(XApiError, match="X API request failed"):
            await XClient(XSettings(bearer_token="t")).get_post_metrics(["1"])
