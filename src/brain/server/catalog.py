from __future__ import annotations

from brain.integrations.notion import SAVE_REASONS
from brain.types import ToolDescriptor

SERVER_NAME = "definitive-brain"
INSTRUCTIONS_PROMPT_NAME = "definitive-brain-instructions"

_SAVE_REASON_SCHEMA = {"type": "string", "enum": list(SAVE_REASONS)}

CATALOG: tuple[ToolDescriptor, ...] = (
    ToolDescriptor(
        name="get_brand_context",
        description=(
            "Load full brand context from Notion: profile, voice rules, top posts, "
            "patterns to avoid. Always call this before drafting."
        ),
        input_schema={
            "type": "object",
            "properties": {"brand_name": {"type": "string", "description": 'Brand name e.g. "Definitive"'}},
            "required": ["brand_name"],
        },
    ),
    ToolDescriptor(
        name="get_brand_profile",
        description="Get basic profile info for a brand: handle, followers, pillars, audience.",
        input_schema={
            "type": "object",
            "properties": {"brand_name": {"type": "string"}},
            "required": ["brand_name"],
        },
    ),
    ToolDescriptor(
        name="get_saved_posts",
        description=(
            "Retrieve saved posts from Notion filtered by save reason. "
            "Use to find examples before drafting."
        ),
        input_schema={"type": "object", "properties": {"save_reason": _SAVE_REASON_SCHEMA}},
    ),
    ToolDescriptor(
        name="save_post_to_notion",
        description="Save a post or finding to Notion for future reference.",
        input_schema={
            "type": "object",
            "properties": {
                "text": {"type": "string"},
                "brand": {"type": "string"},
                "post_type": {
                    "type": "string",
                    "description": "Leaderboard Drama, Educational, CTA, Community, Prize Update, AMA",
                },
                "impressions": {"type": "number"},
                "likes": {"type": "number"},
                "retweets": {"type": "number"},
                "why_it_worked": {"type": "string"},
                "url": {"type": "string"},
                "save_reason": _SAVE_REASON_SCHEMA,
                "post_date": {
                    "type": "string",
                    "description": 'ISO 8601 date the post was published e.g. "2026-02-24"',
                },
            },
            "required": ["text", "brand", "save_reason"],
        },
    ),
    ToolDescriptor(
        name="analyze_trends",
        description=(
            "Morning content intelligence tool. Fetches current US trending topics from X, "
            "pulls top posts for each trend, then returns them with the brand context so every "
            "trend can be scored against the brand's content pillars with suggested draft angles. "
            "Run this daily before planning content."
        ),
        input_schema={
            "type": "object",
            "properties": {
                "brand_name": {"type": "string", "description": 'Brand to score trends against e.g. "Definitive"'},
                "trend_limit": {"type": "number", "description": "How many US trends to fetch. Default 20."},
                "posts_per_trend": {"type": "number", "description": "Top posts to fetch per trend. Default 3."},
            },
            "required": ["brand_name"],
        },
    ),
    ToolDescriptor(
        name="audit_x_profile",
        description=(
            "Fetch the last N posts from any X profile with full engagement metrics. "
            "Use this as the data source for content audits."
        ),
        input_schema={
            "type": "object",
            "properties": {
                "handle": {"type": "string", "description": 'X handle e.g. "@DefinitiveFi"'},
                "count": {"type": "number", "description": "Number of posts to fetch. Default 20, max 100."},
            },
            "required": ["handle"],
        },
    ),
    ToolDescriptor(
        name="search_x_posts",
        description="Search recent X posts by keyword, hashtag, or account.",
        input_schema={
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": 'Search query e.g. "from:DefinitiveFi", "#Base", "trading contest"',
                },
                "count": {"type": "number", "description": "Number of results. Default 20, max 100."},
            },
            "required": ["query"],
        },
    ),
    ToolDescriptor(
        name="get_x_post_metrics",
        description="Get current engagement metrics for specific post IDs.",
        input_schema={
            "type": "object",
            "properties": {
                "post_ids": {"type": "array", "items": {"type": "string"}, "description": "Array of X post IDs"},
            },
            "required": ["post_ids"],
        },
    ),
    ToolDescriptor(
        name="create_typefully_draft",
        description=(
            "Send approved post copy to Typefully as a draft. "
            "Only call after the user confirms they are happy with the copy."
        ),
        input_schema={
            "type": "object",
            "properties": {
                "content": {"type": "string", "description": "Post content. Use \\n\\n between thread tweets."},
                "schedule_date": {
                    "type": "string",
                    "description": 'ISO 8601 datetime e.g. "2026-03-01T09:00:00Z". Leave empty to save to queue.',
                },
                "threadify": {"type": "boolean", "description": "Auto-split into thread. Default false."},
            },
            "required": ["content"],
        },
    ),
    ToolDescriptor(
        name="get_typefully_scheduled",
        description=(
            "Get all scheduled drafts in Typefully. "
            "Check before creating posts to avoid duplicate topics."
        ),
    ),
    ToolDescriptor(
        name="get_typefully_published",
        description="Get recently published posts from Typefully.",
    ),
    ToolDescriptor(
        name="skills",
        description=(
            "List all available Definitive Brain skills and how to use them. "
            "Call this when the user types /skills or /help or asks what you can do."
        ),
    ),
)

SKILLS_MENU = """# Definitive Brain: Skills

**/morning** - Daily content briefing. Fetches US trends, scores against Definitive content pillars, returns ranked opportunities + draft angles.

**/audit @handle** - Audit any X profile. Fetches last 20 posts, categorizes by type, flags top/bottom performers, gives 3 recommendations.

**/draft [topic]** - Generate 3 post variants in Definitive brand voice. Loads brand context + top performer examples from Notion automatically.

**/save [post]** - Save a post or finding to the Notion brain.

**/schedule [post]** - Send copy to Typefully after confirmation. Add `| date:2026-03-01T09:00:00Z` to schedule a specific time.

**/queue** - Show what's currently scheduled in Typefully.

**/skills** - Show this menu."""
