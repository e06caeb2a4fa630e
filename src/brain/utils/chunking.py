from __future__ import annotations

DEFAULT_CHUNK_SIZE = 2900


def chunk_text(text: str, limit: int = DEFAULT_CHUNK_SIZE) -> list[str]:
    """Split text into segments of at most `limit` characters.

    Cuts at the last line break inside the window when there is one past the
    first character, otherwise hard-cuts at `limit`. Whitespace at each cut is
    dropped: trailing from the emitted segment, leading from the remainder.
    """
    if limit < 1:
        raise ValueError("limit must be positive")

    chunks: list[str] = []
    remaining = text.strip()
    while remaining:
        if len(remaining) <= limit:
            chunks.append(remaining)
            break

        boundary = remaining.rfind("\n", 0, limit + 1)
        if boundary <= 0:
            boundary = limit

        chunks.append(remaining[:boundary].rstrip())
        remaining = remaining[boundary:].lstrip()

    return chunks
