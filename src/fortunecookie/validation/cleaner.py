"""Strip formatting noise that models wrap around JSON payloads."""

from __future__ import annotations

from typing import Any

FENCE = "```"


def clean(raw: Any) -> str:
    """Remove a surrounding fenced code block from a model response.

    If the trimmed text opens with a fence, the first line (the fence and
    any language tag) is dropped, and the last line too when it is a bare
    closing fence. Anything else is returned trimmed. Never raises.

    Args:
        raw: Raw completion text.

    Returns:
        The cleaned text. ``clean(clean(x)) == clean(x)``.
    """
    if raw is None:
        return ""
    text = raw.strip() if isinstance(raw, str) else str(raw).strip()
    if not text.startswith(FENCE):
        return text

    lines = text.splitlines()[1:]
    if lines and lines[-1].strip() == FENCE:
        lines = lines[:-1]
    cleaned = "\n".join(lines).strip()

    # Doubled fences: the result must never open with one
    if cleaned.startswith(FENCE):
        return clean(cleaned)
    return cleaned
