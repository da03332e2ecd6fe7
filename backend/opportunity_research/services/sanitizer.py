from __future__ import annotations

import re

# ```json / ```JSON / ``` at the very start, optionally followed by a newline
_LEADING_FENCE = re.compile(r"^```[A-Za-z0-9_-]*[ \t]*\r?\n?")
_TRAILING_FENCE = re.compile(r"\r?\n?[ \t]*```$")


def sanitize(text: str | None) -> str:
    """
    Strip the markdown code fence a model may wrap around its JSON and trim
    surrounding whitespace.

    Total: never raises, returns "" for empty input. Stripping repeats until
    nothing changes, so sanitize(sanitize(x)) == sanitize(x).
    """
    cleaned = (text or "").strip()
    while True:
        stripped = _LEADING_FENCE.sub("", cleaned, count=1)
        stripped = _TRAILING_FENCE.sub("", stripped, count=1).strip()
        if stripped == cleaned:
            return cleaned
        cleaned = stripped
