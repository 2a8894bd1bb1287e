"""Timer suggestions from recipe preparation text.

Durations are picked up as "TTT: 30 min label" markers, "2 hours",
"10 minutes", "45 sec" and "MM:SS". Every pattern scans the whole text in the
order below; a duration already suggested is not suggested twice, and nothing
longer than four hours is kept.
"""
import logging
import re
from typing import Callable, List, Tuple

from kitchen.utilities.constants import (
    TIMER_ACTIONS, TIMER_CONTEXT_AFTER, TIMER_CONTEXT_BEFORE, TIMER_FOOD_WORDS, TIMER_MAX_SECONDS,
    TIMER_STOP_WORDS,
)

logger = logging.getLogger(__name__)

MARKER = re.compile(r"TTT:\s*(\d+)\s*(?:minutes?|mins?|min)\s*([^\n\r.]*)", re.IGNORECASE)
HOURS = re.compile(r"(\d+)\s*(?:hours?|hrs?)", re.IGNORECASE)
MINUTES = re.compile(r"(\d+)\s*(?:minutes?|mins?)", re.IGNORECASE)
SECONDS = re.compile(r"(\d+)\s*(?:seconds?|secs?)", re.IGNORECASE)
CLOCK = re.compile(r"(\d+):(\d+)")

_FOOD = re.compile(rf"\b(?:{'|'.join(TIMER_FOOD_WORDS)})\b", re.IGNORECASE)
_ACTION = re.compile(rf"\b(?:{'|'.join(TIMER_ACTIONS)})\b", re.IGNORECASE)
_MEANINGFUL = re.compile(rf"\b(?!{'|'.join(TIMER_STOP_WORDS)})\w{{4,}}\b", re.IGNORECASE)


def _plural(amount: str, unit: str) -> str:
    return f"{amount} {unit}{'s' if int(amount) > 1 else ''}"


# (pattern, format, extractor) in scan order; extractors return (seconds, label)
PATTERNS: List[Tuple[re.Pattern, str, Callable[[re.Match], Tuple[int, str]]]] = [
    (MARKER, "TTT", lambda m: (int(m.group(1)) * 60, f"{m.group(1)} minutes")),
    (HOURS, "standard", lambda m: (int(m.group(1)) * 3600, _plural(m.group(1), "hour"))),
    (MINUTES, "standard", lambda m: (int(m.group(1)) * 60, _plural(m.group(1), "minute"))),
    (SECONDS, "standard", lambda m: (int(m.group(1)), _plural(m.group(1), "second"))),
    (CLOCK, "time", lambda m: (int(m.group(1)) * 60 + int(m.group(2)), f"{m.group(1)}:{m.group(2).zfill(2)}")),
]


def extract_context(text: str, index: int) -> str:
    """One word describing what a duration at `index` is for: a food, else an action, else any long word."""
    window = text[max(0, index - TIMER_CONTEXT_BEFORE):index + TIMER_CONTEXT_AFTER].strip()
    for pattern in (_FOOD, _ACTION, _MEANINGFUL):
        found = pattern.search(window)
        if found:
            return found.group(0).lower()
    return "Timer"


def parse_recipe_timers(text: str) -> List[dict]:
    if not text:
        return []
    suggestions = []
    seen = set()
    for pattern, fmt, extract in PATTERNS:
        for match in pattern.finditer(text):
            seconds, label = extract(match)
            if not 0 < seconds <= TIMER_MAX_SECONDS or seconds in seen:
                continue
            if fmt == "TTT":
                description = match.group(2).strip() or "Timer"
            else:
                description = extract_context(text, match.start())
            seen.add(seconds)
            suggestions.append({
                "seconds": seconds,
                "label": label,
                "description": description,
                "format": fmt,
                "context": match.group(0),
            })
    logger.debug(f"Found {len(suggestions)} timer suggestions")
    return suggestions
