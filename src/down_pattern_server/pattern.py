from __future__ import annotations

import re

from .models import PatternAnalysis

WILDCARD = "?"
PATTERN_RE = re.compile(r"^[A-Z?]+$")
ANSWER_RE = re.compile(r"^[A-Z]+$")

STRATEGY_DIRECT = "direct"
STRATEGY_PARALLEL = "parallel-optimized"


def normalize_pattern(pattern: str) -> str:
    return (pattern or "").strip().upper()


def is_valid_pattern(normalized: str) -> bool:
    return bool(PATTERN_RE.match(normalized))


def is_valid_answer(normalized: str) -> bool:
    return bool(ANSWER_RE.match(normalized))


def compile_pattern(normalized: str) -> re.Pattern[str]:
    """Full-string matcher: literals match exactly, ``?`` matches one letter."""
    parts = ["[A-Z]" if ch == WILDCARD else re.escape(ch) for ch in normalized]
    return re.compile("".join(parts))


def matches(matcher: re.Pattern[str], answer: str) -> bool:
    return matcher.fullmatch(answer) is not None


class PatternAnalyzer:
    def __init__(self, *, min_wildcards: int = 3, wildcard_ratio: float = 0.6) -> None:
        self.min_wildcards = min_wildcards
        self.wildcard_ratio = wildcard_ratio

    def analyze(self, pattern: str) -> PatternAnalysis:
        normalized = normalize_pattern(pattern)
        positions = [i for i, ch in enumerate(normalized) if ch == WILDCARD]
        count = len(positions)
        starts_with_wildcard = bool(normalized) and normalized[0] == WILDCARD
        ratio = count / len(normalized) if normalized else 0.0
        # Only wildcard-led patterns fan out, so only they can be expensive.
        high_cost = starts_with_wildcard and (count > self.min_wildcards or ratio > self.wildcard_ratio)
        return PatternAnalysis(
            pattern=normalized,
            length=len(normalized),
            wildcard_count=count,
            wildcard_positions=positions,
            starts_with_wildcard=starts_with_wildcard,
            is_high_cost_pattern=high_cost,
            search_strategy=STRATEGY_PARALLEL if starts_with_wildcard else STRATEGY_DIRECT,
        )


def pattern_tips(analysis: PatternAnalysis) -> list[str]:
    if analysis.is_high_cost_pattern:
        return [
            "This pattern may be slow",
            "Consider using fewer wildcards",
            "Try limiting maxResults parameter",
        ]
    if analysis.starts_with_wildcard:
        return [
            "Leading wildcard searches every shard for this length",
            "A known first letter narrows the search to one shard",
        ]
    return ["This pattern should be fast", "Direct chunk access available"]
