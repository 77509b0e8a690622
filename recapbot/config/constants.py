"""
Constants shared across Recap Bot.
"""

from dataclasses import dataclass
from typing import Dict, List, Tuple

DEFAULT_LOCALE = "en_US"
DEFAULT_SUMMARIZATION_MODEL = "claude-sonnet-4-5"

# Slack search.messages / users.conversations pagination
SLACK_RATE_LIMIT_DELAY = 1.5
SLACK_SEARCH_PAGE_SIZE = 100
SLACK_CONVERSATIONS_PAGE_SIZE = 200
SLACK_REPLIES_PAGE_SIZE = 200

# Emoji and the forms Slack has been seen to hand back instead of it
CALENDAR_EMOJI_VARIANTS: Tuple[str, ...] = ("📅", ":date:", ":calendar:", "ðŸ“…")


@dataclass(frozen=True)
class LocaleStrings:
    """User-visible strings for one output locale."""
    month_names: Tuple[str, ...]
    week_heading: str  # formatted with the 1-based week index
    period_word: str
    period_word_variants: Tuple[str, ...] = ()

    @property
    def period_label(self) -> str:
        return f"{CALENDAR_EMOJI_VARIANTS[0]} {self.period_word}:"

    def period_label_variants(self) -> List[str]:
        """Every label form the codec must accept for this locale."""
        words = (self.period_word,) + self.period_word_variants
        return [f"{emoji} {word}:" for emoji in CALENDAR_EMOJI_VARIANTS for word in words]


LOCALES: Dict[str, LocaleStrings] = {
    "en_US": LocaleStrings(
        month_names=(
            "January", "February", "March", "April", "May", "June", "July",
            "August", "September", "October", "November", "December",
        ),
        week_heading="Week {index}",
        period_word="Period",
    ),
    "ja_JP": LocaleStrings(
        month_names=tuple(f"{m}月" for m in range(1, 13)),
        week_heading="第{index}週",
        period_word="期間",
        period_word_variants=("æœŸé–“",),
    ),
}

SUPPORTED_LOCALES = tuple(LOCALES.keys())


def get_locale_strings(locale: str) -> LocaleStrings:
    """Strings for `locale`, falling back to the default locale."""
    return LOCALES.get(locale, LOCALES[DEFAULT_LOCALE])
