"""
Text encoding of summaries posted to a thread, and decoding them back.

Posted messages look like::

    [WeeklySummary_2025]
    📅 Period: 2025/01/06 〜 2025/01/12

    <generated content>

The thread is the only store summaries are kept in, so `parse` has to accept
whatever Slack hands back: emoji replaced by shortcodes, mojibake labels and
several separator characters.
"""

import logging
import re
from datetime import date, datetime
from typing import List, Optional, Tuple

from .calendar import iso_week_number
from ..config.constants import DEFAULT_LOCALE, LOCALES, get_locale_strings
from ..exceptions import InvalidInputError
from ..models.period import DATE_FORMAT, DEFAULT_SEPARATOR, DEFAULT_TIMEZONE, Period
from ..models.summary import Summary, SummaryKind

logger = logging.getLogger(__name__)

TAG_PATTERN = re.compile(r"\[(Weekly|Monthly|Yearly)Summary_(\d{4})\]")
PERIOD_SEPARATORS = ("〜", "~", "–", "-", "ã€œ")
PERIOD_LINE_PATTERN = re.compile(
    r"^(?P<label>.*?)\s*(?P<start>\d{4}/\d{2}/\d{2})\s*"
    r"(?:" + "|".join(re.escape(s) for s in PERIOD_SEPARATORS) + r")"
    r"\s*(?P<end>\d{4}/\d{2}/\d{2})\s*$"
)

_KIND_BY_TAG_NAME = {kind.label: kind for kind in SummaryKind}


def tag_for(kind: SummaryKind, year: int) -> str:
    """Machine-greppable marker for a kind and year, e.g. `[MonthlySummary_2025]`."""
    return f"[{kind.label}Summary_{year}]"


def detect_kind(text: str) -> Optional[SummaryKind]:
    """Kind named by the first tag in `text`, if any."""
    match = TAG_PATTERN.search(text or "")
    return _KIND_BY_TAG_NAME[match.group(1)] if match else None


def _squash(label: str) -> str:
    return "".join(label.split())


class MessageCodec:
    """Renders summaries to thread messages and parses them back."""

    def __init__(self, locale: str = DEFAULT_LOCALE, timezone: str = DEFAULT_TIMEZONE,
                 separator: str = DEFAULT_SEPARATOR):
        self.locale = locale
        self.timezone = timezone
        self.separator = separator
        self.strings = get_locale_strings(locale)
        self._known_labels = {
            _squash(variant)
            for strings in LOCALES.values()
            for variant in strings.period_label_variants()
        }

    @property
    def period_label(self) -> str:
        return self.strings.period_label

    def render(self, summary: Summary, period_label: Optional[str] = None) -> str:
        """Text to post for `summary`."""
        label = self.period_label if period_label is None else period_label
        return (
            f"{tag_for(summary.kind, summary.year)}\n"
            f"{label} {summary.period.render(self.separator)}\n\n"
            f"{summary.content}"
        )

    def parse(self, raw_text: str, expected_year: int,
              message_id: Optional[str] = None) -> Optional[Summary]:
        """Decode a thread message, or return None if it is not a summary
        for `expected_year`."""
        if not raw_text:
            return None

        lines = raw_text.split("\n")
        tag_index, kind, tag_year = self._find_tag(lines)
        if kind is None:
            return None
        if tag_year != expected_year:
            logger.debug(f"Rejecting {kind.value} entry {message_id}: tag year "
                         f"{tag_year} != {expected_year}")
            return None

        period_index, match = self._find_period_line(lines, tag_index)
        if match is None:
            logger.debug(f"Rejecting {kind.value} entry {message_id}: no period line")
            return None

        start_day = self._parse_date(match.group("start"))
        end_day = self._parse_date(match.group("end"))
        if start_day is None or end_day is None or start_day > end_day:
            logger.debug(f"Rejecting {kind.value} entry {message_id}: bad period "
                         f"{match.group('start')} - {match.group('end')}")
            return None

        content = self._extract_content(lines, tag_index, period_index)
        try:
            period = Period.for_days(start_day, end_day, self.timezone)
            if kind == SummaryKind.WEEKLY:
                return Summary.weekly(content, period, expected_year,
                                      week_number=iso_week_number(start_day), id=message_id)
            if kind == SummaryKind.MONTHLY:
                return Summary.monthly(content, period, expected_year,
                                       month=start_day.month, id=message_id)
            return Summary.yearly(content, period, expected_year, id=message_id)
        except InvalidInputError as e:
            logger.debug(f"Rejecting {kind.value} entry {message_id}: {e}")
            return None

    def _find_tag(self, lines: List[str]) -> Tuple[int, Optional[SummaryKind], Optional[int]]:
        for index, line in enumerate(lines):
            match = TAG_PATTERN.search(line)
            if match:
                return index, _KIND_BY_TAG_NAME[match.group(1)], int(match.group(2))
        return -1, None, None

    def _find_period_line(self, lines: List[str], tag_index: int):
        """Locate the period line: the line right after the tag with any
        label, or a later line carrying a known label."""
        for index in range(tag_index + 1, len(lines)):
            match = PERIOD_LINE_PATTERN.match(lines[index].rstrip("\r"))
            if not match:
                continue
            if index == tag_index + 1 or _squash(match.group("label")) in self._known_labels:
                return index, match
        return -1, None

    @staticmethod
    def _parse_date(value: str) -> Optional[date]:
        try:
            return datetime.strptime(value, DATE_FORMAT).date()
        except ValueError:
            return None

    @staticmethod
    def _extract_content(lines: List[str], tag_index: int, period_index: int) -> str:
        """Drop the tag and period lines plus one blank line after them;
        keep everything else as posted."""
        first, last = sorted((tag_index, period_index))
        head = lines[:first]
        middle = lines[first + 1:last]
        tail = lines[last + 1:]
        if tail and not tail[0].strip():
            tail = tail[1:]
        return "\n".join(head + middle + tail)
