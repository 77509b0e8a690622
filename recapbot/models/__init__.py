"""
Data models module for Recap Bot.
"""

from .period import Period, DATE_FORMAT, DEFAULT_SEPARATOR, DEFAULT_TIMEZONE
from .summary import Summary, SummaryKind
from .post import Post
from .channel import ChannelRef
from .result import GenerationResult

__all__ = [
    'Period',
    'DATE_FORMAT',
    'DEFAULT_SEPARATOR',
    'DEFAULT_TIMEZONE',
    'Summary',
    'SummaryKind',
    'Post',
    'ChannelRef',
    'GenerationResult',
]
