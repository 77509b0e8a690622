"""
Recap Bot: hierarchical weekly, monthly and yearly activity summaries
kept in a Slack thread.
"""

__version__ = "1.0.0"
