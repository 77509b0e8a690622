"""
Command-line entry point for Recap Bot.

    python -m recapbot weekly --user U0123 [--date 2025-01-08] [--private]
    python -m recapbot monthly --user U0123 [--month 3] [--private]
    python -m recapbot yearly --user U0123 [--private]
    python -m recapbot start-thread --user U0123 [--text "..."]
"""

import argparse
import asyncio
import sys
from datetime import datetime
from typing import List, Optional

from .exceptions import RecapBotError
from .main import CommandResult, create_app


def _parse_date(value: str):
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected YYYY-MM-DD, got {value!r}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="recapbot",
        description="Generate weekly, monthly and yearly activity summaries in a Slack thread.",
    )
    parser.add_argument("--env-file", help="Path to a .env file to load")
    subparsers = parser.add_subparsers(dest="command", required=True)

    weekly = subparsers.add_parser("weekly", help="Summarize one week")
    weekly.add_argument("--date", type=_parse_date, help="Any day in the week (default: today)")

    monthly = subparsers.add_parser("monthly", help="Summarize one month")
    monthly.add_argument("--month", type=int, help="Month number 1-12 (default: this month)")

    yearly = subparsers.add_parser("yearly", help="Summarize the target year")

    start = subparsers.add_parser("start-thread", help="Post the root of a new summary thread")
    start.add_argument("--text", help="Root message text")

    for sub in (weekly, monthly, yearly, start):
        sub.add_argument("--user", required=True, help="Slack user ID")
    for sub in (weekly, monthly, yearly):
        sub.add_argument("--private", action="store_const", const=True, default=None,
                         help="Include private channels for this run")

    return parser


async def run(args: argparse.Namespace) -> CommandResult:
    app = create_app(args.env_file)
    try:
        if args.command == "weekly":
            return await app.run_weekly(args.user, args.date, args.private)
        if args.command == "monthly":
            return await app.run_monthly(args.user, args.month, args.private)
        if args.command == "yearly":
            return await app.run_yearly(args.user, args.private)
        return await app.start_thread(args.user, args.text)
    finally:
        await app.close()


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        result = asyncio.run(run(args))
    except RecapBotError as e:
        print(e.get_user_response(), file=sys.stderr)
        return 1
    print(result.message)
    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())
