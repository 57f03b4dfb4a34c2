"""Command-line entry point for the AV insights pipeline."""

import argparse
import asyncio
import json
import logging
import sys

from .config import config, configure_logging
from .database import AIStatus, Database
from .exceptions import AVInsightsError
from .fetcher import extract_full_text
from .ingest import FeedIngester
from .scheduler import SchedulerManager
from . import worker

logger = logging.getLogger(__name__)


def _cmd_ingest(args) -> int:
    db = Database(config.DB_PATH)
    summary = asyncio.run(FeedIngester(db).ingest_all())
    return 1 if summary.results and summary.failed == len(summary.results) else 0


def _cmd_classify(args) -> int:
    return worker.main()


def _cmd_schedule(args) -> int:
    asyncio.run(SchedulerManager().run())
    return 0


def _cmd_extract(args) -> int:
    result = asyncio.run(extract_full_text(args.url))
    print(json.dumps({
        "title": result.title,
        "byline": result.byline,
        "siteName": result.site_name,
        "excerpt": result.excerpt,
        "length": result.length,
    }, indent=2))
    if result.text_content:
        print()
        print(result.text_content[:args.preview])
    return 0


def _cmd_sources(args) -> int:
    db = Database(config.DB_PATH)
    if args.sources_command == "add":
        source_id = db.add_source(args.name, args.url, args.type)
        logger.info(f"Added source {source_id}: {args.name}")
    elif args.sources_command in ("enable", "disable"):
        if not db.sources.set_active(args.id, args.sources_command == "enable"):
            logger.error(f"No source with id {args.id}")
            return 1
    else:
        for source in db.get_sources():
            state = "active" if source.active else "inactive"
            print(f"{source.id}\t{source.type}\t{state}\t{source.name}\t{source.url}")
    return 0


def _cmd_requeue(args) -> int:
    db = Database(config.DB_PATH)
    count = db.requeue_articles(AIStatus(args.status))
    logger.info(f"Requeued {count} article(s) from {args.status}")
    return 0


def _cmd_status(args) -> int:
    db = Database(config.DB_PATH)
    for status, count in db.get_status_counts().items():
        print(f"{status}\t{count}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="av-insights")
    parser.add_argument("--log-level", default=None, help="Overrides LOG_LEVEL")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("ingest", help="Ingest all active RSS sources once").set_defaults(func=_cmd_ingest)
    sub.add_parser("classify", help="Classify one batch of pending articles").set_defaults(func=_cmd_classify)
    sub.add_parser("schedule", help="Run both schedulers until interrupted").set_defaults(func=_cmd_schedule)

    extract = sub.add_parser("extract", help="Extract full text from a URL")
    extract.add_argument("url")
    extract.add_argument("--preview", type=int, default=600, help="Characters of text to print")
    extract.set_defaults(func=_cmd_extract)

    sources = sub.add_parser("sources", help="Manage feed sources")
    sources_sub = sources.add_subparsers(dest="sources_command")
    add = sources_sub.add_parser("add")
    add.add_argument("name")
    add.add_argument("url")
    add.add_argument("--type", default="rss")
    sources_sub.add_parser("list")
    for action in ("enable", "disable"):
        toggle = sources_sub.add_parser(action)
        toggle.add_argument("id", type=int)
    sources.set_defaults(func=_cmd_sources)

    requeue = sub.add_parser("requeue", help="Move articles back to pending")
    requeue.add_argument(
        "--status",
        default=AIStatus.ERROR.value,
        choices=[s.value for s in AIStatus if s != AIStatus.PENDING],
    )
    requeue.set_defaults(func=_cmd_requeue)

    sub.add_parser("status", help="Show article counts by classification state").set_defaults(func=_cmd_status)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)
    try:
        return args.func(args)
    except AVInsightsError as e:
        logger.error(f"{args.command} failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
