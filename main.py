#!/usr/bin/env python

"""
Timelog - Command line entry point

Start, stop, continue and edit time entries and print the current week.

Usage:
    python main.py start "Write report" --tag work
    python main.py stop
    python main.py edit-group 12 15 --title "Standup" --tag team
    python main.py week --previous

Requirements:
    - Python 3.12+
    - See pyproject.toml for dependencies
"""

import argparse
import asyncio
import datetime
import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent))

from timelog.domain.errors import TimelineError
from timelog.domain.models import UserPreferences, WeekDirection
from timelog.i18n import error_message, language_for_locale, set_language, tr
from timelog.infra.config import get_settings
from timelog.infra.db import init_db
from timelog.services.format_service import LocaleFormatter, format_duration
from timelog.services.import_service import resolve_local
from timelog.services.timeline_service import TimelineService
from timelog.services.week_service import WeekService

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="timelog", description="Track time entries")
    parser.add_argument("--owner", type=int, default=1, help="Owner id (default: 1)")
    commands = parser.add_subparsers(dest="command", required=True)

    start = commands.add_parser("start", help="Start a new entry")
    start.add_argument("title")
    start.add_argument("--tag", action="append", default=[], dest="tags")

    commands.add_parser("stop", help="Stop the running entry")
    commands.add_parser("active", help="Show the running entry")

    cont = commands.add_parser("continue", help="Start a copy of a previous entry")
    cont.add_argument("entry_id", type=int)

    edit = commands.add_parser("edit", help="Edit an entry")
    edit.add_argument("entry_id", type=int)
    edit.add_argument("--title")
    edit.add_argument("--start", help="Local time, ISO format (2026-10-19T09:00)")
    edit.add_argument("--end", help="Local time, ISO format")
    edit.add_argument("--tag", action="append", dest="tags")

    group = commands.add_parser("edit-group", help="Give several entries the same title and tags")
    group.add_argument("entry_ids", type=int, nargs="+")
    group.add_argument("--title")
    group.add_argument("--tag", action="append", dest="tags")

    delete = commands.add_parser("delete", help="Delete an entry")
    delete.add_argument("entry_id", type=int)

    week = commands.add_parser("week", help="Show a week of entries")
    direction = week.add_mutually_exclusive_group()
    direction.add_argument("--previous", action="store_const", const=WeekDirection.PREVIOUS,
                           dest="direction", default=WeekDirection.CURRENT)
    direction.add_argument("--next", action="store_const", const=WeekDirection.NEXT, dest="direction")
    return parser


def parse_local(value, prefs: UserPreferences):
    if value is None:
        return None
    return resolve_local(datetime.datetime.fromisoformat(value), prefs.zone)


async def run(args, prefs: UserPreferences) -> None:
    db = await init_db()
    timeline = TimelineService(db)
    formatter = LocaleFormatter(prefs.locale, prefs.zone)
    now = timeline.clock.now()

    try:
        if args.command == "start":
            entry = await timeline.start(args.owner, args.title, args.tags)
            print(tr("cli.started", title=entry.title, time=formatter.format_time(entry.start_time)))

        elif args.command == "stop":
            entry = await timeline.stop(args.owner)
            print(tr("cli.stopped", title=entry.title, duration=format_duration(entry.duration(now))))

        elif args.command == "continue":
            entry = await timeline.continue_from(args.owner, args.entry_id)
            print(tr("cli.started", title=entry.title, time=formatter.format_time(entry.start_time)))

        elif args.command == "edit":
            entry = await timeline.edit(
                args.owner, args.entry_id,
                new_title=args.title,
                new_start_time=parse_local(args.start, prefs),
                new_end_time=parse_local(args.end, prefs),
                new_tags=args.tags,
            )
            print(tr("cli.updated", entry_id=entry.id))

        elif args.command == "edit-group":
            entries = await timeline.edit_group(args.owner, args.entry_ids,
                                                new_title=args.title, new_tags=args.tags)
            print(tr("cli.group_updated", count=len(entries)))

        elif args.command == "delete":
            await timeline.delete(args.owner, args.entry_id)
            print(tr("cli.deleted", entry_id=args.entry_id))

        elif args.command == "active":
            entry = await timeline.get_active_entry(args.owner)
            if entry is None:
                print(tr("cli.idle"))
            else:
                print(tr("cli.running", title=entry.title,
                         time=formatter.format_time_with_weekday(entry.start_time),
                         duration=format_duration(entry.duration(now))))

        elif args.command == "week":
            page = await WeekService(db, timeline.clock).list_week(
                args.owner, now, args.direction, prefs
            )
            print_week(page)
    finally:
        await db.dispose()


def print_week(page) -> None:
    print(page.week_range_label)
    if not page.day_groups:
        print(f"  {tr('week.no_entries')}")
    for day in page.day_groups:
        print(f"\n{day.label}  {day.total_display}")
        for view in day.segments:
            segment = view.segment
            tags = f" [{', '.join(segment.tags)}]" if segment.tags else ""
            line = (f"  #{segment.entry_id:<5} {view.start_label} - {view.end_label}"
                    f"  {view.duration_display}  {segment.title}{tags}")
            if segment.entry_id in day.overlaps:
                line += f"  ({tr('timeline.overlap', title=day.overlaps[segment.entry_id])})"
            print(line)
    print(f"\n{tr('week.total')}: {page.total_display}")


def main():
    """Main entry point"""
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    prefs = settings.preferences
    set_language(language_for_locale(prefs.locale))

    args = build_parser().parse_args()
    try:
        asyncio.run(run(args, prefs))
    except TimelineError as e:
        logger.debug(f"{args.command} rejected: {e.code} {e.context}")
        print(f"{tr('error')}: {error_message(e)}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
