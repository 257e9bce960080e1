from __future__ import annotations
import argparse
import logging
import sys
from typing import List, Optional

import requests
from dotenv import load_dotenv

from lms_records.auth import TokenSession, login
from lms_records.client import LmsClient
from lms_records.config import Settings, load_settings
from lms_records.errors import AuthError, LmsRecordsError
from lms_records.ingest import DEFAULT_INPUT
from lms_records.models import ItemResult, RemovalSelection, Section, SyncPlan, SyncReport
from lms_records.parser import parse_file
from lms_records.planner import SyncRun

log = logging.getLogger("lms_records")

SECTION_CHOICES = {"tech": Section.TECH_SKILLS, "soft": Section.SOFT_SKILLS}

GROUP_ID_HELP = "Id of the affected group. Copy it from the group's URL (it's the first number)."


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="lms-records", description="Uploads lesson records to GoITeens LMS")
    p.add_argument("-q", "--quiet", action="store_true", help="Don't print successful actions")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = p.add_subparsers(dest="command")

    lp = sub.add_parser("login", help="Log in to the admin panel, creating the refresh token file")
    lp.add_argument("username", help="Admin panel username (email)")
    lp.add_argument("password", help="Admin panel password")

    sub.add_parser(
        "login-env",
        help="Log in using LMS_USERNAME and LMS_PASSWORD environment variables (.env supported)",
    )

    up = sub.add_parser(
        "upload",
        help="Upload records for a group from the input file",
        description=(
            "The input file has tech skills and soft skills lessons separated by a blank line. "
            "Each lesson is a tab-separated line: the lesson's name, then its link(s)."
        ),
    )
    up.add_argument("group_id", type=int, help=GROUP_ID_HELP)
    up.add_argument("--input", default=DEFAULT_INPUT, help=f"Input file (default: {DEFAULT_INPUT})")
    up.add_argument("--dry-run", action="store_true", help="Only print what would be uploaded")

    rp = sub.add_parser("remove", help="Remove lesson records of a group (all of them unless narrowed down)")
    rp.add_argument("group_id", type=int, help=GROUP_ID_HELP)
    rp.add_argument("--id", dest="ids", type=int, action="append", default=[], help="Material id to remove (repeatable)")
    rp.add_argument("--section", choices=sorted(SECTION_CHOICES), help="Only remove tech or soft skills lessons")
    rp.add_argument("--dry-run", action="store_true", help="Only print what would be removed")

    ls = sub.add_parser("list", help="List lesson records of a group")
    ls.add_argument("group_id", type=int, help=GROUP_ID_HELP)

    sub.add_parser("help", help="Show this help")
    return p


def _make_http() -> requests.Session:
    return requests.Session()


def _printer(quiet: bool):
    def on_result(res: ItemResult) -> None:
        verb = "uploaded" if res.action == "create" else "removed"
        if res.ok:
            if not quiet:
                print(f'Successfully {verb} lesson "{res.name}"')
        else:
            print(f'Failed to {res.action} lesson "{res.name}": {res.error}', file=sys.stderr)

    return on_result


def _print_summary(report: SyncReport) -> None:
    failed = report.failed
    print(f"Created: {report.created}, removed: {report.removed}, failed: {len(failed)}")
    for f in failed:
        print(f'  - {f.name}: {f.error}', file=sys.stderr)


def _print_plan(plan: SyncPlan) -> None:
    for rec in plan.to_create:
        print(f"+ [{rec.type.value}] {rec.name}")
        names = plan.material_names.get(rec.name) or (rec.name,) * len(rec.links)
        for name, link in zip(names, rec.links):
            print(f"    {link}" if name == rec.name else f"    {link}  as \"{name}\"")
    for remote in plan.to_remove:
        print(f"- [{remote.id}] {remote.name}")
    print(f"{len(plan.to_create)} to create, {len(plan.to_remove)} to remove")


def cmd_login(username: str, password: str, settings: Settings, quiet: bool) -> int:
    if not quiet:
        print("Logging in... It's going to take a long time")
    login(username, password, settings, _make_http())
    if not quiet:
        print(f"Successfully logged in! A file named {settings.token_file} should appear.")
        print("This file is necessary for all other commands to work")
    return 0


def cmd_upload(args, settings: Settings) -> int:
    batch = parse_file(args.input, settings.classifier)
    run = SyncRun()
    plan = run.plan_upload(batch.records, args.group_id)

    if not args.quiet:
        print(
            f"{len(plan.to_create)} lessons to upload "
            f"({batch.lines_without_links} lines without links skipped, {batch.merged} duplicates merged)"
        )
    if args.dry_run:
        _print_plan(plan)
        return 0
    if not plan.to_create:
        print("Nothing to upload")
        return 0

    http = _make_http()
    client = LmsClient(settings, TokenSession(settings, http), http)
    report = run.execute(client, _printer(args.quiet))
    _print_summary(report)
    return 0 if report.ok else 1


def cmd_remove(args, settings: Settings) -> int:
    http = _make_http()
    client = LmsClient(settings, TokenSession(settings, http), http)
    selection = RemovalSelection(
        group_id=args.group_id,
        ids=tuple(args.ids),
        section=SECTION_CHOICES.get(args.section) if args.section else None,
    )

    run = SyncRun()
    plan = run.plan_removal(selection, client.list_records(args.group_id))
    if args.dry_run:
        _print_plan(plan)
        return 0
    if not plan.to_remove:
        print("Nothing to remove")
        return 0 if not selection.ids else 1

    report = run.execute(client, _printer(args.quiet))
    _print_summary(report)
    return 0 if report.ok else 1


def cmd_list(args, settings: Settings) -> int:
    http = _make_http()
    client = LmsClient(settings, TokenSession(settings, http), http)
    records = client.list_records(args.group_id)
    for r in records:
        print(f"{r.id}\t{r.name}")
    if not args.quiet:
        print(f"{len(records)} lesson records in group {args.group_id}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        print("No command selected, read the docs or use help command")
        return 1
    if args.command == "help":
        parser.print_help()
        return 0

    try:
        settings = load_settings()

        if args.command == "login":
            return cmd_login(args.username, args.password, settings, args.quiet)
        if args.command == "login-env":
            if not settings.username or not settings.password:
                raise AuthError(
                    "No username (LMS_USERNAME var) or password (LMS_PASSWORD var) found "
                    "in the environment variables (.env file supported)"
                )
            return cmd_login(settings.username, settings.password, settings, args.quiet)
        if args.command == "upload":
            return cmd_upload(args, settings)
        if args.command == "remove":
            return cmd_remove(args, settings)
        if args.command == "list":
            return cmd_list(args, settings)
    except LmsRecordsError as e:
        log.debug("command %s failed", args.command, exc_info=True)
        partial = getattr(e, "partial_report", None)
        if partial is not None:
            _print_summary(partial)
        print(f"Error: {e}", file=sys.stderr)
        return 1

    parser.error(f"unknown command {args.command}")
    return 2


if __name__ == "__main__":
    sys.exit(main())
