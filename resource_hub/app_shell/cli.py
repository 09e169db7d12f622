import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path
from uuid import UUID

from resource_hub.adapters.session_store import InMemorySessionProvider
from resource_hub.adapters.sqlite.migrator import SQLiteMigrator
from resource_hub.adapters.sqlite.repos import SQLiteProfileRepo, SQLiteRecordStore
from resource_hub.app_shell.browser import BrowserSession
from resource_hub.components.records import CreateRecordInput
from resource_hub.components.render import RenderPlan
from resource_hub.rules.loader import load_rules_or_default
from resource_hub.rules.models import Rules

logger = logging.getLogger("cli")

DB_PATH = "resource_hub.db"
RULES_PATH = "rules.yaml"


def get_db_path(args: argparse.Namespace) -> str:
    return args.db or os.environ.get("RH_DB_PATH", DB_PATH)


def get_rules(args: argparse.Namespace) -> Rules:
    try:
        path = Path(args.rules or os.environ.get("RH_RULES_PATH", RULES_PATH))
        return load_rules_or_default(path)
    except ValueError as e:
        logger.error("Invalid rules file: %s", e)
        sys.exit(1)


def build_session(db_path: str, rules: Rules, email: str | None) -> BrowserSession:
    """A BrowserSession over SQLite. `email` keeps its persisted user id, if any."""
    profiles = SQLiteProfileRepo(db_path)
    known: dict[str, UUID] = {}
    if email:
        existing = profiles.get_by_email(email)
        if existing is not None:
            known[existing.email] = existing.id
    sessions = InMemorySessionProvider(known_users=known)
    return BrowserSession(
        store=SQLiteRecordStore(db_path),
        profiles=profiles,
        sessions=sessions,
        rules=rules,
    )


async def sign_in_and_boot(browser: BrowserSession, email: str | None) -> None:
    await browser.boot()
    if email:
        # The session change triggers the viewer refresh and a reload
        await browser.sessions.sign_in(email, display_name=email.split("@")[0])


def format_plan(plan: RenderPlan) -> str:
    lines = [plan.count_text]
    if plan.status_text:
        lines.append(f"! {plan.status_text}")
    if plan.degraded_notice:
        lines.append(f"! {plan.degraded_notice}")
    for card in plan.cards:
        flags = []
        if card.is_new:
            flags.append("new")
        if not card.approved:
            flags.append("pending")
        suffix = f" [{', '.join(flags)}]" if flags else ""
        lines.append(f"- {card.title} ({card.votes} votes){suffix}")
        lines.append(f"    {card.url}")
        lines.append(f"    {card.category_label}")
        if card.tags:
            lines.append("    " + " ".join(f"#{t}" for t in card.tags))
        if card.can_delete:
            lines.append(f"    id: {card.id}")
    if plan.is_empty:
        lines.append("No resources match these filters.")
    if plan.pager.visible:
        lines.append(plan.pager.label)
    return "\n".join(lines)


def handle_migrate(args: argparse.Namespace) -> None:
    db_path = get_db_path(args)
    applied = SQLiteMigrator(db_path).run_migrations()
    if applied:
        for name in applied:
            print(f"Applied {name}")
    else:
        print("Database is up to date.")


async def handle_browse(args: argparse.Namespace) -> None:
    browser = build_session(get_db_path(args), get_rules(args), args.as_email)
    await sign_in_and_boot(browser, args.as_email)

    browser.filters.set_query(args.query)
    browser.filters.set_category(args.category)
    browser.filters.set_subcategory(args.subcategory)
    browser.filters.set_tag(args.tag)
    await browser.reload()
    if args.page > 1:
        await browser.go_to_page(args.page)

    print(format_plan(browser.plan))


async def handle_add(args: argparse.Namespace) -> None:
    browser = build_session(get_db_path(args), get_rules(args), args.as_email)
    await sign_in_and_boot(browser, args.as_email)

    result = await browser.submit(
        CreateRecordInput(
            title=args.title,
            url=args.url,
            category=args.category,
            subcategory=args.subcategory,
            tags=args.tags,
            description=args.description,
        )
    )
    if not result.success or result.record is None:
        for error in result.errors:
            logger.error("%s: %s", error.code, error.message)
        sys.exit(1)

    state = "published" if result.record.approved else "awaiting approval"
    print(f"Added '{result.record.title}' ({state}).")
    print(f"Id: {result.record.id}")


async def handle_promote(args: argparse.Namespace) -> None:
    profiles = SQLiteProfileRepo(get_db_path(args))
    profile = profiles.get_by_email(args.email)
    if profile is None:
        logger.error("No profile for %s. The user must sign in once first.", args.email)
        sys.exit(1)

    await profiles.save(profile.model_copy(update={"role": args.role}))
    print(f"{profile.email} is now {args.role}.")


async def handle_approve(args: argparse.Namespace) -> None:
    try:
        record_id = UUID(args.record_id)
    except ValueError:
        logger.error("Not a resource id: %s", args.record_id)
        sys.exit(1)

    store = SQLiteRecordStore(get_db_path(args))
    if not await store.set_approved(record_id, not args.revoke):
        logger.error("Resource %s not found.", args.record_id)
        sys.exit(1)
    print("Approval revoked." if args.revoke else "Resource approved.")


def main(argv: list[str] | None = None) -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(description="Resource Hub CLI")
    parser.add_argument("--db", help="SQLite database path (default: $RH_DB_PATH)")
    parser.add_argument("--rules", help="Rules file path (default: $RH_RULES_PATH)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # migrate
    subparsers.add_parser("migrate", help="Apply pending database migrations")

    # browse
    browse_parser = subparsers.add_parser("browse", help="Print one page of the directory")
    browse_parser.add_argument("-q", "--query", default="", help="Free text search")
    browse_parser.add_argument("--category", default="all")
    browse_parser.add_argument("--subcategory", default="")
    browse_parser.add_argument("--tag", default="")
    browse_parser.add_argument("--page", type=int, default=1)
    browse_parser.add_argument("--as", dest="as_email", help="Browse signed in as this email")

    # add
    add_parser = subparsers.add_parser("add", help="Submit a resource")
    add_parser.add_argument("title")
    add_parser.add_argument("url")
    add_parser.add_argument("--category", required=True)
    add_parser.add_argument("--subcategory", default="")
    add_parser.add_argument("--tags", default="", help="Comma separated tags")
    add_parser.add_argument("--description", default="")
    add_parser.add_argument("--as", dest="as_email", required=True, help="Submitter email")

    # promote
    promote_parser = subparsers.add_parser("promote", help="Change a user's role")
    promote_parser.add_argument("email")
    promote_parser.add_argument("--role", choices=["admin", "member"], default="admin")

    # approve
    approve_parser = subparsers.add_parser("approve", help="Approve a pending resource")
    approve_parser.add_argument("record_id")
    approve_parser.add_argument("--revoke", action="store_true", help="Hide it again")

    args = parser.parse_args(argv)

    if args.command == "migrate":
        handle_migrate(args)
    elif args.command == "browse":
        asyncio.run(handle_browse(args))
    elif args.command == "add":
        asyncio.run(handle_add(args))
    elif args.command == "promote":
        asyncio.run(handle_promote(args))
    elif args.command == "approve":
        asyncio.run(handle_approve(args))


if __name__ == "__main__":
    main()
