#!/usr/bin/env python
"""Command line entry point for the Nootverse client."""
import argparse
import asyncio
import logging
import os
import sys
from typing import List, Optional

from nootverse_client import __version__
from nootverse_client.client import NootverseClient
from nootverse_client.config import config
from nootverse_client.exceptions import ConfigurationError, NootverseError
from nootverse_client.models.schema import NoteInput, Session, UniverseInput
from nootverse_client.observability import configure_logging
from nootverse_client.remote.memory_actor import InMemoryActor
from nootverse_client.sync import SyncEngine, ViewItem

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(prog="nootverse", description="Nootverse client")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--gateway",
        help="Gateway URL for actor calls",
        default=os.environ.get("NOOTVERSE_GATEWAY_URL"),
    )
    parser.add_argument(
        "--credential",
        help="Opaque credential from the identity provider (omit for anonymous)",
        default=os.environ.get("NOOTVERSE_CREDENTIAL"),
    )
    parser.add_argument(
        "--memory",
        action="store_true",
        help="Use an empty in-process actor instead of the network",
    )
    parser.add_argument(
        "--log-level",
        help="Logging level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=config.log_level,
    )
    sub = parser.add_subparsers(dest="kind", required=True)

    notes = sub.add_parser("notes", help="Your notes").add_subparsers(dest="action", required=True)
    listing = notes.add_parser("list", help="List notes")
    listing.add_argument("--query", default="")
    listing.add_argument("--tag")
    add = notes.add_parser("add", help="Create a note")
    add.add_argument("title")
    add.add_argument("--content", default="")
    add.add_argument("--tag", action="append", default=[])
    edit = notes.add_parser("edit", help="Edit the note at a position")
    edit.add_argument("position", type=int)
    edit.add_argument("--title")
    edit.add_argument("--content")
    edit.add_argument("--tag", action="append")
    delete = notes.add_parser("delete", help="Delete the note at a position")
    delete.add_argument("position", type=int)
    delete.add_argument("--yes", action="store_true", help="Skip the confirmation prompt")

    universes = sub.add_parser("universes", help="Universes").add_subparsers(dest="action", required=True)
    mine = universes.add_parser("mine", help="List your universes")
    mine.add_argument("--query", default="")
    explore = universes.add_parser("public", help="List or search public universes")
    explore.add_argument("--query", default="")
    explore.add_argument("--tag")
    create = universes.add_parser("create", help="Create a universe")
    create.add_argument("title")
    create.add_argument("--description", default="")
    create.add_argument("--content", default="")
    create.add_argument("--public", action="store_true")
    create.add_argument("--tag", action="append", default=[])
    remove = universes.add_parser("delete", help="Delete one of your universes")
    remove.add_argument("position", type=int)
    remove.add_argument("--yes", action="store_true")

    sub.add_parser("stats", help="Platform statistics")
    sub.add_parser("whoami", help="Identity the actor sees")
    return parser.parse_args(argv)


def update_config(args: argparse.Namespace) -> None:
    """Update the global config with command line arguments."""
    if args.gateway:
        if not args.gateway.startswith(("http://", "https://")):
            raise ConfigurationError(
                f"Gateway must be an http(s) URL, got {args.gateway!r}",
                config_key="gateway_url",
            )
        config.gateway_url = args.gateway


def _print_view(items: List[ViewItem]) -> None:
    for item in items:
        position = "-" if item.position is None else str(item.position)
        tags = f" [{', '.join(item.record.tags)}]" if item.record.tags else ""
        print(f"{position:>4}  {item.record.title}{tags}")


def _confirm(title: str, assume_yes: bool) -> bool:
    if assume_yes:
        return True
    answer = input(f"Delete '{title}'? [y/N] ")
    return answer.strip().lower() in ("y", "yes")


def _report(engine: SyncEngine) -> int:
    for notice in engine.notices:
        print(f"error: {notice.operation}: {notice.message}", file=sys.stderr)
    return 1 if engine.notices else 0


async def _delete(engine: SyncEngine, position: int, assume_yes: bool) -> int:
    await engine.load()
    state = engine.request_delete(position)
    if not _confirm(state.title, assume_yes):
        await engine.cancel()
        return 0
    await engine.confirm_delete()
    return _report(engine)


async def run(args: argparse.Namespace, client: NootverseClient) -> int:
    """Execute one command; returns the process exit code."""
    if args.kind == "stats":
        stats = await client.universe_store.stats()
        print(f"universes: {stats.total_universes}")
        print(f"public:    {stats.public_universes}")
        print(f"users:     {stats.total_users}")
        return 0
    if args.kind == "whoami":
        print(await client.whoami())
        return 0

    if args.kind == "notes":
        engine = client.notes
        if args.action == "list":
            await engine.load()
            view = engine.filter_by_tag(args.tag) if args.tag else await engine.search(args.query)
            _print_view(view)
        elif args.action == "add":
            engine.open_create()
            await engine.commit(NoteInput(title=args.title, content=args.content, tags=args.tag))
        elif args.action == "edit":
            await engine.load()
            state = engine.open_edit(args.position)
            fields = NoteInput.from_note(state.record).model_dump()
            for name, value in (("title", args.title), ("content", args.content), ("tags", args.tag)):
                if value is not None:
                    fields[name] = value
            await engine.commit(NoteInput(**fields))
        elif args.action == "delete":
            return await _delete(engine, args.position, args.yes)
        return _report(engine)

    if args.action == "public":
        engine = client.public_universes
        await client.load_explore()
        view = engine.filter_by_tag(args.tag) if args.tag else await engine.search(args.query)
        _print_view(view)
        return _report(engine)

    engine = client.my_universes
    if args.action == "mine":
        await engine.load()
        _print_view(await engine.search(args.query))
    elif args.action == "create":
        engine.open_create()
        await engine.commit(
            UniverseInput(
                title=args.title,
                description=args.description,
                content=args.content,
                is_public=args.public,
                tags=args.tag,
            )
        )
    elif args.action == "delete":
        return await _delete(engine, args.position, args.yes)
    return _report(engine)


def main(argv: Optional[List[str]] = None) -> int:
    """Run the Nootverse command line client."""
    args = parse_args(argv)
    try:
        update_config(args)
    except ConfigurationError as e:
        print(f"error: {e.message}", file=sys.stderr)
        return 2

    log_level = getattr(logging, args.log_level.upper(), logging.INFO)
    try:
        configure_logging(config.log_dir, level=log_level, console=False)
    except OSError as e:
        logging.basicConfig(level=log_level)
        logger.warning(f"Failed to configure file logging: {e}")

    session = Session.signed_in(args.credential) if args.credential else Session.anonymous()
    factory = InMemoryActor().channel if args.memory else None
    client = NootverseClient(channel_factory=factory, session=session)

    async def _main() -> int:
        try:
            return await run(args, client)
        finally:
            await client.aclose()

    try:
        return asyncio.run(_main())
    except NootverseError as e:
        print(f"error: {e.message}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
