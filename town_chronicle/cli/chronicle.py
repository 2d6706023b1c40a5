# =============================================================================
# town_chronicle/cli/chronicle.py — Offline Town Chronicle
# =============================================================================
#
# Runs the full town experience against a local JSON document instead of
# the API server.  Every command goes through the same TownService the
# API uses, so themes, sentiment, crests and mottos are derived exactly
# as they are online.
#
# Supported subcommands:
#
#   create       — Create a town owned by the local user
#   list         — List the local user's towns
#   show         — Town card: crest + rarity, motto, stats, theme histogram
#   add-story    — Write a story at one of the six locations
#   stories      — List stories (optionally for one location)
#   delete-story — Delete a story and recompute the town
#   regenerate   — Re-roll the crest and motto from the current stories
#   settings     — Change name / visibility / guest entries
#   delete       — Delete a town and all of its stories
#   export       — Print a town as a base64 share string
#   import       — Recreate a town from a share string
#   issue-token  — Mint an API bearer token for a user id (needs AUTH_SECRET)
#
# Usage examples:
#   python -m town_chronicle.cli create "Willowmere"
#   python -m town_chronicle.cli add-story <town_id> --author Ada \
#       --location bakery --content "I love to bake bread"
#   python -m town_chronicle.cli show <town_id>
#   python -m town_chronicle.cli export <town_id> > willowmere.txt
# =============================================================================

"""Standalone CLI for keeping a town chronicle offline.

Usage::

    python -m town_chronicle.cli create "Willowmere"
    python -m town_chronicle.cli add-story <town_id> --author Ada \\
        --location bakery --content "I love to bake bread"
    python -m town_chronicle.cli show <town_id>

Data lives in ``LOCAL_TOWN_PATH`` (default ``data/local_town.json``) unless
``--data`` points elsewhere.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import TextIO

from town_chronicle.api.auth_utils import create_user_token
from town_chronicle.config.lexicon import get_lexicon
from town_chronicle.config.settings import Settings
from town_chronicle.models.town import Location, Story, Town
from town_chronicle.providers.town.json_file_town_provider import JsonFileTownProvider
from town_chronicle.services.crest_generator import crest_rarity, unlocked_crests
from town_chronicle.services.town_service import TownService
from town_chronicle.utils.errors import ChronicleError
from town_chronicle.utils.logging import configure_logging

_DEFAULT_USER = "local-user"


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def _print_town(town: Town, out: TextIO) -> None:
    print(f"{town.name}  [{town.town_id}]", file=out)
    print(f"  Share id:   {town.share_id}", file=out)
    print(f"  Motto:      {town.motto}", file=out)
    print(
        f"  Stories:    {town.stats.total_stories}"
        f"  Locations: {town.stats.locations_with_stories}/{len(Location)}"
        f"  Contributors: {town.stats.contributors}"
        f"  Visitors: {town.stats.total_visitors}",
        file=out,
    )


def _print_story(story: Story, out: TextIO) -> None:
    tags = ", ".join(t.value for t in story.themes) or "-"
    guest = " (guest)" if story.is_guest else ""
    print(
        f"[{story.story_id}] {story.location.display_name} — {story.author}{guest}"
        f"  {story.created_at:%Y-%m-%d %H:%M}",
        file=out,
    )
    print(f"    {story.content}", file=out)
    print(f"    themes: {tags}  sentiment: {story.sentiment:+d}", file=out)


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


async def _handle_create(args: argparse.Namespace, svc: TownService, out: TextIO) -> int:
    town = await svc.create_town(args.user, args.name)
    print(f"Created town {town.name}", file=out)
    print(f"  Town id:  {town.town_id}", file=out)
    print(f"  Share id: {town.share_id}", file=out)
    return 0


async def _handle_list(args: argparse.Namespace, svc: TownService, out: TextIO) -> int:
    towns = await svc.list_my_towns(args.user)
    if not towns:
        print("No towns yet. Create one with: create <name>", file=out)
        return 0
    for town in towns:
        _print_town(town, out)
    return 0


async def _handle_show(args: argparse.Namespace, svc: TownService, out: TextIO) -> int:
    town, stories = await svc.get_town_with_stories(args.town_id)
    _print_town(town, out)

    print(f"\nCrest ({crest_rarity(town.crest, svc.lexicon).value}):", file=out)
    print(town.crest, file=out)

    if town.themes:
        print("\nThemes:", file=out)
        for bucket in town.themes:
            print(f"  {bucket.name.value:<10} {bucket.count}", file=out)

    unlocked = unlocked_crests(stories, svc.lexicon)
    print("\nUnlocked crests:", file=out)
    for crest in unlocked:
        print(f"  {crest.name:<10} {crest.rarity.value:<10} {crest.unlock_condition}", file=out)
    return 0


async def _handle_add_story(args: argparse.Namespace, svc: TownService, out: TextIO) -> int:
    story = await svc.add_story(
        author=args.author,
        content=args.content,
        location=args.location,
        user_id=args.user,
        town_id=args.town_id,
    )
    town, _ = await svc.get_town_with_stories(story.town_id)
    print("Story added.", file=out)
    _print_story(story, out)
    print(f"\nMotto is now: {town.motto}", file=out)
    return 0


async def _handle_stories(args: argparse.Namespace, svc: TownService, out: TextIO) -> int:
    if args.location:
        stories = await svc.list_location_stories(args.town_id, args.location, args.user)
    else:
        _, stories = await svc.get_town_with_stories(args.town_id)
    if not stories:
        print("No stories yet.", file=out)
        return 0
    for story in stories:
        _print_story(story, out)
    return 0


async def _handle_delete_story(args: argparse.Namespace, svc: TownService, out: TextIO) -> int:
    town = await svc.delete_story(args.story_id, args.user)
    print(f"Deleted story {args.story_id}.", file=out)
    print(f"Motto is now: {town.motto}", file=out)
    return 0


async def _handle_regenerate(args: argparse.Namespace, svc: TownService, out: TextIO) -> int:
    town = await svc.regenerate_town(args.town_id, args.user)
    print(town.crest, file=out)
    print(f"Motto: {town.motto}", file=out)
    return 0


async def _handle_settings(args: argparse.Namespace, svc: TownService, out: TextIO) -> int:
    town = await svc.update_town(
        args.town_id,
        args.user,
        name=args.name,
        is_public=args.public,
        allow_guest_entries=args.guests,
    )
    _print_town(town, out)
    print(f"  Public: {town.is_public}  Guest entries: {town.allow_guest_entries}", file=out)
    return 0


async def _handle_delete(args: argparse.Namespace, svc: TownService, out: TextIO) -> int:
    await svc.delete_town(args.town_id, args.user)
    print(f"Deleted town {args.town_id}.", file=out)
    return 0


async def _handle_export(args: argparse.Namespace, svc: TownService, out: TextIO) -> int:
    print(await svc.export_town(args.town_id), file=out)
    return 0


async def _handle_import(args: argparse.Namespace, svc: TownService, out: TextIO) -> int:
    data = args.data_string if args.data_string != "-" else sys.stdin.read()
    town = await svc.import_town(data, args.user)
    print(f"Imported town {town.name}", file=out)
    print(f"  Town id:  {town.town_id}", file=out)
    print(f"  Stories:  {town.stats.total_stories}", file=out)
    return 0


_HANDLERS = {
    "create": _handle_create,
    "list": _handle_list,
    "show": _handle_show,
    "add-story": _handle_add_story,
    "stories": _handle_stories,
    "delete-story": _handle_delete_story,
    "regenerate": _handle_regenerate,
    "settings": _handle_settings,
    "delete": _handle_delete,
    "export": _handle_export,
    "import": _handle_import,
}


async def _dispatch(args: argparse.Namespace, app_settings: Settings, out: TextIO) -> int:
    store = JsonFileTownProvider(args.data or app_settings.local_town_path)
    await store.initialize()
    svc = TownService(
        town_store=store,
        lexicon=get_lexicon(app_settings.lexicon_path or None),
    )
    return await _HANDLERS[args.command](args, svc, out)


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in ("yes", "true", "on", "1"):
        return True
    if lowered in ("no", "false", "off", "0"):
        return False
    raise argparse.ArgumentTypeError(f"expected yes/no, got {value!r}")


def _build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the offline chronicle."""
    parser = argparse.ArgumentParser(
        prog="town-chronicle",
        description="Keep a Town Chronicle offline in a local JSON file.",
    )
    parser.add_argument("--data", help="Path to the local town JSON file")
    parser.add_argument(
        "--user",
        default=_DEFAULT_USER,
        help=f"Acting user id (default: {_DEFAULT_USER})",
    )
    parser.add_argument(
        "--quiet",
        "-q",
        action="store_true",
        help="Only log warnings and errors (to stderr)",
    )
    subparsers = parser.add_subparsers(dest="command", help="Chronicle commands")

    # -- create --
    create_parser = subparsers.add_parser("create", help="Create a town")
    create_parser.add_argument("name", help="Town name (1-100 characters)")

    # -- list --
    subparsers.add_parser("list", help="List your towns")

    # -- show --
    show_parser = subparsers.add_parser("show", help="Show a town card")
    show_parser.add_argument("town_id")

    # -- add-story --
    story_parser = subparsers.add_parser("add-story", help="Write a story")
    story_parser.add_argument("town_id")
    story_parser.add_argument("--author", required=True, help="Author name (1-50 characters)")
    story_parser.add_argument(
        "--location",
        required=True,
        choices=[loc.value for loc in Location],
        help="Where the story happens",
    )
    story_parser.add_argument("--content", required=True, help="Story text (1-500 characters)")

    # -- stories --
    list_parser = subparsers.add_parser("stories", help="List a town's stories")
    list_parser.add_argument("town_id")
    list_parser.add_argument("--location", choices=[loc.value for loc in Location])

    # -- delete-story --
    del_story_parser = subparsers.add_parser("delete-story", help="Delete a story")
    del_story_parser.add_argument("story_id")

    # -- regenerate --
    regen_parser = subparsers.add_parser("regenerate", help="Re-roll crest and motto")
    regen_parser.add_argument("town_id")

    # -- settings --
    settings_parser = subparsers.add_parser("settings", help="Change town settings")
    settings_parser.add_argument("town_id")
    settings_parser.add_argument("--name")
    settings_parser.add_argument("--public", type=_parse_bool, metavar="yes|no")
    settings_parser.add_argument("--guests", type=_parse_bool, metavar="yes|no")

    # -- delete --
    delete_parser = subparsers.add_parser("delete", help="Delete a town and its stories")
    delete_parser.add_argument("town_id")

    # -- export / import --
    export_parser = subparsers.add_parser("export", help="Print a town as a share string")
    export_parser.add_argument("town_id")
    import_parser = subparsers.add_parser("import", help="Import a town from a share string")
    import_parser.add_argument("data_string", help="Share string, or '-' to read stdin")

    # -- issue-token --
    token_parser = subparsers.add_parser("issue-token", help="Mint an API bearer token")
    token_parser.add_argument("user_id")

    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def run(argv: list[str] | None = None, out: TextIO | None = None) -> int:
    """Parse ``argv``, execute one command, and return the exit code."""
    out = out or sys.stdout
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help(out)
        return 1

    app_settings = Settings()
    configure_logging(
        log_level="WARNING" if args.quiet else app_settings.log_level,
        stream=sys.stderr,
    )

    # Token minting needs only the secret, not the town store.
    if args.command == "issue-token":
        if not app_settings.auth_secret:
            print("Error: AUTH_SECRET is not set; the API accepts raw user ids.", file=sys.stderr)
            return 1
        try:
            print(create_user_token(args.user_id, app_settings.auth_secret), file=out)
        except ValueError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            return 1
        return 0

    try:
        return asyncio.run(_dispatch(args, app_settings, out))
    except ChronicleError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


def main() -> None:
    """Console-script entry point."""
    sys.exit(run())


if __name__ == "__main__":
    main()
