import argparse
import asyncio
import json
import logging
import sys

from rich.console import Console
from rich.table import Table

import gemwatch

from gemwatch.auth.flow import LoginEvent, LoginEventKind
from gemwatch.config import load_settings
from gemwatch.portal import Portal
from gemwatch.session import GemWatchError


def _print_streams(console: Console, streams) -> None:
    table = Table(show_header=True, header_style="bold")
    table.add_column("ID")
    table.add_column("Status")
    table.add_column("Sport")
    table.add_column("Title")
    table.add_column("Start")
    table.add_column("Tier")
    for s in streams:
        tier = "premium" if s.is_premium else ("member" if s.requires_auth else "free")
        table.add_row(s.id, s.status, s.sport, s.title, s.start_time, tier)
    console.print(table)


def _print_manifest(console: Console, manifest) -> None:
    console.print(manifest.url)
    table = Table(show_header=True, header_style="bold")
    table.add_column("Bitrate", justify="right")
    table.add_column("Size")
    table.add_column("Label")
    for b in manifest.bitrates:
        table.add_row(str(b.bitrate), f"{b.width}x{b.height}", b.lines)
    console.print(table)


async def _login(portal: Portal, console: Console) -> bool:
    events: list[LoginEvent] = []
    portal.on_login_event(events.append)
    console.print("Sign in using the browser window that just opened...")
    await portal.start_login()
    await portal.login_flow.wait()
    if not events:
        return False
    event = events[-1]
    if event.kind is LoginEventKind.SUCCESS:
        return True
    if event.kind is LoginEventKind.ERROR:
        console.print(f"[red]Login failed:[/red] {event.message}")
    elif event.kind is LoginEventKind.TIMEOUT:
        console.print("[red]Login timed out[/red]")
    else:
        console.print("Login cancelled")
    return False


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="gemwatch")
    parser.add_argument("--debug", action="store_true")
    parser.add_argument("--version", action="store_true")
    sub = parser.add_subparsers(dest="command")

    p_catalog = sub.add_parser("catalog", help="list live, replay and upcoming streams")
    p_catalog.add_argument("--status", choices=["live", "replay", "upcoming"])
    p_catalog.add_argument("--json", action="store_true")

    sub.add_parser("login", help="sign in and show the captured session")

    p_manifest = sub.add_parser("manifest", help="sign in and resolve a stream's manifest")
    p_manifest.add_argument("stream_url")
    p_manifest.add_argument("--json", action="store_true")

    args = parser.parse_args(argv)

    if args.version:
        print(f"gemwatch {gemwatch.__version__} ({gemwatch.__file__})")
        return 0

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        return 2

    console = Console()
    portal = Portal(load_settings())

    try:
        if args.command == "catalog":
            streams = portal.fetch_catalog()
            if args.status:
                streams = [s for s in streams if s.status == args.status]
            if args.json:
                print(json.dumps([s.to_dict() for s in streams], indent=2))
            else:
                _print_streams(console, streams)
            return 0

        if not asyncio.run(_login(portal, console)):
            return 1

        if args.command == "login":
            session = portal.get_session()
            console.print(f"Signed in with {len(session.cookies)} cookies: {', '.join(sorted(session.cookies))}")
            return 0

        manifest = portal.resolve_manifest(args.stream_url)
        if args.json:
            print(json.dumps(manifest.to_dict(), indent=2))
        else:
            _print_manifest(console, manifest)
        return 0
    except GemWatchError as exc:
        print(f"gemwatch: {exc}", file=sys.stderr)
        return 1
