#!/usr/bin/env python3
"""Password Chaos — terminal front end.

Usage:
    password-chaos play                      # interactive game
    password-chaos play --offline            # no dictionary/weather lookups
    password-chaos check "Hunter2!" --json   # one offline evaluation
    password-chaos rules                     # catalog in disclosure order

In `play`, every line you type replaces the password. Commands:
    :toggle <rule id>   switch a rule off/on (off rules auto-pass)
    :rules              list rule ids
    :quit               leave
"""

import argparse
import asyncio
import json
import logging
import sys
import threading

from rich.console import Console, Group
from rich.logging import RichHandler
from rich.markup import escape as rich_escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from game_config import load_config
from password_session import GameSession

logger = logging.getLogger(__name__)

console = Console()

PROMPT = "[bold yellow]password>[/bold yellow] "


def setup_logging(verbose: bool = False):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False, rich_tracebacks=True)],
    )


# ============================================================
# RENDERING
# ============================================================

def render_rules_panel(snapshot: dict) -> Panel:
    table = Table(show_header=False, box=None, padding=(0, 1), expand=True)
    table.add_column("state", width=3)
    table.add_column("rule", ratio=1)
    table.add_column("id", style="dim", justify="right")

    rules = snapshot["rules"]
    for i, rule in enumerate(rules):
        is_current = i == len(rules) - 1 and not rule["satisfied"]
        if not rule["active"]:
            mark, style = "–", "dim strike"
        elif rule["satisfied"]:
            mark, style = "✔", "yellow"
        else:
            mark, style = "✘", "bold red" if is_current else "red"
        table.add_row(Text(mark, style=style), Text(rule["label"], style=style), rule["id"])

    title = f"Rules  {snapshot['satisfied']} / {snapshot['total']}"
    border = "yellow" if snapshot["complete"] else "grey50"
    return Panel(table, title=title, border_style=border)


def render_password_panel(snapshot: dict) -> Panel:
    text = Text()
    text.append(snapshot["password"] or "(empty)", style="bold white")
    if snapshot["walk"]:
        text.append(f"\nPaul is {snapshot['walk']}", style="dim")
        if snapshot["hazards"]:
            text.append(f"  ·  {snapshot['hazards']} fire(s) on the path", style="red")
    return Panel(text, title="Password", border_style="blue")


def render_session(snapshot: dict) -> Group:
    parts = [render_password_panel(snapshot), render_rules_panel(snapshot)]
    for notice in snapshot["notices"][-2:]:
        parts.append(Text(notice, style="magenta"))
    if snapshot["complete"]:
        parts.append(Panel(Text("All rules satisfied. Paul is proud. 🥚", justify="center"),
                           border_style="yellow"))
    return Group(*parts)


def _print_session(session: GameSession):
    try:
        console.print(render_session(session.snapshot()))
    except Exception as e:
        logger.exception("Render failed")
        console.print(Panel(Text(f"Render error: {e}", style="red"), title="[red]ERROR[/red]",
                            border_style="red"))


# ============================================================
# COMMANDS
# ============================================================

def _build_config(args, offline: bool = False):
    config = load_config(args.config)
    if args.seed is not None:
        config.seed = args.seed
    if offline or args.offline:
        config.dictionary_enabled = False
        config.weather_enabled = False
    config.disabled_rules = list(config.disabled_rules) + list(args.disable or [])
    return config


def _start_input_reader(loop, lines: asyncio.Queue):
    """Read stdin on a daemon thread so Ctrl+C never waits on input()."""
    def reader():
        while True:
            try:
                line = console.input(PROMPT)
            except (EOFError, KeyboardInterrupt):
                loop.call_soon_threadsafe(lines.put_nowait, None)
                return
            loop.call_soon_threadsafe(lines.put_nowait, line)

    threading.Thread(target=reader, name="password-input", daemon=True).start()


async def _play(session: GameSession):
    session.add_listener(_print_session)
    runner = asyncio.create_task(session.run())
    lines: asyncio.Queue = asyncio.Queue()
    _start_input_reader(asyncio.get_running_loop(), lines)
    _print_session(session)

    try:
        while True:
            line = await lines.get()
            if line is None:
                break
            cmd = line.strip()
            if cmd in (":quit", ":q"):
                break
            if cmd == ":rules":
                ids = ", ".join(r.id for r in session.catalog)
                console.print(f"[dim]{rich_escape(ids)}[/dim]")
                continue
            if cmd.startswith(":toggle"):
                rule_id = cmd[len(":toggle"):].strip()
                if rule_id:
                    session.submit_toggle(rule_id)
                else:
                    console.print("[dim]Usage: :toggle <rule id>[/dim]")
                continue
            session.submit_edit(line)
    finally:
        session.stop()
        await runner


def cmd_play(args) -> int:
    session = GameSession(_build_config(args))
    try:
        asyncio.run(_play(session))
    except KeyboardInterrupt:
        pass
    console.print("\n[yellow]Game over.[/yellow]\n")
    return 0


def cmd_check(args) -> int:
    session = GameSession(_build_config(args, offline=True))
    session.handle_edit(args.password)
    snapshot = session.snapshot()
    if args.json:
        print(json.dumps(snapshot, ensure_ascii=False, indent=2))
    else:
        console.print(render_session(snapshot))
    return 0 if snapshot["complete"] else 1


def cmd_rules(args) -> int:
    session = GameSession(_build_config(args, offline=True))
    table = Table(title="Rule catalog (disclosure order)")
    table.add_column("#", justify="right")
    table.add_column("id")
    table.add_column("tier", style="dim")
    table.add_column("rule")
    for rule in session.catalog:
        table.add_row(str(rule.order + 1), rule.id, rule.tier, rule.label)
    console.print(table)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="password-chaos", description="Password Chaos — the rules keep coming.")
    parser.add_argument("--config", help="Path to a YAML config file.")
    parser.add_argument("--seed", type=int, default=None, help="Seed for forbidden letters, word and fires.")
    parser.add_argument("--offline", action="store_true", help="Skip dictionary and weather lookups.")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging.")
    parser.add_argument("--disable", action="append", metavar="RULE_ID",
                        help="Start with this rule switched off (repeatable).")

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("play", help="Play interactively.").set_defaults(func=cmd_play)

    check = sub.add_parser("check", help="Evaluate one password offline.")
    check.add_argument("password")
    check.add_argument("--json", action="store_true", help="Print the result as JSON.")
    check.set_defaults(func=cmd_check)

    sub.add_parser("rules", help="List the rule catalog.").set_defaults(func=cmd_rules)
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
