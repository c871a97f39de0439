from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Callable, List, Optional

from gippy.agents.chat_agent import ChatSession
from gippy.api.completions import ChatCompletionsClient
from gippy.config import VERSION, Settings
from gippy.errors import MissingCredential, StoreWriteError, ThreadDecodeError, ThreadNotFound
from gippy.models import Config
from gippy.telemetry import setup_telemetry
from gippy.workspace import Workspace

logger = logging.getLogger(__name__)

SUBCOMMANDS = ("configure", "list", "open", "ask", "prompt")
ReadLine = Callable[[str], str]


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gippy",
        description="ChatGPT in the terminal, with conversations saved as resumable threads.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    parser.add_argument("--home", type=Path, default=None, help="State directory (default: ~/.gippy or $GIPPY_HOME)")
    sub = parser.add_subparsers(dest="command")

    configure = sub.add_parser("configure", help="Store your OpenAI API key in the local config file")
    configure.add_argument(
        "--prompt-mode",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Make `ask` open an interactive session by default",
    )

    sub.add_parser("list", help="List all existing chat threads")

    open_ = sub.add_parser("open", help="Make a thread the active one")
    open_.add_argument("thread_id", help="The ID of the thread to open")

    for name, help_text in (
        ("ask", "Ask a question in the active thread (default command)"),
        ("prompt", "Chat interactively until /exit"),
    ):
        p = sub.add_parser(name, help=help_text)
        if name == "ask":
            p.add_argument("query", nargs="+", help="Your query for ChatGPT")
        p.add_argument("-d", "--debug", action="store_true", help="Print the request body and key suffix")
        p.add_argument("-y", "--yes", action="store_true", help="Continue the active thread without asking")

    return parser


def _with_default_command(argv: List[str]) -> List[str]:
    # `gippy "question"` means `gippy ask "question"`
    i = 0
    while i < len(argv):
        if argv[i] == "--home":
            i += 2
        elif argv[i].startswith("--home="):
            i += 1
        else:
            break
    if i >= len(argv):
        return argv
    if argv[i] in SUBCOMMANDS or argv[i] in ("-h", "--help", "--version"):
        return argv
    return argv[:i] + ["ask"] + argv[i:]


def _cmd_configure(ws: Workspace, args: argparse.Namespace, read_line: ReadLine) -> int:
    print("OpenAI API Key Configuration")
    print("--------------------------------")
    try:
        new_key = read_line("Enter your OpenAI API key (sk-...): ").strip()
    except EOFError:
        new_key = ""
    if not new_key:
        print("No key entered. Aborting.")
        return 1

    existing = ws.config.load_or_none()
    prompt_mode = args.prompt_mode
    if prompt_mode is None:
        prompt_mode = existing.prompt_mode if existing is not None else False

    try:
        ws.config.save(Config(api_key=new_key, prompt_mode=prompt_mode))
    except StoreWriteError as e:
        print(f"Failed to save API key: {e}")
        return 1

    print("API key saved successfully!")
    if prompt_mode:
        print("Prompt mode is on: `gippy ask` starts an interactive session.")
    print("You can now run `gippy ask <query>`.")
    return 0


def _cmd_list(ws: Workspace) -> int:
    threads = ws.threads.load_all()
    if not threads:
        print("No chat threads found.")
        return 0
    print("Existing chat threads:")
    for t in threads:
        print(f"  - [{t.id}], {len(t.messages)} message(s)")

    active_id = ws.sessions.get_active_id()
    if active_id:
        print(f"\nActive thread: [{active_id}]")
    return 0


def _cmd_open(ws: Workspace, args: argparse.Namespace) -> int:
    try:
        thread = ws.threads.load(args.thread_id)
    except (ThreadNotFound, ThreadDecodeError) as e:
        print(e)
        return 1

    try:
        ws.sessions.set_active_id(thread.id)
    except StoreWriteError as e:
        print(f"Failed to set active thread ID: {e}")
        return 0
    print(f"Opened thread [{thread.id}], {len(thread.messages)} message(s).")
    return 0


async def _cmd_chat(
    ws: Workspace,
    args: argparse.Namespace,
    settings: Settings,
    client: ChatCompletionsClient,
    read_line: ReadLine,
) -> int:
    try:
        api_key = ws.config.resolve_api_key(settings.openai_api_key)
    except MissingCredential as e:
        print(e)
        print("Please run `gippy configure` or set OPENAI_API_KEY.")
        return 1

    resolution = ws.sessions.resolve_or_create(interactive=not args.yes, read_line=read_line)
    if resolution.created and args.debug:
        print(f"DEBUG: Created new thread: [{resolution.thread.id}]")

    session = ChatSession(workspace=ws, client=client, api_key=api_key, debug=args.debug)

    if args.command == "prompt":
        await session.interactive(resolution.thread, read_line=read_line)
        return 0

    query = " ".join(args.query)
    config = ws.config.load_or_none()
    if config is not None and config.prompt_mode:
        await session.interactive(resolution.thread, read_line=read_line, first_query=query)
    else:
        await session.ask(resolution.thread, query)
    return 0


async def _main(
    argv: Optional[List[str]],
    client: Optional[ChatCompletionsClient],
    read_line: Optional[ReadLine],
) -> int:
    parser = _build_parser()
    raw = list(sys.argv[1:] if argv is None else argv)
    args = parser.parse_args(_with_default_command(raw))
    if args.command is None:
        parser.print_help()
        return 1

    debug = getattr(args, "debug", False)
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    settings = Settings.from_env()
    setup_telemetry(settings)

    ws = Workspace.open(args.home or settings.home)
    reader = read_line or input
    logger.debug("Using state directory %s", ws.paths.root)

    if args.command == "configure":
        return _cmd_configure(ws, args, reader)
    if args.command == "list":
        return _cmd_list(ws)
    if args.command == "open":
        return _cmd_open(ws, args)
    return await _cmd_chat(ws, args, settings, client or ChatCompletionsClient.from_settings(settings), reader)


def main(
    argv: Optional[List[str]] = None,
    client: Optional[ChatCompletionsClient] = None,
    read_line: Optional[ReadLine] = None,
) -> int:
    return asyncio.run(_main(argv, client, read_line))


def run() -> None:
    raise SystemExit(main())


if __name__ == "__main__":
    run()
