"""
CLI entry point for webvault.

Usage:
  python -m webvault serve [--host H] [--port P]    # Run the API server
  python -m webvault seed                           # Create the demo vault
  python -m webvault render <note.md>               # Print a note as HTML
  python -m webvault links <note.md>                # List a note's wikilinks
  python -m webvault watch-file <file-id> <path>    # Autosave a local file to the server
  python -m webvault import-drive <folder-id> --name N --tokens tokens.json
"""

import argparse
import json
import logging
import sys
import time
from pathlib import Path

from webvault.api_client import ApiError, DEFAULT_BASE_URL, VaultApiClient
from webvault.services.autosave import DEFAULT_DELAY, Notice
from webvault.services.editor_session import EditorSession
from webvault.services.wikilinks import extract_wikilinks, render_markdown

logger = logging.getLogger(__name__)

# seconds to let a running autosave finish on Ctrl+C
CLOSE_TIMEOUT = 10.0


def _print_notice(notice: Notice) -> None:
    print(f"{notice.title}: {notice.description}", file=sys.stderr)


def watch_local_file(editor: EditorSession, path: Path, interval: float = 0.5,
                     polls: int | None = None) -> None:
    """Feed every change of *path* into *editor*; autosave does the rest."""
    last_mtime = None
    while polls is None or polls > 0:
        try:
            mtime = path.stat().st_mtime
        except FileNotFoundError:
            mtime = None
        if mtime is not None and mtime != last_mtime:
            last_mtime = mtime
            editor.edit(path.read_text(encoding="utf-8"))
        if polls is not None:
            polls -= 1
        time.sleep(interval)


def _cmd_serve(args) -> int:
    from webvault import create_app

    app = create_app()
    app.run(host=args.host, port=args.port, debug=args.debug)
    return 0


def _cmd_seed(args) -> int:
    from webvault import create_app
    from webvault.seed import seed_demo_vault

    app = create_app()
    with app.app_context():
        vault = seed_demo_vault(app.extensions["vault_store"])
        print(f"Demo vault created → id {vault.id}")
    return 0


def _cmd_render(args) -> int:
    if not args.file.exists():
        print(f"Error: file not found — {args.file}", file=sys.stderr)
        return 1
    print(render_markdown(args.file.read_text(encoding="utf-8")))
    return 0


def _cmd_links(args) -> int:
    if not args.file.exists():
        print(f"Error: file not found — {args.file}", file=sys.stderr)
        return 1
    for target in extract_wikilinks(args.file.read_text(encoding="utf-8")):
        print(target)
    return 0


def _cmd_watch_file(args) -> int:
    client = VaultApiClient(args.server)
    try:
        remote = client.get_file(args.file_id)
    except ApiError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    if not args.path.exists():
        args.path.write_text(remote.get("content", ""), encoding="utf-8")

    editor = EditorSession(
        args.file_id,
        remote.get("content", ""),
        persist=lambda content: client.update_file(args.file_id, content=content),
        delay=args.delay,
        on_notice=_print_notice,
    )
    print(f"Watching {args.path} → file {args.file_id} (Ctrl+C to stop)…")
    try:
        watch_local_file(editor, args.path, interval=args.interval)
    except KeyboardInterrupt:
        editor.close(wait=CLOSE_TIMEOUT)
        print("\nStopped.")
    return 0 if not editor.has_unsaved_changes else 1


def _cmd_import_drive(args) -> int:
    from webvault import create_app
    from webvault.services.sync import VaultSync

    if not args.tokens.exists():
        print(f"Error: tokens file not found — {args.tokens}", file=sys.stderr)
        return 1
    tokens = json.loads(args.tokens.read_text())

    app = create_app()
    with app.app_context():
        drive = app.extensions["drive_auth"].build_client(tokens)
        vault, report = VaultSync(app.extensions["vault_store"], drive).import_folder(
            args.folder_id, args.name
        )
        print(f"Imported vault {vault.id} ({vault.name}).")
        print(json.dumps(report.to_dict(), indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="webvault",
        description="Markdown vault editor with Google Drive sync.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the API server.")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=5000)
    serve.add_argument("--debug", action="store_true")

    sub.add_parser("seed", help="Create the demo vault.")

    render = sub.add_parser("render", help="Render a markdown note to HTML.")
    render.add_argument("file", type=Path)

    links = sub.add_parser("links", help="List the wikilink targets in a note.")
    links.add_argument("file", type=Path)

    watch = sub.add_parser("watch-file", help="Autosave a local file to a note on the server.")
    watch.add_argument("file_id", type=int)
    watch.add_argument("path", type=Path)
    watch.add_argument("--server", default=DEFAULT_BASE_URL)
    watch.add_argument("--delay", type=float, default=DEFAULT_DELAY,
                       help="Autosave debounce delay in seconds.")
    watch.add_argument("--interval", type=float, default=0.5,
                       help="How often to poll the local file, in seconds.")

    imp = sub.add_parser("import-drive", help="Import a Google Drive folder as a vault.")
    imp.add_argument("folder_id")
    imp.add_argument("--name", required=True)
    imp.add_argument("--tokens", type=Path, required=True,
                     help="JSON file with OAuth tokens (access_token, refresh_token).")
    return parser


COMMANDS = {
    "serve": _cmd_serve,
    "seed": _cmd_seed,
    "render": _cmd_render,
    "links": _cmd_links,
    "watch-file": _cmd_watch_file,
    "import-drive": _cmd_import_drive,
}


def main(argv=None) -> None:
    args = build_parser().parse_args(argv)
    sys.exit(COMMANDS[args.command](args))


if __name__ == "__main__":
    main()
