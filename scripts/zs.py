"""Command-line client for a ZeroStack backend.

This module serves as a CLI wrapper around the zerostack SDK: account
sign-in, item CRUD, owner configuration and a live room chat.
"""
from __future__ import annotations
import argparse
import json
import logging
import sys
import time
from pathlib import Path

SCRIPT_DIR = Path(__file__).parent
PROJECT_ROOT = SCRIPT_DIR.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from zerostack import AppendLog, ZeroStack
from zerostack.config import ClientConfig, load_settings
from zerostack.core.data import item_id
from zerostack.core.exceptions import ZeroStackError
from scripts import session_store


def _json_arg(raw: str) -> dict:
    try:
        value = json.loads(raw)
    except json.JSONDecodeError as e:
        raise argparse.ArgumentTypeError(f"invalid JSON: {e}")
    if not isinstance(value, dict):
        raise argparse.ArgumentTypeError("expected a JSON object")
    return value


def _ttl_arg(raw: str) -> tuple[str, int]:
    node, sep, seconds = raw.partition("=")
    if not sep or not node or not seconds.isdigit():
        raise argparse.ArgumentTypeError("expected NODE=SECONDS")
    return node, int(seconds)


def _print(value) -> None:
    print(json.dumps(value, indent=2, sort_keys=True, default=str))


def display_name(zs: ZeroStack) -> str:
    session = zs.session
    if session.user and session.user.get("email"):
        return session.user["email"]
    return "Guest_" + (session.guest_id or "")[-4:]


def build_client(args: argparse.Namespace) -> ZeroStack:
    """Create the SDK and restore the saved session, else a guest identity."""
    if args.api_url and args.api_key:
        config = ClientConfig(api_url=args.api_url, api_key=args.api_key, ws_url=args.ws_url or "")
    else:
        config = load_settings()
    zs = ZeroStack.from_config(config)

    saved = session_store.load_session()
    if saved and saved.token:
        zs.restore(saved)
        if zs.identity.token_expired():
            print("[session] Saved token has expired; run 'login' again.", file=sys.stderr)
    else:
        zs.enter_as_guest(session_store.get_guest_id())
    return zs


def run_chat(zs: ZeroStack, room: str, limit: int) -> None:
    """Interactive chat in one room: history, live messages, stdin to send."""
    log = AppendLog(context=room, accept=lambda item: (item.get("data") or {}).get("room") == room)
    me = display_name(zs)

    def render(item: dict) -> None:
        data = item.get("data") or {}
        marker = ">" if data.get("author") == me else " "
        print(f"{marker} [{data.get('author', 'Guest')}] {data.get('text', '')}")

    def on_message(item: dict, kind: str) -> None:
        if kind == "created" and log.push(item):
            render(item)

    zs.realtime.on("connect", lambda: print("[status] Connected", file=sys.stderr))
    zs.realtime.on("disconnect", lambda *a: print("[status] Disconnected", file=sys.stderr))
    zs.realtime.on("connect_error", lambda *a: print("[status] Connection error", file=sys.stderr))
    zs.realtime.subscribe("messages", on_message)

    history = zs.data.list("messages", limit=limit, filter={"room": room})
    appended = log.load_history(history)
    if not appended:
        print("No messages yet. Say hello!")
    for item in appended:
        render(item)

    try:
        for line in sys.stdin:
            text = line.strip()
            if not text:
                continue
            try:
                created = zs.data.create("messages", {
                    "text": text,
                    "author": me,
                    "room": room,
                    "timestamp": int(time.time() * 1000),
                })
            except ZeroStackError as e:
                notice = log.note("Failed to send message. Try again.")
                print(f"[system] {notice.message} ({e})", file=sys.stderr)
                continue
            if isinstance(created, dict) and log.push(created):
                render(created)
    except KeyboardInterrupt:
        pass
    finally:
        zs.realtime.disconnect()


def main(argv: list[str] | None = None) -> None:
    """Command-line entry point."""
    parser = argparse.ArgumentParser(description="ZeroStack client")
    parser.add_argument("--api-url", default=None, help="API base URL (default: ZEROSTACK_API_URL)")
    parser.add_argument("--api-key", default=None, help="Project API key (default: ZEROSTACK_API_KEY)")
    parser.add_argument("--ws-url", default=None, help="Realtime URL (default: API URL without /api)")
    parser.add_argument("-v", "--verbose", action="store_true")

    sub = parser.add_subparsers(dest="cmd")

    for name in ("login", "register"):
        sa = sub.add_parser(name)
        sa.add_argument("--email", required=True)
        sa.add_argument("--password", required=True)
        if name == "register":
            sa.add_argument("--confirm", default=None)

    sub.add_parser("logout")
    sub.add_parser("whoami")

    sl = sub.add_parser("list")
    sl.add_argument("--node", required=True)
    sl.add_argument("--limit", type=int, default=50)
    sl.add_argument("--page", type=int, default=None)
    sl.add_argument("--filter", type=_json_arg, default=None)

    sc = sub.add_parser("create")
    sc.add_argument("--node", required=True)
    sc.add_argument("--data", type=_json_arg, required=True)
    sc.add_argument("--visibility", default="public")
    sc.add_argument("--allowed", nargs="*", default=None)

    su = sub.add_parser("update")
    su.add_argument("--node", required=True)
    su.add_argument("--id", required=True)
    su.add_argument("--data", type=_json_arg, required=True)
    su.add_argument("--allowed", nargs="*", default=None)

    sd = sub.add_parser("delete")
    sd.add_argument("--node", required=True)
    sd.add_argument("--id", required=True)

    sp = sub.add_parser("set-public-nodes")
    sp.add_argument("--read", nargs="*", default=None)
    sp.add_argument("--create", nargs="*", default=None)
    sp.add_argument("--update", nargs="*", default=None)
    sp.add_argument("--delete", nargs="*", default=None)

    st = sub.add_parser("set-node-ttl")
    st.add_argument("ttl", nargs="+", type=_ttl_arg, metavar="NODE=SECONDS")

    sr = sub.add_parser("rooms")
    sr.add_argument("--limit", type=int, default=100)

    sn = sub.add_parser("create-room")
    sn.add_argument("--name", required=True)

    sch = sub.add_parser("chat")
    sch.add_argument("--room", required=True)
    sch.add_argument("--limit", type=int, default=50)

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if not args.cmd:
        parser.print_help()
        return

    if args.cmd == "logout":
        session_store.clear_session()
        print("Logged out")
        return

    zs = build_client(args)

    try:
        if args.cmd in ("login", "register"):
            if args.cmd == "login":
                result = zs.sign_in(args.email, args.password)
            else:
                result = zs.sign_up(args.email, args.password, args.confirm)
            session_store.save_session(zs.session)
            print(f"Signed in as {result.user.get('email', args.email)}")
        elif args.cmd == "whoami":
            _print({"name": display_name(zs), "authenticated": zs.session.authenticated,
                    "claims": zs.identity.token_claims()})
        elif args.cmd == "list":
            _print(zs.data.list(args.node, limit=args.limit, filter=args.filter, page=args.page))
        elif args.cmd == "create":
            _print(zs.data.create(args.node, args.data, {"visibility": args.visibility, "allowed": args.allowed}))
        elif args.cmd == "update":
            _print(zs.data.update(args.node, args.id, args.data, {"allowed": args.allowed}))
        elif args.cmd == "delete":
            _print(zs.data.delete(args.node, args.id))
        elif args.cmd == "set-public-nodes":
            public_nodes = {}
            for permission in ("read", "create", "update", "delete"):
                nodes = getattr(args, permission)
                if nodes is not None:
                    public_nodes[permission] = nodes
            _print(zs.config.set_public_nodes(public_nodes))
        elif args.cmd == "set-node-ttl":
            _print(zs.config.set_node_ttl(dict(args.ttl)))
        elif args.cmd == "rooms":
            rooms = zs.data.items("rooms", limit=args.limit)
            if not rooms:
                print("No rooms yet")
            for room in rooms:
                data = room.get("data") or {}
                print(f"{item_id(room)}  {data.get('name', 'Unnamed')}  (by {data.get('createdBy', 'Unknown')})")
        elif args.cmd == "create-room":
            if not zs.session.authenticated:
                parser.error("Creating rooms requires 'login' first")
            room = zs.data.create("rooms", {"name": args.name.strip(), "createdBy": display_name(zs)})
            print(item_id(room))
        elif args.cmd == "chat":
            run_chat(zs, args.room, args.limit)
        else:
            parser.print_help()
    except ZeroStackError as e:
        print(f"[{args.cmd}] Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
