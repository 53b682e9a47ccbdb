"""Command-line front end for the session manager.

Every invocation rehydrates the persisted session first, so a login in one
run is still active in the next.
"""

from __future__ import annotations

import argparse
import asyncio

from folio.core.session_manager import SessionManager, create_session_manager


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="folio", description="Portfolio session client")
    ap.add_argument("--storage", default=None, help="SQLite storage file (default: STORAGE_PATH)")
    sub = ap.add_subparsers(dest="command", required=True)

    sub.add_parser("status", help="show the signed-in user")

    login = sub.add_parser("login", help="sign in")
    login.add_argument("email")
    login.add_argument("password")

    signup = sub.add_parser("signup", help="create an account and sign in")
    signup.add_argument("email")
    signup.add_argument("password")
    signup.add_argument("name")

    sub.add_parser("logout", help="sign out")

    profile = sub.add_parser("profile", help="update the signed-in user's profile")
    profile.add_argument("--name")
    profile.add_argument("--bio")
    profile.add_argument("--dob", help="date of birth, YYYY-MM-DD")

    activity = sub.add_parser("activity", help="list recent activity")
    activity.add_argument("--limit", type=int, default=10)

    return ap


def _describe(manager: SessionManager) -> str:
    user = manager.current_user
    if user is None:
        return "Not signed in."
    role = "owner" if manager.is_owner else user.role
    return f"Signed in as {user.name} <{user.email}> ({role}, id {user.id})"


async def run(args: argparse.Namespace, manager: SessionManager | None = None) -> int:
    """Execute one CLI command. Returns the process exit code."""
    if manager is None:
        manager = create_session_manager(storage_path=args.storage)
    await manager.rehydrate()

    if args.command == "status":
        print(_describe(manager))
        return 0

    if args.command == "login":
        ok = await manager.login(args.email, args.password)
        print(_describe(manager) if ok else "Invalid credentials.")
        return 0 if ok else 1

    if args.command == "signup":
        ok = await manager.signup(args.email, args.password, args.name)
        print(_describe(manager) if ok else "An account with this email already exists.")
        return 0 if ok else 1

    if args.command == "logout":
        manager.logout()
        print("Signed out.")
        return 0

    if args.command == "profile":
        ok = await manager.update_profile(name=args.name, bio=args.bio, date_of_birth=args.dob)
        print(_describe(manager) if ok else "Not signed in.")
        return 0 if ok else 1

    if args.command == "activity":
        if not manager.is_authenticated:
            print("Not signed in.")
            return 1
        for entry in manager.activities[: args.limit]:
            print(f"{entry.timestamp}  {entry.description}")
        return 0

    raise ValueError(f"Unknown command: {args.command!r}")


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    return asyncio.run(run(args))
