"""Entry point for `python -m dcup` / `dcup`.

Subcommands:
    dcup up [PATH]         Start the devcontainer for the workspace containing PATH
    dcup down [CONTEXT]    Tear down the session CONTEXT belongs to
    dcup status            List registered sessions
"""

from __future__ import annotations

import argparse
import asyncio
import sys

from dcup.errors import DcupError
from dcup.logger import logger, set_level


def _controller(args: argparse.Namespace):
    from dcup.config import get_settings
    from dcup.lifecycle import LifecycleController
    from dcup.plugin import get_editor
    from dcup.registry import SessionRegistry

    s = get_settings()
    if getattr(args, "engine", None):
        s.container.engine = args.engine
    if getattr(args, "dotfiles_repository", None):
        s.container.dotfiles_repository = args.dotfiles_repository
    set_level(s.logging.level)
    return LifecycleController(s, get_editor(s), registry=SessionRegistry(s.registry_file))


async def _up(args: argparse.Namespace) -> None:
    controller = _controller(args)
    op = await controller.start_up(args.path)
    if op.process.log_path is not None:
        print(f"Build log: {op.process.log_path}", file=sys.stderr)
    handle = await op
    print(f"Container {handle.container_id} ready at {handle.address}", file=sys.stderr)


async def _down(args: argparse.Namespace) -> None:
    controller = _controller(args)
    removed = await controller.down(args.context)
    print(f"Removed container {removed}", file=sys.stderr)


def _status(args: argparse.Namespace) -> None:
    from dcup.config import get_settings
    from dcup.registry import SessionRegistry

    sessions = SessionRegistry(get_settings().registry_file).sessions()
    if not sessions:
        print("No devcontainer sessions")
        return
    for root, handle in sorted(sessions.items()):
        print(f"{root}\t{handle.container_id}\t{handle.address}")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="dcup",
        description="Devcontainer session lifecycle",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    up = sub.add_parser("up", help="Start a devcontainer and open its workspace")
    up.add_argument("path", nargs="?", default=".", help="Path inside the workspace")
    up.add_argument("--engine", choices=["docker", "podman"], help="Container engine")
    up.add_argument("--dotfiles-repository", help="Dotfiles repository URL")

    down = sub.add_parser("down", help="Close the session and remove its container")
    down.add_argument(
        "context",
        nargs="?",
        default=".",
        help="Remote address (engine:user@id:/path) or a path in a bound workspace",
    )
    down.add_argument("--engine", choices=["docker", "podman"], help="Container engine")

    sub.add_parser("status", help="List registered sessions")

    args = parser.parse_args(argv)

    try:
        match args.command:
            case "up":
                asyncio.run(_up(args))
            case "down":
                asyncio.run(_down(args))
            case "status":
                _status(args)
    except DcupError as exc:
        logger.debug("Command failed", command=args.command, err=str(exc))
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
