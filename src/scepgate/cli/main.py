"""SCEPGATE command-line entry point.

Usage::

    scepgate -c /etc/scepgate/config.yaml --validate-only
    scepgate -c config.yaml challenge new
    scepgate -c config.yaml challenge check <TOKEN>
    scepgate -c config.yaml challenge gc
    scepgate -c config.yaml challenge verify --challenge s3cret --ou dept --ou device-42
    scepgate -c config.yaml serve
    python -m scepgate -c config.yaml serve
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

log = logging.getLogger(__name__)


def _get_version() -> str:
    from scepgate import __version__

    return __version__


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="scepgate",
        description="SCEPGATE: challenge-password authorization for SCEP CSR signing",
    )
    parser.add_argument(
        "-c",
        "--config",
        required=True,
        metavar="PATH",
        help="Path to the configuration file (YAML or JSON).",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        default=False,
        help="Enable debug output (full tracebacks, verbose logging).",
    )
    parser.add_argument(
        "--validate-only",
        action="store_true",
        default=False,
        help="Validate the configuration file and exit.",
    )
    parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"%(prog)s {_get_version()}",
    )

    subparsers = parser.add_subparsers(dest="command")

    # serve
    subparsers.add_parser("serve", help="Start the admin API (challenge issuance)")

    # challenge
    challenge_parser = subparsers.add_parser("challenge", help="Challenge management")
    challenge_sub = challenge_parser.add_subparsers(dest="challenge_command")
    challenge_sub.add_parser("new", help="Issue a new dynamic challenge")
    check = challenge_sub.add_parser("check", help="Consume a dynamic challenge")
    check.add_argument("token", help="The challenge to check")
    challenge_sub.add_parser("gc", help="Delete expired dynamic challenges")
    verify = challenge_sub.add_parser(
        "verify",
        help="Run the configured verification chain without signing",
    )
    verify.add_argument("--challenge", default="", help="Challenge password to present")
    verify.add_argument(
        "--ou",
        action="append",
        default=[],
        metavar="OU",
        help="Organizational unit of the subject (repeatable)",
    )
    verify.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Deadline for the whole check in seconds",
    )

    return parser


def _print_error(message: str) -> None:
    """Print a user-facing error to stderr."""
    print(f"scepgate: error: {message}", file=sys.stderr)  # noqa: T201


def main(argv: list[str] | None = None) -> None:
    """CLI entry point.  Parses arguments, loads config, dispatches."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    config_path = Path(args.config)
    if not config_path.is_file():
        _print_error(f"configuration file not found: {config_path}")
        sys.exit(1)

    # -- bootstrap logging early (basic stderr until config is loaded) ---
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    from scepgate.config import ConfigValidationError, ScepgateConfig

    try:
        config = ScepgateConfig(config_file=config_path)
    except ConfigValidationError as exc:
        _print_error(str(exc))
        sys.exit(1)

    from scepgate.logging import configure_logging

    configure_logging(config.settings.logging)

    if args.validate_only:
        _print_settings_summary(config)
        sys.exit(0)

    command = args.command

    if command == "challenge":
        from scepgate.cli.commands.challenge import run_challenge

        run_challenge(config, args)
    elif command == "serve":
        _run_serve(config, args)
    else:
        parser.print_help()
        sys.exit(2)


def _run_serve(config, args) -> None:
    """Start the admin API with Flask's built-in server."""
    settings = config.settings
    if not settings.admin_api.enabled:
        _print_error("admin_api.enabled is false; nothing to serve")
        sys.exit(1)

    from scepgate.app import create_app
    from scepgate.challenge.base import StorageError

    try:
        app = create_app(config=config)
    except StorageError as exc:
        if args.debug:
            raise
        _print_error(f"challenge store initialisation failed: {exc.detail}")
        sys.exit(1)

    log.info(
        "Starting admin API on %s:%d",
        settings.server.bind,
        settings.server.port,
    )
    app.run(
        host=settings.server.bind,
        port=settings.server.port,
        debug=args.debug,
        use_reloader=False,
    )


def _print_settings_summary(config) -> None:
    """Print a short summary of the loaded configuration."""
    ch = config.settings.challenge
    lines = [
        f"config:            {config!r}",
        f"static secret:     {'set' if ch.static_secret else 'not set'}",
        f"external check:    {ch.external.url or 'disabled'}",
        f"dynamic store:     {ch.dynamic.backend if ch.dynamic.enabled else 'disabled'}",
        f"allow anonymous:   {ch.allow_anonymous}",
        f"admin API:         {'enabled' if config.settings.admin_api.enabled else 'disabled'}",
    ]
    print("\n".join(lines))  # noqa: T201
