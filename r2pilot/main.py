from __future__ import annotations

import argparse
import sys
from pathlib import Path

from dotenv import find_dotenv, load_dotenv

from r2pilot.core.config import ConfigFile, config_exists, load_config
from r2pilot.core.context import OUTPUT_FORMATS, CommandContext
from r2pilot.core.errors.exceptions import AppError
from r2pilot.core.errors.handlers import run_command
from r2pilot.core.logging import setup_logging
from r2pilot.domains.buckets.command import register as register_buckets
from r2pilot.domains.completion.command import register as register_completion
from r2pilot.domains.config.command import register as register_config
from r2pilot.domains.cors.command import register as register_cors
from r2pilot.domains.doctor.command import register as register_doctor
from r2pilot.domains.files.command import register as register_files
from r2pilot.domains.init.command import register as register_init
from r2pilot.domains.lifecycle.command import register as register_lifecycle
from r2pilot.domains.tokens.command import register as register_tokens
from r2pilot.domains.urls.command import register as register_urls
from r2pilot.domains.website.command import register as register_website
from r2pilot.ui.console import make_console
from r2pilot.version import VERSION


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="r2pilot",
        description="Command-line pilot for Cloudflare R2 and the Cloudflare API",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging and tracebacks")
    parser.add_argument("--output", choices=OUTPUT_FORMATS, help="Output format (default from [output])")
    parser.add_argument("--no-color", action="store_true", help="Disable colored output")

    subparsers = parser.add_subparsers(dest="command", required=True, metavar="COMMAND")
    register_init(subparsers)
    register_config(subparsers)
    register_tokens(subparsers)
    register_buckets(subparsers)
    register_files(subparsers)
    register_urls(subparsers)
    register_completion(subparsers)
    register_doctor(subparsers)
    register_cors(subparsers)
    register_lifecycle(subparsers)
    register_website(subparsers)
    return parser


def _peek_config() -> ConfigFile | None:
    """Config used only for logging/output defaults; commands report load errors themselves."""
    if not config_exists():
        return None
    try:
        return load_config()
    except AppError:
        return None


def main(argv: list[str] | None = None) -> int:
    # Project-local .env values do not override the inherited environment.
    env_path = find_dotenv(usecwd=True)
    if env_path:
        load_dotenv(env_path, override=False)

    parser = create_parser()
    args = parser.parse_args(argv)

    config = _peek_config()
    logging_cfg = config.logging_or_default() if config else None
    output_cfg = config.output_or_default() if config else None

    setup_logging(
        level="DEBUG" if args.verbose else (logging_cfg.level if logging_cfg else "INFO"),
        json_format=bool(logging_cfg and logging_cfg.format == "json"),
        log_file=Path(logging_cfg.file) if logging_cfg and logging_cfg.file else None,
    )

    color = "never" if args.no_color else (output_cfg.color if output_cfg else "auto")
    output = args.output or (output_cfg.default_format if output_cfg else "table")
    if output not in OUTPUT_FORMATS:
        output = "table"

    ctx = CommandContext(
        console=make_console(color=color),
        err_console=make_console(color=color, stderr=True),
        output=output,
        verbose=args.verbose,
    )
    return run_command(lambda: args.handler(ctx, args), console=ctx.err_console, verbose=args.verbose)


if __name__ == "__main__":
    sys.exit(main())
