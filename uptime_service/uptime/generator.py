"""
Render the dashboard once, without serving it.

    python -m uptime.generator [--config uptime.json] [--output page.html]

Loads the config, opens the database (running schema setup and the legacy
migration like the server does), and writes the page to stdout or
``--output``.
"""

import argparse
import os
import sys
from typing import Optional, Sequence

from uptime_common.observability import get_logger, setup_logging

from uptime import database
from uptime.aggregator import compute_status
from uptime.bootstrap import prepare_storage
from uptime.config import DEFAULT_CONFIG_PATH, read_config
from uptime.errors import ConfigError, MigrationError
from uptime.render import render_page

logger = get_logger("generator")


def _parse_args(argv: Optional[Sequence[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="uptime-generate",
        description="Render the uptime dashboard to a static HTML file.",
    )
    parser.add_argument(
        "--config",
        default=os.environ.get("UPTIME_CONFIG_PATH", DEFAULT_CONFIG_PATH),
        help="path to the JSON config (default: $UPTIME_CONFIG_PATH or uptime.json)",
    )
    parser.add_argument(
        "--output",
        "-o",
        help="write the page to this file instead of stdout",
    )
    return parser.parse_args(argv)


def generate(config_path: str) -> str:
    config = read_config(config_path)
    db_url = os.environ.get("UPTIME_DB_URL")
    if db_url:
        config = config.model_copy(update={"db_url": db_url})

    prepare_storage(config)
    statuses = compute_status(database.list_runs(), config.website_names, config.bucket_count)
    return render_page(statuses)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(argv)
    # logs go to stderr so stdout carries only the page
    setup_logging()

    try:
        page = generate(args.config)
    except (ConfigError, MigrationError) as exc:
        logger.error("%s", exc)
        return 1

    if args.output:
        with open(args.output, "w", encoding="utf-8") as fh:
            fh.write(page)
        logger.info("Wrote dashboard to %s", args.output)
        return 0

    try:
        sys.stdout.write(page)
        sys.stdout.flush()
    except BrokenPipeError:
        # reader went away (e.g. `| head`); silence the flush at exit
        devnull = os.open(os.devnull, os.O_WRONLY)
        os.dup2(devnull, sys.stdout.fileno())
        return 0
    return 0


if __name__ == "__main__":
    sys.exit(main())
