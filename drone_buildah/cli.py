from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import Optional, Sequence

from dotenv import find_dotenv, load_dotenv

from .config import load_settings
from .plugin import BuildahPlugin
from .runtime.errors import PluginError

logger = logging.getLogger(__name__)


def configure_logging(verbose: bool) -> None:
    """Configure root logging based on verbosity level."""
    log_level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(levelname)s %(message)s",
    )
    logging.getLogger("git").setLevel(logging.WARNING)


def parse_args(argv: Sequence[str]) -> argparse.Namespace:
    """Parse CLI arguments."""
    parser = argparse.ArgumentParser(
        description="Build, tag and push container images with rootless buildah.",
    )
    parser.add_argument(
        "--config",
        dest="config_file",
        default=None,
        help="Optional YAML/JSON file with plugin settings. PLUGIN_* variables take precedence.",
    )
    parser.add_argument(
        "--env-file",
        default=None,
        help="Load environment variables from this file before reading settings (default: .env if present).",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Build and tag but do not push.",
    )
    parser.add_argument(
        "--executable",
        default=None,
        help="Path to the buildah binary (default: buildah).",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Entry point for the plugin."""
    args = parse_args(sys.argv[1:] if argv is None else argv)
    configure_logging(args.verbose)
    env_file = args.env_file or find_dotenv(usecwd=True)
    if env_file:
        load_dotenv(env_file)

    try:
        settings = load_settings(os.environ, config_file=args.config_file)
        if args.dry_run:
            settings.dry_run = True
        if args.executable:
            settings.executable = args.executable

        plugin = BuildahPlugin(settings.to_plugin())
        plugin.exec()
    except PluginError as exc:
        logger.error("%s", exc)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
