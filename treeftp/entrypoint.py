#!/usr/bin/env python3
"""
Command line entry point for tree-ftp.

Crawls an FTP server and prints the remote tree, either as an indented tree
or as a JSON document. With --ui it starts the Streamlit viewer instead.
"""

import argparse
import dataclasses
import logging
import os
import subprocess
import sys
from typing import List, Optional

from . import __version__
from .address import resolve_address
from .config import Settings, configure_logging
from .core import FtpClient, FtpError, InvalidAddress, Strategy
from .fs import printable, render_json, render_tree

logger = logging.getLogger("treeftp.entrypoint")

APP_PATH = os.path.join(os.path.dirname(__file__), 'ui', 'app.py')

# Settings that a command line flag replaces when given
OVERRIDABLE = ("username", "password", "depth", "json", "bfs", "extended", "timeout", "log_level")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tree-ftp", description="Crawl an FTP server and print its directory tree")
    parser.add_argument("address", nargs="?", help="Server address: IPv4, localhost or domain, optionally with :port")
    parser.add_argument("-u", "--username", default=None, help="Login name (default: anonymous)")
    parser.add_argument("-p", "--password", default=None, help="Login password (default: anonymous)")
    parser.add_argument("-d", "--depth", type=int, default=None, help="Levels to descend below the root listing (default: 1)")
    parser.add_argument("-j", "--json", action="store_true", default=None, help="Print a JSON document instead of a tree")
    parser.add_argument("-b", "--bfs", action="store_true", default=None, help="Crawl breadth first")
    parser.add_argument("-e", "--extended", action="store_true", default=None, help="Use EPSV instead of PASV")
    parser.add_argument("--timeout", type=float, default=None, help="Socket timeout in seconds")
    parser.add_argument("--log-level", default=None, help="Logging level (default: INFO)")
    parser.add_argument("--env-file", default=".env", help="Optional .env file with TREEFTP_* settings")
    parser.add_argument("--ui", action="store_true", help="Start the Streamlit viewer")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def resolve_settings(args: argparse.Namespace) -> Settings:
    settings = Settings.from_env(args.env_file)
    overrides = {name: getattr(args, name) for name in OVERRIDABLE if getattr(args, name) is not None}
    return dataclasses.replace(settings, **overrides)


def start_streamlit_client(host='0.0.0.0', port=8501):
    """Replaces the current process with `streamlit run` on the bundled app."""
    logger.info(f"Starting Streamlit viewer on {host}:{port}...")
    cmd = [
        'streamlit',
        'run',
        APP_PATH,
        f'--server.port={port}',
        f'--server.address={host}',
    ]
    try:
        os.execvp(cmd[0], cmd)
    except OSError as e:
        logger.error(f"Failed to exec Streamlit: {e}")
        return subprocess.run(cmd).returncode


def crawl(settings: Settings, address: str) -> str:
    endpoint = resolve_address(address)
    strategy = Strategy.BFS if settings.bfs else Strategy.DFS

    with FtpClient(endpoint, extended=settings.extended, timeout=settings.timeout,
                   policy=settings.reconnect) as client:
        client.use_credentials(settings.username, settings.password)
        root = client.crawl(settings.depth, strategy)

    return render_json(root) if settings.json else render_tree(root)


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = resolve_settings(args)
        configure_logging(settings.log_level)
    except ValueError as e:
        parser.error(str(e))

    if args.ui:
        return start_streamlit_client()

    if not args.address:
        parser.error("the following arguments are required: address")

    logger.debug(f"Settings: depth={settings.depth}, bfs={settings.bfs}, extended={settings.extended}")

    try:
        output = crawl(settings, args.address)
    except InvalidAddress as e:
        logger.error(str(e))
        return 2
    except FtpError as e:
        logger.error(f"Crawl failed: {e}")
        return 1

    print(printable(output.rstrip("\n")))
    return 0


if __name__ == '__main__':
    sys.exit(main())
