#
# Copyright (c) 2023 Radiance Technologies, Inc.
#
# This file is part of recipebump.
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Lesser General Public License as
# published by the Free Software Foundation, either version 3 of the
# License, or (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU Lesser General Public License for more details.
#
# You should have received a copy of the GNU Lesser General Public
# License along with this program. If not, see
# <http://www.gnu.org/licenses/>.
#
"""
Command-line interface for bumping recipe versions.
"""
import argparse
import logging
import sys
from typing import List, Optional

from recipebump.config import UpdaterConfig
from recipebump.exception import HashResolutionError, UpdateError
from recipebump.updater import UpdateRequest
from recipebump.util.debug import Debug
from recipebump.util.logging import configure_logging

PROG = "recipebump"

logger = logging.getLogger(__name__)


def make_parser() -> argparse.ArgumentParser:
    """
    Create the parser of the command-line arguments.
    """
    parser = argparse.ArgumentParser(
        prog=PROG,
        description="Update the version and source hash of a recipe.")
    parser.add_argument(
        "recipe",
        help="The attribute path of the recipe to update.")
    parser.add_argument("new_version", help="The new version.")
    parser.add_argument(
        "new_hash",
        nargs='?',
        default=None,
        help="The new source hash. "
        "If omitted, then it is computed by fetching the new source.")
    parser.add_argument(
        "new_url",
        nargs='?',
        default=None,
        help="A new source URL to replace the current one.")
    parser.add_argument(
        "--version-key",
        default="version",
        help="The attribute holding the version, by default 'version'.")
    parser.add_argument(
        "--system",
        default=None,
        help="The system for which the recipe is evaluated and fetched.")
    parser.add_argument(
        "--file",
        default=None,
        help="The file to update instead of the one defining the recipe.")
    parser.add_argument(
        "--ignore-same-hash",
        action="store_true",
        help="Do not fail if the new source hash equals the old one.")
    parser.add_argument(
        "--config",
        default=None,
        help="A YAML file configuring the Nix commands to use.")
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Log every invoked command.")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Run an update as requested on the command line.

    Returns
    -------
    int
        The exit status: zero on success, including when there is
        nothing to do, and nonzero otherwise.
    """
    args = make_parser().parse_args(argv)
    Debug.is_debug = args.debug
    configure_logging()
    request = UpdateRequest(
        recipe=args.recipe,
        new_version=args.new_version,
        new_hash=args.new_hash,
        new_url=args.new_url,
        version_key=args.version_key,
        system=args.system,
        file=args.file,
        ignore_same_hash=args.ignore_same_hash)
    try:
        updater = UpdaterConfig.load(args.config).make_updater()
        updater.update(request)
    except UpdateError as e:
        if isinstance(e, HashResolutionError) and e.log:
            sys.stderr.write(e.log)
            if not e.log.endswith("\n"):
                sys.stderr.write("\n")
        logger.debug("Update failed", exc_info=True)
        print(f"{PROG}: error: {e}", file=sys.stderr)
        return e.exit_status
    return 0
